"""
Tests for the fulfillz CLI.
"""

import pytest
import yaml
from click.testing import CliRunner

from fulfillz.cli.app import cli

ORDER_ARGS = [
    "--customer", "CUST-001",
    "--email", "alice@example.com",
    "--product", "PROD-123",
    "--quantity", "1",
    "--card", "4111111111111111",
    "--cvv", "123",
    "--expiry", "12/25",
    "--address", "123 Main Street, Springfield, IL 62701",
    "--amount", "99.99",
]


@pytest.fixture
def runner():
    return CliRunner()


class TestCliGroup:
    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "demo" in result.output
        assert "place-order" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestDemoCommand:
    def test_runs_sample_orders(self, runner):
        result = runner.invoke(cli, ["demo"])

        assert result.exit_code == 0, result.output
        assert result.output.count("SUCCESS") == 2
        assert "FAILURE: Invalid payment information" in result.output
        assert "Order Metrics" in result.output

    def test_availability_simulation(self, runner):
        result = runner.invoke(cli, ["demo", "--availability-rate", "0", "--seed", "1"])

        assert result.exit_code == 0, result.output
        assert "SUCCESS" not in result.output
        assert "Product not available" in result.output


class TestPlaceOrderCommand:
    def test_successful_order(self, runner):
        result = runner.invoke(cli, ["place-order", *ORDER_ARGS])

        assert result.exit_code == 0, result.output
        assert "SUCCESS: Order placed successfully" in result.output
        assert "TXN-" in result.output

    def test_failed_order_exits_one(self, runner):
        result = runner.invoke(cli, ["place-order", *ORDER_ARGS, "--stock", "0"])

        assert result.exit_code == 1
        assert "FAILURE: Product not available" in result.output

    def test_invalid_card(self, runner):
        args = [*ORDER_ARGS]
        args[args.index("--card") + 1] = "123"

        result = runner.invoke(cli, ["place-order", *args])

        assert result.exit_code == 1
        assert "Invalid payment information" in result.output

    def test_missing_option(self, runner):
        result = runner.invoke(cli, ["place-order", "--customer", "CUST-001"])
        assert result.exit_code == 2

    def test_config_file(self, runner, tmp_path):
        config = tmp_path / "fulfillz.yaml"
        config.write_text("orchestrator:\n  order_id_prefix: SHOP\n")

        result = runner.invoke(cli, ["--config", str(config), "place-order", *ORDER_ARGS])

        assert result.exit_code == 0, result.output
        assert "SHOP-" in result.output

    def test_invalid_config_file(self, runner, tmp_path):
        config = tmp_path / "fulfillz.yaml"
        config.write_text("orchestrator:\n  step_timeout: -1\n")

        result = runner.invoke(cli, ["--config", str(config), "place-order", *ORDER_ARGS])

        assert result.exit_code == 2
        assert "step_timeout" in result.output

    @pytest.mark.parametrize(
        "content,expected",
        [
            ("orchestrator:\n  status_history: lots\n", "status_history"),
            ("orchestrator: [unclosed\n", "Invalid YAML"),
        ],
    )
    def test_unreadable_config_file(self, runner, tmp_path, content, expected):
        config = tmp_path / "fulfillz.yaml"
        config.write_text(content)

        result = runner.invoke(cli, ["--config", str(config), "place-order", *ORDER_ARGS])

        assert result.exit_code == 2
        assert expected in result.output
        assert not isinstance(result.exception, (ValueError, yaml.YAMLError))
