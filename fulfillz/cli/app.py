"""
Fulfillz CLI Application - Built with Click.

Commands:
- demo: run the sample orders against in-memory collaborators
- place-order: place a single order and report the outcome
"""

import asyncio
import sys
from decimal import Decimal

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fulfillz.core.config import OrchestratorConfig
from fulfillz.core.exceptions import ConfigurationError
from fulfillz.listeners import LoggingOrderListener, MetricsOrderListener
from fulfillz.monitoring.logging import setup_order_logging
from fulfillz.orchestrator import OrderOrchestrator
from fulfillz.types import OrderResult

console = Console()

DEMO_STOCK = {"PROD-123": 10, "PROD-456": 10, "PROD-789": 10}

DEMO_ORDERS = [
    (
        "Order 1: Successful Order",
        {
            "customer_id": "CUST-001",
            "customer_email": "alice@example.com",
            "product_id": "PROD-123",
            "quantity": 1,
            "card_number": "4111111111111111",
            "cvv": "123",
            "expiry_date": "12/25",
            "shipping_address": "123 Main Street, Springfield, IL 62701",
            "amount": Decimal("99.99"),
        },
    ),
    (
        "Order 2: Successful Order",
        {
            "customer_id": "CUST-002",
            "customer_email": "bob@example.com",
            "product_id": "PROD-456",
            "quantity": 2,
            "card_number": "5555666677778888",
            "cvv": "456",
            "expiry_date": "12/26",
            "shipping_address": "789 Oak Street, Springfield, IL 62701",
            "amount": Decimal("49.98"),
        },
    ),
    (
        "Order 3: Failed Order (Invalid Payment)",
        {
            "customer_id": "CUST-003",
            "customer_email": "charlie@example.com",
            "product_id": "PROD-789",
            "quantity": 1,
            "card_number": "123",
            "cvv": "99",
            "expiry_date": "01/25",
            "shipping_address": "321 Elm Avenue, Shelbyville, IL 62565",
            "amount": Decimal("29.99"),
        },
    ),
]


# ============================================================================
# CLI Group
# ============================================================================


class OrderedGroup(click.Group):
    """Click Group that lists commands in the order they were added."""

    def list_commands(self, ctx):
        return list(self.commands.keys())


@click.group(cls=OrderedGroup)
@click.version_option(version="0.1.0", prog_name="fulfillz")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for order and collaborator logs",
)
@click.option("--json-logs", is_flag=True, help="Emit structured JSON log lines")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML configuration file (default: FULFILLZ_* environment variables)",
)
@click.pass_context
def cli(ctx, log_level: str, json_logs: bool, config_path: str | None):
    """
    Fulfillz - Order fulfillment saga orchestration.

    \b
    Commands:
      demo             Run the sample orders
      place-order      Place a single order
    """
    ctx.ensure_object(dict)
    order_logger = setup_order_logging(log_level=log_level, json_format=json_logs)

    try:
        config = (
            OrchestratorConfig.from_file(config_path)
            if config_path
            else OrchestratorConfig.from_env()
        )
    except ConfigurationError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    ctx.obj["config"] = config
    ctx.obj["order_logger"] = order_logger


# ============================================================================
# fulfillz demo
# ============================================================================


@click.command()
@click.option(
    "--availability-rate",
    type=click.FloatRange(0.0, 1.0),
    default=1.0,
    show_default=True,
    help="Probability that an availability check passes",
)
@click.option("--seed", type=int, help="Seed for the availability simulation")
@click.pass_context
def demo_cmd(ctx, availability_rate: float, seed: int | None):
    """
    Run the sample orders against in-memory collaborators.

    \b
    Example:
        fulfillz demo
        fulfillz --log-level INFO demo --availability-rate 0.9 --seed 42
    """
    import random

    from fulfillz.collaborators import random_availability

    availability = None
    if availability_rate < 1.0:
        availability = random_availability(availability_rate, random.Random(seed))

    metrics = MetricsOrderListener()
    orchestrator = OrderOrchestrator.with_defaults(
        stock=DEMO_STOCK,
        availability=availability,
        config=ctx.obj["config"],
        listeners=[LoggingOrderListener(ctx.obj["order_logger"]), metrics],
    )

    console.print(Panel.fit("[bold]Order Fulfillment Demonstration[/bold]"))
    console.print("Each order below is a single place_order() call.\n")

    async def run_orders():
        for title, order in DEMO_ORDERS:
            console.print(f"[bold cyan]{title}[/bold cyan]")
            _print_result(await orchestrator.place_order(**order))

    asyncio.run(run_orders())
    _print_metrics(metrics.metrics.get_metrics())


# ============================================================================
# fulfillz place-order
# ============================================================================


@click.command()
@click.option("--customer", "customer_id", required=True, help="Customer id")
@click.option("--email", "customer_email", required=True, help="Customer email")
@click.option("--product", "product_id", required=True, help="Product id")
@click.option("--quantity", type=int, required=True, help="Units to order")
@click.option("--card", "card_number", required=True, help="Card number")
@click.option("--cvv", required=True, help="Card verification value")
@click.option("--expiry", "expiry_date", required=True, help="Card expiry (MM/YY)")
@click.option("--address", "shipping_address", required=True, help="Shipping address")
@click.option("--amount", required=True, help="Order amount, e.g. 99.99")
@click.option(
    "--stock",
    type=click.IntRange(min=0),
    default=10,
    show_default=True,
    help="Units of the product in the in-memory ledger",
)
@click.pass_context
def place_order_cmd(
    ctx,
    customer_id: str,
    customer_email: str,
    product_id: str,
    quantity: int,
    card_number: str,
    cvv: str,
    expiry_date: str,
    shipping_address: str,
    amount: str,
    stock: int,
):
    """
    Place a single order. Exits with status 1 if the order failed.

    \b
    Example:
        fulfillz place-order --customer CUST-001 --email alice@example.com \\
            --product PROD-123 --quantity 1 --card 4111111111111111 --cvv 123 \\
            --expiry 12/25 --address "123 Main Street" --amount 99.99
    """
    orchestrator = OrderOrchestrator.with_defaults(
        stock={product_id: stock},
        config=ctx.obj["config"],
        listeners=[LoggingOrderListener(ctx.obj["order_logger"])],
    )
    result = asyncio.run(
        orchestrator.place_order(
            customer_id=customer_id,
            customer_email=customer_email,
            product_id=product_id,
            quantity=quantity,
            card_number=card_number,
            cvv=cvv,
            expiry_date=expiry_date,
            shipping_address=shipping_address,
            amount=amount,
        )
    )
    _print_result(result)

    if not result.success:
        sys.exit(1)


# ============================================================================
# Output helpers
# ============================================================================


def _print_result(result: OrderResult) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Order ID", result.order_id)
    table.add_row("State", result.state.value)
    if result.transaction_id:
        table.add_row("Transaction", result.transaction_id)
    if result.tracking_number:
        table.add_row("Tracking", result.tracking_number)
    if result.failed_step:
        table.add_row("Failed step", result.failed_step.value)
    if result.compensated_steps:
        table.add_row("Compensated", ", ".join(result.compensated_steps))
    for warning in result.warnings:
        table.add_row("Warning", f"[yellow]{warning}[/yellow]")
    for fault in result.reconciliation_faults:
        table.add_row("Reconcile", f"[bold red]{fault.action}: {fault.error}[/bold red]")

    if result.success:
        title = f"[green]✓ SUCCESS: {result.message}[/green]"
        border = "green"
    else:
        title = f"[red]✗ FAILURE: {result.message}[/red]"
        border = "red"
    console.print(Panel(table, title=title, title_align="left", border_style=border))


def _print_metrics(summary: dict) -> None:
    table = Table(title="Order Metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for key in ("total_placed", "total_succeeded", "total_failed", "total_compensations"):
        table.add_row(key, str(summary[key]))
    table.add_row("success_rate", summary["success_rate"])
    console.print(table)


# ============================================================================
# Command Registration
# ============================================================================

cli.add_command(demo_cmd, name="demo")
cli.add_command(place_order_cmd, name="place-order")


def main():
    """Main entry point for the fulfillz CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
