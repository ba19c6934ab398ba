"""
Tests for the simulated payment gateway.
"""

from decimal import Decimal

import pytest

from fulfillz.collaborators import AuthorizationStatus, SimulatedPaymentGateway
from fulfillz.core.exceptions import PaymentError
from fulfillz.types import AuthorizationToken


class TestValidate:
    """Tests for card validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "card,cvv,expiry",
        [
            ("4111111111111111", "123", "12/25"),
            ("4111 1111 1111 1111", "123", "12/25"),
            ("5555666677778888", "4567", "01/30"),
            ("4222222222222", "999", "06/27"),
        ],
    )
    async def test_valid_cards(self, gateway, card, cvv, expiry):
        assert await gateway.validate(card, cvv, expiry) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "card,cvv,expiry",
        [
            ("123", "99", "01/25"),
            ("4111111111111111", "12", "12/25"),
            ("4111111111111111", "12a", "12/25"),
            ("4111-1111-1111-1111", "123", "12/25"),
            ("4111111111111111", "123", "13/25"),
            ("4111111111111111", "123", "1225"),
            ("", "", ""),
        ],
    )
    async def test_invalid_cards(self, gateway, card, cvv, expiry):
        assert await gateway.validate(card, cvv, expiry) is False


class TestAuthorizeAndCapture:
    """Tests for the authorize -> capture path."""

    @pytest.mark.asyncio
    async def test_authorize(self, gateway):
        token = await gateway.authorize(Decimal("99.99"))

        assert token.authorization_id.startswith("AUTH-")
        assert token.amount == Decimal("99.99")
        assert gateway.status(token) is AuthorizationStatus.AUTHORIZED

    @pytest.mark.asyncio
    async def test_non_positive_amount_declined(self, gateway):
        assert await gateway.authorize(Decimal("0")) is None

    @pytest.mark.asyncio
    async def test_limit_declines(self):
        gateway = SimulatedPaymentGateway(authorization_limit=Decimal("50"))
        assert await gateway.authorize(Decimal("50.01")) is None
        assert await gateway.authorize(Decimal("50.00")) is not None

    @pytest.mark.asyncio
    async def test_capture(self, gateway):
        token = await gateway.authorize(Decimal("10"))
        record = await gateway.capture(token)

        assert record.transaction_id.startswith("TXN-")
        assert record.authorization_id == token.authorization_id
        assert record.amount == Decimal("10")
        assert gateway.status(token) is AuthorizationStatus.CAPTURED

    @pytest.mark.asyncio
    async def test_capture_twice_returns_same_record(self, gateway):
        token = await gateway.authorize(Decimal("10"))
        first = await gateway.capture(token)
        assert await gateway.capture(token) == first

    @pytest.mark.asyncio
    async def test_capture_voided_returns_none(self, gateway):
        token = await gateway.authorize(Decimal("10"))
        await gateway.void(token)
        assert await gateway.capture(token) is None

    @pytest.mark.asyncio
    async def test_capture_unknown_returns_none(self, gateway):
        token = AuthorizationToken(authorization_id="AUTH-NOPE", amount=Decimal("1"))
        assert await gateway.capture(token) is None


class TestVoid:
    """Tests for voiding authorizations."""

    @pytest.mark.asyncio
    async def test_void(self, gateway):
        token = await gateway.authorize(Decimal("10"))
        await gateway.void(token)
        assert gateway.status(token) is AuthorizationStatus.VOIDED

    @pytest.mark.asyncio
    async def test_void_is_idempotent(self, gateway):
        token = await gateway.authorize(Decimal("10"))
        await gateway.void(token)
        await gateway.void(token)
        assert gateway.status(token) is AuthorizationStatus.VOIDED

    @pytest.mark.asyncio
    async def test_void_after_capture_raises(self, gateway):
        token = await gateway.authorize(Decimal("10"))
        await gateway.capture(token)
        with pytest.raises(PaymentError, match="refund"):
            await gateway.void(token)

    @pytest.mark.asyncio
    async def test_void_unknown_raises(self, gateway):
        token = AuthorizationToken(authorization_id="AUTH-NOPE", amount=Decimal("1"))
        with pytest.raises(PaymentError, match="Unknown authorization"):
            await gateway.void(token)


class TestRefund:
    """Tests for out-of-band refunds of captured payments."""

    @pytest.mark.asyncio
    async def test_full_refund(self, gateway):
        record = await gateway.capture(await gateway.authorize(Decimal("20")))
        refund_id = await gateway.refund(record.transaction_id, Decimal("20"))
        assert refund_id.startswith("REF-")

    @pytest.mark.asyncio
    async def test_partial_refunds_up_to_amount(self, gateway):
        record = await gateway.capture(await gateway.authorize(Decimal("20")))
        await gateway.refund(record.transaction_id, Decimal("15"))
        await gateway.refund(record.transaction_id, Decimal("5"))
        with pytest.raises(PaymentError, match="exceeds refundable balance"):
            await gateway.refund(record.transaction_id, Decimal("0.01"))

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, gateway):
        with pytest.raises(PaymentError, match="Unknown transaction"):
            await gateway.refund("TXN-NOPE", Decimal("1"))


class TestSettledHistory:
    """Captured and voided authorizations are forgotten oldest first."""

    @pytest.mark.asyncio
    async def test_forgotten_capture_cannot_be_refunded(self):
        gateway = SimulatedPaymentGateway(history=1)
        captured = await gateway.authorize(Decimal("20"))
        voided = await gateway.authorize(Decimal("5"))
        open_auth = await gateway.authorize(Decimal("7"))

        record = await gateway.capture(captured)
        await gateway.void(voided)

        assert gateway.status(captured) is None
        assert gateway.status(voided) is AuthorizationStatus.VOIDED
        assert gateway.status(open_auth) is AuthorizationStatus.AUTHORIZED
        with pytest.raises(PaymentError, match="Unknown transaction"):
            await gateway.refund(record.transaction_id, Decimal("20"))
