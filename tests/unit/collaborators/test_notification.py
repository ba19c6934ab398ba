"""
Tests for notification dispatchers.
"""

from decimal import Decimal

import pytest

from fulfillz.collaborators import Notification, NotificationDispatcher
from fulfillz.core.exceptions import NotificationError


class FlakyDispatcher(NotificationDispatcher):
    def __init__(self):
        self.attempts = 0

    async def deliver(self, notification: Notification) -> None:
        self.attempts += 1
        raise ConnectionError("smtp unreachable")


class TestLoggingNotificationDispatcher:
    """Tests for the outbox-backed dispatcher."""

    @pytest.mark.asyncio
    async def test_confirmation(self, dispatcher):
        await dispatcher.send_confirmation("alice@example.com", "ORD-1")

        [sent] = dispatcher.outbox
        assert sent.kind == "order_confirmation"
        assert sent.recipient == "alice@example.com"
        assert "ORD-1" in sent.subject
        assert sent.body == {"order_id": "ORD-1"}

    @pytest.mark.asyncio
    async def test_receipt_formats_amount(self, dispatcher):
        await dispatcher.send_receipt("alice@example.com", "TXN-1", Decimal("99.9"))

        [sent] = dispatcher.sent("payment_receipt")
        assert sent.body == {"transaction_id": "TXN-1", "amount": "99.90"}

    @pytest.mark.asyncio
    async def test_shipping_notice_and_cancellation(self, dispatcher):
        await dispatcher.send_shipping_notice("alice@example.com", "TRK-1")
        await dispatcher.send_cancellation("alice@example.com", "ORD-1", "Payment capture failed")

        assert [n.kind for n in dispatcher.sent()] == ["shipping_notice", "cancellation"]
        [cancellation] = dispatcher.sent("cancellation")
        assert cancellation.body["reason"] == "Payment capture failed"

    @pytest.mark.asyncio
    async def test_sent_filters_by_kind(self, dispatcher):
        await dispatcher.send_confirmation("a@example.com", "ORD-1")
        await dispatcher.send_confirmation("b@example.com", "ORD-2")
        await dispatcher.send_shipping_notice("a@example.com", "TRK-1")

        assert len(dispatcher.sent("order_confirmation")) == 2
        assert dispatcher.sent("cancellation") == []


class TestDeliveryFailures:
    """Delivery errors never escape send_* methods."""

    @pytest.mark.asyncio
    async def test_failure_is_swallowed_and_logged(self, caplog):
        dispatcher = FlakyDispatcher()

        with caplog.at_level("WARNING", logger="fulfillz"):
            await dispatcher.send_confirmation("alice@example.com", "ORD-1")

        assert dispatcher.attempts == 1
        assert "not delivered" in caplog.text
        assert "smtp unreachable" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("recipient", ["", "alice.example.com", "@", None])
    async def test_invalid_recipient_raises_on_deliver(self, dispatcher, recipient):
        notification = Notification("order_confirmation", recipient, "Order ORD-1 confirmed")

        with pytest.raises(NotificationError, match="invalid recipient"):
            await dispatcher.deliver(notification)
        assert dispatcher.outbox == []

    @pytest.mark.asyncio
    async def test_invalid_recipient_is_not_sent(self, dispatcher, caplog):
        with caplog.at_level("WARNING", logger="fulfillz"):
            await dispatcher.send_confirmation("not-an-address", "ORD-1")

        assert dispatcher.sent() == []
        assert "invalid recipient" in caplog.text
