"""
Simulated payment gateway.

Keeps authorizations in memory and enforces the authorize -> capture | void
lifecycle: a voided authorization cannot be captured, and a captured one
cannot be voided.
"""

import re
import uuid
from decimal import Decimal
from enum import Enum

from fulfillz.collaborators.base import DEFAULT_HISTORY, PaymentGateway, SettledHistory
from fulfillz.core.exceptions import PaymentError
from fulfillz.core.logger import get_logger
from fulfillz.types import AuthorizationToken, TransactionRecord

logger = get_logger(__name__)

_EXPIRY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")


class AuthorizationStatus(Enum):
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    VOIDED = "voided"


class SimulatedPaymentGateway(PaymentGateway):
    """
    In-memory payment gateway.

    Args:
        authorization_limit: Amounts above this are declined (None for no limit)
        history: How many captured or voided authorizations are remembered
            (None keeps all). Forgotten captures can no longer be refunded.
    """

    def __init__(
        self,
        authorization_limit: Decimal | None = None,
        history: int | None = DEFAULT_HISTORY,
    ):
        self.authorization_limit = authorization_limit
        self._settled = SettledHistory(history)
        self._authorizations: dict[str, AuthorizationStatus] = {}
        self._transactions: dict[str, TransactionRecord] = {}
        self._refunds: dict[str, Decimal] = {}

    def status(self, token: AuthorizationToken) -> AuthorizationStatus | None:
        return self._authorizations.get(token.authorization_id)

    async def validate(self, card_number: str, cvv: str, expiry_date: str) -> bool:
        logger.info("Validating payment information...")
        card = (card_number or "").replace(" ", "")
        logger.info(f"Card: ****{card[-4:]}, Expiry: {expiry_date}")

        valid = (
            card.isdigit()
            and 13 <= len(card) <= 19
            and (cvv or "").isdigit()
            and 3 <= len(cvv) <= 4
            and bool(_EXPIRY_PATTERN.match(expiry_date or ""))
        )
        logger.info(f"Payment info is {'VALID' if valid else 'INVALID'}")
        return valid

    async def authorize(self, amount: Decimal) -> AuthorizationToken | None:
        logger.info(f"Authorizing payment of ${amount:.2f}")
        if amount <= 0:
            logger.warning(f"Authorization declined: non-positive amount {amount}")
            return None
        if self.authorization_limit is not None and amount > self.authorization_limit:
            logger.warning(
                f"Authorization declined: ${amount:.2f} exceeds limit "
                f"${self.authorization_limit:.2f}"
            )
            return None

        token = AuthorizationToken(
            authorization_id=f"AUTH-{uuid.uuid4().hex[:12].upper()}", amount=amount
        )
        self._authorizations[token.authorization_id] = AuthorizationStatus.AUTHORIZED
        logger.info(f"Payment authorized: {token.authorization_id}")
        return token

    async def capture(self, token: AuthorizationToken) -> TransactionRecord | None:
        logger.info(f"Capturing payment with auth code: {token.authorization_id}")
        status = self._authorizations.get(token.authorization_id)

        if status is AuthorizationStatus.CAPTURED:
            return self._transactions[token.authorization_id]
        if status is not AuthorizationStatus.AUTHORIZED:
            logger.warning(f"Cannot capture {token.authorization_id}: {status or 'unknown'}")
            return None

        record = TransactionRecord(
            transaction_id=f"TXN-{uuid.uuid4().hex[:12].upper()}",
            authorization_id=token.authorization_id,
            amount=token.amount,
        )
        self._transactions[token.authorization_id] = record
        self._settle(token.authorization_id, AuthorizationStatus.CAPTURED)
        logger.info(f"Payment captured successfully: {record.transaction_id}")
        return record

    async def void(self, token: AuthorizationToken) -> None:
        status = self._authorizations.get(token.authorization_id)
        if status is AuthorizationStatus.VOIDED:
            return
        if status is AuthorizationStatus.CAPTURED:
            msg = (
                f"Authorization {token.authorization_id} is already captured; "
                "issue a refund instead"
            )
            raise PaymentError(msg)
        if status is None:
            msg = f"Unknown authorization: {token.authorization_id}"
            raise PaymentError(msg)

        self._settle(token.authorization_id, AuthorizationStatus.VOIDED)
        logger.info(f"Authorization voided: {token.authorization_id}")

    def _settle(self, authorization_id: str, status: AuthorizationStatus) -> None:
        self._authorizations[authorization_id] = status
        for forgotten in self._settled.add(authorization_id):
            del self._authorizations[forgotten]
            record = self._transactions.pop(forgotten, None)
            if record is not None:
                self._refunds.pop(record.transaction_id, None)

    async def refund(self, transaction_id: str, amount: Decimal) -> str:
        """
        Refund a captured transaction.

        This is the out-of-band path for settled payments; the orchestrator's
        rollback never calls it.
        """
        record = next(
            (t for t in self._transactions.values() if t.transaction_id == transaction_id), None
        )
        if record is None:
            msg = f"Unknown transaction: {transaction_id}"
            raise PaymentError(msg)

        refunded = self._refunds.get(transaction_id, Decimal("0"))
        if amount <= 0 or refunded + amount > record.amount:
            msg = (
                f"Refund of ${amount:.2f} exceeds refundable balance "
                f"${record.amount - refunded:.2f} for {transaction_id}"
            )
            raise PaymentError(msg)

        self._refunds[transaction_id] = refunded + amount
        refund_id = f"REF-{uuid.uuid4().hex[:12].upper()}"
        logger.info(f"Refund processed: {refund_id} (${amount:.2f} for {transaction_id})")
        return refund_id
