# gyansetu/services/payment_service.py
import hmac
import math
import logging
import threading
import time
import uuid
from typing import Dict, Optional, Protocol, Tuple
from ..errors import ErrorKind, PortalError

logger = logging.getLogger(__name__)


class SignatureScheme(Protocol):
    """Computes the signature a gateway would attach to a completed payment"""

    def sign(self, order_id: str, payment_id: str) -> str:
        ...


class DummySignatureScheme:
    """Publicly derivable signature used by the checkout simulation. Not crypto."""

    def sign(self, order_id: str, payment_id: str) -> str:
        return f"dummy-sign-{order_id}-{payment_id}"


class PaymentEngine:
    """
    Mock payment gateway: order book and verified-transaction ledger.

    Verification is idempotent per (order_id, payment_id) and an order can only
    ever be settled by one payment id. A verified transaction can back at most
    one application (see `claim`).
    """

    def __init__(
        self,
        default_amount: int = 19900,
        default_currency: str = "INR",
        scheme: Optional[SignatureScheme] = None
    ):
        self.default_amount = default_amount
        self.default_currency = default_currency
        self.scheme = scheme or DummySignatureScheme()
        self._orders: Dict[str, dict] = {}
        self._transactions: Dict[str, dict] = {}
        self._by_payment: Dict[Tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def _coerce_amount(self, amount) -> float:
        try:
            value = float(amount)
        except (TypeError, ValueError):
            return self.default_amount
        if not math.isfinite(value) or value <= 0:
            return self.default_amount
        return int(value) if value.is_integer() else value

    def create_order(self, amount=None, currency: Optional[str] = None) -> dict:
        amount = self._coerce_amount(amount)
        currency = (currency or "").strip().upper() or self.default_currency
        order_id = f"order_{uuid.uuid4().hex[:16]}"

        with self._lock:
            self._orders[order_id] = {
                "amount": amount,
                "currency": currency,
                "created_at": time.time(),
                "settled_payment_id": None,
            }

        logger.info(f"Created order {order_id} for {amount} {currency}")
        return {"orderId": order_id, "amount": amount, "currency": currency}

    def _mint_transaction_id(self, payment_id: str) -> str:
        # Caller holds the lock
        stamp = int(time.time() * 1000)
        while True:
            transaction_id = f"TXN-{stamp}-{payment_id[-6:]}"
            if transaction_id not in self._transactions:
                return transaction_id
            stamp += 1

    def verify(self, order_id: str, payment_id: str, signature: str) -> dict:
        order_id = order_id or ""
        payment_id = payment_id or ""

        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise PortalError(ErrorKind.INVALID_ORDER, "Invalid order id")

            expected = self.scheme.sign(order_id, payment_id)
            if not payment_id or not hmac.compare_digest(
                str(signature or "").encode(), expected.encode()
            ):
                logger.warning(f"Signature mismatch for order {order_id}")
                raise PortalError(ErrorKind.SIGNATURE_MISMATCH, "Invalid payment signature")

            existing_id = self._by_payment.get((order_id, payment_id))
            if existing_id:
                return self._public(self._transactions[existing_id])

            if order["settled_payment_id"] is not None:
                raise PortalError(ErrorKind.INVALID_ORDER, "Order has already been paid")

            transaction_id = self._mint_transaction_id(payment_id)
            transaction = {
                "transactionId": transaction_id,
                "orderId": order_id,
                "paymentId": payment_id,
                "amount": order["amount"],
                "currency": order["currency"],
                "verifiedAt": time.time(),
                "claimed": False,
            }
            self._transactions[transaction_id] = transaction
            self._by_payment[(order_id, payment_id)] = transaction_id
            order["settled_payment_id"] = payment_id

        logger.info(f"Verified {transaction_id} for order {order_id}")
        return self._public(transaction)

    @staticmethod
    def _public(transaction: dict) -> dict:
        return {
            "transactionId": transaction["transactionId"],
            "amount": transaction["amount"],
            "currency": transaction["currency"],
        }

    def get_transaction(self, transaction_id: str) -> Optional[dict]:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            return dict(transaction) if transaction else None

    def _match(self, transaction_id, order_id, payment_id) -> dict:
        # Caller holds the lock
        transaction = self._transactions.get(transaction_id or "")
        if (
            transaction is None
            or transaction["orderId"] != order_id
            or transaction["paymentId"] != payment_id
        ):
            raise PortalError(ErrorKind.PAYMENT_NOT_VERIFIED, "Payment transaction is not verified.")
        return transaction

    def claim(self, transaction_id: str, order_id: str, payment_id: str) -> dict:
        """Resolve and mark the transaction as consumed by one application"""
        with self._lock:
            transaction = self._match(transaction_id, order_id, payment_id)
            if transaction["claimed"]:
                raise PortalError(
                    ErrorKind.PAYMENT_NOT_VERIFIED,
                    "This payment has already been used for an application."
                )
            transaction["claimed"] = True
            return dict(transaction)

    def release(self, transaction_id: str) -> None:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            if transaction:
                transaction["claimed"] = False
