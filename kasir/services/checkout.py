"""
Checkout Engine: turns a cart into a receipt and records it in the ledgers.
"""
import enum
import logging
import random
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from kasir.core.clock import Clock, system_clock
from kasir.core.config import Settings, get_settings
from kasir.core.exceptions import (
    EmptyCartError,
    InsufficientCashError,
    InvalidCheckoutStateError,
    PartialStockUpdateError,
    PaymentDeclinedError,
    StorageError,
)
from kasir.models.catalog import CartLine
from kasir.models.sales import CheckoutTotals, PaymentMethod, Receipt
from kasir.services.payments import QrisPaymentSimulator
from kasir.services.sales_ledger import SalesLedger

logger = logging.getLogger(__name__)


class CheckoutState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_PAYMENT = "awaiting_payment"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


def compute_totals(cart: Sequence[CartLine], tax_rate: float) -> CheckoutTotals:
    """Subtotal, tax (rounded half-up to whole rupiah) and total for a cart."""
    subtotal = sum(line.price * line.quantity for line in cart)
    tax = int((Decimal(subtotal) * Decimal(str(tax_rate))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return CheckoutTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)


class CheckoutAttempt:
    """One pass through Idle -> AwaitingPayment -> Completed/Failed/Cancelled."""

    def __init__(self, cart: Sequence[CartLine], totals: CheckoutTotals):
        self.cart: List[CartLine] = [line.model_copy() for line in cart]
        self.totals = totals
        self.state = CheckoutState.IDLE
        self.receipt: Optional[Receipt] = None
        self.error: Optional[Exception] = None
        self.stock_failures: List[int] = []

    @property
    def is_finished(self) -> bool:
        return self.state in (CheckoutState.COMPLETED, CheckoutState.FAILED, CheckoutState.CANCELLED)

    def __repr__(self):
        return f"<CheckoutAttempt(state={self.state.value}, total={self.totals.total})>"


class CheckoutEngine:
    """Validates payment, builds receipts and records them. Holds no state of its own."""

    def __init__(
        self,
        sales_ledger: SalesLedger,
        settings: Optional[Settings] = None,
        clock: Clock = system_clock,
        rng: Optional[random.Random] = None,
    ):
        settings = settings or get_settings()
        self.sales_ledger = sales_ledger
        self.tax_rate = settings.tax_rate
        self.clock = clock
        self.rng = rng or random.Random()

    def compute_totals(self, cart: Sequence[CartLine], tax_rate: Optional[float] = None) -> CheckoutTotals:
        return compute_totals(cart, self.tax_rate if tax_rate is None else tax_rate)

    def begin(self, cart: Sequence[CartLine]) -> CheckoutAttempt:
        """Start a checkout; the attempt then waits for payment."""
        if not cart:
            raise EmptyCartError()
        attempt = CheckoutAttempt(cart, self.compute_totals(cart))
        attempt.state = CheckoutState.AWAITING_PAYMENT
        return attempt

    def pay_cash(self, attempt: CheckoutAttempt, cash_tendered: int) -> Receipt:
        self._require_awaiting(attempt)
        if cash_tendered < attempt.totals.total:
            error = InsufficientCashError(attempt.totals.total, cash_tendered)
            self._fail(attempt, error)
            raise error
        return self._complete(attempt, cash_tendered, PaymentMethod.CASH)

    def pay_qris(self, attempt: CheckoutAttempt) -> Receipt:
        """Complete a QRIS payment that has already been confirmed."""
        self._require_awaiting(attempt)
        return self._complete(attempt, attempt.totals.total, PaymentMethod.QRIS)

    async def confirm_qris(self, attempt: CheckoutAttempt, gateway: QrisPaymentSimulator) -> Receipt:
        """Wait for the QRIS confirmation, then complete or fail the attempt."""
        self._require_awaiting(attempt)
        approved = await gateway.confirm(attempt.totals.total)
        if not approved:
            error = PaymentDeclinedError("QRIS payment was not confirmed")
            self._fail(attempt, error)
            raise error
        return self.pay_qris(attempt)

    def cancel(self, attempt: CheckoutAttempt) -> None:
        self._require_awaiting(attempt)
        attempt.state = CheckoutState.CANCELLED
        logger.info("Checkout cancelled")

    def checkout_cash(self, cart: Sequence[CartLine], cash_tendered: int) -> Receipt:
        return self.pay_cash(self.begin(cart), cash_tendered)

    def checkout_qris(self, cart: Sequence[CartLine]) -> Receipt:
        return self.pay_qris(self.begin(cart))

    def _complete(self, attempt: CheckoutAttempt, cash: int, method: PaymentMethod) -> Receipt:
        totals = attempt.totals
        receipt = Receipt(
            items=attempt.cart,
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
            cash=cash,
            change=cash - totals.total,
            timestamp=self.clock(),
            transaction_id=self.rng.randint(100000, 999999),
            payment_method=method,
        )

        try:
            self.sales_ledger.record_transaction(receipt)
        except PartialStockUpdateError as e:
            # the sale stands; stock bookkeeping is incomplete
            logger.error(f"Checkout {receipt.transaction_id} completed with stock errors: {e}")
            attempt.stock_failures = e.failed_product_ids
        except StorageError as e:
            self._fail(attempt, e)
            raise

        attempt.state = CheckoutState.COMPLETED
        attempt.receipt = receipt
        logger.info(
            f"Checkout completed: #{receipt.transaction_id} {method.value} "
            f"total={receipt.total} change={receipt.change}"
        )
        return receipt

    def _fail(self, attempt: CheckoutAttempt, error: Exception) -> None:
        attempt.state = CheckoutState.FAILED
        attempt.error = error
        logger.warning(f"Checkout failed: {error}")

    @staticmethod
    def _require_awaiting(attempt: CheckoutAttempt) -> None:
        if attempt.state != CheckoutState.AWAITING_PAYMENT:
            raise InvalidCheckoutStateError(attempt.state, CheckoutState.AWAITING_PAYMENT)
