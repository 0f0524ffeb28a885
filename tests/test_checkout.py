"""
Tests for the Checkout Engine.
"""
import random
from unittest.mock import AsyncMock, Mock, patch

import pytest

from helpers import line
from kasir.core.exceptions import (
    EmptyCartError,
    InsufficientCashError,
    InvalidCheckoutStateError,
    PaymentDeclinedError,
    StorageWriteError,
)
from kasir.models.catalog import Product
from kasir.models.sales import PaymentMethod
from kasir.services.checkout import CheckoutEngine, CheckoutState, compute_totals
from kasir.services.payments import QrisPaymentSimulator


class TestComputeTotals:
    """Test cases for cart totals."""

    def test_totals(self, susu):
        totals = compute_totals([line(susu, 2)], 0.11)

        assert totals.subtotal == 100000
        assert totals.tax == 11000
        assert totals.total == 111000

    def test_order_does_not_matter(self, susu, pampers):
        forward = compute_totals([line(susu, 2), line(pampers, 1)], 0.11)
        backward = compute_totals([line(pampers, 1), line(susu, 2)], 0.11)

        assert forward == backward

    @pytest.mark.parametrize("price,expected_tax", [
        (50, 6),    # 5.5 rounds up
        (150, 17),  # 16.5 rounds up
        (40, 4),    # 4.4 rounds down
        (0, 0),
    ])
    def test_tax_rounds_half_up(self, price, expected_tax):
        product = Product(id=9, name="Permen", price=price)

        totals = compute_totals([line(product, 1)], 0.11)

        assert totals.tax == expected_tax
        assert totals.total == price + expected_tax

    def test_engine_uses_configured_rate(self, checkout_engine, susu):
        assert checkout_engine.compute_totals([line(susu, 1)]).tax == 5500
        assert checkout_engine.compute_totals([line(susu, 1)], tax_rate=0).tax == 0


class TestCheckoutEngine:
    """Test cases for CheckoutEngine."""

    def test_cash_checkout(self, checkout_engine, sales_ledger, stock_ledger, susu):
        """Two units at 50000 paid with 120000 gives 9000 change and stock -2."""
        stock_ledger.record_movement(susu.id, susu.name, "in", 10, "restock")

        receipt = checkout_engine.checkout_cash([line(susu, 2)], 120000)

        assert receipt.subtotal == 100000
        assert receipt.tax == 11000
        assert receipt.total == 111000
        assert receipt.cash == 120000
        assert receipt.change == 9000
        assert receipt.payment_method == PaymentMethod.CASH
        assert 100000 <= receipt.transaction_id <= 999999
        assert stock_ledger.get_current_stock(susu.id) == 8
        assert sales_ledger.get_transaction_history()[0].transaction_id == receipt.transaction_id

    def test_exact_cash_gives_zero_change(self, checkout_engine, susu):
        receipt = checkout_engine.checkout_cash([line(susu, 1)], 55500)

        assert receipt.change == 0

    def test_insufficient_cash_records_nothing(self, checkout_engine, sales_ledger, stock_ledger, susu):
        stock_ledger.record_movement(susu.id, susu.name, "in", 10, "restock")
        attempt = checkout_engine.begin([line(susu, 2)])

        with pytest.raises(InsufficientCashError) as exc_info:
            checkout_engine.pay_cash(attempt, 100000)

        assert exc_info.value.total == 111000
        assert attempt.state == CheckoutState.FAILED
        assert attempt.receipt is None
        assert sales_ledger.get_transaction_history() == []
        assert stock_ledger.get_current_stock(susu.id) == 10

    def test_empty_cart_rejected(self, checkout_engine, sales_ledger):
        with pytest.raises(EmptyCartError):
            checkout_engine.checkout_cash([], 100000)
        assert sales_ledger.get_transaction_history() == []

    def test_checkout_errors_are_value_errors(self, checkout_engine):
        with pytest.raises(ValueError):
            checkout_engine.begin([])

    def test_qris_checkout_has_no_change(self, checkout_engine, susu):
        receipt = checkout_engine.checkout_qris([line(susu, 2)])

        assert receipt.payment_method == PaymentMethod.QRIS
        assert receipt.cash == receipt.total == 111000
        assert receipt.change == 0

    def test_receipt_snapshots_cart(self, checkout_engine, susu):
        """Later edits to the cart do not reach the receipt."""
        cart = [line(susu, 2)]
        attempt = checkout_engine.begin(cart)
        cart[0].quantity = 5

        receipt = checkout_engine.pay_cash(attempt, 200000)

        assert receipt.items[0].quantity == 2

    def test_state_machine(self, checkout_engine, susu):
        attempt = checkout_engine.begin([line(susu, 1)])
        assert attempt.state == CheckoutState.AWAITING_PAYMENT
        assert not attempt.is_finished

        checkout_engine.pay_cash(attempt, 60000)

        assert attempt.state == CheckoutState.COMPLETED
        assert attempt.is_finished
        assert attempt.receipt.change == 4500
        with pytest.raises(InvalidCheckoutStateError):
            checkout_engine.pay_cash(attempt, 60000)

    def test_cancel(self, checkout_engine, sales_ledger, susu):
        attempt = checkout_engine.begin([line(susu, 1)])

        checkout_engine.cancel(attempt)

        assert attempt.state == CheckoutState.CANCELLED
        with pytest.raises(InvalidCheckoutStateError):
            checkout_engine.pay_qris(attempt)
        assert sales_ledger.get_transaction_history() == []

    def test_failed_attempt_cannot_be_paid(self, checkout_engine, susu):
        attempt = checkout_engine.begin([line(susu, 1)])
        with pytest.raises(InsufficientCashError):
            checkout_engine.pay_cash(attempt, 1)

        with pytest.raises(InvalidCheckoutStateError):
            checkout_engine.pay_cash(attempt, 100000)

    def test_transaction_ids_come_from_rng(self, sales_ledger, settings, clock, susu):
        rng = Mock(spec=random.Random)
        rng.randint.return_value = 424242
        engine = CheckoutEngine(sales_ledger, settings, clock, rng=rng)

        receipt = engine.checkout_qris([line(susu, 1)])

        assert receipt.transaction_id == 424242
        rng.randint.assert_called_once_with(100000, 999999)

    def test_partial_stock_failure_completes(self, checkout_engine, sales_ledger, stock_ledger, susu, pampers):
        original = stock_ledger.record_movement

        def flaky(product_id, *args, **kwargs):
            if product_id == susu.id:
                raise StorageWriteError("write failed")
            return original(product_id, *args, **kwargs)

        attempt = checkout_engine.begin([line(susu, 1), line(pampers, 1)])
        with patch.object(stock_ledger, "record_movement", side_effect=flaky):
            receipt = checkout_engine.pay_cash(attempt, 200000)

        assert attempt.state == CheckoutState.COMPLETED
        assert attempt.stock_failures == [susu.id]
        assert sales_ledger.get_transaction_history()[0].transaction_id == receipt.transaction_id

    def test_storage_failure_fails_attempt(self, checkout_engine, sales_ledger, susu):
        attempt = checkout_engine.begin([line(susu, 1)])

        with patch.object(sales_ledger, "record_transaction", side_effect=StorageWriteError("down")):
            with pytest.raises(StorageWriteError):
                checkout_engine.pay_cash(attempt, 100000)

        assert attempt.state == CheckoutState.FAILED
        assert attempt.receipt is None


class TestQrisConfirmation:
    """Test cases for the asynchronous QRIS flow."""

    @pytest.mark.asyncio
    async def test_confirmed_payment_completes(self, checkout_engine, sales_ledger, susu):
        gateway = Mock(spec=QrisPaymentSimulator)
        gateway.confirm = AsyncMock(return_value=True)
        attempt = checkout_engine.begin([line(susu, 1)])

        receipt = await checkout_engine.confirm_qris(attempt, gateway)

        gateway.confirm.assert_awaited_once_with(55500)
        assert attempt.state == CheckoutState.COMPLETED
        assert receipt.payment_method == PaymentMethod.QRIS
        assert len(sales_ledger.get_transaction_history()) == 1

    @pytest.mark.asyncio
    async def test_declined_payment_fails(self, checkout_engine, sales_ledger, susu):
        gateway = Mock(spec=QrisPaymentSimulator)
        gateway.confirm = AsyncMock(return_value=False)
        attempt = checkout_engine.begin([line(susu, 1)])

        with pytest.raises(PaymentDeclinedError):
            await checkout_engine.confirm_qris(attempt, gateway)

        assert attempt.state == CheckoutState.FAILED
        assert sales_ledger.get_transaction_history() == []

    @pytest.mark.asyncio
    async def test_simulator_respects_success_rate(self, settings):
        approving = QrisPaymentSimulator(settings.model_copy(update={"qris_success_rate": 1.0}))
        declining = QrisPaymentSimulator(settings.model_copy(update={"qris_success_rate": 0.0}))

        assert await approving.confirm(1000) is True
        assert await declining.confirm(1000) is False

    @pytest.mark.asyncio
    async def test_simulator_times_out(self, settings):
        slow = QrisPaymentSimulator(settings.model_copy(update={
            "qris_success_rate": 1.0,
            "qris_confirmation_delay": 1.0,
            "qris_timeout": 0.01,
        }))

        assert await slow.confirm(1000) is False

    def test_qr_payload_is_static(self, settings):
        simulator = QrisPaymentSimulator(settings)

        assert simulator.qr_payload() == simulator.qr_payload()
        assert simulator.qr_payload().startswith("000201")
