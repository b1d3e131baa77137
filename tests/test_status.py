from types import SimpleNamespace

import pytest

from catering.domain.errors import IllegalTransitionError
from catering.domain.status import OrderStatus, PaymentStatus, apply_transition, check_transition


def order(status="pending", payment_status="pending"):
    return SimpleNamespace(status=status, payment_status=payment_status)


class TestCheckTransition:
    def test_confirm_requires_payment(self):
        ok, message = check_transition(OrderStatus.PENDING, PaymentStatus.PENDING, OrderStatus.CONFIRMED)
        assert not ok
        assert "paid" in message

    def test_confirm_with_payment(self):
        ok, _ = check_transition(
            OrderStatus.PENDING, PaymentStatus.PENDING, OrderStatus.CONFIRMED, PaymentStatus.PAID
        )
        assert ok

    def test_cash_pending_can_be_paid(self):
        ok, _ = check_transition(
            OrderStatus.PENDING, PaymentStatus.PENDING_CASH, OrderStatus.CONFIRMED, PaymentStatus.PAID
        )
        assert ok

    def test_cash_pending_cannot_fail(self):
        ok, _ = check_transition(
            OrderStatus.PENDING, PaymentStatus.PENDING_CASH, OrderStatus.CANCELLED, PaymentStatus.FAILED
        )
        assert not ok

    def test_delivered_is_terminal(self):
        ok, _ = check_transition(OrderStatus.DELIVERED, PaymentStatus.PAID, OrderStatus.CANCELLED)
        assert not ok

    def test_refund_needs_cancellation(self):
        ok, message = check_transition(OrderStatus.CONFIRMED, PaymentStatus.PAID, None, PaymentStatus.REFUNDED)
        assert not ok
        assert "cancelled" in message

    def test_cancel_and_refund_together(self):
        ok, _ = check_transition(
            OrderStatus.CONFIRMED, PaymentStatus.PAID, OrderStatus.CANCELLED, PaymentStatus.REFUNDED
        )
        assert ok

    def test_no_skipping_steps(self):
        ok, _ = check_transition(OrderStatus.CONFIRMED, PaymentStatus.PAID, OrderStatus.DELIVERED)
        assert not ok


class TestApplyTransition:
    def test_writes_string_values(self):
        o = order()
        assert apply_transition(o, OrderStatus.CONFIRMED, PaymentStatus.PAID)
        assert (o.status, o.payment_status) == ("confirmed", "paid")

    def test_same_target_is_noop(self):
        o = order("confirmed", "paid")
        assert apply_transition(o, OrderStatus.CONFIRMED, PaymentStatus.PAID) is False

    def test_illegal_move_leaves_order_untouched(self):
        o = order("cancelled", "failed")
        with pytest.raises(IllegalTransitionError):
            apply_transition(o, OrderStatus.CONFIRMED, PaymentStatus.PAID)
        assert (o.status, o.payment_status) == ("cancelled", "failed")

    def test_paid_never_goes_back_to_pending(self):
        o = order("confirmed", "paid")
        with pytest.raises(IllegalTransitionError):
            apply_transition(o, None, PaymentStatus.PENDING)
