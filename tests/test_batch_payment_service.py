from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError

from catering.data.models import BatchOrderModel
from catering.domain.errors import (
    EligibilityError,
    GatewayError,
    OrderNotFoundError,
    PartialWriteError,
    ValidationError,
)
from catering.domain.schemas import CustomerDetails
from catering.services.batch_payment_service import BatchPaymentService

CUSTOMER = CustomerDetails(first_name="Dewi")


@pytest.fixture
def svc(db, gateway, lock, clock):
    return BatchPaymentService(
        db, gateway=gateway, lock_service=lock, split_mode="proportional", gateway_enabled=True, clock=clock
    )


class TestBatchInitiate:
    def test_one_fee_split_across_orders(self, svc, make_order, gateway, db):
        a = make_order(lines=((300000, 1),), child_name="Budi")
        b = make_order(lines=((300000, 1),), child_name="Sari")
        c = make_order(lines=((28000, 1),), child_name="Tono")

        result = svc.initiate("g-1", [a.id, b.id, c.id], CUSTOMER, batch_id="client-batch-1")

        assert result.subtotal == 628000
        assert result.admin_fee == 4400
        assert result.total_amount == 632400
        assert result.batch_id == "client-batch-1"
        assert result.gateway_order_id.startswith("BATCH_")

        call = gateway.calls[0]
        assert call["gross_amount"] == 632400
        assert [i["name"] for i in call["items"]] == [
            "Order Budi",
            "Order Sari",
            "Order Tono",
            "Payment gateway fee",
        ]

        for o in (a, b, c):
            db.refresh(o)
        assert [o.admin_fee for o in (a, b, c)] == [2102, 2102, 196]
        assert sum(o.total_amount for o in (a, b, c)) == 632400
        assert {o.gateway_order_id for o in (a, b, c)} == {result.gateway_order_id}
        assert {o.gateway_token for o in (a, b, c)} == {"token-1"}

        rows = db.query(BatchOrderModel).all()
        assert sorted(r.order_id for r in rows) == sorted([a.id, b.id, c.id])
        assert {r.batch_id for r in rows} == {"client-batch-1"}

    def test_even_split(self, db, gateway, lock, clock, make_order):
        svc = BatchPaymentService(
            db, gateway=gateway, lock_service=lock, split_mode="even", gateway_enabled=True, clock=clock
        )
        a = make_order(lines=((20000, 1),))
        b = make_order(lines=((10000, 1),))

        result = svc.initiate("g-1", [a.id, b.id], CUSTOMER)

        assert result.admin_fee == 210
        db.refresh(a)
        db.refresh(b)
        assert (a.admin_fee, b.admin_fee) == (105, 105)
        assert result.batch_id.startswith("BATCH_")

    def test_same_set_reuses_transaction(self, svc, make_order, gateway):
        a = make_order()
        b = make_order()
        first = svc.initiate("g-1", [a.id, b.id], CUSTOMER)
        second = svc.initiate("g-1", [b.id, a.id], CUSTOMER)

        assert second.reused
        assert second.gateway_order_id == first.gateway_order_id
        assert second.total_amount == first.total_amount
        assert len(gateway.calls) == 1

    def test_different_set_opens_new_transaction(self, svc, make_order, gateway, db):
        a = make_order()
        b = make_order()
        c = make_order()
        first = svc.initiate("g-1", [a.id, b.id], CUSTOMER)
        second = svc.initiate("g-1", [a.id, b.id, c.id], CUSTOMER)

        assert not second.reused
        assert second.gateway_order_id != first.gateway_order_id
        assert len(gateway.calls) == 2
        db.refresh(a)
        assert a.gateway_order_id == second.gateway_order_id

    def test_paid_order_rejects_whole_batch(self, svc, make_order, gateway, db):
        a = make_order()
        b = make_order(status="confirmed", payment_status="paid")

        with pytest.raises(EligibilityError):
            svc.initiate("g-1", [a.id, b.id], CUSTOMER)

        assert gateway.calls == []
        db.refresh(a)
        assert a.gateway_token is None
        assert db.query(BatchOrderModel).count() == 0

    def test_expired_order_rejects_batch(self, svc, make_order, gateway):
        a = make_order()
        b = make_order(delivery_date=date(2026, 3, 2))
        with pytest.raises(EligibilityError):
            svc.initiate("g-1", [a.id, b.id], CUSTOMER)
        assert gateway.calls == []

    def test_missing_order(self, svc, make_order):
        a = make_order()
        with pytest.raises(OrderNotFoundError) as exc:
            svc.initiate("g-1", [a.id, 999], CUSTOMER)
        assert exc.value.order_ids == [999]

    def test_foreign_order(self, svc, make_order):
        a = make_order()
        b = make_order(guardian_id="g-2")
        with pytest.raises(PermissionError):
            svc.initiate("g-1", [a.id, b.id], CUSTOMER)

    def test_duplicate_ids(self, svc, make_order):
        a = make_order()
        with pytest.raises(ValidationError):
            svc.initiate("g-1", [a.id, a.id], CUSTOMER)

    def test_locks_released(self, svc, make_order, lock):
        a = make_order()
        b = make_order()
        svc.initiate("g-1", [a.id, b.id], CUSTOMER)
        assert lock.held == {}

    def test_lock_conflict_releases_acquired_locks(self, svc, make_order, lock, gateway):
        a = make_order()
        b = make_order()
        lock.held[b.id] = "other-request"

        with pytest.raises(EligibilityError):
            svc.initiate("g-1", [a.id, b.id], CUSTOMER)

        assert lock.held == {b.id: "other-request"}
        assert gateway.calls == []


class TestBatchFailures:
    def test_gateway_failure_leaves_orders_untouched(self, svc, make_order, gateway, lock, db):
        a = make_order(lines=((20000, 1),))
        b = make_order(lines=((10000, 1),))
        gateway.fail = True

        with pytest.raises(GatewayError):
            svc.initiate("g-1", [a.id, b.id], CUSTOMER, batch_id="client-batch-2")

        for o, total in ((a, 20000), (b, 10000)):
            db.refresh(o)
            assert o.gateway_order_id is None
            assert o.gateway_token is None
            assert (o.admin_fee, o.total_amount) == (0, total)
        assert db.query(BatchOrderModel).count() == 0
        assert lock.held == {}

    def test_commit_failure_after_gateway_rolls_back_membership(
        self, svc, make_order, gateway, lock, db, monkeypatch
    ):
        a = make_order()
        b = make_order()

        def broken_commit():
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(svc.repo, "commit", broken_commit)

        with pytest.raises(PartialWriteError) as exc:
            svc.initiate("g-1", [a.id, b.id], CUSTOMER)

        assert exc.value.gateway_order_id == gateway.calls[0]["gateway_order_id"]
        assert db.query(BatchOrderModel).count() == 0
        for o in (a, b):
            db.refresh(o)
            assert o.gateway_token is None
            assert o.admin_fee == 0
        assert lock.held == {}

    def test_superseded_transaction_is_remembered(self, svc, make_order, db):
        a = make_order()
        a.gateway_order_id = "PAY-OLD"
        a.gateway_token = "old-token"
        db.commit()
        b = make_order()

        result = svc.initiate("g-1", [a.id, b.id], CUSTOMER)

        rows = {r.order_id: r for r in db.query(BatchOrderModel).all()}
        assert rows[a.id].superseded_gateway_order_id == "PAY-OLD"
        assert rows[b.id].superseded_gateway_order_id is None
        assert rows[a.id].gateway_order_id == result.gateway_order_id
