import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime, timezone

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catering.data.database import Base
from catering.data.models import OrderItemModel, OrderModel, ScheduleModel
from catering.domain.errors import GatewayError
from catering.services.gateway_client import GatewayTransaction

# poniedzialek 2026-03-02, 08:00 w Dzakarcie
NOW = datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)
DELIVERY = date(2026, 3, 4)
SERVER_KEY = "SB-Mid-server-test"


class StubCatalog:
    def __init__(self):
        self.menu = {
            "nasi-goreng": {"id": "nasi-goreng", "name": "Nasi Goreng", "price": 15000},
            "es-teh": {"id": "es-teh", "name": "Es Teh", "price": 5000},
        }
        self.children = {
            "child-1": {"id": "child-1", "name": "Budi", "class_name": "3A", "guardian_id": "g-1"},
            "child-2": {"id": "child-2", "name": "Sari", "class_name": "5B", "guardian_id": "g-1"},
        }
        self.down = False

    def _get(self, table, key):
        if self.down:
            raise requests.ConnectionError("catalog down")
        if key not in table:
            resp = requests.Response()
            resp.status_code = 404
            raise requests.HTTPError("404 Not Found", response=resp)
        return dict(table[key])

    def fetch_menu_item(self, menu_item_id):
        return self._get(self.menu, menu_item_id)

    def fetch_child(self, child_id):
        return self._get(self.children, child_id)


class StubGateway:
    def __init__(self):
        self.calls = []
        self.fail = False

    def create_transaction(self, gateway_order_id, gross_amount, customer, items):
        self.calls.append(
            {"gateway_order_id": gateway_order_id, "gross_amount": gross_amount, "items": items}
        )
        if self.fail:
            raise GatewayError("Payment gateway rejected the transaction: HTTP 500", 500)
        n = len(self.calls)
        return GatewayTransaction(token=f"token-{n}", redirect_url=f"https://pay.example/{n}")


class StubLock:
    def __init__(self):
        self.held = {}

    def acquire_payment_lock(self, order_id, owner, ttl):
        if order_id in self.held:
            return False
        self.held[order_id] = owner
        return True

    def release_payment_lock(self, order_id, owner):
        if self.held.get(order_id) == owner:
            del self.held[order_id]
            return True
        return False


class StubNotifier:
    def __init__(self):
        self.sent = []

    def send_payment_confirmed(self, guardian_id, order_number):
        self.sent.append((guardian_id, order_number))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def catalog():
    return StubCatalog()


@pytest.fixture
def gateway():
    return StubGateway()


@pytest.fixture
def lock():
    return StubLock()


@pytest.fixture
def notifier():
    return StubNotifier()


@pytest.fixture
def clock():
    return lambda: NOW


_counter = {"n": 0}


@pytest.fixture
def make_order(db):
    """Zamowienie bez przechodzenia przez katalog (price x qty w pozycjach)."""

    def _make(
        guardian_id="g-1",
        delivery_date=DELIVERY,
        lines=((15000, 2),),
        status="pending",
        payment_status="pending",
        payment_method="qris",
        admin_fee=0,
        child_name="Budi",
        **extra,
    ):
        _counter["n"] += 1
        subtotal = sum(price * qty for price, qty in lines)
        order = OrderModel(
            order_number=f"ORDER-TEST-{_counter['n']}",
            guardian_id=guardian_id,
            child_id="child-1",
            child_name=child_name,
            child_class="3A",
            delivery_date=delivery_date,
            status=status,
            payment_status=payment_status,
            payment_method=payment_method,
            total_amount=subtotal + admin_fee,
            admin_fee=admin_fee,
            **extra,
        )
        db.add(order)
        db.flush()
        for idx, (price, qty) in enumerate(lines):
            db.add(
                OrderItemModel(
                    order_id=order.id,
                    menu_item_id=f"item-{idx}",
                    name=f"Item {idx}",
                    quantity=qty,
                    price=price,
                )
            )
        db.commit()
        db.refresh(order)
        return order

    return _make


@pytest.fixture
def make_schedule(db):
    def _make(day=DELIVERY, **fields):
        entry = ScheduleModel(date=day, current_orders=fields.pop("current_orders", 0), **fields)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    return _make
