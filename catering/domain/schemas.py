# catering/domain/schemas.py
from datetime import date, datetime, time
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from catering.domain.status import OrderStatus, PaymentMethod, PaymentStatus


class OrderItemIn(BaseModel):
    """Schema dla pozycji zamowienia (request)."""

    menu_item_id: str = Field(..., min_length=1, description="ID pozycji menu z katalogu")
    quantity: int = Field(..., gt=0, le=100, description="Ilosc (musi byc > 0)")


class OrderCreate(BaseModel):
    """Schema dla tworzenia zamowienia."""

    guardian_id: str = Field(..., min_length=1)
    child_id: str = Field(..., min_length=1)
    delivery_date: date
    items: List[OrderItemIn] = Field(..., min_length=1, max_length=50)
    payment_method: PaymentMethod = PaymentMethod.QRIS
    notes: str | None = Field(None, max_length=500)


class OrderItemOut(BaseModel):
    id: int
    menu_item_id: str
    name: str
    quantity: int
    price: int

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    order_number: str
    guardian_id: str
    child_name: str | None = None
    child_class: str | None = None
    delivery_date: date
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    total_amount: int
    admin_fee: int
    gateway_order_id: str | None = None
    gateway_token: str | None = None
    notes: str | None = None
    created_at: datetime
    items: List[OrderItemOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    """Reczna zmiana statusu przez operatora."""

    operator_id: str = Field(..., min_length=1)
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None


class CustomerDetails(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    email: str | None = None
    phone: str | None = None


class SinglePaymentIn(BaseModel):
    guardian_id: str = Field(..., min_length=1)
    customer: CustomerDetails


class BatchPaymentIn(BaseModel):
    guardian_id: str = Field(..., min_length=1)
    order_ids: List[int] = Field(..., min_length=1, max_length=100)
    batch_id: str | None = Field(None, max_length=64, description="ID wygenerowane po stronie klienta (audyt)")
    customer: CustomerDetails


class PaymentOut(BaseModel):
    gateway_order_id: str
    token: str
    redirect_url: str | None = None
    order_ids: List[int]
    subtotal: int
    admin_fee: int
    total_amount: int
    batch_id: str | None = None
    reused: bool = False


class GatewayNotification(BaseModel):
    """Callback z bramki platnosci (webhook)."""

    order_id: str
    status_code: str
    gross_amount: str
    transaction_status: str
    transaction_id: str | None = None
    signature_key: str
    fraud_status: str | None = None

    model_config = ConfigDict(extra="allow")


class CashSettlementIn(BaseModel):
    order_ids: List[int] = Field(..., min_length=1, max_length=100)
    amount_received: int = Field(..., ge=0)
    operator_id: str = Field(..., min_length=1)
    operator_name: str | None = None
    note: str | None = Field(None, max_length=500)


class ReceiptLine(BaseModel):
    order_id: int
    order_number: str
    child_name: str | None = None
    child_class: str | None = None
    delivery_date: date
    amount: int
    transaction_id: str


class CashSettlementOut(BaseModel):
    change: int
    amount_due: int
    amount_received: int
    operator_id: str
    operator_name: str | None = None
    batch_id: str | None = None
    settled_at: datetime
    lines: List[ReceiptLine]


class ScheduleIn(BaseModel):
    is_blocked: bool = False
    max_orders: int | None = Field(None, ge=0)
    cutoff_date: date | None = None
    cutoff_time: time | None = None
    notes: str | None = Field(None, max_length=500)


class ScheduleOut(BaseModel):
    id: int
    date: date
    is_blocked: bool
    max_orders: int | None = None
    current_orders: int
    cutoff_date: date | None = None
    cutoff_time: time | None = None
    notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AvailabilityOut(BaseModel):
    date: date
    status: str
    reason: str
