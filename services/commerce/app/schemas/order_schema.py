from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

OrderStatus = Literal[
    "draft",
    "unconfirmed",
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
    "completed",
    "cancelled",
    "returned",
    "refunded",
]
PaymentStatus = Literal[
    "pending",
    "authorized",
    "paid",
    "partially_paid",
    "partially_refunded",
    "refunded",
    "failed",
    "cancelled",
]
FulfillmentStatus = Literal["unfulfilled", "partially_fulfilled", "fulfilled"]


class CheckoutRequest(BaseModel):
    email: Optional[EmailStr] = Field(default=None, examples=["cliente@exemplo.com"])
    customer_name: Optional[str] = Field(default=None, examples=["Maria Souza"])
    customer_note: Optional[str] = Field(default=None, max_length=1000)
    accepts_marketing: bool = False


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(default=None, max_length=500)


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class FulfillmentStatusUpdate(BaseModel):
    fulfillment_status: FulfillmentStatus


class OrderItemOut(BaseModel):
    id: UUID
    product_id: Optional[UUID] = None
    variant_id: Optional[UUID] = None
    product_name: str
    product_sku: Optional[str] = None
    product_image: Optional[str] = None
    variant_title: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    discount_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderHistoryOut(BaseModel):
    status: str
    note: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: UUID
    tenant_id: UUID
    customer_id: Optional[UUID] = None
    order_number: str
    status: str
    payment_status: str
    fulfillment_status: str
    subtotal: Decimal
    discount_total: Decimal
    shipping_total: Decimal
    tax_total: Decimal
    total: Decimal
    currency: str
    items_count: int
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    shipping_method: Optional[str] = None
    discount_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderDetailOut(OrderOut):
    shipping_address: Dict[str, Any] = Field(default_factory=dict)
    customer_note: Optional[str] = None
    discount_name: Optional[str] = None
    items: List[OrderItemOut] = Field(default_factory=list)
    history: List[OrderHistoryOut] = Field(default_factory=list)


class CustomerOut(BaseModel):
    id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    accepts_marketing: bool
    orders_count: int = 0
    total_spent: Decimal = Decimal("0.00")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
