from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class CartCreate(BaseModel):
    email: Optional[EmailStr] = Field(default=None, examples=["cliente@exemplo.com"])
    customer_id: Optional[UUID] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3, examples=["USD"])


class CartItemAdd(BaseModel):
    product_id: UUID
    variant_id: Optional[UUID] = None
    quantity: int = Field(default=1, ge=1, le=999, examples=[2])


class CartItemQuantity(BaseModel):
    # zero ou negativo remove o item
    quantity: int = Field(..., le=999, examples=[3])


class CartDetailsUpdate(BaseModel):
    email: Optional[EmailStr] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address_line1: Optional[str] = None
    shipping_address_line2: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_state: Optional[str] = None
    shipping_postal_code: Optional[str] = None
    shipping_country: Optional[str] = Field(default=None, min_length=2, max_length=2, examples=["US"])

    @field_validator("shipping_country")
    @classmethod
    def normalizar_pais(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value else value


class ApplyVoucherRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, examples=["BLACKFRIDAY"])


class SelectShippingRequest(BaseModel):
    rate_id: UUID


class CartItemOut(BaseModel):
    id: UUID
    product_id: UUID
    variant_id: Optional[UUID] = None
    product_name: str
    product_sku: Optional[str] = None
    product_image: Optional[str] = None
    variant_title: Optional[str] = None
    unit_price: Decimal
    compare_at_price: Optional[Decimal] = None
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    id: UUID
    tenant_id: UUID
    customer_id: Optional[UUID] = None
    email: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    status: str
    currency: str
    subtotal: Decimal
    discount_total: Decimal
    shipping_total: Decimal
    tax_total: Decimal
    total: Decimal
    shipping_address_line1: Optional[str] = None
    shipping_address_line2: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_state: Optional[str] = None
    shipping_postal_code: Optional[str] = None
    shipping_country: Optional[str] = None
    shipping_rate_id: Optional[UUID] = None
    discount_id: Optional[UUID] = None
    voucher_code: Optional[str] = None
    items: List[CartItemOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
