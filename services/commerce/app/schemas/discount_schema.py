from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

DiscountKind = Literal["sale", "voucher"]
DiscountType = Literal["percentage", "fixed", "free_shipping"]
DiscountScope = Literal["entire_order", "specific_products"]
DiscountStatus = Literal["active", "scheduled", "expired", "inactive"]


class DiscountBase(BaseModel):
    name: str = Field(..., max_length=100, examples=["Black Friday"])
    description: Optional[str] = Field(default=None, examples=["20% em toda a loja"])
    kind: DiscountKind = Field(default="voucher", examples=["voucher"])
    type: DiscountType = Field(default="percentage", examples=["percentage"])
    value: Decimal = Field(default=Decimal("0"), examples=[20])
    scope: DiscountScope = Field(default="entire_order", examples=["entire_order"])
    apply_once_per_order: bool = False
    min_order_amount: Optional[Decimal] = Field(default=None, examples=[100])
    min_checkout_items_quantity: Optional[int] = Field(default=None, ge=0, examples=[2])
    usage_limit: Optional[int] = Field(default=None, examples=[500])
    apply_once_per_customer: bool = False
    only_for_staff: bool = False
    single_use: bool = False
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: bool = True
    applicable_product_ids: List[UUID] = Field(default_factory=list)
    applicable_category_ids: List[UUID] = Field(default_factory=list)
    applicable_collection_ids: List[UUID] = Field(default_factory=list)


class DiscountCreate(DiscountBase):
    pass


class DiscountUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None
    type: Optional[DiscountType] = None
    value: Optional[Decimal] = None
    scope: Optional[DiscountScope] = None
    apply_once_per_order: Optional[bool] = None
    min_order_amount: Optional[Decimal] = None
    min_checkout_items_quantity: Optional[int] = Field(default=None, ge=0)
    usage_limit: Optional[int] = None
    apply_once_per_customer: Optional[bool] = None
    only_for_staff: Optional[bool] = None
    single_use: Optional[bool] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: Optional[bool] = None
    applicable_product_ids: Optional[List[UUID]] = None
    applicable_category_ids: Optional[List[UUID]] = None
    applicable_collection_ids: Optional[List[UUID]] = None


class VoucherCodeOut(BaseModel):
    id: UUID
    discount_id: UUID
    code: str
    usage_limit: Optional[int] = None
    used_count: int
    status: str
    is_manually_created: bool
    used_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DiscountOut(DiscountBase):
    id: UUID
    tenant_id: UUID
    used_count: int
    status: DiscountStatus = "active"
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DiscountDetailOut(DiscountOut):
    codes: List[VoucherCodeOut] = Field(default_factory=list)


class VoucherCodeCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, examples=["BLACKFRIDAY"])
    usage_limit: Optional[int] = Field(default=None, gt=0)

    @field_validator("code")
    @classmethod
    def normalizar_codigo(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("Código não pode ser vazio")
        return value


class VoucherCodeGenerate(BaseModel):
    quantity: int = Field(..., ge=1, le=50, examples=[10])
    prefix: Optional[str] = Field(default=None, max_length=20, examples=["BF"])
    usage_limit: Optional[int] = Field(default=None, gt=0)


class VoucherValidationLine(BaseModel):
    product_id: UUID
    category_id: Optional[UUID] = None
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class VoucherValidationRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    customer_id: Optional[UUID] = None
    items: List[VoucherValidationLine] = Field(default_factory=list)


class VoucherValidationOut(BaseModel):
    valid: bool
    error: Optional[str] = None
    discount_amount: Decimal = Decimal("0.00")
    discount_id: Optional[UUID] = None
    voucher_code_id: Optional[UUID] = None
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
