from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

RateType = Literal["flat", "weight", "price", "item"]


class ZoneCountry(BaseModel):
    country_code: str = Field(..., min_length=2, max_length=2, examples=["US"])
    country_name: str = Field(..., examples=["United States"])

    @field_validator("country_code")
    @classmethod
    def normalizar_codigo(cls, value: str) -> str:
        return value.upper()

    model_config = ConfigDict(from_attributes=True)


class ShippingRateBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Entrega padrão"])
    description: Optional[str] = None
    rate_type: RateType = Field(default="flat", examples=["flat"])
    price: Decimal = Field(default=Decimal("0"), ge=0, examples=[9.9])
    min_weight: Optional[Decimal] = Field(default=None, ge=0)
    max_weight: Optional[Decimal] = Field(default=None, ge=0)
    min_order_total: Optional[Decimal] = Field(default=None, ge=0)
    max_order_total: Optional[Decimal] = Field(default=None, ge=0)
    price_per_kg: Optional[Decimal] = Field(default=None, ge=0)
    price_per_item: Optional[Decimal] = Field(default=None, ge=0)
    free_shipping_threshold: Optional[Decimal] = Field(default=None, ge=0)
    estimated_days_min: Optional[int] = Field(default=None, ge=0)
    estimated_days_max: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True
    position: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validar_faixas(self) -> Self:
        pares = (
            ("min_weight", "max_weight"),
            ("min_order_total", "max_order_total"),
            ("estimated_days_min", "estimated_days_max"),
        )
        for minimo, maximo in pares:
            low, high = getattr(self, minimo), getattr(self, maximo)
            if low is not None and high is not None and low > high:
                raise ValueError(f"{minimo} deve ser menor ou igual a {maximo}")
        return self


class ShippingRateCreate(ShippingRateBase):
    pass


class ShippingRateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    rate_type: Optional[RateType] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    min_weight: Optional[Decimal] = Field(default=None, ge=0)
    max_weight: Optional[Decimal] = Field(default=None, ge=0)
    min_order_total: Optional[Decimal] = Field(default=None, ge=0)
    max_order_total: Optional[Decimal] = Field(default=None, ge=0)
    price_per_kg: Optional[Decimal] = Field(default=None, ge=0)
    price_per_item: Optional[Decimal] = Field(default=None, ge=0)
    free_shipping_threshold: Optional[Decimal] = Field(default=None, ge=0)
    estimated_days_min: Optional[int] = Field(default=None, ge=0)
    estimated_days_max: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    position: Optional[int] = Field(default=None, ge=0)


class ShippingRateOut(ShippingRateBase):
    id: UUID
    zone_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShippingZoneBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["América do Norte"])
    description: Optional[str] = None
    is_active: bool = True
    countries: List[ZoneCountry] = Field(default_factory=list)


class ShippingZoneCreate(ShippingZoneBase):
    pass


class ShippingZoneUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    countries: Optional[List[ZoneCountry]] = None


class ShippingZoneOut(ShippingZoneBase):
    id: UUID
    tenant_id: UUID
    rates: List[ShippingRateOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShippingQuoteRequest(BaseModel):
    country: str = Field(..., min_length=2, max_length=2, examples=["US"])
    subtotal: Decimal = Field(..., ge=0, examples=[80])
    weight: Decimal = Field(default=Decimal("0"), ge=0, examples=[1.5])
    items: int = Field(default=1, ge=0, examples=[3])


class ShippingQuoteOut(BaseModel):
    rate_id: UUID
    zone_id: UUID
    name: str
    rate_type: str
    price: Decimal
    estimated_days_min: Optional[int] = None
    estimated_days_max: Optional[int] = None
