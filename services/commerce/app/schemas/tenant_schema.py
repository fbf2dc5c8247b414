from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.services.slugs import kebab


def normalizar_slug(value: str) -> str:
    slug = kebab(value)
    if not slug:
        raise ValueError("Slug deve conter letras ou números")
    return slug


def normalizar_moeda(value: str) -> str:
    value = value.strip().upper()
    if len(value) != 3 or not value.isalpha():
        raise ValueError("Moeda deve ser um código ISO-4217 de 3 letras")
    return value


class StoreSettingsBase(BaseModel):
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, examples=[8.5])
    free_shipping_enabled: bool = Field(default=False, examples=[True])
    free_shipping_threshold: Optional[Decimal] = Field(default=None, ge=0, examples=[100])
    default_handling_time: int = Field(default=1, ge=0, le=60, examples=[2])
    low_stock_threshold: int = Field(default=10, ge=0, examples=[10])


class StoreSettingsCreate(StoreSettingsBase):
    pass


class StoreSettingsUpdate(BaseModel):
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    free_shipping_enabled: Optional[bool] = None
    free_shipping_threshold: Optional[Decimal] = Field(default=None, ge=0)
    default_handling_time: Optional[int] = Field(default=None, ge=0, le=60)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)


class StoreSettingsOut(StoreSettingsBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TenantBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Loja da Ana"])
    slug: str = Field(..., examples=["loja-da-ana"])
    plan: Literal["basico", "profissional", "corporativo"] = Field(default="basico", examples=["profissional"])
    currency: str = Field(default="USD", examples=["BRL"])
    contact_email: Optional[EmailStr] = Field(default=None, examples=["contato@lojadaana.com"])
    is_active: bool = Field(default=True, examples=[True])

    @field_validator("slug")
    @classmethod
    def validar_slug(cls, value: str) -> str:
        return normalizar_slug(value)

    @field_validator("currency")
    @classmethod
    def validar_moeda(cls, value: str) -> str:
        return normalizar_moeda(value)


class TenantCreate(TenantBase):
    settings: StoreSettingsCreate = Field(default_factory=StoreSettingsCreate)


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = None
    plan: Optional[Literal["basico", "profissional", "corporativo"]] = None
    currency: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    is_active: Optional[bool] = None

    @field_validator("slug")
    @classmethod
    def validar_slug_update(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return normalizar_slug(value)

    @field_validator("currency")
    @classmethod
    def validar_moeda_update(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return normalizar_moeda(value)


class TenantOut(TenantBase):
    id: UUID
    created_at: datetime
    updated_at: datetime
    settings: StoreSettingsOut

    model_config = ConfigDict(from_attributes=True)
