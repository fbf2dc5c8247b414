from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.catalog_schema import StorefrontProductOut


class CollectionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, examples=["Verão 2026"])
    slug: Optional[str] = Field(default=None, examples=["verao-2026"])
    description: Optional[str] = Field(default=None, examples=["Peças leves para a estação"])
    image_url: Optional[str] = Field(default=None, examples=["https://cdn.exemplo.com/verao.jpg"])
    is_active: bool = Field(default=True)
    sort_order: int = Field(default=0, ge=0, examples=[1])


class CollectionCreate(CollectionBase):
    product_ids: List[UUID] = Field(default_factory=list)


class CollectionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(default=None, ge=0)


class CollectionOut(CollectionBase):
    id: UUID
    tenant_id: UUID
    slug: str
    product_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CollectionProductsAdd(BaseModel):
    product_ids: List[UUID] = Field(..., min_length=1, max_length=200)


class StorefrontCollectionOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    products: List[StorefrontProductOut] = Field(default_factory=list)
