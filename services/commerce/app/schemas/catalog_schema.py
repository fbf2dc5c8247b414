from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ProductStatus = Literal["draft", "active", "archived"]


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120, examples=["Camisetas"])
    slug: Optional[str] = Field(default=None, examples=["camisetas"])
    description: Optional[str] = Field(default=None, examples=["Camisetas de algodão"])
    parent_id: Optional[UUID] = Field(default=None)
    image_url: Optional[str] = Field(default=None, examples=["https://cdn.exemplo.com/camisetas.jpg"])
    sort_order: int = Field(default=0, ge=0, examples=[1])
    is_active: bool = Field(default=True)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    slug: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    image_url: Optional[str] = None
    sort_order: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class CategoryOut(CategoryBase):
    id: UUID
    tenant_id: UUID
    slug: str
    product_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryReorderItem(BaseModel):
    id: UUID
    sort_order: int = Field(..., ge=0)
    parent_id: Optional[UUID] = None


class CategoryMove(BaseModel):
    parent_id: Optional[UUID] = None


class BulkDeleteRequest(BaseModel):
    ids: List[UUID] = Field(..., min_length=1, max_length=200)


class BulkDeleteOut(BaseModel):
    deleted: int


class ProductImage(BaseModel):
    url: str = Field(..., examples=["https://cdn.exemplo.com/camiseta.jpg"])
    alt: Optional[str] = Field(default=None, examples=["Camiseta azul"])


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, examples=["Camiseta Básica"])
    slug: Optional[str] = Field(default=None, examples=["camiseta-basica"])
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    price: Decimal = Field(..., ge=0, examples=[49.9])
    compare_at_price: Optional[Decimal] = Field(default=None, ge=0, examples=[59.9])
    cost_price: Optional[Decimal] = Field(default=None, ge=0, examples=[20])
    sku: Optional[str] = Field(default=None, examples=["CAM-001"])
    barcode: Optional[str] = None
    quantity: int = Field(default=0, examples=[25])
    track_quantity: bool = True
    allow_backorder: bool = False
    weight: Optional[Decimal] = Field(default=None, ge=0, examples=[0.3])
    status: ProductStatus = Field(default="draft", examples=["active"])
    images: List[ProductImage] = Field(default_factory=list)
    product_metadata: Dict[str, Any] = Field(default_factory=dict, examples=[{"material": "algodão"}])


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    compare_at_price: Optional[Decimal] = Field(default=None, ge=0)
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    sku: Optional[str] = None
    barcode: Optional[str] = None
    quantity: Optional[int] = None
    track_quantity: Optional[bool] = None
    allow_backorder: Optional[bool] = None
    weight: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[ProductStatus] = None
    images: Optional[List[ProductImage]] = None
    product_metadata: Optional[Dict[str, Any]] = None


class VariantBase(BaseModel):
    title: str = Field(..., min_length=1, examples=["Azul / M"])
    sku: Optional[str] = Field(default=None, examples=["CAM-001-AZ-M"])
    price: Optional[Decimal] = Field(default=None, ge=0)
    quantity: int = Field(default=0)
    options: Dict[str, str] = Field(default_factory=dict, examples=[{"cor": "Azul", "tamanho": "M"}])
    position: int = Field(default=0, ge=0)


class VariantCreate(VariantBase):
    pass


class VariantUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    sku: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    quantity: Optional[int] = None
    options: Optional[Dict[str, str]] = None
    position: Optional[int] = Field(default=None, ge=0)


class VariantOut(VariantBase):
    id: UUID
    product_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductOut(ProductBase):
    id: UUID
    tenant_id: UUID
    slug: str
    variants: List[VariantOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StorefrontProductOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    price: Decimal
    sale_price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None
    images: List[ProductImage] = Field(default_factory=list)
    in_stock: bool
    variants: List[VariantOut] = Field(default_factory=list)


class ProductStatsOut(BaseModel):
    total: int
    active: int
    draft: int
    archived: int
    low_stock: int
    out_of_stock: int
    total_value: Decimal
