from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

PageType = Literal["home", "product", "collection", "custom"]


class SectionIn(BaseModel):
    id: Optional[str] = Field(default=None, examples=["hero-1"])
    type: str = Field(..., examples=["hero"])
    settings: Dict[str, Any] = Field(default_factory=dict)
    visible: bool = True


class PageBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200, examples=["Página inicial"])
    slug: Optional[str] = Field(default=None, examples=["home"])
    page_type: PageType = Field(default="custom", examples=["home"])
    sections: List[SectionIn] = Field(default_factory=list)


class PageCreate(PageBase):
    pass


class PageUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = None
    page_type: Optional[PageType] = None
    sections: Optional[List[SectionIn]] = None


class PageOut(BaseModel):
    id: UUID
    tenant_id: UUID
    title: str
    slug: str
    page_type: str
    status: str
    sections: List[Dict[str, Any]]
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SectionValidationOut(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)


class BlockSchemaOut(BaseModel):
    type: str
    label: str
    fields: Dict[str, Any]
