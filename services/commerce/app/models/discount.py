import uuid
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base, JSONType


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    kind = Column(String, nullable=False, default="voucher")
    type = Column(String, nullable=False, default="percentage")
    value = Column(Numeric(12, 2), nullable=False, default=0)
    scope = Column(String, nullable=False, default="entire_order")
    apply_once_per_order = Column(Boolean, nullable=False, default=False)
    min_order_amount = Column(Numeric(12, 2), nullable=True)
    min_checkout_items_quantity = Column(Integer, nullable=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    apply_once_per_customer = Column(Boolean, nullable=False, default=False)
    only_for_staff = Column(Boolean, nullable=False, default=False)
    single_use = Column(Boolean, nullable=False, default=False)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    applicable_product_ids = Column(JSONType, nullable=False, default=list)
    applicable_category_ids = Column(JSONType, nullable=False, default=list)
    applicable_collection_ids = Column(JSONType, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    codes = relationship(
        "VoucherCode",
        back_populates="discount",
        cascade="all, delete-orphan",
        order_by="VoucherCode.created_at",
    )
    usages = relationship("DiscountUsage", back_populates="discount", cascade="all, delete-orphan")


class VoucherCode(Base):
    __tablename__ = "voucher_codes"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_voucher_codes_tenant_code"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    discount_id = Column(UUID(as_uuid=True), ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(50), nullable=False)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="active")
    is_manually_created = Column(Boolean, nullable=False, default=True)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    discount = relationship("Discount", back_populates="codes")


class DiscountUsage(Base):
    __tablename__ = "discount_usages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    discount_id = Column(UUID(as_uuid=True), ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    voucher_code_id = Column(UUID(as_uuid=True), ForeignKey("voucher_codes.id", ondelete="SET NULL"), nullable=True)
    order_id = Column(UUID(as_uuid=True), nullable=True)
    customer_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    discount = relationship("Discount", back_populates="usages")
