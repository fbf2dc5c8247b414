import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class ShippingZone(Base):
    __tablename__ = "shipping_zones"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    countries = relationship("ShippingZoneCountry", back_populates="zone", cascade="all, delete-orphan")
    rates = relationship(
        "ShippingRate",
        back_populates="zone",
        cascade="all, delete-orphan",
        order_by="ShippingRate.position",
    )


class ShippingZoneCountry(Base):
    __tablename__ = "shipping_zone_countries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    zone_id = Column(UUID(as_uuid=True), ForeignKey("shipping_zones.id", ondelete="CASCADE"), nullable=False, index=True)
    country_code = Column(String(2), nullable=False)
    country_name = Column(String, nullable=False)

    zone = relationship("ShippingZone", back_populates="countries")


class ShippingRate(Base):
    __tablename__ = "shipping_rates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    zone_id = Column(UUID(as_uuid=True), ForeignKey("shipping_zones.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    rate_type = Column(String, nullable=False, default="flat")
    price = Column(Numeric(12, 2), nullable=False, default=0)
    min_weight = Column(Numeric(10, 3), nullable=True)
    max_weight = Column(Numeric(10, 3), nullable=True)
    min_order_total = Column(Numeric(12, 2), nullable=True)
    max_order_total = Column(Numeric(12, 2), nullable=True)
    price_per_kg = Column(Numeric(12, 2), nullable=True)
    price_per_item = Column(Numeric(12, 2), nullable=True)
    free_shipping_threshold = Column(Numeric(12, 2), nullable=True)
    estimated_days_min = Column(Integer, nullable=True)
    estimated_days_max = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    zone = relationship("ShippingZone", back_populates="rates")
