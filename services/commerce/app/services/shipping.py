from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from app.core.money import ZERO, to_money
from app.models.shipping import ShippingRate, ShippingZone, ShippingZoneCountry


@dataclass
class ShippingQuote:
    rate_id: UUID
    zone_id: UUID
    name: str
    rate_type: str
    price: Decimal
    estimated_days_min: Optional[int]
    estimated_days_max: Optional[int]
    position: int


def _within(value: Decimal, low, high) -> bool:
    if low is not None and value < Decimal(str(low)):
        return False
    if high is not None and value > Decimal(str(high)):
        return False
    return True


def rate_matches(rate: ShippingRate, subtotal: Decimal, weight: Decimal) -> bool:
    if not rate.is_active:
        return False
    if not _within(subtotal, rate.min_order_total, rate.max_order_total):
        return False
    return _within(weight, rate.min_weight, rate.max_weight)


def calculate_rate_price(rate: ShippingRate, subtotal: Decimal, weight: Decimal, items: int) -> Decimal:
    if rate.free_shipping_threshold is not None and subtotal >= to_money(rate.free_shipping_threshold):
        return ZERO

    price = to_money(rate.price)
    if rate.rate_type == "weight":
        price += to_money(to_money(rate.price_per_kg) * weight)
    elif rate.rate_type == "item":
        price += to_money(rate.price_per_item) * items
    return to_money(price)


def zones_for_country(db: Session, tenant_id: UUID, country: str) -> List[ShippingZone]:
    return (
        db.query(ShippingZone)
        .join(ShippingZoneCountry, ShippingZoneCountry.zone_id == ShippingZone.id)
        .options(selectinload(ShippingZone.rates))
        .filter(
            ShippingZone.tenant_id == tenant_id,
            ShippingZone.is_active.is_(True),
            ShippingZoneCountry.country_code == country.upper(),
        )
        .all()
    )


def quote(
    db: Session,
    tenant_id: UUID,
    country: str,
    subtotal: Decimal,
    weight: Decimal = ZERO,
    items: int = 1,
) -> List[ShippingQuote]:
    """Lista as tarifas disponíveis para o país, já com o preço calculado."""
    subtotal = to_money(subtotal)
    weight = Decimal(str(weight))
    quotes: List[ShippingQuote] = []
    for zone in zones_for_country(db, tenant_id, country):
        for rate in zone.rates:
            if not rate_matches(rate, subtotal, weight):
                continue
            quotes.append(
                ShippingQuote(
                    rate_id=rate.id,
                    zone_id=zone.id,
                    name=rate.name,
                    rate_type=rate.rate_type,
                    price=calculate_rate_price(rate, subtotal, weight, items),
                    estimated_days_min=rate.estimated_days_min,
                    estimated_days_max=rate.estimated_days_max,
                    position=rate.position or 0,
                )
            )
    quotes.sort(key=lambda item: (item.position, item.price))
    return quotes


def find_quote(
    db: Session,
    tenant_id: UUID,
    rate_id: UUID,
    country: str,
    subtotal: Decimal,
    weight: Decimal = ZERO,
    items: int = 1,
) -> Optional[ShippingQuote]:
    for candidate in quote(db, tenant_id, country, subtotal, weight, items):
        if candidate.rate_id == rate_id:
            return candidate
    return None
