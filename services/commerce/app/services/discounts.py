"""Discount rules: lifecycle status, form validation, amount calculation,
voucher application, automatic sales and usage bookkeeping.

Rule failures are reported through :class:`VoucherResult` (``valid=False``
plus a customer-facing message) instead of exceptions, so the cart can drop a
voucher that stopped being valid without aborting the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.money import ZERO, percent_of, to_money
from app.core.timeutils import ensure_utc, utcnow
from app.models.collection import CollectionProduct
from app.models.discount import Discount, DiscountUsage, VoucherCode
from app.services.vouchers import effective_code_status

logger = logging.getLogger(__name__)


@dataclass
class LineItem:
    product_id: UUID
    unit_price: Decimal
    quantity: int
    category_id: Optional[UUID] = None
    collection_ids: Tuple[UUID, ...] = ()

    @property
    def line_total(self) -> Decimal:
        return to_money(to_money(self.unit_price) * self.quantity)


@dataclass
class VoucherResult:
    valid: bool
    error: Optional[str] = None
    discount_amount: Decimal = ZERO
    discount_id: Optional[UUID] = None
    voucher_code_id: Optional[UUID] = None
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
    discount_name: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def invalid(cls, error: str) -> "VoucherResult":
        return cls(valid=False, error=error)

    @property
    def free_shipping(self) -> bool:
        return self.valid and self.discount_type == "free_shipping"


def discount_status(discount: Discount, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    if not discount.is_active:
        return "inactive"
    ends_at = ensure_utc(discount.ends_at)
    if ends_at is not None and ends_at < now:
        return "expired"
    starts_at = ensure_utc(discount.starts_at)
    if starts_at is not None and starts_at > now:
        return "scheduled"
    return "active"


def validate_discount_form(data: Mapping[str, Any]) -> List[str]:
    """Valida o formulário de desconto já mesclado; devolve a lista de erros."""
    errors: List[str] = []
    kind = data.get("kind") or "voucher"
    discount_type = data.get("type") or "percentage"
    value = Decimal(str(data.get("value") or 0))

    if not (data.get("name") or "").strip():
        errors.append("Sale name is required" if kind == "sale" else "Voucher name is required")
    if kind == "sale" and discount_type == "free_shipping":
        errors.append("Sales cannot offer free shipping")
    if discount_type != "free_shipping" and value <= 0:
        errors.append("Discount value must be greater than 0")
    if discount_type == "percentage" and value > 100:
        errors.append("Percentage cannot exceed 100%")

    usage_limit = data.get("usage_limit")
    if usage_limit is not None and usage_limit <= 0:
        errors.append("Usage limit must be greater than 0")

    min_order_amount = data.get("min_order_amount")
    if min_order_amount is not None and Decimal(str(min_order_amount)) < 0:
        errors.append("Minimum order amount must be 0 or greater")

    starts_at = ensure_utc(data.get("starts_at"))
    ends_at = ensure_utc(data.get("ends_at"))
    if starts_at and ends_at and ends_at <= starts_at:
        errors.append("End date must be after start date")

    return errors


def _id_set(values: Optional[Iterable[Any]]) -> set[str]:
    return {str(value) for value in values or ()}


def collection_ids_by_product(
    db: Session, tenant_id: UUID, product_ids: Iterable[UUID]
) -> Dict[UUID, Tuple[UUID, ...]]:
    """Map each product to the collections it belongs to; products without any are omitted."""
    ids = list(set(product_ids))
    if not ids:
        return {}
    rows = (
        db.query(CollectionProduct.product_id, CollectionProduct.collection_id)
        .filter(CollectionProduct.tenant_id == tenant_id, CollectionProduct.product_id.in_(ids))
        .all()
    )
    memberships: Dict[UUID, List[UUID]] = {}
    for product_id, collection_id in rows:
        memberships.setdefault(product_id, []).append(collection_id)
    return {product_id: tuple(collections) for product_id, collections in memberships.items()}


def is_line_eligible(discount: Discount, line: LineItem) -> bool:
    """Produto, categoria ou coleção do item listados no desconto."""
    if str(line.product_id) in _id_set(discount.applicable_product_ids):
        return True
    if line.category_id is not None and str(line.category_id) in _id_set(discount.applicable_category_ids):
        return True
    return bool(_id_set(line.collection_ids) & _id_set(discount.applicable_collection_ids))


def _apply_value(discount: Discount, base: Decimal) -> Decimal:
    if discount.type == "percentage":
        return min(percent_of(base, discount.value), base)
    return min(to_money(discount.value), base)


def discounted_lines(discount: Discount, lines: Sequence[LineItem]) -> List[LineItem]:
    """Linhas sobre as quais um desconto de produtos específicos incide.

    Com ``apply_once_per_order`` fica só a linha de menor preço unitário,
    com a quantidade inteira.
    """
    eligible = [line for line in lines if is_line_eligible(discount, line)]
    if eligible and discount.apply_once_per_order:
        eligible = [min(eligible, key=lambda line: to_money(line.unit_price))]
    return eligible


def calculate_discount_amount(discount: Discount, lines: Sequence[LineItem]) -> Decimal:
    if discount.type == "free_shipping":
        return ZERO

    if discount.scope == "entire_order":
        subtotal = to_money(sum((line.line_total for line in lines), ZERO))
        return _apply_value(discount, subtotal)

    eligible = discounted_lines(discount, lines)
    if not eligible:
        return ZERO
    base = to_money(sum((line.line_total for line in eligible), ZERO))
    return _apply_value(discount, base)


def check_discount_rules(
    discount: Discount,
    subtotal: Decimal,
    quantity: int,
    customer_id: Optional[UUID],
    now: Optional[datetime] = None,
) -> Optional[str]:
    now = now or utcnow()
    if not discount.is_active:
        return "This discount is no longer active"

    starts_at = ensure_utc(discount.starts_at)
    if starts_at is not None and starts_at > now:
        return "This discount is not yet active"

    ends_at = ensure_utc(discount.ends_at)
    if ends_at is not None and ends_at < now:
        return "This discount has expired"

    if discount.usage_limit is not None and (discount.used_count or 0) >= discount.usage_limit:
        return "This discount has reached its usage limit"

    if discount.min_order_amount is not None and subtotal < to_money(discount.min_order_amount):
        return f"Minimum order amount of ${to_money(discount.min_order_amount):.2f} required"

    if discount.min_checkout_items_quantity and quantity < discount.min_checkout_items_quantity:
        return f"Minimum {discount.min_checkout_items_quantity} items required"

    if discount.only_for_staff and customer_id is None:
        return "This discount is only for staff members"

    return None


def _customer_already_used(db: Session, discount_id: UUID, customer_id: UUID) -> bool:
    return (
        db.query(DiscountUsage.id)
        .filter(DiscountUsage.discount_id == discount_id, DiscountUsage.customer_id == customer_id)
        .first()
        is not None
    )


def apply_voucher_code(
    db: Session,
    tenant_id: UUID,
    code: str,
    lines: Sequence[LineItem],
    customer_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> VoucherResult:
    """Valida um código de voucher contra os itens do carrinho e calcula o desconto."""
    subtotal = to_money(sum((line.line_total for line in lines), ZERO))
    quantity = sum(line.quantity for line in lines)
    normalized = (code or "").strip().upper()

    voucher = (
        db.query(VoucherCode)
        .filter(VoucherCode.tenant_id == tenant_id, VoucherCode.code == normalized)
        .first()
    )
    if voucher is None:
        return VoucherResult.invalid("Invalid voucher code")
    if voucher.status != "active":
        return VoucherResult.invalid("This voucher code is no longer valid")

    discount = voucher.discount
    if discount is None or discount.tenant_id != tenant_id:
        return VoucherResult.invalid("Discount not found")

    error = check_discount_rules(discount, subtotal, quantity, customer_id, now)
    if error:
        return VoucherResult.invalid(error)

    if voucher.usage_limit is not None and (voucher.used_count or 0) >= voucher.usage_limit:
        return VoucherResult.invalid("This code has reached its usage limit")

    if discount.apply_once_per_customer and customer_id is not None:
        if _customer_already_used(db, discount.id, customer_id):
            return VoucherResult.invalid("You have already used this discount")

    return VoucherResult(
        valid=True,
        discount_amount=calculate_discount_amount(discount, lines),
        discount_id=discount.id,
        voucher_code_id=voucher.id,
        discount_type=discount.type,
        discount_value=to_money(discount.value),
        discount_name=discount.name,
        code=voucher.code,
    )


def active_sales(db: Session, tenant_id: UUID, now: Optional[datetime] = None) -> List[Discount]:
    now = now or utcnow()
    sales = (
        db.query(Discount)
        .filter(Discount.tenant_id == tenant_id, Discount.kind == "sale", Discount.is_active.is_(True))
        .all()
    )
    return [sale for sale in sales if discount_status(sale, now) == "active"]


def find_applicable_sale(
    sales: Sequence[Discount],
    product_id: UUID,
    category_id: Optional[UUID] = None,
    collection_ids: Iterable[UUID] = (),
) -> Optional[Discount]:
    """Promoção de maior ``value`` entre as que listam o produto, a categoria ou uma coleção.

    O ``value`` é comparado cru, sem olhar o tipo: uma promoção de 10% vence
    uma de 5 em valor fixo.
    """
    line = LineItem(
        product_id=product_id,
        unit_price=ZERO,
        quantity=1,
        category_id=category_id,
        collection_ids=tuple(collection_ids),
    )
    best: Optional[Discount] = None
    for sale in sales:
        if is_line_eligible(sale, line):
            if best is None or to_money(sale.value) > to_money(best.value):
                best = sale
    return best


def sale_price(price: Decimal, sale: Discount) -> Decimal:
    price = to_money(price)
    if sale.type == "percentage":
        return to_money(price * (Decimal("100") - to_money(sale.value)) / Decimal("100"))
    if sale.type == "fixed":
        return max(ZERO, to_money(price - to_money(sale.value)))
    return price


def record_discount_usage(
    db: Session,
    *,
    tenant_id: UUID,
    discount_id: UUID,
    voucher_code_id: Optional[UUID],
    order_id: Optional[UUID],
    customer_id: Optional[UUID],
    amount: Decimal,
    now: Optional[datetime] = None,
) -> DiscountUsage:
    """Registra o uso e incrementa os contadores; o commit fica com o chamador."""
    now = now or utcnow()
    usage = DiscountUsage(
        tenant_id=tenant_id,
        discount_id=discount_id,
        voucher_code_id=voucher_code_id,
        order_id=order_id,
        customer_id=customer_id,
        discount_amount=to_money(amount),
    )
    db.add(usage)

    discount = db.get(Discount, discount_id)
    if discount is not None:
        discount.used_count = (discount.used_count or 0) + 1

    if voucher_code_id is not None:
        voucher = db.get(VoucherCode, voucher_code_id)
        if voucher is not None:
            voucher.used_count = (voucher.used_count or 0) + 1
            voucher.used_at = now
            single_use = discount is not None and discount.single_use
            if single_use or effective_code_status(voucher.status, voucher.used_count, voucher.usage_limit) == "used":
                voucher.status = "used"
                logger.info("Voucher code %s exhausted", voucher.code)

    return usage
