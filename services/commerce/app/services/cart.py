"""Shopping cart repository.

Every mutation recomputes the totals before committing, so a cart read from
the database always carries consistent subtotal, discount, shipping, tax and
total amounts.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from app.core.money import ZERO, percent_of, to_money
from app.core.timeutils import utcnow
from app.models.cart import Cart, CartItem
from app.models.catalog import Product, ProductVariant
from app.models.order import Customer
from app.models.tenant import StoreSettings, Tenant
from app.services import discounts as discount_rules
from app.services import shipping as shipping_rules
from app.services.discounts import LineItem, VoucherResult
from app.services.errors import (
    CartNotEditableError,
    InsufficientStockError,
    ProductUnavailableError,
)

logger = logging.getLogger(__name__)


def get_cart(db: Session, tenant_id: UUID, cart_id: UUID) -> Optional[Cart]:
    return (
        db.query(Cart)
        .options(selectinload(Cart.items))
        .filter(Cart.id == cart_id, Cart.tenant_id == tenant_id)
        .first()
    )


def create_cart(
    db: Session,
    tenant: Tenant,
    email: Optional[str] = None,
    customer_id: Optional[UUID] = None,
    currency: Optional[str] = None,
) -> Cart:
    cart = Cart(
        tenant_id=tenant.id,
        email=email,
        customer_id=customer_id,
        currency=(currency or tenant.currency or "USD").upper(),
        status="active",
        subtotal=ZERO,
        discount_total=ZERO,
        shipping_total=ZERO,
        tax_total=ZERO,
        total=ZERO,
    )
    db.add(cart)
    db.commit()
    db.refresh(cart)
    return cart


def _ensure_editable(cart: Cart) -> None:
    if cart.status != "active":
        raise CartNotEditableError(f"Cart is {cart.status} and can no longer be changed")


def cart_lines(cart: Cart, collections: Optional[Mapping[UUID, Tuple[UUID, ...]]] = None) -> List[LineItem]:
    collections = collections or {}
    return [
        LineItem(
            product_id=item.product_id,
            unit_price=to_money(item.unit_price),
            quantity=item.quantity,
            category_id=item.category_id,
            collection_ids=collections.get(item.product_id, ()),
        )
        for item in cart.items
    ]


def discount_lines(db: Session, cart: Cart) -> List[LineItem]:
    """Cart lines carrying the current collection membership of each product."""
    collections = discount_rules.collection_ids_by_product(
        db, cart.tenant_id, (item.product_id for item in cart.items)
    )
    return cart_lines(cart, collections)


def _cart_weight(cart: Cart) -> Decimal:
    return sum(
        (Decimal(str(item.weight)) * item.quantity for item in cart.items if item.weight is not None),
        Decimal("0"),
    )


def _available_quantity(product: Product, variant: Optional[ProductVariant]) -> Optional[int]:
    if not product.track_quantity or product.allow_backorder:
        return None
    return variant.quantity if variant is not None else product.quantity


def _find_item(cart: Cart, item_id: UUID) -> Optional[CartItem]:
    for item in cart.items:
        if item.id == item_id:
            return item
    return None


def _resolve_customer_id(db: Session, cart: Cart) -> Optional[UUID]:
    if cart.customer_id is not None:
        return cart.customer_id
    if not cart.email:
        return None
    customer = (
        db.query(Customer)
        .filter(Customer.tenant_id == cart.tenant_id, Customer.email == cart.email.lower())
        .first()
    )
    return customer.id if customer else None


def _clear_voucher(cart: Cart) -> None:
    cart.discount_id = None
    cart.voucher_code_id = None
    cart.voucher_code = None


def recalculate_totals(db: Session, cart: Cart, now: Optional[datetime] = None) -> Cart:
    """Recalcula os totais do carrinho sem fazer commit."""
    lines = discount_lines(db, cart)
    subtotal = to_money(sum((line.line_total for line in lines), ZERO))

    discount_total = ZERO
    free_shipping = False
    if cart.voucher_code:
        result = discount_rules.apply_voucher_code(
            db,
            cart.tenant_id,
            cart.voucher_code,
            lines,
            customer_id=_resolve_customer_id(db, cart),
            now=now,
        )
        if result.valid:
            discount_total = result.discount_amount
            free_shipping = result.free_shipping
        else:
            logger.info("Dropping voucher %s from cart %s: %s", cart.voucher_code, cart.id, result.error)
            _clear_voucher(cart)

    shipping_total = ZERO
    if cart.shipping_rate_id is not None:
        selected = None
        if cart.shipping_country:
            selected = shipping_rules.find_quote(
                db,
                cart.tenant_id,
                cart.shipping_rate_id,
                cart.shipping_country,
                subtotal,
                _cart_weight(cart),
                sum(line.quantity for line in lines),
            )
        if selected is None:
            cart.shipping_rate_id = None
        else:
            shipping_total = selected.price

    settings = db.query(StoreSettings).filter(StoreSettings.tenant_id == cart.tenant_id).first()
    if settings is not None and settings.free_shipping_enabled:
        threshold = settings.free_shipping_threshold
        if threshold is None or subtotal >= to_money(threshold):
            free_shipping = True
    if free_shipping:
        shipping_total = ZERO

    taxable = max(ZERO, subtotal - discount_total)
    tax_rate = settings.tax_rate if settings is not None else 0
    tax_total = percent_of(taxable, tax_rate or 0)

    cart.subtotal = subtotal
    cart.discount_total = discount_total
    cart.shipping_total = shipping_total
    cart.tax_total = tax_total
    cart.total = max(ZERO, to_money(subtotal - discount_total + shipping_total + tax_total))
    return cart


def _save(db: Session, cart: Cart) -> Cart:
    recalculate_totals(db, cart)
    db.commit()
    db.refresh(cart)
    return cart


def add_item(
    db: Session,
    cart: Cart,
    product_id: UUID,
    quantity: int,
    variant_id: Optional[UUID] = None,
) -> Cart:
    _ensure_editable(cart)

    product = (
        db.query(Product)
        .filter(Product.id == product_id, Product.tenant_id == cart.tenant_id, Product.status == "active")
        .first()
    )
    if product is None:
        raise ProductUnavailableError("Product not available")

    variant = None
    if variant_id is not None:
        variant = (
            db.query(ProductVariant)
            .filter(ProductVariant.id == variant_id, ProductVariant.product_id == product.id)
            .first()
        )
        if variant is None:
            raise ProductUnavailableError("Variant not available")

    existing = next(
        (item for item in cart.items if item.product_id == product.id and item.variant_id == variant_id),
        None,
    )
    new_quantity = quantity + (existing.quantity if existing else 0)
    available = _available_quantity(product, variant)
    if available is not None and new_quantity > available:
        raise InsufficientStockError(f"Only {max(available, 0)} units of {product.name} available")

    if existing is not None:
        existing.quantity = new_quantity
        return _save(db, cart)

    base_price = to_money(variant.price if variant is not None and variant.price is not None else product.price)
    unit_price = base_price
    compare_at = to_money(product.compare_at_price) if product.compare_at_price is not None else None
    memberships = discount_rules.collection_ids_by_product(db, cart.tenant_id, [product.id])
    sale = discount_rules.find_applicable_sale(
        discount_rules.active_sales(db, cart.tenant_id),
        product.id,
        product.category_id,
        memberships.get(product.id, ()),
    )
    if sale is not None:
        unit_price = discount_rules.sale_price(base_price, sale)
        if unit_price < base_price:
            compare_at = base_price

    image = product.images[0].get("url") if product.images else None
    position = max((item.position for item in cart.items), default=-1) + 1
    cart.items.append(
        CartItem(
            product_id=product.id,
            variant_id=variant_id,
            category_id=product.category_id,
            product_name=product.name,
            product_sku=variant.sku if variant is not None and variant.sku else product.sku,
            product_image=image,
            variant_title=variant.title if variant is not None else None,
            unit_price=unit_price,
            compare_at_price=compare_at,
            weight=product.weight,
            quantity=quantity,
            position=position,
        )
    )
    return _save(db, cart)


def update_item_quantity(db: Session, cart: Cart, item_id: UUID, quantity: int) -> Optional[Cart]:
    """Altera a quantidade; zero ou negativo remove o item. None se o item não existe."""
    _ensure_editable(cart)
    item = _find_item(cart, item_id)
    if item is None:
        return None

    if quantity <= 0:
        cart.items.remove(item)
        return _save(db, cart)

    product = db.get(Product, item.product_id)
    if product is not None:
        variant = db.get(ProductVariant, item.variant_id) if item.variant_id else None
        available = _available_quantity(product, variant)
        if available is not None and quantity > available:
            raise InsufficientStockError(f"Only {max(available, 0)} units of {product.name} available")

    item.quantity = quantity
    return _save(db, cart)


def remove_item(db: Session, cart: Cart, item_id: UUID) -> Optional[Cart]:
    return update_item_quantity(db, cart, item_id, 0)


def clear_items(db: Session, cart: Cart) -> Cart:
    _ensure_editable(cart)
    cart.items.clear()
    return _save(db, cart)


def update_details(db: Session, cart: Cart, details: dict) -> Cart:
    _ensure_editable(cart)
    for campo, valor in details.items():
        if campo == "email" and valor:
            valor = valor.lower()
        setattr(cart, campo, valor)
    return _save(db, cart)


def apply_voucher(db: Session, cart: Cart, code: str) -> VoucherResult:
    """Aplica o voucher se válido; carrinho inalterado caso contrário."""
    _ensure_editable(cart)
    result = discount_rules.apply_voucher_code(
        db,
        cart.tenant_id,
        code,
        discount_lines(db, cart),
        customer_id=_resolve_customer_id(db, cart),
    )
    if not result.valid:
        return result

    cart.discount_id = result.discount_id
    cart.voucher_code_id = result.voucher_code_id
    cart.voucher_code = result.code
    _save(db, cart)
    return result


def remove_voucher(db: Session, cart: Cart) -> Cart:
    _ensure_editable(cart)
    _clear_voucher(cart)
    return _save(db, cart)


def select_shipping_rate(db: Session, cart: Cart, rate_id: UUID) -> Optional[Cart]:
    """Seleciona a tarifa de frete; None se ela não atende o país/valor do carrinho."""
    _ensure_editable(cart)
    if not cart.shipping_country:
        return None

    lines = cart_lines(cart)
    selected = shipping_rules.find_quote(
        db,
        cart.tenant_id,
        rate_id,
        cart.shipping_country,
        to_money(sum((line.line_total for line in lines), ZERO)),
        _cart_weight(cart),
        sum(line.quantity for line in lines),
    )
    if selected is None:
        return None

    cart.shipping_rate_id = rate_id
    return _save(db, cart)


def mark_completed(cart: Cart, now: Optional[datetime] = None) -> None:
    cart.status = "completed"
    cart.completed_at = now or utcnow()


def shipping_options(db: Session, cart: Cart) -> List[shipping_rules.ShippingQuote]:
    if not cart.shipping_country:
        return []
    lines = cart_lines(cart)
    return shipping_rules.quote(
        db,
        cart.tenant_id,
        cart.shipping_country,
        to_money(sum((line.line_total for line in lines), ZERO)),
        _cart_weight(cart),
        sum(line.quantity for line in lines),
    )
