"""Checkout and order lifecycle.

Order status changes follow a fixed transition table; each accepted change is
appended to the order history. Events are published after the commit and a
publishing failure never undoes the change.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.money import ZERO, to_money
from app.core.timeutils import utcnow
from app.models.cart import Cart
from app.models.catalog import Product, ProductVariant
from app.models.discount import Discount
from app.models.order import Customer, Order, OrderItem, OrderStatusHistory
from app.models.shipping import ShippingRate
from app.services import cart as cart_service
from app.services import discounts as discount_rules
from app.services.errors import CheckoutError, InsufficientStockError, OrderTransitionError

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "draft": frozenset({"unconfirmed", "pending", "cancelled"}),
    "unconfirmed": frozenset({"pending", "confirmed", "cancelled"}),
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"processing", "cancelled"}),
    "processing": frozenset({"shipped", "cancelled"}),
    "shipped": frozenset({"delivered", "returned"}),
    "delivered": frozenset({"completed", "returned"}),
    "completed": frozenset({"returned"}),
    "returned": frozenset({"refunded"}),
    "cancelled": frozenset(),
    "refunded": frozenset(),
}

PAYMENT_STATUSES = (
    "pending",
    "authorized",
    "paid",
    "partially_paid",
    "partially_refunded",
    "refunded",
    "failed",
    "cancelled",
)
FULFILLMENT_STATUSES = ("unfulfilled", "partially_fulfilled", "fulfilled")

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_order_number() -> str:
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"ORD-{timestamp}-{suffix}"


def can_transition(current: str, new: str) -> bool:
    return new in ORDER_TRANSITIONS.get(current, frozenset())


def _publish(publisher, event_type: str, order: Order, **extra: Any) -> None:
    if publisher is None:
        return
    payload = {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "total": str(order.total),
        "currency": order.currency,
    }
    payload.update(extra)
    publisher.publish(event_type, payload, tenant_id=order.tenant_id)


def _add_history(order: Order, status: str, note: Optional[str]) -> None:
    position = max((entry.position for entry in order.history), default=-1) + 1
    order.history.append(OrderStatusHistory(status=status, note=note, position=position))


def _find_or_create_customer(
    db: Session,
    tenant_id: UUID,
    email: str,
    name: Optional[str],
    phone: Optional[str],
    accepts_marketing: bool,
) -> Customer:
    email = email.lower()
    customer = db.query(Customer).filter(Customer.tenant_id == tenant_id, Customer.email == email).first()
    if customer is not None:
        return customer

    first_name, _, last_name = (name or "").strip().partition(" ")
    customer = Customer(
        tenant_id=tenant_id,
        email=email,
        first_name=first_name or None,
        last_name=last_name or None,
        phone=phone,
        accepts_marketing=accepts_marketing,
    )
    db.add(customer)
    db.flush()
    return customer


def _reserve_stock(db: Session, cart: Cart) -> None:
    for item in cart.items:
        product = db.get(Product, item.product_id)
        if product is None or product.tenant_id != cart.tenant_id:
            raise CheckoutError(f"{item.product_name} is no longer available")
        if not product.track_quantity:
            continue

        variant = db.get(ProductVariant, item.variant_id) if item.variant_id else None
        holder = variant if variant is not None else product
        if not product.allow_backorder and holder.quantity < item.quantity:
            raise InsufficientStockError(f"Only {max(holder.quantity, 0)} units of {item.product_name} available")
        holder.quantity -= item.quantity


def _restock(db: Session, order: Order) -> None:
    for item in order.items:
        if item.product_id is None:
            continue
        product = db.get(Product, item.product_id)
        if product is None or not product.track_quantity:
            continue
        variant = db.get(ProductVariant, item.variant_id) if item.variant_id else None
        holder = variant if variant is not None else product
        holder.quantity += item.quantity


def _shipping_address(cart: Cart) -> Dict[str, Any]:
    return {
        "name": cart.customer_name,
        "phone": cart.customer_phone,
        "line1": cart.shipping_address_line1,
        "line2": cart.shipping_address_line2,
        "city": cart.shipping_city,
        "state": cart.shipping_state,
        "postal_code": cart.shipping_postal_code,
        "country": cart.shipping_country,
    }


def checkout(
    db: Session,
    cart: Cart,
    *,
    email: Optional[str] = None,
    customer_name: Optional[str] = None,
    customer_note: Optional[str] = None,
    accepts_marketing: bool = False,
    publisher=None,
    now: Optional[datetime] = None,
) -> Order:
    """Converte um carrinho ativo em pedido.

    Os totais são recalculados no servidor antes de criar o pedido; o
    estoque é baixado e o uso do desconto registrado na mesma transação.
    """
    now = now or utcnow()
    if cart.status != "active":
        raise CheckoutError("Cart has already been checked out")
    if not cart.items:
        raise CheckoutError("Cart is empty")

    if email:
        cart.email = email.lower()
    if customer_name:
        cart.customer_name = customer_name
    if not cart.email:
        raise CheckoutError("Email is required")

    cart_service.recalculate_totals(db, cart, now=now)
    if to_money(cart.total) <= ZERO:
        raise CheckoutError("Cart total must be greater than zero")

    try:
        _reserve_stock(db, cart)
        customer = _find_or_create_customer(
            db,
            cart.tenant_id,
            cart.email,
            cart.customer_name,
            cart.customer_phone,
            accepts_marketing,
        )

        discount = db.get(Discount, cart.discount_id) if cart.discount_id else None
        rate = db.get(ShippingRate, cart.shipping_rate_id) if cart.shipping_rate_id else None
        lines = cart_service.discount_lines(db, cart)

        order = Order(
            tenant_id=cart.tenant_id,
            customer_id=customer.id,
            cart_id=cart.id,
            order_number=generate_order_number(),
            status="pending",
            payment_status="pending",
            fulfillment_status="unfulfilled",
            subtotal=cart.subtotal,
            discount_total=cart.discount_total,
            shipping_total=cart.shipping_total,
            tax_total=cart.tax_total,
            total=cart.total,
            currency=cart.currency,
            items_count=sum(item.quantity for item in cart.items),
            shipping_address=_shipping_address(cart),
            customer_email=cart.email,
            customer_name=cart.customer_name,
            customer_note=customer_note,
            shipping_method=rate.name if rate is not None else None,
            discount_id=discount.id if discount is not None else None,
            discount_code=cart.voucher_code,
            discount_name=discount.name if discount is not None else None,
        )
        discounted = []
        if discount is not None and discount.scope == "specific_products":
            discounted = discount_rules.discounted_lines(discount, lines)
        for item, line in zip(cart.items, lines):
            item_discount = ZERO
            if any(line is other for other in discounted):
                item_discount = discount_rules.calculate_discount_amount(discount, [line])
            order.items.append(
                OrderItem(
                    tenant_id=cart.tenant_id,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    product_image=item.product_image,
                    variant_title=item.variant_title,
                    quantity=item.quantity,
                    unit_price=to_money(item.unit_price),
                    total_price=line.line_total,
                    discount_amount=item_discount,
                )
            )
        _add_history(order, "pending", f"Order {order.order_number} created")
        db.add(order)
        db.flush()

        if discount is not None:
            discount_rules.record_discount_usage(
                db,
                tenant_id=cart.tenant_id,
                discount_id=discount.id,
                voucher_code_id=cart.voucher_code_id,
                order_id=order.id,
                customer_id=customer.id,
                amount=cart.discount_total,
                now=now,
            )

        cart.customer_id = customer.id
        cart_service.mark_completed(cart, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s created from cart %s", order.order_number, cart.id)
    _publish(publisher, "order.created", order, customer_email=order.customer_email)
    if publisher is not None:
        publisher.publish(
            "cart.completed",
            {"cart_id": str(cart.id), "order_id": str(order.id)},
            tenant_id=order.tenant_id,
        )
    return order


def change_status(
    db: Session,
    order: Order,
    new_status: str,
    note: Optional[str] = None,
    publisher=None,
) -> Order:
    previous = order.status
    if not can_transition(previous, new_status):
        raise OrderTransitionError(f"Cannot transition from {previous} to {new_status}")

    order.status = new_status
    if new_status == "cancelled":
        _restock(db, order)
    _add_history(order, new_status, note or f"Status changed from {previous} to {new_status}")
    db.commit()
    db.refresh(order)

    _publish(publisher, "order.status_changed", order, previous_status=previous)
    return order


def update_payment_status(db: Session, order: Order, payment_status: str, publisher=None) -> Order:
    if payment_status not in PAYMENT_STATUSES:
        raise OrderTransitionError(f"Unknown payment status {payment_status}")

    previous = order.payment_status
    order.payment_status = payment_status
    db.commit()
    db.refresh(order)

    if previous != payment_status:
        _publish(publisher, "order.payment_updated", order, previous_payment_status=previous)
    return order


def update_fulfillment_status(db: Session, order: Order, fulfillment_status: str) -> Order:
    if fulfillment_status not in FULFILLMENT_STATUSES:
        raise OrderTransitionError(f"Unknown fulfillment status {fulfillment_status}")
    order.fulfillment_status = fulfillment_status
    db.commit()
    db.refresh(order)
    return order
