"""Store analytics computed from orders, order items and customers.

Revenue figures only count orders whose payment status is ``paid``. Time
bucketing is done in Python so the same code runs on PostgreSQL and on the
SQLite database used by the tests.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.timeutils import ensure_utc, utcnow
from app.models.catalog import Category, Product
from app.models.order import Customer, Order, OrderItem

PAID = "paid"
GRANULARITIES = ("hour", "day", "week", "month")
STATUS_ORDER = (
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
    "returned",
    "refunded",
)
VIP_MIN_SPEND = Decimal("1000")
VIP_MIN_ORDERS = 5
# estimativas do funil enquanto não há rastreio de visitas
VIEWS_PER_ORDER = 50
CART_ADDS_PER_ORDER = 3


def _round(value) -> float:
    return round(float(value), 2)


def percentage_change(current, previous) -> float:
    current, previous = float(current), float(previous)
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


def default_range(now: Optional[datetime] = None, days: int = 30) -> Tuple[datetime, datetime]:
    end = ensure_utc(now) if now else utcnow()
    return end - timedelta(days=days), end


def previous_period(start: datetime, end: datetime) -> Tuple[datetime, datetime]:
    return start - (end - start), start - timedelta(microseconds=1)


def _orders_in_range(db: Session, tenant_id: UUID, start: datetime, end: datetime):
    return db.query(Order).filter(
        Order.tenant_id == tenant_id,
        Order.created_at >= ensure_utc(start),
        Order.created_at <= ensure_utc(end),
    )


def _paid_totals(db: Session, tenant_id: UUID, start: datetime, end: datetime) -> Tuple[Decimal, int]:
    revenue, count = (
        db.query(func.coalesce(func.sum(Order.total), 0), func.count(Order.id))
        .filter(
            Order.tenant_id == tenant_id,
            Order.payment_status == PAID,
            Order.created_at >= ensure_utc(start),
            Order.created_at <= ensure_utc(end),
        )
        .one()
    )
    return Decimal(str(revenue or 0)), int(count or 0)


def _new_customers(db: Session, tenant_id: UUID, start: datetime, end: datetime) -> int:
    return (
        db.query(func.count(Customer.id))
        .filter(
            Customer.tenant_id == tenant_id,
            Customer.created_at >= ensure_utc(start),
            Customer.created_at <= ensure_utc(end),
        )
        .scalar()
        or 0
    )


def _metric(current, previous) -> dict:
    return {"value": _round(current), "previous": _round(previous), "change": percentage_change(current, previous)}


def get_overview(db: Session, tenant_id: UUID, start: datetime, end: datetime) -> dict:
    prev_start, prev_end = previous_period(start, end)
    revenue, orders = _paid_totals(db, tenant_id, start, end)
    prev_revenue, prev_orders = _paid_totals(db, tenant_id, prev_start, prev_end)
    aov = revenue / orders if orders else Decimal("0")
    prev_aov = prev_revenue / prev_orders if prev_orders else Decimal("0")

    return {
        "start": start,
        "end": end,
        "revenue": _metric(revenue, prev_revenue),
        "orders": _metric(orders, prev_orders),
        "average_order_value": _metric(aov, prev_aov),
        "new_customers": _metric(
            _new_customers(db, tenant_id, start, end),
            _new_customers(db, tenant_id, prev_start, prev_end),
        ),
    }


def _bucket_start(moment: datetime, granularity: str) -> datetime:
    moment = ensure_utc(moment)
    if granularity == "hour":
        return moment.replace(minute=0, second=0, microsecond=0)
    day = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity == "day":
        return day
    if granularity == "week":
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def _next_bucket(moment: datetime, granularity: str) -> datetime:
    if granularity == "hour":
        return moment + timedelta(hours=1)
    if granularity == "day":
        return moment + timedelta(days=1)
    if granularity == "week":
        return moment + timedelta(weeks=1)
    if moment.month == 12:
        return moment.replace(year=moment.year + 1, month=1)
    return moment.replace(month=moment.month + 1)


_LABELS: Dict[str, Callable[[datetime], str]] = {
    "hour": lambda moment: moment.strftime("%Y-%m-%dT%H:00"),
    "day": lambda moment: moment.date().isoformat(),
    "week": lambda moment: moment.date().isoformat(),
    "month": lambda moment: moment.strftime("%Y-%m"),
}


def get_revenue_by_period(
    db: Session,
    tenant_id: UUID,
    start: datetime,
    end: datetime,
    granularity: str = "day",
) -> dict:
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unsupported granularity {granularity}")

    rows = (
        _orders_in_range(db, tenant_id, start, end)
        .filter(Order.payment_status == PAID)
        .with_entities(Order.created_at, Order.total)
        .all()
    )

    buckets: Dict[datetime, List[Decimal]] = defaultdict(list)
    for created_at, total in rows:
        buckets[_bucket_start(created_at, granularity)].append(Decimal(str(total)))

    points = []
    cursor = _bucket_start(start, granularity)
    last = _bucket_start(end, granularity)
    while cursor <= last:
        totals = buckets.get(cursor, [])
        revenue = sum(totals, Decimal("0"))
        points.append(
            {
                "date": _LABELS[granularity](cursor),
                "revenue": _round(revenue),
                "orders": len(totals),
                "average_order_value": _round(revenue / len(totals)) if totals else 0.0,
            }
        )
        cursor = _next_bucket(cursor, granularity)

    total_revenue, total_orders = _paid_totals(db, tenant_id, start, end)
    prev_revenue, prev_orders = _paid_totals(db, tenant_id, *previous_period(start, end))
    return {
        "granularity": granularity,
        "points": points,
        "total_revenue": _round(total_revenue),
        "total_orders": total_orders,
        "average_order_value": _round(total_revenue / total_orders) if total_orders else 0.0,
        "comparison": {
            "previous_revenue": _round(prev_revenue),
            "revenue_change": percentage_change(total_revenue, prev_revenue),
            "previous_orders": prev_orders,
            "orders_change": percentage_change(total_orders, prev_orders),
        },
    }


def _paid_items(db: Session, tenant_id: UUID, start: datetime, end: datetime):
    return (
        db.query(OrderItem, Order.id)
        .join(Order, Order.id == OrderItem.order_id)
        .filter(
            Order.tenant_id == tenant_id,
            Order.payment_status == PAID,
            Order.created_at >= ensure_utc(start),
            Order.created_at <= ensure_utc(end),
        )
        .all()
    )


def get_top_products(db: Session, tenant_id: UUID, start: datetime, end: datetime, limit: int = 10) -> List[dict]:
    stats: Dict[str, dict] = {}
    for item, order_id in _paid_items(db, tenant_id, start, end):
        key = str(item.product_id) if item.product_id else f"name:{item.product_name}"
        entry = stats.setdefault(
            key,
            {"product_id": item.product_id, "name": item.product_name, "revenue": Decimal("0"), "quantity": 0, "orders": set()},
        )
        entry["revenue"] += Decimal(str(item.total_price))
        entry["quantity"] += item.quantity
        entry["orders"].add(order_id)

    ranked = sorted(stats.values(), key=lambda entry: entry["revenue"], reverse=True)[:limit]
    return [
        {
            "product_id": entry["product_id"],
            "name": entry["name"],
            "revenue": _round(entry["revenue"]),
            "quantity": entry["quantity"],
            "orders": len(entry["orders"]),
        }
        for entry in ranked
    ]


def get_sales_by_category(db: Session, tenant_id: UUID, start: datetime, end: datetime) -> dict:
    categories = {category.id: category for category in db.query(Category).filter(Category.tenant_id == tenant_id)}
    product_category = dict(
        db.query(Product.id, Product.category_id).filter(Product.tenant_id == tenant_id).all()
    )
    product_counts: Dict[UUID, int] = defaultdict(int)
    for category_id in product_category.values():
        if category_id is not None:
            product_counts[category_id] += 1

    stats: Dict[UUID, dict] = {}
    uncategorized = Decimal("0")
    for item, order_id in _paid_items(db, tenant_id, start, end):
        category_id = product_category.get(item.product_id)
        revenue = Decimal(str(item.total_price))
        if category_id is None or category_id not in categories:
            uncategorized += revenue
            continue
        entry = stats.setdefault(category_id, {"revenue": Decimal("0"), "quantity": 0, "orders": set()})
        entry["revenue"] += revenue
        entry["quantity"] += item.quantity
        entry["orders"].add(order_id)

    categorized_total = sum((entry["revenue"] for entry in stats.values()), Decimal("0"))
    rows = []
    for category_id, entry in stats.items():
        orders = len(entry["orders"])
        rows.append(
            {
                "category_id": category_id,
                "name": categories[category_id].name,
                "revenue": _round(entry["revenue"]),
                "orders": orders,
                "quantity": entry["quantity"],
                "percentage": _round(entry["revenue"] / categorized_total * 100) if categorized_total else 0.0,
                "average_order_value": _round(entry["revenue"] / orders) if orders else 0.0,
                "product_count": product_counts.get(category_id, 0),
            }
        )
    rows.sort(key=lambda row: row["revenue"], reverse=True)

    return {
        "categories": rows,
        "uncategorized_revenue": _round(uncategorized),
        "total_revenue": _round(categorized_total + uncategorized),
    }


def get_orders_by_status(db: Session, tenant_id: UUID, start: datetime, end: datetime) -> List[dict]:
    rows = (
        _orders_in_range(db, tenant_id, start, end)
        .with_entities(Order.status, func.count(Order.id), func.coalesce(func.sum(Order.total), 0))
        .group_by(Order.status)
        .all()
    )
    total = sum(count for _, count, _ in rows)
    breakdown = [
        {
            "status": status,
            "count": count,
            "percentage": _round(count / total * 100) if total else 0.0,
            "value": _round(Decimal(str(value))),
        }
        for status, count, value in rows
    ]

    def sort_key(entry: dict) -> Tuple[int, str]:
        status = entry["status"]
        index = STATUS_ORDER.index(status) if status in STATUS_ORDER else len(STATUS_ORDER)
        return index, status

    return sorted(breakdown, key=sort_key)


def classify_customer(orders: int, spend: Decimal) -> str:
    if spend >= VIP_MIN_SPEND or orders >= VIP_MIN_ORDERS:
        return "vip"
    if orders > 1:
        return "returning"
    return "new"


def get_customer_segments(db: Session, tenant_id: UUID) -> List[dict]:
    customer_ids = [row[0] for row in db.query(Customer.id).filter(Customer.tenant_id == tenant_id).all()]
    rows = (
        db.query(Order.customer_id, func.count(Order.id), func.sum(Order.total))
        .filter(Order.tenant_id == tenant_id, Order.payment_status == PAID, Order.customer_id.isnot(None))
        .group_by(Order.customer_id)
        .all()
    )
    paid = {customer_id: (count, Decimal(str(spend or 0))) for customer_id, count, spend in rows}

    segments = {name: {"customers": 0, "revenue": Decimal("0")} for name in ("vip", "returning", "new")}
    for customer_id in customer_ids:
        orders, spend = paid.get(customer_id, (0, Decimal("0")))
        segment = segments[classify_customer(orders, spend)]
        segment["customers"] += 1
        segment["revenue"] += spend

    total = len(customer_ids)
    return [
        {
            "segment": name,
            "customers": data["customers"],
            "percentage": _round(data["customers"] / total * 100) if total else 0.0,
            "revenue": _round(data["revenue"]),
        }
        for name, data in segments.items()
    ]


def get_conversion_funnel(db: Session, tenant_id: UUID, start: datetime, end: datetime) -> dict:
    checkouts = _orders_in_range(db, tenant_id, start, end).count()
    purchases = _orders_in_range(db, tenant_id, start, end).filter(Order.payment_status == PAID).count()
    counts = [
        ("views", checkouts * VIEWS_PER_ORDER),
        ("cart", checkouts * CART_ADDS_PER_ORDER),
        ("checkout", checkouts),
        ("purchase", purchases),
    ]

    stages = []
    previous = None
    for stage, count in counts:
        if previous is None:
            conversion = 100.0 if count else 0.0
            dropoff = 0.0
        elif previous:
            conversion = _round(count / previous * 100)
            dropoff = _round(100 - conversion)
        else:
            conversion = dropoff = 0.0
        stages.append({"stage": stage, "count": count, "conversion_rate": conversion, "dropoff_rate": dropoff})
        previous = count

    views = counts[0][1]
    return {
        "stages": stages,
        "overall_conversion_rate": _round(purchases / views * 100) if views else 0.0,
        "avg_time_to_convert": None,
    }
