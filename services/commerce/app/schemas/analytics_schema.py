from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class MetricWithChange(BaseModel):
    value: float
    previous: float
    change: float


class OverviewOut(BaseModel):
    start: datetime
    end: datetime
    revenue: MetricWithChange
    orders: MetricWithChange
    average_order_value: MetricWithChange
    new_customers: MetricWithChange


class RevenuePoint(BaseModel):
    date: str
    revenue: float
    orders: int
    average_order_value: float


class RevenueComparison(BaseModel):
    previous_revenue: float
    revenue_change: float
    previous_orders: int
    orders_change: float


class RevenueByPeriodOut(BaseModel):
    granularity: str
    points: List[RevenuePoint]
    total_revenue: float
    total_orders: int
    average_order_value: float
    comparison: RevenueComparison


class TopProductOut(BaseModel):
    product_id: Optional[UUID] = None
    name: str
    revenue: float
    quantity: int
    orders: int


class CategorySalesOut(BaseModel):
    category_id: UUID
    name: str
    revenue: float
    orders: int
    quantity: int
    percentage: float
    average_order_value: float
    product_count: int


class SalesByCategoryOut(BaseModel):
    categories: List[CategorySalesOut]
    uncategorized_revenue: float
    total_revenue: float


class StatusBreakdownOut(BaseModel):
    status: str
    count: int
    percentage: float
    value: float


class CustomerSegmentOut(BaseModel):
    segment: str
    customers: int
    percentage: float
    revenue: float


class FunnelStageOut(BaseModel):
    stage: str
    count: int
    conversion_rate: float
    dropoff_rate: float


class ConversionFunnelOut(BaseModel):
    stages: List[FunnelStageOut]
    overall_conversion_rate: float
    avg_time_to_convert: Optional[float] = None
