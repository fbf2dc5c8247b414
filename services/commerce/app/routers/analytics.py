from datetime import datetime
from typing import List, Literal, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.core.timeutils import ensure_utc
from app.schemas.analytics_schema import (
    ConversionFunnelOut,
    CustomerSegmentOut,
    OverviewOut,
    RevenueByPeriodOut,
    SalesByCategoryOut,
    StatusBreakdownOut,
    TopProductOut,
)
from app.services import analytics
from app.services import cache_tags
from shared import cache as tenant_cache

router = APIRouter(tags=["Analytics"])


def _periodo(start: Optional[datetime], end: Optional[datetime]) -> Tuple[datetime, datetime]:
    padrao_inicio, padrao_fim = analytics.default_range()
    fim = ensure_utc(end) if end else padrao_fim
    inicio = ensure_utc(start) if start else padrao_inicio
    if inicio > fim:
        raise HTTPException(status_code=400, detail="A data inicial deve ser anterior à data final")
    return inicio, fim


def _chave(start: Optional[datetime], end: Optional[datetime]) -> tuple:
    # janela padrão usa chave fixa
    return (start.isoformat() if start else "-", end.isoformat() if end else "-")


def _relatorio(request: Request, current_token: TokenPayload, nome: str, partes: tuple, carregar):
    return cache_tags.cached(request, current_token.tenant_id, tenant_cache.ANALYTICS, (nome, *partes), carregar)


@router.get("/overview", response_model=OverviewOut)
def visao_geral(
    request: Request,
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    inicio, fim = _periodo(start, end)
    return _relatorio(
        request,
        current_token,
        "overview",
        _chave(start, end),
        lambda: analytics.get_overview(db, current_token.tenant_id, inicio, fim),
    )


@router.get("/revenue", response_model=RevenueByPeriodOut)
def receita_por_periodo(
    request: Request,
    granularity: Literal["hour", "day", "week", "month"] = Query(default="day"),
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    inicio, fim = _periodo(start, end)
    return _relatorio(
        request,
        current_token,
        "revenue",
        (granularity, *_chave(start, end)),
        lambda: analytics.get_revenue_by_period(db, current_token.tenant_id, inicio, fim, granularity),
    )


@router.get("/top-products", response_model=List[TopProductOut])
def produtos_mais_vendidos(
    request: Request,
    limit: int = Query(default=10, ge=1, le=100),
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    inicio, fim = _periodo(start, end)
    return _relatorio(
        request,
        current_token,
        "top-products",
        (limit, *_chave(start, end)),
        lambda: analytics.get_top_products(db, current_token.tenant_id, inicio, fim, limit),
    )


@router.get("/sales-by-category", response_model=SalesByCategoryOut)
def vendas_por_categoria(
    request: Request,
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    inicio, fim = _periodo(start, end)
    return _relatorio(
        request,
        current_token,
        "sales-by-category",
        _chave(start, end),
        lambda: analytics.get_sales_by_category(db, current_token.tenant_id, inicio, fim),
    )


@router.get("/orders-by-status", response_model=List[StatusBreakdownOut])
def pedidos_por_status(
    request: Request,
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    inicio, fim = _periodo(start, end)
    return _relatorio(
        request,
        current_token,
        "orders-by-status",
        _chave(start, end),
        lambda: analytics.get_orders_by_status(db, current_token.tenant_id, inicio, fim),
    )


@router.get("/customer-segments", response_model=List[CustomerSegmentOut])
def segmentos_de_clientes(
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return _relatorio(
        request,
        current_token,
        "customer-segments",
        (),
        lambda: analytics.get_customer_segments(db, current_token.tenant_id),
    )


@router.get("/conversion-funnel", response_model=ConversionFunnelOut)
def funil_de_conversao(
    request: Request,
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    inicio, fim = _periodo(start, end)
    return _relatorio(
        request,
        current_token,
        "conversion-funnel",
        _chave(start, end),
        lambda: analytics.get_conversion_funnel(db, current_token.tenant_id, inicio, fim),
    )
