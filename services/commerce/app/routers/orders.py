from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.schemas.order_schema import (
    CustomerOut,
    FulfillmentStatusUpdate,
    OrderDetailOut,
    OrderOut,
    OrderStatus,
    OrderStatusUpdate,
    PaymentStatus,
    PaymentStatusUpdate,
)
from app.services import cache_tags
from app.services import orders as order_service
from app.services.errors import OrderTransitionError
from . import crud

router = APIRouter(tags=["Orders"])
customers_router = APIRouter(tags=["Customers"])


def _pedido_ou_404(db: Session, tenant_id: UUID, pedido_id: UUID):
    pedido = crud.buscar_pedido(db, tenant_id, pedido_id)
    if not pedido:
        raise HTTPException(status_code=404, detail="Pedido não encontrado")
    return pedido


@router.get("/", response_model=List[OrderOut])
def listar_pedidos(
    status_param: Optional[OrderStatus] = Query(default=None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(default=None),
    search: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return crud.listar_pedidos(db, current_token.tenant_id, status_param, payment_status, search, limit, offset)


@router.get("/{pedido_id}", response_model=OrderDetailOut)
def obter_pedido(
    pedido_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return _pedido_ou_404(db, current_token.tenant_id, pedido_id)


@router.patch("/{pedido_id}/status", response_model=OrderDetailOut)
def alterar_status(
    pedido_id: UUID,
    alteracao: OrderStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    pedido = _pedido_ou_404(db, current_token.tenant_id, pedido_id)
    try:
        pedido = order_service.change_status(
            db,
            pedido,
            alteracao.status,
            alteracao.note,
            publisher=request.app.state.event_publisher,
        )
    except OrderTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    cache_tags.invalidate_after_write(request, current_token.tenant_id, "order")
    return pedido


@router.patch("/{pedido_id}/payment-status", response_model=OrderDetailOut)
def alterar_status_pagamento(
    pedido_id: UUID,
    alteracao: PaymentStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    pedido = _pedido_ou_404(db, current_token.tenant_id, pedido_id)
    pedido = order_service.update_payment_status(
        db,
        pedido,
        alteracao.payment_status,
        publisher=request.app.state.event_publisher,
    )
    # pagamento muda receita e segmentos de clientes
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "order")
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "customer")
    return pedido


@router.patch("/{pedido_id}/fulfillment-status", response_model=OrderDetailOut)
def alterar_status_entrega(
    pedido_id: UUID,
    alteracao: FulfillmentStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    pedido = _pedido_ou_404(db, current_token.tenant_id, pedido_id)
    pedido = order_service.update_fulfillment_status(db, pedido, alteracao.fulfillment_status)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "order")
    return pedido


# ----------------------------------------------------------------- clientes

def _cliente_out(cliente, pedidos: Optional[int], gasto) -> CustomerOut:
    return CustomerOut.model_validate(cliente).model_copy(
        update={"orders_count": pedidos or 0, "total_spent": Decimal(str(gasto or 0)).quantize(Decimal("0.01"))}
    )


@customers_router.get("/", response_model=List[CustomerOut])
def listar_clientes(
    search: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    linhas = crud.listar_clientes(db, current_token.tenant_id, search, limit, offset)
    return [_cliente_out(cliente, pedidos, gasto) for cliente, pedidos, gasto in linhas]


@customers_router.get("/{cliente_id}", response_model=CustomerOut)
def obter_cliente(
    cliente_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    cliente = crud.buscar_cliente(db, current_token.tenant_id, cliente_id)
    if not cliente:
        raise HTTPException(status_code=404, detail="Cliente não encontrado")

    pagos = [pedido for pedido in cliente.orders if pedido.payment_status == "paid"]
    return _cliente_out(cliente, len(pagos), sum((pedido.total for pedido in pagos), Decimal("0")))


@customers_router.get("/{cliente_id}/orders", response_model=List[OrderOut])
def listar_pedidos_do_cliente(
    cliente_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    cliente = crud.buscar_cliente(db, current_token.tenant_id, cliente_id)
    if not cliente:
        raise HTTPException(status_code=404, detail="Cliente não encontrado")
    return sorted(cliente.orders, key=lambda pedido: pedido.created_at, reverse=True)
