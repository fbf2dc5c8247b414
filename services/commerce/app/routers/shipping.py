from dataclasses import asdict
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.schemas.shipping_schema import (
    ShippingQuoteOut,
    ShippingQuoteRequest,
    ShippingRateCreate,
    ShippingRateOut,
    ShippingRateUpdate,
    ShippingZoneCreate,
    ShippingZoneOut,
    ShippingZoneUpdate,
)
from app.services import cache_tags
from app.services import shipping as shipping_rules
from . import crud

router = APIRouter(tags=["Shipping"])


def _zona_ou_404(db: Session, tenant_id: UUID, zona_id: UUID):
    zona = crud.buscar_zona(db, tenant_id, zona_id)
    if not zona:
        raise HTTPException(status_code=404, detail="Zona de entrega não encontrada")
    return zona


def _tarifa_ou_404(db: Session, zona, tarifa_id: UUID):
    tarifa = crud.buscar_tarifa(db, zona, tarifa_id)
    if not tarifa:
        raise HTTPException(status_code=404, detail="Tarifa de frete não encontrada")
    return tarifa


@router.get("/zones", response_model=List[ShippingZoneOut])
def listar_zonas(
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return crud.listar_zonas(db, current_token.tenant_id)


@router.post("/zones", response_model=ShippingZoneOut, status_code=status.HTTP_201_CREATED)
def criar_zona(
    zona: ShippingZoneCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    nova_zona = crud.criar_zona(db, current_token.tenant_id, zona)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "store_config")
    return nova_zona


@router.get("/zones/{zona_id}", response_model=ShippingZoneOut)
def obter_zona(
    zona_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return _zona_ou_404(db, current_token.tenant_id, zona_id)


@router.put("/zones/{zona_id}", response_model=ShippingZoneOut)
def atualizar_zona(
    zona_id: UUID,
    zona_update: ShippingZoneUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    zona = _zona_ou_404(db, current_token.tenant_id, zona_id)
    dados = zona_update.model_dump(exclude_unset=True, exclude={"countries"})
    # países só são substituídos quando enviados
    zona = crud.atualizar_zona(db, zona, dados, zona_update.countries)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "store_config")
    return zona


@router.delete("/zones/{zona_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_zona(
    zona_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    zona = _zona_ou_404(db, current_token.tenant_id, zona_id)
    crud.deletar_zona(db, zona)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "store_config")
    return None


@router.post("/zones/{zona_id}/rates", response_model=ShippingRateOut, status_code=status.HTTP_201_CREATED)
def criar_tarifa(
    zona_id: UUID,
    tarifa: ShippingRateCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    zona = _zona_ou_404(db, current_token.tenant_id, zona_id)
    nova_tarifa = crud.criar_tarifa(db, zona, tarifa)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "store_config")
    return nova_tarifa


@router.put("/zones/{zona_id}/rates/{tarifa_id}", response_model=ShippingRateOut)
def atualizar_tarifa(
    zona_id: UUID,
    tarifa_id: UUID,
    tarifa_update: ShippingRateUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    zona = _zona_ou_404(db, current_token.tenant_id, zona_id)
    tarifa = _tarifa_ou_404(db, zona, tarifa_id)

    dados = tarifa_update.model_dump(exclude_unset=True)
    for minimo, maximo in (("min_weight", "max_weight"), ("min_order_total", "max_order_total")):
        baixo = dados.get(minimo, getattr(tarifa, minimo))
        alto = dados.get(maximo, getattr(tarifa, maximo))
        if baixo is not None and alto is not None and baixo > alto:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"{minimo} deve ser menor ou igual a {maximo}",
            )

    tarifa = crud.atualizar_tarifa(db, tarifa, dados)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "store_config")
    return tarifa


@router.delete("/zones/{zona_id}/rates/{tarifa_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_tarifa(
    zona_id: UUID,
    tarifa_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    zona = _zona_ou_404(db, current_token.tenant_id, zona_id)
    crud.deletar_tarifa(db, _tarifa_ou_404(db, zona, tarifa_id))
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "store_config")
    return None


@router.post("/quote", response_model=List[ShippingQuoteOut])
def cotar_frete(
    cotacao: ShippingQuoteRequest,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    cotacoes = shipping_rules.quote(
        db,
        current_token.tenant_id,
        cotacao.country,
        cotacao.subtotal,
        cotacao.weight,
        cotacao.items,
    )
    return [ShippingQuoteOut(**asdict(item)) for item in cotacoes]
