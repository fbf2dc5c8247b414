from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.schemas.tenant_schema import (
    StoreSettingsOut,
    StoreSettingsUpdate,
    TenantCreate,
    TenantOut,
    TenantUpdate,
)
from app.services import cache_tags
from . import crud, validators

router = APIRouter(tags=["Tenants"])


def _tenant_do_token(db: Session, tenant_id: UUID, current_token: TokenPayload, acao: str):
    # admin só pode mexer no próprio tenant
    validators.validar_mesmo_tenant(tenant_id, current_token.tenant_id, acao)
    tenant = crud.buscar_tenant(db, tenant_id)
    if not tenant:
        raise HTTPException(status_code=404, detail="Tenant não encontrado")
    return tenant


@router.post("/", response_model=TenantOut, status_code=status.HTTP_201_CREATED)
def criar_tenant(tenant: TenantCreate, db: Session = Depends(get_db)):
    validators.validar_slug_unico(db, tenant.slug)
    return crud.criar_tenant(db, tenant)


@router.get("/{tenant_id}", response_model=TenantOut)
def buscar_tenant(
    tenant_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return _tenant_do_token(db, tenant_id, current_token, "acessar dados")


@router.put("/{tenant_id}", response_model=TenantOut)
def atualizar_tenant(
    tenant_id: UUID,
    tenant_update: TenantUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant = _tenant_do_token(db, tenant_id, current_token, "atualizar dados")

    if tenant_update.slug:
        validators.validar_slug_unico(db, tenant_update.slug, tenant_id)

    tenant = crud.atualizar_tenant(db, tenant, tenant_update.model_dump(exclude_unset=True))
    cache_tags.invalidate_after_write(request, tenant_id, "store_config")
    return tenant


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_tenant(
    tenant_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant = _tenant_do_token(db, tenant_id, current_token, "deletar dados")
    crud.deletar_tenant(db, tenant)
    cache_tags.invalidate_tenant(request, tenant_id)

    publisher = request.app.state.event_publisher
    if publisher:
        publisher.publish("tenant.deleted", {"tenant_id": str(tenant_id)}, tenant_id=tenant_id)
    return None


@router.get("/{tenant_id}/settings", response_model=StoreSettingsOut)
def buscar_configuracoes(
    tenant_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant = _tenant_do_token(db, tenant_id, current_token, "acessar configurações")
    if tenant.settings is None:
        return crud.atualizar_configuracoes(db, tenant, {})
    return tenant.settings


@router.put("/{tenant_id}/settings", response_model=StoreSettingsOut)
def atualizar_configuracoes(
    tenant_id: UUID,
    settings_update: StoreSettingsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant = _tenant_do_token(db, tenant_id, current_token, "atualizar configurações")
    settings = crud.atualizar_configuracoes(db, tenant, settings_update.model_dump(exclude_unset=True))
    cache_tags.invalidate_after_write(request, tenant_id, "store_config")
    return settings
