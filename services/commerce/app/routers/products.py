from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.schemas.catalog_schema import (
    ProductCreate,
    ProductOut,
    ProductStatsOut,
    ProductUpdate,
    VariantCreate,
    VariantOut,
    VariantUpdate,
)
from app.services import cache_tags
from shared import cache as tenant_cache
from . import crud, validators

router = APIRouter(tags=["Products"])


def _produto_ou_404(db: Session, tenant_id: UUID, produto_id: UUID):
    produto = crud.buscar_produto(db, tenant_id, produto_id)
    if not produto:
        raise HTTPException(status_code=404, detail="Produto não encontrado")
    return produto


@router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def criar_produto(
    produto: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    validators.validar_categoria(db, current_token.tenant_id, produto.category_id)
    novo_produto = crud.criar_produto(db, current_token.tenant_id, produto)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "product")
    return novo_produto


@router.get("/", response_model=List[ProductOut])
def listar_produtos(
    request: Request,
    status_param: Optional[str] = Query(default=None, alias="status"),
    category_id: Optional[UUID] = Query(default=None),
    search: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id

    def carregar():
        produtos = crud.listar_produtos(db, tenant_id, status_param, category_id, search, limit, offset)
        return [ProductOut.model_validate(produto) for produto in produtos]

    partes = ("list", status_param or "-", category_id or "-", search or "-", limit, offset)
    return cache_tags.cached(request, tenant_id, tenant_cache.PRODUCTS, partes, carregar)


@router.get("/stats", response_model=ProductStatsOut)
def estatisticas_produtos(
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id

    def carregar():
        tenant = crud.buscar_tenant(db, tenant_id)
        limite = tenant.settings.low_stock_threshold if tenant and tenant.settings else 10
        return crud.estatisticas_produtos(db, tenant_id, limite)

    return cache_tags.cached(request, tenant_id, tenant_cache.INVENTORY, ("stats",), carregar)


@router.get("/slug/{slug}", response_model=ProductOut)
def obter_produto_por_slug(
    slug: str,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    produto = crud.buscar_produto_por_slug(db, current_token.tenant_id, slug)
    if not produto:
        raise HTTPException(status_code=404, detail="Produto não encontrado")
    return produto


@router.get("/{produto_id}", response_model=ProductOut)
def obter_produto(
    produto_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    return cache_tags.cached(
        request,
        tenant_id,
        tenant_cache.PRODUCTS,
        ("item", produto_id),
        lambda: ProductOut.model_validate(_produto_ou_404(db, tenant_id, produto_id)),
    )


@router.put("/{produto_id}", response_model=ProductOut)
def atualizar_produto(
    produto_id: UUID,
    produto_update: ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    produto = _produto_ou_404(db, tenant_id, produto_id)

    dados = produto_update.model_dump(exclude_unset=True)
    if "category_id" in dados:
        validators.validar_categoria(db, tenant_id, dados["category_id"])

    produto = crud.atualizar_produto(db, produto, dados)
    cache_tags.invalidate_after_write(request, tenant_id, "product")
    return produto


@router.delete("/{produto_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_produto(
    produto_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    produto = _produto_ou_404(db, current_token.tenant_id, produto_id)
    crud.deletar_produto(db, produto)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "product")
    return None


# ---------------------------------------------------------------- variantes

@router.get("/{produto_id}/variants", response_model=List[VariantOut])
def listar_variantes(
    produto_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return _produto_ou_404(db, current_token.tenant_id, produto_id).variants


@router.post("/{produto_id}/variants", response_model=VariantOut, status_code=status.HTTP_201_CREATED)
def criar_variante(
    produto_id: UUID,
    variante: VariantCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    produto = _produto_ou_404(db, current_token.tenant_id, produto_id)
    nova_variante = crud.criar_variante(db, produto, variante)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "product")
    return nova_variante


@router.put("/{produto_id}/variants/{variante_id}", response_model=VariantOut)
def atualizar_variante(
    produto_id: UUID,
    variante_id: UUID,
    variante_update: VariantUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    produto = _produto_ou_404(db, current_token.tenant_id, produto_id)
    variante = crud.buscar_variante(db, produto, variante_id)
    if not variante:
        raise HTTPException(status_code=404, detail="Variante não encontrada")

    variante = crud.atualizar_variante(db, variante, variante_update.model_dump(exclude_unset=True))
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "product")
    return variante


@router.delete("/{produto_id}/variants/{variante_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_variante(
    produto_id: UUID,
    variante_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    produto = _produto_ou_404(db, current_token.tenant_id, produto_id)
    variante = crud.buscar_variante(db, produto, variante_id)
    if not variante:
        raise HTTPException(status_code=404, detail="Variante não encontrada")

    crud.deletar_variante(db, variante)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "product")
    return None
