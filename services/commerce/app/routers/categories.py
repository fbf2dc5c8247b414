from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.schemas.catalog_schema import (
    BulkDeleteOut,
    BulkDeleteRequest,
    CategoryCreate,
    CategoryMove,
    CategoryOut,
    CategoryReorderItem,
    CategoryUpdate,
)
from app.services import cache_tags
from shared import cache as tenant_cache
from . import crud, validators

router = APIRouter(tags=["Categories"])


def _com_contagem(categorias, contagens) -> List[CategoryOut]:
    return [
        CategoryOut.model_validate(categoria).model_copy(update={"product_count": contagens.get(categoria.id, 0)})
        for categoria in categorias
    ]


def _categoria_ou_404(db: Session, tenant_id: UUID, categoria_id: UUID):
    categoria = crud.buscar_categoria(db, tenant_id, categoria_id)
    if not categoria:
        raise HTTPException(status_code=404, detail="Categoria não encontrada")
    return categoria


@router.post("/", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def criar_categoria(
    categoria: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    validators.validar_categoria(db, current_token.tenant_id, categoria.parent_id)
    nova_categoria = crud.criar_categoria(db, current_token.tenant_id, categoria)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "category")
    return nova_categoria


@router.get("/", response_model=List[CategoryOut])
def listar_categorias(
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id

    def carregar():
        return _com_contagem(crud.listar_categorias(db, tenant_id), crud.contar_produtos_por_categoria(db, tenant_id))

    return cache_tags.cached(request, tenant_id, tenant_cache.CATEGORIES, (), carregar)


@router.get("/{categoria_id}", response_model=CategoryOut)
def obter_categoria(
    categoria_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    categoria = _categoria_ou_404(db, current_token.tenant_id, categoria_id)
    contagens = crud.contar_produtos_por_categoria(db, current_token.tenant_id)
    return _com_contagem([categoria], contagens)[0]


@router.put("/reorder", response_model=List[CategoryOut])
def reordenar_categorias(
    itens: List[CategoryReorderItem],
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    for item in itens:
        if "parent_id" in item.model_fields_set:
            validators.validar_novo_pai(db, tenant_id, item.id, item.parent_id)

    categorias = crud.reordenar_categorias(db, tenant_id, itens)
    cache_tags.invalidate_after_write(request, tenant_id, "category")
    return _com_contagem(categorias, crud.contar_produtos_por_categoria(db, tenant_id))


@router.post("/bulk-delete", response_model=BulkDeleteOut)
def deletar_categorias_em_lote(
    pedido: BulkDeleteRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    removidas = crud.deletar_categorias_em_lote(db, current_token.tenant_id, pedido.ids)
    if removidas:
        cache_tags.invalidate_after_write(request, current_token.tenant_id, "category")
    return BulkDeleteOut(deleted=removidas)


@router.put("/{categoria_id}", response_model=CategoryOut)
def atualizar_categoria(
    categoria_id: UUID,
    categoria_update: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    categoria = _categoria_ou_404(db, tenant_id, categoria_id)

    dados = categoria_update.model_dump(exclude_unset=True)
    if "parent_id" in dados:
        validators.validar_novo_pai(db, tenant_id, categoria.id, dados["parent_id"])

    categoria = crud.atualizar_categoria(db, categoria, dados)
    cache_tags.invalidate_after_write(request, tenant_id, "category")
    return _com_contagem([categoria], crud.contar_produtos_por_categoria(db, tenant_id))[0]


@router.post("/{categoria_id}/move", response_model=CategoryOut)
def mover_categoria(
    categoria_id: UUID,
    movimento: CategoryMove,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    categoria = _categoria_ou_404(db, tenant_id, categoria_id)
    validators.validar_novo_pai(db, tenant_id, categoria.id, movimento.parent_id)

    categoria = crud.atualizar_categoria(db, categoria, {"parent_id": movimento.parent_id})
    cache_tags.invalidate_after_write(request, tenant_id, "category")
    return _com_contagem([categoria], crud.contar_produtos_por_categoria(db, tenant_id))[0]


@router.delete("/{categoria_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_categoria(
    categoria_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    categoria = _categoria_ou_404(db, current_token.tenant_id, categoria_id)
    crud.deletar_categoria(db, categoria)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "category")
    return None
