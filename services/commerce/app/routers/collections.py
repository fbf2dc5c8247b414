from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.schemas.catalog_schema import ProductOut
from app.schemas.collection_schema import (
    CollectionCreate,
    CollectionOut,
    CollectionProductsAdd,
    CollectionUpdate,
)
from app.services import cache_tags
from . import crud, validators

router = APIRouter(tags=["Collections"])


def _com_contagem(colecoes, contagens) -> List[CollectionOut]:
    return [
        CollectionOut.model_validate(colecao).model_copy(update={"product_count": contagens.get(colecao.id, 0)})
        for colecao in colecoes
    ]


def _colecao_ou_404(db: Session, tenant_id: UUID, colecao_id: UUID):
    colecao = crud.buscar_colecao(db, tenant_id, colecao_id)
    if not colecao:
        raise HTTPException(status_code=404, detail="Coleção não encontrada")
    return colecao


@router.post("/", response_model=CollectionOut, status_code=status.HTTP_201_CREATED)
def criar_colecao(
    colecao: CollectionCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    validators.validar_produtos(db, tenant_id, colecao.product_ids)
    nova_colecao = crud.criar_colecao(db, tenant_id, colecao)
    cache_tags.invalidate_after_write(request, tenant_id, "collection")
    return _com_contagem([nova_colecao], crud.contar_produtos_por_colecao(db, tenant_id))[0]


@router.get("/", response_model=List[CollectionOut])
def listar_colecoes(
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    return _com_contagem(crud.listar_colecoes(db, tenant_id), crud.contar_produtos_por_colecao(db, tenant_id))


@router.get("/{colecao_id}", response_model=CollectionOut)
def obter_colecao(
    colecao_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    colecao = _colecao_ou_404(db, current_token.tenant_id, colecao_id)
    return _com_contagem([colecao], crud.contar_produtos_por_colecao(db, current_token.tenant_id))[0]


@router.put("/{colecao_id}", response_model=CollectionOut)
def atualizar_colecao(
    colecao_id: UUID,
    colecao_update: CollectionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    colecao = _colecao_ou_404(db, tenant_id, colecao_id)
    colecao = crud.atualizar_colecao(db, colecao, colecao_update.model_dump(exclude_unset=True))
    cache_tags.invalidate_after_write(request, tenant_id, "collection")
    return _com_contagem([colecao], crud.contar_produtos_por_colecao(db, tenant_id))[0]


@router.delete("/{colecao_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_colecao(
    colecao_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    colecao = _colecao_ou_404(db, current_token.tenant_id, colecao_id)
    crud.deletar_colecao(db, colecao)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "collection")
    return None


# ----------------------------------------------------------------- produtos

@router.get("/{colecao_id}/products", response_model=List[ProductOut])
def listar_produtos_da_colecao(
    colecao_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    colecao = _colecao_ou_404(db, current_token.tenant_id, colecao_id)
    return crud.listar_produtos_da_colecao(db, colecao)


@router.post("/{colecao_id}/products", response_model=CollectionOut)
def adicionar_produtos(
    colecao_id: UUID,
    pedido: CollectionProductsAdd,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    tenant_id = current_token.tenant_id
    colecao = _colecao_ou_404(db, tenant_id, colecao_id)
    validators.validar_produtos(db, tenant_id, pedido.product_ids)
    if crud.adicionar_produtos_a_colecao(db, colecao, pedido.product_ids):
        cache_tags.invalidate_after_write(request, tenant_id, "collection")
    return _com_contagem([colecao], crud.contar_produtos_por_colecao(db, tenant_id))[0]


@router.delete("/{colecao_id}/products/{produto_id}", status_code=status.HTTP_204_NO_CONTENT)
def remover_produto(
    colecao_id: UUID,
    produto_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    colecao = _colecao_ou_404(db, current_token.tenant_id, colecao_id)
    if not crud.remover_produto_da_colecao(db, colecao, produto_id):
        raise HTTPException(status_code=404, detail="Produto não está nesta coleção")
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "collection")
    return None
