from typing import Optional, Sequence
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.tenant import Tenant
from . import crud


def validar_slug_unico(db: Session, slug: str, tenant_id: Optional[UUID] = None) -> None:
    query = db.query(Tenant).filter(Tenant.slug == slug)
    if tenant_id:
        query = query.filter(Tenant.id != tenant_id)
    if query.first():
        raise HTTPException(status_code=400, detail="Já existe uma loja com este slug")


def validar_mesmo_tenant(tenant_id: UUID, token_tenant_id: UUID, acao: str) -> None:
    if tenant_id != token_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Você não tem permissão para {acao} de outro tenant.",
        )


def validar_categoria(db: Session, tenant_id: UUID, categoria_id: Optional[UUID]) -> None:
    if categoria_id is None:
        return
    if crud.buscar_categoria(db, tenant_id, categoria_id) is None:
        raise HTTPException(status_code=400, detail="Categoria não pertence a esta loja")


def validar_produtos(db: Session, tenant_id: UUID, product_ids: Sequence[UUID]) -> None:
    desconhecidos = crud.produtos_de_outra_loja(db, tenant_id, product_ids)
    if desconhecidos:
        raise HTTPException(
            status_code=400,
            detail=f"Produtos não pertencem a esta loja: {', '.join(str(p) for p in desconhecidos)}",
        )


def validar_novo_pai(db: Session, tenant_id: UUID, categoria_id: UUID, pai_id: Optional[UUID]) -> None:
    if pai_id is None:
        return
    validar_categoria(db, tenant_id, pai_id)
    if crud.eh_descendente(db, tenant_id, categoria_id, pai_id):
        raise HTTPException(
            status_code=400,
            detail="Uma categoria não pode ser movida para dentro dela mesma ou de uma subcategoria",
        )


def buscar_loja_ativa(db: Session, slug: str) -> Tenant:
    loja = crud.buscar_loja_por_slug(db, slug)
    if loja is None:
        raise HTTPException(status_code=404, detail="Loja não encontrada")
    return loja
