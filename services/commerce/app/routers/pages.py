from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.schemas.page_schema import (
    BlockSchemaOut,
    PageCreate,
    PageOut,
    PageUpdate,
    SectionIn,
    SectionValidationOut,
)
from app.services.editor_fields import describe_blocks, validate_section
from app.services.errors import SectionValidationError
from app.services.pages import prepare_sections
from . import crud

router = APIRouter(tags=["Pages"])


def _pagina_ou_404(db: Session, tenant_id: UUID, pagina_id: UUID):
    pagina = crud.buscar_pagina(db, tenant_id, pagina_id)
    if not pagina:
        raise HTTPException(status_code=404, detail="Página não encontrada")
    return pagina


def _secoes_validas(db: Session, tenant_id: UUID, secoes: List[SectionIn]) -> list:
    try:
        return prepare_sections(db, tenant_id, secoes)
    except SectionValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors)


@router.get("/blocks", response_model=List[BlockSchemaOut])
def listar_blocos(current_token: TokenPayload = Depends(get_admin_token)):
    return describe_blocks()


@router.post("/validate-section", response_model=SectionValidationOut)
def validar_secao(
    secao: SectionIn,
    current_token: TokenPayload = Depends(get_admin_token),
):
    configuracoes, erros = validate_section(secao.type, secao.settings)
    return SectionValidationOut(valid=not erros, errors=erros, settings=configuracoes)


@router.get("/", response_model=List[PageOut])
def listar_paginas(
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return crud.listar_paginas(db, current_token.tenant_id)


@router.post("/", response_model=PageOut, status_code=status.HTTP_201_CREATED)
def criar_pagina(
    pagina: PageCreate,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    secoes = _secoes_validas(db, current_token.tenant_id, pagina.sections)
    return crud.criar_pagina(db, current_token.tenant_id, pagina.title, pagina.slug, pagina.page_type, secoes)


@router.get("/{pagina_id}", response_model=PageOut)
def obter_pagina(
    pagina_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return _pagina_ou_404(db, current_token.tenant_id, pagina_id)


@router.put("/{pagina_id}", response_model=PageOut)
def atualizar_pagina(
    pagina_id: UUID,
    pagina_update: PageUpdate,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    pagina = _pagina_ou_404(db, current_token.tenant_id, pagina_id)

    dados = pagina_update.model_dump(exclude_unset=True, exclude={"sections"})
    if pagina_update.sections is not None:
        dados["sections"] = _secoes_validas(db, current_token.tenant_id, pagina_update.sections)
    return crud.atualizar_pagina(db, pagina, dados)


@router.post("/{pagina_id}/publish", response_model=PageOut)
def publicar_pagina(
    pagina_id: UUID,
    publish: bool = Query(default=True),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    pagina = _pagina_ou_404(db, current_token.tenant_id, pagina_id)
    return crud.publicar_pagina(db, pagina, publish)


@router.delete("/{pagina_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_pagina(
    pagina_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    crud.deletar_pagina(db, _pagina_ou_404(db, current_token.tenant_id, pagina_id))
    return None
