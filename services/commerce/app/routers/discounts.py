from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import TokenPayload, get_admin_token
from app.core.database import get_db
from app.core.timeutils import utcnow
from app.schemas.catalog_schema import BulkDeleteOut, BulkDeleteRequest
from app.schemas.discount_schema import (
    DiscountCreate,
    DiscountDetailOut,
    DiscountKind,
    DiscountOut,
    DiscountStatus,
    DiscountType,
    DiscountUpdate,
    VoucherCodeCreate,
    VoucherCodeGenerate,
    VoucherCodeOut,
    VoucherValidationOut,
    VoucherValidationRequest,
)
from app.services import cache_tags
from app.services.discounts import (
    LineItem,
    apply_voucher_code,
    collection_ids_by_product,
    discount_status,
    validate_discount_form,
)
from app.services.vouchers import effective_code_status
from . import crud

router = APIRouter(tags=["Discounts"])

# campos do formulário usados na validação de uma atualização parcial
_CAMPOS_FORMULARIO = (
    "name",
    "kind",
    "type",
    "value",
    "usage_limit",
    "min_order_amount",
    "starts_at",
    "ends_at",
)


def _codigo_out(codigo) -> VoucherCodeOut:
    return VoucherCodeOut.model_validate(codigo).model_copy(
        update={"status": effective_code_status(codigo.status, codigo.used_count or 0, codigo.usage_limit)}
    )


def _desconto_out(desconto, detalhe: bool = False):
    schema = DiscountDetailOut if detalhe else DiscountOut
    saida = schema.model_validate(desconto).model_copy(update={"status": discount_status(desconto, utcnow())})
    if detalhe:
        saida.codes = [_codigo_out(codigo) for codigo in desconto.codes]
    return saida


def _desconto_ou_404(db: Session, tenant_id: UUID, desconto_id: UUID):
    desconto = crud.buscar_desconto(db, tenant_id, desconto_id)
    if not desconto:
        raise HTTPException(status_code=404, detail="Desconto não encontrado")
    return desconto


def _validar_formulario(dados: dict) -> None:
    erros = validate_discount_form(dados)
    if erros:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=erros)


@router.get("/", response_model=List[DiscountOut])
def listar_descontos(
    search: Optional[str] = Query(default=None),
    kind: Optional[DiscountKind] = Query(default=None),
    status_param: Optional[DiscountStatus] = Query(default=None, alias="status"),
    type_param: Optional[DiscountType] = Query(default=None, alias="type"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    descontos = crud.listar_descontos(
        db,
        current_token.tenant_id,
        search=search,
        kind=kind,
        status=status_param,
        type=type_param,
        limit=limit,
        offset=offset,
    )
    return [_desconto_out(desconto) for desconto in descontos]


@router.post("/", response_model=DiscountDetailOut, status_code=status.HTTP_201_CREATED)
def criar_desconto(
    desconto: DiscountCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    _validar_formulario(desconto.model_dump())
    novo_desconto = crud.criar_desconto(db, current_token.tenant_id, desconto)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "discount")
    return _desconto_out(novo_desconto, detalhe=True)


@router.post("/validate", response_model=VoucherValidationOut)
def validar_voucher(
    pedido: VoucherValidationRequest,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    colecoes = collection_ids_by_product(db, current_token.tenant_id, (item.product_id for item in pedido.items))
    linhas = [
        LineItem(
            product_id=item.product_id,
            unit_price=item.unit_price,
            quantity=item.quantity,
            category_id=item.category_id,
            collection_ids=colecoes.get(item.product_id, ()),
        )
        for item in pedido.items
    ]
    resultado = apply_voucher_code(
        db,
        current_token.tenant_id,
        pedido.code,
        linhas,
        customer_id=pedido.customer_id,
    )
    return VoucherValidationOut(
        valid=resultado.valid,
        error=resultado.error,
        discount_amount=resultado.discount_amount,
        discount_id=resultado.discount_id,
        voucher_code_id=resultado.voucher_code_id,
        discount_type=resultado.discount_type,
        discount_value=resultado.discount_value,
    )


@router.post("/bulk-delete", response_model=BulkDeleteOut)
def deletar_descontos_em_lote(
    pedido: BulkDeleteRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    removidos = crud.deletar_descontos_em_lote(db, current_token.tenant_id, pedido.ids)
    if removidos:
        cache_tags.invalidate_after_write(request, current_token.tenant_id, "discount")
    return BulkDeleteOut(deleted=removidos)


@router.get("/{desconto_id}", response_model=DiscountDetailOut)
def obter_desconto(
    desconto_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    return _desconto_out(_desconto_ou_404(db, current_token.tenant_id, desconto_id), detalhe=True)


@router.put("/{desconto_id}", response_model=DiscountDetailOut)
def atualizar_desconto(
    desconto_id: UUID,
    desconto_update: DiscountUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    desconto = _desconto_ou_404(db, current_token.tenant_id, desconto_id)
    dados = desconto_update.model_dump(exclude_unset=True)

    mesclado = {campo: getattr(desconto, campo) for campo in _CAMPOS_FORMULARIO}
    mesclado.update({campo: valor for campo, valor in dados.items() if campo in _CAMPOS_FORMULARIO})
    _validar_formulario(mesclado)

    desconto = crud.atualizar_desconto(db, desconto, dados)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "discount")
    return _desconto_out(desconto, detalhe=True)


@router.delete("/{desconto_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_desconto(
    desconto_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    desconto = _desconto_ou_404(db, current_token.tenant_id, desconto_id)
    crud.deletar_desconto(db, desconto)
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "discount")
    return None


@router.post("/{desconto_id}/toggle", response_model=DiscountOut)
def alternar_desconto(
    desconto_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    desconto = _desconto_ou_404(db, current_token.tenant_id, desconto_id)
    desconto = crud.atualizar_desconto(db, desconto, {"is_active": not desconto.is_active})
    cache_tags.invalidate_after_write(request, current_token.tenant_id, "discount")
    return _desconto_out(desconto)


# ------------------------------------------------------------------ códigos

@router.post("/{desconto_id}/codes", response_model=VoucherCodeOut, status_code=status.HTTP_201_CREATED)
def adicionar_codigo(
    desconto_id: UUID,
    codigo: VoucherCodeCreate,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    desconto = _desconto_ou_404(db, current_token.tenant_id, desconto_id)
    if crud.codigo_existe(db, current_token.tenant_id, codigo.code):
        raise HTTPException(status_code=400, detail="A code with this value already exists")
    return _codigo_out(crud.adicionar_codigo(db, desconto, codigo.code, codigo.usage_limit))


@router.post(
    "/{desconto_id}/codes/generate",
    response_model=List[VoucherCodeOut],
    status_code=status.HTTP_201_CREATED,
)
def gerar_codigos(
    desconto_id: UUID,
    pedido: VoucherCodeGenerate,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    desconto = _desconto_ou_404(db, current_token.tenant_id, desconto_id)
    try:
        codigos = crud.gerar_codigos(db, desconto, pedido.quantity, pedido.prefix, pedido.usage_limit)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return [_codigo_out(codigo) for codigo in codigos]


@router.delete("/{desconto_id}/codes/{codigo_id}", status_code=status.HTTP_204_NO_CONTENT)
def deletar_codigo(
    desconto_id: UUID,
    codigo_id: UUID,
    db: Session = Depends(get_db),
    current_token: TokenPayload = Depends(get_admin_token),
):
    desconto = _desconto_ou_404(db, current_token.tenant_id, desconto_id)
    codigo = crud.buscar_codigo(db, desconto, codigo_id)
    if not codigo:
        raise HTTPException(status_code=404, detail="Código não encontrado")
    if codigo.used_count:
        raise HTTPException(status_code=400, detail="Códigos já utilizados não podem ser removidos")

    crud.deletar_codigo(db, codigo)
    return None
