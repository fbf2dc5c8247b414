"""Rotas públicas da vitrine: catálogo, páginas publicadas, carrinho e checkout.

A loja é resolvida pelo slug na URL; nenhuma rota daqui exige token.
"""

from dataclasses import asdict
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.money import to_money
from app.schemas.cart_schema import (
    ApplyVoucherRequest,
    CartCreate,
    CartDetailsUpdate,
    CartItemAdd,
    CartItemQuantity,
    CartOut,
    SelectShippingRequest,
)
from app.schemas.catalog_schema import StorefrontProductOut, VariantOut
from app.schemas.collection_schema import StorefrontCollectionOut
from app.schemas.order_schema import CheckoutRequest, OrderDetailOut
from app.schemas.page_schema import PageOut
from app.schemas.shipping_schema import ShippingQuoteOut
from app.services import cache_tags
from app.services import cart as cart_service
from app.services import discounts as discount_rules
from app.services import orders as order_service
from app.services.errors import (
    CartNotEditableError,
    CheckoutError,
    CommerceError,
    InsufficientStockError,
    ProductUnavailableError,
)
from shared import cache as tenant_cache
from . import crud, validators

router = APIRouter(tags=["Storefront"])


def _erro_http(exc: CommerceError) -> HTTPException:
    if isinstance(exc, (CartNotEditableError, InsufficientStockError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ProductUnavailableError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _carrinho_ou_404(db: Session, tenant_id: UUID, carrinho_id: UUID):
    carrinho = cart_service.get_cart(db, tenant_id, carrinho_id)
    if not carrinho:
        raise HTTPException(status_code=404, detail="Carrinho não encontrado")
    return carrinho


def _produto_da_vitrine(produto, vendas, colecoes=None) -> StorefrontProductOut:
    preco = to_money(produto.price)
    venda = discount_rules.find_applicable_sale(
        vendas,
        produto.id,
        produto.category_id,
        (colecoes or {}).get(produto.id, ()),
    )
    preco_promocional = discount_rules.sale_price(preco, venda) if venda is not None else None
    if preco_promocional is not None and preco_promocional >= preco:
        preco_promocional = None

    if not produto.track_quantity or produto.allow_backorder:
        em_estoque = True
    elif produto.variants:
        em_estoque = any(variante.quantity > 0 for variante in produto.variants)
    else:
        em_estoque = produto.quantity > 0

    return StorefrontProductOut(
        id=produto.id,
        name=produto.name,
        slug=produto.slug,
        description=produto.description,
        category_id=produto.category_id,
        price=preco,
        sale_price=preco_promocional,
        compare_at_price=produto.compare_at_price,
        images=produto.images or [],
        in_stock=em_estoque,
        variants=[VariantOut.model_validate(variante) for variante in produto.variants],
    )


def _vitrine(db: Session, tenant_id: UUID, produtos, vendas) -> List[StorefrontProductOut]:
    colecoes = discount_rules.collection_ids_by_product(db, tenant_id, (produto.id for produto in produtos))
    return [_produto_da_vitrine(produto, vendas, colecoes) for produto in produtos]


# ------------------------------------------------------------------ catálogo

@router.get("/{slug}/products", response_model=List[StorefrontProductOut])
def listar_produtos_da_loja(
    slug: str,
    request: Request,
    category_id: Optional[UUID] = Query(default=None),
    db: Session = Depends(get_db),
):
    loja = validators.buscar_loja_ativa(db, slug)

    def carregar():
        vendas = discount_rules.active_sales(db, loja.id)
        produtos = crud.listar_produtos_da_loja(db, loja.id, category_id)
        return _vitrine(db, loja.id, produtos, vendas)

    partes = ("storefront", category_id or "all")
    return cache_tags.cached(request, loja.id, tenant_cache.PRODUCTS, partes, carregar)


@router.get("/{slug}/products/{produto_slug}", response_model=StorefrontProductOut)
def obter_produto_da_loja(slug: str, produto_slug: str, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    produto = crud.buscar_produto_por_slug(db, loja.id, produto_slug)
    if not produto or produto.status != "active":
        raise HTTPException(status_code=404, detail="Produto não encontrado")
    return _vitrine(db, loja.id, [produto], discount_rules.active_sales(db, loja.id))[0]


@router.get("/{slug}/collections/{colecao_slug}", response_model=StorefrontCollectionOut)
def obter_colecao_da_loja(slug: str, colecao_slug: str, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    colecao = crud.buscar_colecao_ativa_por_slug(db, loja.id, colecao_slug)
    if not colecao:
        raise HTTPException(status_code=404, detail="Coleção não encontrada")
    produtos = crud.listar_produtos_da_colecao(db, colecao, somente_ativos=True)
    return StorefrontCollectionOut(
        id=colecao.id,
        name=colecao.name,
        slug=colecao.slug,
        description=colecao.description,
        image_url=colecao.image_url,
        products=_vitrine(db, loja.id, produtos, discount_rules.active_sales(db, loja.id)),
    )


@router.get("/{slug}/pages/{pagina_slug}", response_model=PageOut)
def obter_pagina_publicada(slug: str, pagina_slug: str, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    pagina = crud.buscar_pagina_publicada(db, loja.id, pagina_slug)
    if not pagina:
        raise HTTPException(status_code=404, detail="Página não encontrada")
    return pagina


# ----------------------------------------------------------------- carrinho

@router.post("/{slug}/cart", response_model=CartOut, status_code=status.HTTP_201_CREATED)
def criar_carrinho(slug: str, carrinho: CartCreate, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    return cart_service.create_cart(
        db,
        loja,
        email=carrinho.email.lower() if carrinho.email else None,
        customer_id=carrinho.customer_id,
        currency=carrinho.currency,
    )


@router.get("/{slug}/cart/{carrinho_id}", response_model=CartOut)
def obter_carrinho(slug: str, carrinho_id: UUID, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    return _carrinho_ou_404(db, loja.id, carrinho_id)


@router.patch("/{slug}/cart/{carrinho_id}", response_model=CartOut)
def atualizar_dados_do_carrinho(
    slug: str,
    carrinho_id: UUID,
    dados: CartDetailsUpdate,
    db: Session = Depends(get_db),
):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        return cart_service.update_details(db, carrinho, dados.model_dump(exclude_unset=True))
    except CommerceError as exc:
        raise _erro_http(exc)


@router.post("/{slug}/cart/{carrinho_id}/items", response_model=CartOut)
def adicionar_item(
    slug: str,
    carrinho_id: UUID,
    item: CartItemAdd,
    db: Session = Depends(get_db),
):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        return cart_service.add_item(db, carrinho, item.product_id, item.quantity, item.variant_id)
    except CommerceError as exc:
        raise _erro_http(exc)


@router.patch("/{slug}/cart/{carrinho_id}/items/{item_id}", response_model=CartOut)
def alterar_quantidade(
    slug: str,
    carrinho_id: UUID,
    item_id: UUID,
    alteracao: CartItemQuantity,
    db: Session = Depends(get_db),
):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        atualizado = cart_service.update_item_quantity(db, carrinho, item_id, alteracao.quantity)
    except CommerceError as exc:
        raise _erro_http(exc)
    if atualizado is None:
        raise HTTPException(status_code=404, detail="Item não encontrado no carrinho")
    return atualizado


@router.delete("/{slug}/cart/{carrinho_id}/items/{item_id}", response_model=CartOut)
def remover_item(slug: str, carrinho_id: UUID, item_id: UUID, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        atualizado = cart_service.remove_item(db, carrinho, item_id)
    except CommerceError as exc:
        raise _erro_http(exc)
    if atualizado is None:
        raise HTTPException(status_code=404, detail="Item não encontrado no carrinho")
    return atualizado


@router.delete("/{slug}/cart/{carrinho_id}/items", response_model=CartOut)
def esvaziar_carrinho(slug: str, carrinho_id: UUID, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        return cart_service.clear_items(db, carrinho)
    except CommerceError as exc:
        raise _erro_http(exc)


@router.post("/{slug}/cart/{carrinho_id}/voucher", response_model=CartOut)
def aplicar_voucher(
    slug: str,
    carrinho_id: UUID,
    voucher: ApplyVoucherRequest,
    db: Session = Depends(get_db),
):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        resultado = cart_service.apply_voucher(db, carrinho, voucher.code)
    except CommerceError as exc:
        raise _erro_http(exc)
    if not resultado.valid:
        raise HTTPException(status_code=400, detail=resultado.error)
    return carrinho


@router.delete("/{slug}/cart/{carrinho_id}/voucher", response_model=CartOut)
def remover_voucher(slug: str, carrinho_id: UUID, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        return cart_service.remove_voucher(db, carrinho)
    except CommerceError as exc:
        raise _erro_http(exc)


@router.get("/{slug}/cart/{carrinho_id}/shipping-rates", response_model=List[ShippingQuoteOut])
def listar_fretes_do_carrinho(slug: str, carrinho_id: UUID, db: Session = Depends(get_db)):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    if not carrinho.shipping_country:
        raise HTTPException(status_code=400, detail="Informe o país de entrega antes de calcular o frete")
    return [ShippingQuoteOut(**asdict(cotacao)) for cotacao in cart_service.shipping_options(db, carrinho)]


@router.post("/{slug}/cart/{carrinho_id}/shipping", response_model=CartOut)
def selecionar_frete(
    slug: str,
    carrinho_id: UUID,
    selecao: SelectShippingRequest,
    db: Session = Depends(get_db),
):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        atualizado = cart_service.select_shipping_rate(db, carrinho, selecao.rate_id)
    except CommerceError as exc:
        raise _erro_http(exc)
    if atualizado is None:
        raise HTTPException(status_code=400, detail="Frete indisponível para este carrinho")
    return atualizado


@router.post(
    "/{slug}/cart/{carrinho_id}/checkout",
    response_model=OrderDetailOut,
    status_code=status.HTTP_201_CREATED,
)
def finalizar_compra(
    slug: str,
    carrinho_id: UUID,
    dados: CheckoutRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    loja = validators.buscar_loja_ativa(db, slug)
    carrinho = _carrinho_ou_404(db, loja.id, carrinho_id)
    try:
        pedido = order_service.checkout(
            db,
            carrinho,
            email=dados.email,
            customer_name=dados.customer_name,
            customer_note=dados.customer_note,
            accepts_marketing=dados.accepts_marketing,
            publisher=request.app.state.event_publisher,
        )
    except CheckoutError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except CommerceError as exc:
        raise _erro_http(exc)

    cache_tags.invalidate_after_write(request, loja.id, "order")
    cache_tags.invalidate_after_write(request, loja.id, "customer")
    return pedido
