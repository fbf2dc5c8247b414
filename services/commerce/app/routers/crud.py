from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.money import to_money
from app.core.timeutils import utcnow
from app.models.cart import Cart
from app.models.catalog import Category, Product, ProductVariant
from app.models.collection import Collection, CollectionProduct
from app.models.discount import Discount, DiscountUsage, VoucherCode
from app.models.order import Customer, Order
from app.models.page import StorePage
from app.models.shipping import ShippingRate, ShippingZone, ShippingZoneCountry
from app.models.tenant import StoreSettings, Tenant
from app.schemas.catalog_schema import (
    CategoryCreate,
    CategoryReorderItem,
    ProductCreate,
    VariantCreate,
)
from app.schemas.collection_schema import CollectionCreate
from app.schemas.discount_schema import DiscountCreate
from app.schemas.shipping_schema import ShippingRateCreate, ShippingZoneCreate
from app.schemas.tenant_schema import TenantCreate
from app.services.discounts import discount_status
from app.services.slugs import unique_slug
from app.services.vouchers import generate_unique_codes


# ---------------------------------------------------------------- tenants

def criar_tenant(db: Session, tenant: TenantCreate) -> Tenant:
    novo_tenant = Tenant(**tenant.model_dump(exclude={"settings"}))
    novo_tenant.settings = StoreSettings(**tenant.settings.model_dump())
    db.add(novo_tenant)
    db.commit()
    db.refresh(novo_tenant)
    return novo_tenant


def buscar_tenant(db: Session, tenant_id: UUID) -> Optional[Tenant]:
    return db.query(Tenant).options(joinedload(Tenant.settings)).filter(Tenant.id == tenant_id).first()


def buscar_loja_por_slug(db: Session, slug: str) -> Optional[Tenant]:
    return (
        db.query(Tenant)
        .filter(Tenant.slug == slug.lower(), Tenant.is_active.is_(True))
        .first()
    )


def atualizar_tenant(db: Session, tenant: Tenant, dados: dict) -> Tenant:
    for campo, valor in dados.items():
        setattr(tenant, campo, valor)
    db.commit()
    db.refresh(tenant)
    return tenant


def atualizar_configuracoes(db: Session, tenant: Tenant, dados: dict) -> StoreSettings:
    if tenant.settings is None:
        tenant.settings = StoreSettings()
    for campo, valor in dados.items():
        setattr(tenant.settings, campo, valor)
    db.commit()
    db.refresh(tenant.settings)
    return tenant.settings


# ordem respeita as chaves estrangeiras
_TENANT_SCOPED = (
    DiscountUsage,
    VoucherCode,
    Discount,
    ShippingRate,
    ProductVariant,
    CollectionProduct,
    Collection,
    Product,
    Category,
    StorePage,
)


def deletar_tenant(db: Session, tenant: Tenant) -> None:
    tenant_id = tenant.id

    for order in db.query(Order).filter(Order.tenant_id == tenant_id).all():
        db.delete(order)
    for cart in db.query(Cart).filter(Cart.tenant_id == tenant_id).all():
        db.delete(cart)
    for zone in db.query(ShippingZone).filter(ShippingZone.tenant_id == tenant_id).all():
        db.delete(zone)
    db.flush()

    for model in _TENANT_SCOPED:
        db.query(model).filter(model.tenant_id == tenant_id).delete(synchronize_session=False)
    db.query(Customer).filter(Customer.tenant_id == tenant_id).delete(synchronize_session=False)

    db.delete(tenant)
    db.commit()


# ------------------------------------------------------------- categories

def criar_categoria(db: Session, tenant_id: UUID, categoria: CategoryCreate) -> Category:
    dados = categoria.model_dump()
    dados["slug"] = unique_slug(db, Category, tenant_id, dados.get("slug") or dados["name"])
    nova_categoria = Category(tenant_id=tenant_id, **dados)
    db.add(nova_categoria)
    db.commit()
    db.refresh(nova_categoria)
    return nova_categoria


def listar_categorias(db: Session, tenant_id: UUID) -> List[Category]:
    return (
        db.query(Category)
        .filter(Category.tenant_id == tenant_id)
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )


def contar_produtos_por_categoria(db: Session, tenant_id: UUID) -> Dict[UUID, int]:
    rows = (
        db.query(Product.category_id, func.count(Product.id))
        .filter(Product.tenant_id == tenant_id, Product.category_id.isnot(None))
        .group_by(Product.category_id)
        .all()
    )
    return {category_id: count for category_id, count in rows}


def buscar_categoria(db: Session, tenant_id: UUID, categoria_id: UUID) -> Optional[Category]:
    return (
        db.query(Category)
        .filter(Category.id == categoria_id, Category.tenant_id == tenant_id)
        .first()
    )


def atualizar_categoria(db: Session, categoria: Category, dados: dict) -> Category:
    if dados.get("slug"):
        dados["slug"] = unique_slug(db, Category, categoria.tenant_id, dados["slug"], exclude_id=categoria.id)
    else:
        dados.pop("slug", None)
    for campo, valor in dados.items():
        setattr(categoria, campo, valor)
    db.commit()
    db.refresh(categoria)
    return categoria


def eh_descendente(db: Session, tenant_id: UUID, categoria_id: UUID, possivel_pai_id: UUID) -> bool:
    """True se ``possivel_pai_id`` é a própria categoria ou um descendente dela."""
    atual = possivel_pai_id
    visitados = set()
    while atual is not None and atual not in visitados:
        if atual == categoria_id:
            return True
        visitados.add(atual)
        pai = buscar_categoria(db, tenant_id, atual)
        atual = pai.parent_id if pai else None
    return False


def deletar_categoria(db: Session, categoria: Category) -> None:
    db.query(Product).filter(Product.category_id == categoria.id).update(
        {Product.category_id: None}, synchronize_session=False
    )
    db.query(Category).filter(Category.parent_id == categoria.id).update(
        {Category.parent_id: categoria.parent_id}, synchronize_session=False
    )
    db.delete(categoria)
    db.commit()


def deletar_categorias_em_lote(db: Session, tenant_id: UUID, ids: Sequence[UUID]) -> int:
    categorias = (
        db.query(Category)
        .filter(Category.tenant_id == tenant_id, Category.id.in_(list(ids)))
        .all()
    )
    removidos = {categoria.id for categoria in categorias}
    for categoria in categorias:
        db.query(Product).filter(Product.category_id == categoria.id).update(
            {Product.category_id: None}, synchronize_session=False
        )
        # filhos sobem para o primeiro ancestral que não está sendo removido
        novo_pai = categoria.parent_id
        while novo_pai in removidos:
            novo_pai = next(c.parent_id for c in categorias if c.id == novo_pai)
        db.query(Category).filter(
            Category.parent_id == categoria.id, Category.id.notin_(removidos)
        ).update({Category.parent_id: novo_pai}, synchronize_session=False)
    for categoria in categorias:
        db.delete(categoria)
    db.commit()
    return len(categorias)


def reordenar_categorias(db: Session, tenant_id: UUID, itens: Sequence[CategoryReorderItem]) -> List[Category]:
    categorias = {
        categoria.id: categoria
        for categoria in db.query(Category).filter(
            Category.tenant_id == tenant_id, Category.id.in_([item.id for item in itens])
        )
    }
    for item in itens:
        categoria = categorias.get(item.id)
        if categoria is None:
            continue
        categoria.sort_order = item.sort_order
        if "parent_id" in item.model_fields_set:
            categoria.parent_id = item.parent_id
    db.commit()
    return listar_categorias(db, tenant_id)


# --------------------------------------------------------------- products

def criar_produto(db: Session, tenant_id: UUID, produto: ProductCreate) -> Product:
    dados = produto.model_dump()
    dados["slug"] = unique_slug(db, Product, tenant_id, dados.get("slug") or dados["name"])
    novo_produto = Product(tenant_id=tenant_id, **dados)
    db.add(novo_produto)
    db.commit()
    db.refresh(novo_produto)
    return novo_produto


def listar_produtos(
    db: Session,
    tenant_id: UUID,
    status: Optional[str] = None,
    category_id: Optional[UUID] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Product]:
    query = db.query(Product).options(selectinload(Product.variants)).filter(Product.tenant_id == tenant_id)
    if status:
        query = query.filter(Product.status == status)
    if category_id:
        query = query.filter(Product.category_id == category_id)
    if search:
        like_pattern = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(like_pattern), Product.sku.ilike(like_pattern)))
    return query.order_by(Product.created_at.desc(), Product.name.asc()).offset(offset).limit(limit).all()


def buscar_produto(db: Session, tenant_id: UUID, produto_id: UUID) -> Optional[Product]:
    return (
        db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.id == produto_id, Product.tenant_id == tenant_id)
        .first()
    )


def buscar_produto_por_slug(db: Session, tenant_id: UUID, slug: str) -> Optional[Product]:
    return (
        db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.slug == slug, Product.tenant_id == tenant_id)
        .first()
    )


def atualizar_produto(db: Session, produto: Product, dados: dict) -> Product:
    if dados.get("slug"):
        dados["slug"] = unique_slug(db, Product, produto.tenant_id, dados["slug"], exclude_id=produto.id)
    else:
        dados.pop("slug", None)
    for campo, valor in dados.items():
        setattr(produto, campo, valor)
    db.commit()
    db.refresh(produto)
    return produto


def deletar_produto(db: Session, produto: Product) -> None:
    db.query(CollectionProduct).filter(CollectionProduct.product_id == produto.id).delete(synchronize_session=False)
    db.delete(produto)
    db.commit()


def estatisticas_produtos(db: Session, tenant_id: UUID, limite_estoque_baixo: int) -> dict:
    produtos = db.query(Product).filter(Product.tenant_id == tenant_id).all()
    stats = {
        "total": len(produtos),
        "active": 0,
        "draft": 0,
        "archived": 0,
        "low_stock": 0,
        "out_of_stock": 0,
        "total_value": Decimal("0.00"),
    }
    for produto in produtos:
        if produto.status in ("active", "draft", "archived"):
            stats[produto.status] += 1
        if not produto.track_quantity:
            continue
        if produto.quantity <= 0:
            stats["out_of_stock"] += 1
        elif produto.quantity <= limite_estoque_baixo:
            stats["low_stock"] += 1
        stats["total_value"] += to_money(produto.price) * max(produto.quantity, 0)
    stats["total_value"] = to_money(stats["total_value"])
    return stats


def listar_produtos_da_loja(db: Session, tenant_id: UUID, category_id: Optional[UUID] = None) -> List[Product]:
    query = (
        db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.tenant_id == tenant_id, Product.status == "active")
    )
    if category_id:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name.asc()).all()


def criar_variante(db: Session, produto: Product, variante: VariantCreate) -> ProductVariant:
    nova_variante = ProductVariant(tenant_id=produto.tenant_id, product_id=produto.id, **variante.model_dump())
    db.add(nova_variante)
    db.commit()
    db.refresh(nova_variante)
    return nova_variante


def buscar_variante(db: Session, produto: Product, variante_id: UUID) -> Optional[ProductVariant]:
    return (
        db.query(ProductVariant)
        .filter(ProductVariant.id == variante_id, ProductVariant.product_id == produto.id)
        .first()
    )


def atualizar_variante(db: Session, variante: ProductVariant, dados: dict) -> ProductVariant:
    for campo, valor in dados.items():
        setattr(variante, campo, valor)
    db.commit()
    db.refresh(variante)
    return variante


def deletar_variante(db: Session, variante: ProductVariant) -> None:
    db.delete(variante)
    db.commit()


# ------------------------------------------------------------ collections

def produtos_de_outra_loja(db: Session, tenant_id: UUID, product_ids: Sequence[UUID]) -> List[UUID]:
    pedidos = set(product_ids)
    encontrados = {
        row[0]
        for row in db.query(Product.id).filter(Product.tenant_id == tenant_id, Product.id.in_(list(pedidos))).all()
    }
    return [produto_id for produto_id in product_ids if produto_id not in encontrados]


def _vincular_produtos(colecao: Collection, product_ids: Sequence[UUID]) -> int:
    presentes = {vinculo.product_id for vinculo in colecao.products}
    posicao = max((vinculo.position for vinculo in colecao.products), default=-1) + 1
    adicionados = 0
    for produto_id in product_ids:
        if produto_id in presentes:
            continue
        colecao.products.append(
            CollectionProduct(tenant_id=colecao.tenant_id, product_id=produto_id, position=posicao)
        )
        presentes.add(produto_id)
        posicao += 1
        adicionados += 1
    return adicionados


def criar_colecao(db: Session, tenant_id: UUID, colecao: CollectionCreate) -> Collection:
    dados = colecao.model_dump(exclude={"product_ids"})
    dados["slug"] = unique_slug(db, Collection, tenant_id, dados.get("slug") or dados["name"])
    nova_colecao = Collection(tenant_id=tenant_id, **dados)
    _vincular_produtos(nova_colecao, colecao.product_ids)
    db.add(nova_colecao)
    db.commit()
    db.refresh(nova_colecao)
    return nova_colecao


def listar_colecoes(db: Session, tenant_id: UUID) -> List[Collection]:
    return (
        db.query(Collection)
        .filter(Collection.tenant_id == tenant_id)
        .order_by(Collection.sort_order.asc(), Collection.name.asc())
        .all()
    )


def contar_produtos_por_colecao(db: Session, tenant_id: UUID) -> Dict[UUID, int]:
    rows = (
        db.query(CollectionProduct.collection_id, func.count(CollectionProduct.id))
        .filter(CollectionProduct.tenant_id == tenant_id)
        .group_by(CollectionProduct.collection_id)
        .all()
    )
    return {collection_id: count for collection_id, count in rows}


def buscar_colecao(db: Session, tenant_id: UUID, colecao_id: UUID) -> Optional[Collection]:
    return (
        db.query(Collection)
        .filter(Collection.id == colecao_id, Collection.tenant_id == tenant_id)
        .first()
    )


def buscar_colecao_ativa_por_slug(db: Session, tenant_id: UUID, slug: str) -> Optional[Collection]:
    return (
        db.query(Collection)
        .filter(Collection.tenant_id == tenant_id, Collection.slug == slug, Collection.is_active.is_(True))
        .first()
    )


def atualizar_colecao(db: Session, colecao: Collection, dados: dict) -> Collection:
    if dados.get("slug"):
        dados["slug"] = unique_slug(db, Collection, colecao.tenant_id, dados["slug"], exclude_id=colecao.id)
    else:
        dados.pop("slug", None)
    for campo, valor in dados.items():
        setattr(colecao, campo, valor)
    db.commit()
    db.refresh(colecao)
    return colecao


def deletar_colecao(db: Session, colecao: Collection) -> None:
    db.delete(colecao)
    db.commit()


def adicionar_produtos_a_colecao(db: Session, colecao: Collection, product_ids: Sequence[UUID]) -> int:
    adicionados = _vincular_produtos(colecao, product_ids)
    db.commit()
    return adicionados


def remover_produto_da_colecao(db: Session, colecao: Collection, produto_id: UUID) -> bool:
    for vinculo in colecao.products:
        if vinculo.product_id == produto_id:
            colecao.products.remove(vinculo)
            db.commit()
            return True
    return False


def listar_produtos_da_colecao(db: Session, colecao: Collection, somente_ativos: bool = False) -> List[Product]:
    query = (
        db.query(Product)
        .join(CollectionProduct, CollectionProduct.product_id == Product.id)
        .options(selectinload(Product.variants))
        .filter(CollectionProduct.collection_id == colecao.id, Product.tenant_id == colecao.tenant_id)
    )
    if somente_ativos:
        query = query.filter(Product.status == "active")
    return query.order_by(CollectionProduct.position.asc(), Product.name.asc()).all()


# -------------------------------------------------------------- discounts

def _ids_para_json(dados: dict) -> dict:
    for campo in ("applicable_product_ids", "applicable_category_ids", "applicable_collection_ids"):
        if dados.get(campo) is not None:
            dados[campo] = [str(valor) for valor in dados[campo]]
    return dados


def criar_desconto(db: Session, tenant_id: UUID, desconto: DiscountCreate) -> Discount:
    novo_desconto = Discount(tenant_id=tenant_id, used_count=0, **_ids_para_json(desconto.model_dump()))
    db.add(novo_desconto)
    db.commit()
    db.refresh(novo_desconto)
    return novo_desconto


def listar_descontos(
    db: Session,
    tenant_id: UUID,
    search: Optional[str] = None,
    kind: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Discount]:
    query = db.query(Discount).filter(Discount.tenant_id == tenant_id)
    if search:
        like_pattern = f"%{search}%"
        query = query.filter(or_(Discount.name.ilike(like_pattern), Discount.description.ilike(like_pattern)))
    if kind:
        query = query.filter(Discount.kind == kind)
    if type:
        query = query.filter(Discount.type == type)
    descontos = query.order_by(Discount.created_at.desc(), Discount.name.asc()).all()

    # status depende do relógio; filtrado fora do banco
    if status:
        agora = utcnow()
        descontos = [desconto for desconto in descontos if discount_status(desconto, agora) == status]
    return descontos[offset : offset + limit]


def buscar_desconto(db: Session, tenant_id: UUID, desconto_id: UUID) -> Optional[Discount]:
    return (
        db.query(Discount)
        .options(selectinload(Discount.codes))
        .filter(Discount.id == desconto_id, Discount.tenant_id == tenant_id)
        .first()
    )


def atualizar_desconto(db: Session, desconto: Discount, dados: dict) -> Discount:
    for campo, valor in _ids_para_json(dados).items():
        setattr(desconto, campo, valor)
    db.commit()
    db.refresh(desconto)
    return desconto


def deletar_desconto(db: Session, desconto: Discount) -> None:
    db.delete(desconto)
    db.commit()


def deletar_descontos_em_lote(db: Session, tenant_id: UUID, ids: Sequence[UUID]) -> int:
    descontos = db.query(Discount).filter(Discount.tenant_id == tenant_id, Discount.id.in_(list(ids))).all()
    for desconto in descontos:
        db.delete(desconto)
    db.commit()
    return len(descontos)


def codigo_existe(db: Session, tenant_id: UUID, codigo: str) -> bool:
    return (
        db.query(VoucherCode.id)
        .filter(VoucherCode.tenant_id == tenant_id, VoucherCode.code == codigo.upper())
        .first()
        is not None
    )


def adicionar_codigo(db: Session, desconto: Discount, codigo: str, usage_limit: Optional[int] = None) -> VoucherCode:
    novo_codigo = VoucherCode(
        tenant_id=desconto.tenant_id,
        discount_id=desconto.id,
        code=codigo.upper(),
        usage_limit=usage_limit,
        used_count=0,
        status="active",
        is_manually_created=True,
    )
    db.add(novo_codigo)
    db.commit()
    db.refresh(novo_codigo)
    return novo_codigo


def gerar_codigos(
    db: Session,
    desconto: Discount,
    quantidade: int,
    prefixo: Optional[str] = None,
    usage_limit: Optional[int] = None,
) -> List[VoucherCode]:
    existentes = [
        row[0] for row in db.query(VoucherCode.code).filter(VoucherCode.tenant_id == desconto.tenant_id).all()
    ]
    codigos = [
        VoucherCode(
            tenant_id=desconto.tenant_id,
            discount_id=desconto.id,
            code=codigo,
            usage_limit=usage_limit,
            used_count=0,
            status="active",
            is_manually_created=False,
        )
        for codigo in generate_unique_codes(quantidade, prefixo, existentes)
    ]
    db.add_all(codigos)
    db.commit()
    for codigo in codigos:
        db.refresh(codigo)
    return codigos


def buscar_codigo(db: Session, desconto: Discount, codigo_id: UUID) -> Optional[VoucherCode]:
    return (
        db.query(VoucherCode)
        .filter(VoucherCode.id == codigo_id, VoucherCode.discount_id == desconto.id)
        .first()
    )


def deletar_codigo(db: Session, codigo: VoucherCode) -> None:
    db.delete(codigo)
    db.commit()


# --------------------------------------------------------------- shipping

def _paises(countries) -> List[ShippingZoneCountry]:
    vistos = set()
    paises = []
    for pais in countries:
        if pais.country_code in vistos:
            continue
        vistos.add(pais.country_code)
        paises.append(ShippingZoneCountry(country_code=pais.country_code, country_name=pais.country_name))
    return paises


def criar_zona(db: Session, tenant_id: UUID, zona: ShippingZoneCreate) -> ShippingZone:
    nova_zona = ShippingZone(
        tenant_id=tenant_id,
        name=zona.name,
        description=zona.description,
        is_active=zona.is_active,
    )
    nova_zona.countries = _paises(zona.countries)
    db.add(nova_zona)
    db.commit()
    db.refresh(nova_zona)
    return nova_zona


def listar_zonas(db: Session, tenant_id: UUID) -> List[ShippingZone]:
    return (
        db.query(ShippingZone)
        .options(selectinload(ShippingZone.countries), selectinload(ShippingZone.rates))
        .filter(ShippingZone.tenant_id == tenant_id)
        .order_by(ShippingZone.name.asc())
        .all()
    )


def buscar_zona(db: Session, tenant_id: UUID, zona_id: UUID) -> Optional[ShippingZone]:
    return (
        db.query(ShippingZone)
        .options(selectinload(ShippingZone.countries), selectinload(ShippingZone.rates))
        .filter(ShippingZone.id == zona_id, ShippingZone.tenant_id == tenant_id)
        .first()
    )


def atualizar_zona(db: Session, zona: ShippingZone, dados: dict, countries=None) -> ShippingZone:
    for campo, valor in dados.items():
        setattr(zona, campo, valor)
    if countries is not None:
        # remove antes de inserir para não violar (zone_id, country_code)
        zona.countries.clear()
        db.flush()
        zona.countries.extend(_paises(countries))
    db.commit()
    db.refresh(zona)
    return zona


def deletar_zona(db: Session, zona: ShippingZone) -> None:
    db.delete(zona)
    db.commit()


def criar_tarifa(db: Session, zona: ShippingZone, tarifa: ShippingRateCreate) -> ShippingRate:
    nova_tarifa = ShippingRate(tenant_id=zona.tenant_id, zone_id=zona.id, **tarifa.model_dump())
    db.add(nova_tarifa)
    db.commit()
    db.refresh(nova_tarifa)
    return nova_tarifa


def buscar_tarifa(db: Session, zona: ShippingZone, tarifa_id: UUID) -> Optional[ShippingRate]:
    return (
        db.query(ShippingRate)
        .filter(ShippingRate.id == tarifa_id, ShippingRate.zone_id == zona.id)
        .first()
    )


def atualizar_tarifa(db: Session, tarifa: ShippingRate, dados: dict) -> ShippingRate:
    for campo, valor in dados.items():
        setattr(tarifa, campo, valor)
    db.commit()
    db.refresh(tarifa)
    return tarifa


def deletar_tarifa(db: Session, tarifa: ShippingRate) -> None:
    db.delete(tarifa)
    db.commit()


# ----------------------------------------------------------------- orders

def listar_pedidos(
    db: Session,
    tenant_id: UUID,
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Order]:
    query = db.query(Order).filter(Order.tenant_id == tenant_id)
    if status:
        query = query.filter(Order.status == status)
    if payment_status:
        query = query.filter(Order.payment_status == payment_status)
    if search:
        like_pattern = f"%{search}%"
        query = query.filter(
            or_(Order.order_number.ilike(like_pattern), Order.customer_email.ilike(like_pattern))
        )
    return query.order_by(Order.created_at.desc()).offset(offset).limit(limit).all()


def buscar_pedido(db: Session, tenant_id: UUID, pedido_id: UUID) -> Optional[Order]:
    return (
        db.query(Order)
        .options(selectinload(Order.items), selectinload(Order.history))
        .filter(Order.id == pedido_id, Order.tenant_id == tenant_id)
        .first()
    )


def listar_clientes(db: Session, tenant_id: UUID, search: Optional[str] = None, limit: int = 50, offset: int = 0):
    """Clientes com quantidade de pedidos pagos e total gasto."""
    totais = (
        db.query(
            Order.customer_id.label("customer_id"),
            func.count(Order.id).label("orders_count"),
            func.coalesce(func.sum(Order.total), 0).label("total_spent"),
        )
        .filter(Order.tenant_id == tenant_id, Order.payment_status == "paid")
        .group_by(Order.customer_id)
        .subquery()
    )
    query = (
        db.query(Customer, totais.c.orders_count, totais.c.total_spent)
        .outerjoin(totais, totais.c.customer_id == Customer.id)
        .filter(Customer.tenant_id == tenant_id)
    )
    if search:
        like_pattern = f"%{search}%"
        query = query.filter(
            or_(
                Customer.email.ilike(like_pattern),
                Customer.first_name.ilike(like_pattern),
                Customer.last_name.ilike(like_pattern),
            )
        )
    return query.order_by(Customer.created_at.desc()).offset(offset).limit(limit).all()


def buscar_cliente(db: Session, tenant_id: UUID, cliente_id: UUID) -> Optional[Customer]:
    return db.query(Customer).filter(Customer.id == cliente_id, Customer.tenant_id == tenant_id).first()


# ------------------------------------------------------------------ pages

def criar_pagina(db: Session, tenant_id: UUID, titulo: str, slug: Optional[str], page_type: str, sections: list) -> StorePage:
    nova_pagina = StorePage(
        tenant_id=tenant_id,
        title=titulo,
        slug=unique_slug(db, StorePage, tenant_id, slug or titulo),
        page_type=page_type,
        status="draft",
        sections=sections,
    )
    db.add(nova_pagina)
    db.commit()
    db.refresh(nova_pagina)
    return nova_pagina


def listar_paginas(db: Session, tenant_id: UUID) -> List[StorePage]:
    return db.query(StorePage).filter(StorePage.tenant_id == tenant_id).order_by(StorePage.title.asc()).all()


def buscar_pagina(db: Session, tenant_id: UUID, pagina_id: UUID) -> Optional[StorePage]:
    return db.query(StorePage).filter(StorePage.id == pagina_id, StorePage.tenant_id == tenant_id).first()


def buscar_pagina_publicada(db: Session, tenant_id: UUID, slug: str) -> Optional[StorePage]:
    return (
        db.query(StorePage)
        .filter(StorePage.tenant_id == tenant_id, StorePage.slug == slug, StorePage.status == "published")
        .first()
    )


def atualizar_pagina(db: Session, pagina: StorePage, dados: dict) -> StorePage:
    if dados.get("slug"):
        dados["slug"] = unique_slug(db, StorePage, pagina.tenant_id, dados["slug"], exclude_id=pagina.id)
    else:
        dados.pop("slug", None)
    for campo, valor in dados.items():
        setattr(pagina, campo, valor)
    db.commit()
    db.refresh(pagina)
    return pagina


def publicar_pagina(db: Session, pagina: StorePage, publicar: bool = True) -> StorePage:
    pagina.status = "published" if publicar else "draft"
    pagina.published_at = utcnow() if publicar else None
    db.commit()
    db.refresh(pagina)
    return pagina


def deletar_pagina(db: Session, pagina: StorePage) -> None:
    db.delete(pagina)
    db.commit()
