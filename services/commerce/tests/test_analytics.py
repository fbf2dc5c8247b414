from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from fastapi import status

from app.core.timeutils import utcnow
from app.models.catalog import Category, Product
from app.models.order import Customer, Order, OrderItem
from app.services import analytics

INICIO = datetime(2026, 3, 1, tzinfo=timezone.utc)
FIM = datetime(2026, 3, 3, 23, 59, tzinfo=timezone.utc)


def _pedido(db, tenant_id, total, criado_em, payment_status="paid", status="pending", customer=None, itens=()):
    pedido = Order(
        tenant_id=tenant_id,
        customer_id=customer.id if customer else None,
        order_number=f"ORD-{uuid4().hex[:8].upper()}",
        status=status,
        payment_status=payment_status,
        subtotal=Decimal(total),
        total=Decimal(total),
        items_count=sum(quantidade for _, _, quantidade in itens),
        created_at=criado_em,
    )
    for produto, preco, quantidade in itens:
        pedido.items.append(
            OrderItem(
                tenant_id=tenant_id,
                product_id=produto.id,
                product_name=produto.name,
                quantity=quantidade,
                unit_price=Decimal(preco),
                total_price=Decimal(preco) * quantidade,
            )
        )
    db.add(pedido)
    db.commit()
    return pedido


@pytest.fixture
def tenant_id(store):
    tenant, _ = store
    return UUID(tenant["id"])


def test_variacao_percentual():
    assert analytics.percentage_change(150, 100) == 50.0
    assert analytics.percentage_change(50, 100) == -50.0
    assert analytics.percentage_change(10, 0) == 100.0
    assert analytics.percentage_change(0, 0) == 0.0


def test_periodo_anterior_tem_mesmo_tamanho():
    inicio, fim = analytics.previous_period(INICIO, INICIO + timedelta(days=7))
    assert inicio == INICIO - timedelta(days=7)
    assert fim == INICIO - timedelta(microseconds=1)


def test_classificacao_de_clientes():
    assert analytics.classify_customer(1, Decimal("1500")) == "vip"
    assert analytics.classify_customer(5, Decimal("10")) == "vip"
    assert analytics.classify_customer(2, Decimal("10")) == "returning"
    assert analytics.classify_customer(0, Decimal("0")) == "new"


def test_receita_por_dia_com_comparacao(db, tenant_id):
    _pedido(db, tenant_id, "100.00", INICIO.replace(hour=10))
    _pedido(db, tenant_id, "50.00", INICIO.replace(hour=15))
    _pedido(db, tenant_id, "999.00", INICIO + timedelta(days=1), payment_status="pending")
    _pedido(db, tenant_id, "30.00", INICIO + timedelta(days=2, hours=8))
    _pedido(db, tenant_id, "90.00", INICIO - timedelta(days=2))

    relatorio = analytics.get_revenue_by_period(db, tenant_id, INICIO, FIM, "day")

    assert [ponto["date"] for ponto in relatorio["points"]] == ["2026-03-01", "2026-03-02", "2026-03-03"]
    assert [ponto["revenue"] for ponto in relatorio["points"]] == [150.0, 0.0, 30.0]
    assert relatorio["points"][0]["average_order_value"] == 75.0
    assert relatorio["total_revenue"] == 180.0
    assert relatorio["total_orders"] == 3
    assert relatorio["average_order_value"] == 60.0
    assert relatorio["comparison"]["previous_revenue"] == 90.0
    assert relatorio["comparison"]["revenue_change"] == 100.0


def test_granularidade_mensal_e_semanal(db, tenant_id):
    _pedido(db, tenant_id, "10.00", datetime(2026, 1, 20, tzinfo=timezone.utc))
    _pedido(db, tenant_id, "20.00", datetime(2026, 2, 2, tzinfo=timezone.utc))

    mensal = analytics.get_revenue_by_period(
        db, tenant_id, datetime(2026, 1, 1, tzinfo=timezone.utc), datetime(2026, 2, 28, tzinfo=timezone.utc), "month"
    )
    assert [(p["date"], p["revenue"]) for p in mensal["points"]] == [("2026-01", 10.0), ("2026-02", 20.0)]

    semanal = analytics.get_revenue_by_period(
        db, tenant_id, datetime(2026, 1, 28, tzinfo=timezone.utc), datetime(2026, 2, 4, tzinfo=timezone.utc), "week"
    )
    # semanas começam na segunda-feira
    assert [p["date"] for p in semanal["points"]] == ["2026-01-26", "2026-02-02"]


def test_produtos_e_categorias_mais_vendidos(db, tenant_id):
    roupas = Category(tenant_id=tenant_id, name="Roupas", slug="roupas")
    db.add(roupas)
    db.flush()
    camiseta = Product(tenant_id=tenant_id, name="Camiseta", slug="camiseta", price=Decimal("20"), category_id=roupas.id)
    caneca = Product(tenant_id=tenant_id, name="Caneca", slug="caneca", price=Decimal("15"))
    db.add_all([camiseta, caneca])
    db.commit()

    _pedido(db, tenant_id, "55.00", INICIO, itens=[(camiseta, "20.00", 2), (caneca, "15.00", 1)])
    _pedido(db, tenant_id, "20.00", INICIO + timedelta(hours=2), itens=[(camiseta, "20.00", 1)])
    _pedido(db, tenant_id, "45.00", INICIO + timedelta(hours=3), payment_status="failed", itens=[(caneca, "15.00", 3)])

    top = analytics.get_top_products(db, tenant_id, INICIO, FIM, limit=5)
    assert [(item["name"], item["revenue"], item["quantity"], item["orders"]) for item in top] == [
        ("Camiseta", 60.0, 3, 2),
        ("Caneca", 15.0, 1, 1),
    ]

    vendas = analytics.get_sales_by_category(db, tenant_id, INICIO, FIM)
    assert vendas["total_revenue"] == 75.0
    assert vendas["uncategorized_revenue"] == 15.0
    categoria = vendas["categories"][0]
    assert categoria["name"] == "Roupas"
    assert categoria["percentage"] == 100.0
    assert categoria["orders"] == 2
    assert categoria["average_order_value"] == 30.0
    assert categoria["product_count"] == 1


def test_pedidos_por_status_e_funil(db, tenant_id):
    _pedido(db, tenant_id, "10.00", INICIO, status="delivered")
    _pedido(db, tenant_id, "10.00", INICIO, status="pending", payment_status="pending")
    _pedido(db, tenant_id, "10.00", INICIO, status="cancelled", payment_status="refunded")
    _pedido(db, tenant_id, "30.00", INICIO, status="pending")

    por_status = analytics.get_orders_by_status(db, tenant_id, INICIO, FIM)
    assert [(item["status"], item["count"]) for item in por_status] == [
        ("pending", 2),
        ("delivered", 1),
        ("cancelled", 1),
    ]
    assert por_status[0]["percentage"] == 50.0
    assert por_status[0]["value"] == 40.0

    funil = analytics.get_conversion_funnel(db, tenant_id, INICIO, FIM)
    assert [(etapa["stage"], etapa["count"]) for etapa in funil["stages"]] == [
        ("views", 200),
        ("cart", 12),
        ("checkout", 4),
        ("purchase", 2),
    ]
    assert funil["stages"][1]["conversion_rate"] == 6.0
    assert funil["stages"][1]["dropoff_rate"] == 94.0
    assert funil["stages"][3]["conversion_rate"] == 50.0
    assert funil["overall_conversion_rate"] == 1.0


def test_segmentos_de_clientes(db, tenant_id):
    vip = Customer(tenant_id=tenant_id, email="vip@exemplo.com")
    recorrente = Customer(tenant_id=tenant_id, email="volta@exemplo.com")
    novo = Customer(tenant_id=tenant_id, email="novo@exemplo.com")
    db.add_all([vip, recorrente, novo])
    db.commit()

    _pedido(db, tenant_id, "1200.00", INICIO, customer=vip)
    _pedido(db, tenant_id, "40.00", INICIO, customer=recorrente)
    _pedido(db, tenant_id, "60.00", INICIO, customer=recorrente)
    _pedido(db, tenant_id, "500.00", INICIO, customer=novo, payment_status="pending")

    segmentos = {item["segment"]: item for item in analytics.get_customer_segments(db, tenant_id)}
    assert segmentos["vip"]["customers"] == 1
    assert segmentos["vip"]["revenue"] == 1200.0
    assert segmentos["returning"]["revenue"] == 100.0
    assert segmentos["new"]["customers"] == 1
    assert segmentos["new"]["percentage"] == 33.33


def test_visao_geral_pela_api(client, store, db, tenant_id):
    _, headers = store
    agora = utcnow()
    _pedido(db, tenant_id, "80.00", agora - timedelta(days=1))
    _pedido(db, tenant_id, "40.00", agora - timedelta(days=2))
    _pedido(db, tenant_id, "60.00", agora - timedelta(days=40))

    response = client.get("/analytics/overview", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["revenue"] == {"value": 120.0, "previous": 60.0, "change": 100.0}
    assert data["orders"]["value"] == 2.0
    assert data["average_order_value"]["value"] == 60.0


def test_periodo_invertido_retorna_400(client, store):
    _, headers = store
    response = client.get(
        "/analytics/revenue",
        params={"start": "2026-03-10T00:00:00Z", "end": "2026-03-01T00:00:00Z"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_relatorios_exigem_admin(client, store, auth_headers):
    tenant, _ = store
    response = client.get("/analytics/conversion-funnel", headers=auth_headers(tenant["id"], user_type="user"))
    assert response.status_code == status.HTTP_403_FORBIDDEN
