from decimal import Decimal

from fastapi import status

from app.services.orders import can_transition, generate_order_number

LOJA = "/store/loja-teste"


def _carrinho_com_item(client, produto, quantidade=2, **dados):
    carrinho = client.post(f"{LOJA}/cart", json=dados).json()
    response = client.post(
        f"{LOJA}/cart/{carrinho['id']}/items",
        json={"product_id": produto["id"], "quantity": quantidade},
    )
    assert response.status_code == status.HTTP_200_OK, response.text
    return carrinho


def _checkout(client, carrinho, **dados):
    return client.post(f"{LOJA}/cart/{carrinho['id']}/checkout", json=dados)


def test_numero_do_pedido_e_transicoes():
    numero = generate_order_number()
    prefixo, carimbo, sufixo = numero.split("-")
    assert prefixo == "ORD"
    assert carimbo.isalnum() and carimbo.isupper()
    assert len(sufixo) == 4

    assert can_transition("pending", "confirmed")
    assert can_transition("shipped", "returned")
    assert not can_transition("pending", "shipped")
    assert not can_transition("cancelled", "pending")


def test_checkout_cria_pedido_e_baixa_estoque(client, store, create_product):
    _, headers = store
    produto = create_product(price="20.00", quantity=5)
    carrinho = _carrinho_com_item(client, produto, 2)

    response = _checkout(client, carrinho, email="Maria@Exemplo.com", customer_name="Maria Souza")
    assert response.status_code == status.HTTP_201_CREATED, response.text
    pedido = response.json()
    assert pedido["order_number"].startswith("ORD-")
    assert pedido["status"] == "pending"
    assert pedido["payment_status"] == "pending"
    assert pedido["customer_email"] == "maria@exemplo.com"
    assert pedido["items_count"] == 2
    assert Decimal(pedido["total"]) == Decimal("44.00")
    assert [entrada["status"] for entrada in pedido["history"]] == ["pending"]
    assert Decimal(pedido["items"][0]["total_price"]) == Decimal("40.00")

    produto_atual = client.get(f"/products/{produto['id']}", headers=headers).json()
    assert produto_atual["quantity"] == 3

    carrinho_final = client.get(f"{LOJA}/cart/{carrinho['id']}").json()
    assert carrinho_final["status"] == "completed"

    response = _checkout(client, carrinho, email="maria@exemplo.com")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Cart has already been checked out"

    response = client.post(
        f"{LOJA}/cart/{carrinho['id']}/items",
        json={"product_id": produto["id"], "quantity": 1},
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_checkout_exige_email_e_itens(client, create_product):
    vazio = client.post(f"{LOJA}/cart", json={}).json()
    response = _checkout(client, vazio, email="a@b.com")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Cart is empty"

    carrinho = _carrinho_com_item(client, create_product(), 1)
    response = _checkout(client, carrinho)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Email is required"


def test_checkout_sem_estoque_nao_cria_pedido(client, store, create_product):
    _, headers = store
    produto = create_product(quantity=3)
    carrinho = _carrinho_com_item(client, produto, 3)
    client.put(f"/products/{produto['id']}", json={"quantity": 1}, headers=headers)

    response = _checkout(client, carrinho, email="cliente@exemplo.com")
    assert response.status_code == status.HTTP_409_CONFLICT
    assert client.get("/orders/", headers=headers).json() == []
    assert client.get(f"/products/{produto['id']}", headers=headers).json()["quantity"] == 1


def test_checkout_registra_uso_do_voucher(client, store, create_product):
    _, headers = store
    desconto = client.post(
        "/discounts/",
        json={"name": "Uso único", "kind": "voucher", "type": "fixed", "value": "5", "single_use": True},
        headers=headers,
    ).json()
    client.post(f"/discounts/{desconto['id']}/codes", json={"code": "UNICO"}, headers=headers)

    produto = create_product(price="20.00")
    carrinho = _carrinho_com_item(client, produto, 1, email="cliente@exemplo.com")
    client.post(f"{LOJA}/cart/{carrinho['id']}/voucher", json={"code": "UNICO"})

    pedido = _checkout(client, carrinho).json()
    assert pedido["discount_code"] == "UNICO"
    assert Decimal(pedido["discount_total"]) == Decimal("5.00")

    detalhe = client.get(f"/discounts/{desconto['id']}", headers=headers).json()
    assert detalhe["used_count"] == 1
    assert detalhe["codes"][0]["status"] == "used"

    outro = _carrinho_com_item(client, produto, 1)
    response = client.post(f"{LOJA}/cart/{outro['id']}/voucher", json={"code": "UNICO"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "This voucher code is no longer valid"


def test_transicoes_de_status_e_cancelamento_repoe_estoque(client, store, create_product):
    _, headers = store
    produto = create_product(quantity=5)
    pedido = _checkout(client, _carrinho_com_item(client, produto, 2), email="c@exemplo.com").json()

    response = client.patch(f"/orders/{pedido['id']}/status", json={"status": "shipped"}, headers=headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "Cannot transition from pending to shipped"

    response = client.patch(
        f"/orders/{pedido['id']}/status",
        json={"status": "confirmed", "note": "Pagamento conferido"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    historico = response.json()["history"]
    assert [entrada["status"] for entrada in historico] == ["pending", "confirmed"]
    assert historico[-1]["note"] == "Pagamento conferido"

    response = client.patch(f"/orders/{pedido['id']}/status", json={"status": "cancelled"}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert client.get(f"/products/{produto['id']}", headers=headers).json()["quantity"] == 5


def test_pagamento_alimenta_dados_do_cliente(client, store, create_product):
    _, headers = store
    produto = create_product(price="10.00")
    primeiro = _checkout(client, _carrinho_com_item(client, produto, 1), email="ana@exemplo.com").json()
    _checkout(client, _carrinho_com_item(client, produto, 2), email="ANA@exemplo.com")

    client.patch(f"/orders/{primeiro['id']}/payment-status", json={"payment_status": "paid"}, headers=headers)
    response = client.patch(
        f"/orders/{primeiro['id']}/fulfillment-status",
        json={"fulfillment_status": "fulfilled"},
        headers=headers,
    )
    assert response.json()["fulfillment_status"] == "fulfilled"

    clientes = client.get("/customers/", headers=headers).json()
    assert len(clientes) == 1
    assert clientes[0]["email"] == "ana@exemplo.com"
    assert clientes[0]["orders_count"] == 1
    assert Decimal(clientes[0]["total_spent"]) == Decimal("11.00")

    pedidos = client.get(f"/customers/{clientes[0]['id']}/orders", headers=headers).json()
    assert len(pedidos) == 2

    pagos = client.get("/orders/", params={"payment_status": "paid"}, headers=headers).json()
    assert [item["id"] for item in pagos] == [primeiro["id"]]
