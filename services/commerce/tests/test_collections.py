from decimal import Decimal
from uuid import uuid4

from fastapi import status

LOJA = "/store/loja-teste"


def _criar_colecao(client, headers, **overrides):
    payload = {"name": "Verão 2026"}
    payload.update(overrides)
    response = client.post("/collections/", json=payload, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def _carrinho(client, *itens, **dados):
    carrinho = client.post(f"{LOJA}/cart", json=dados).json()
    for produto, quantidade in itens:
        response = client.post(
            f"{LOJA}/cart/{carrinho['id']}/items",
            json={"product_id": produto["id"], "quantity": quantidade},
        )
        assert response.status_code == status.HTTP_200_OK, response.text
    return carrinho


def test_crud_de_colecao_com_contagem(client, store, create_product):
    _, headers = store
    camiseta = create_product()
    caneca = create_product(name="Caneca", price="12.00")

    colecao = _criar_colecao(client, headers, product_ids=[camiseta["id"]])
    assert colecao["slug"] == "verao-2026"
    assert colecao["product_count"] == 1
    assert _criar_colecao(client, headers)["slug"] == "verao-2026-2"

    response = client.post(
        f"/collections/{colecao['id']}/products",
        json={"product_ids": [caneca["id"], camiseta["id"]]},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["product_count"] == 2

    produtos = client.get(f"/collections/{colecao['id']}/products", headers=headers).json()
    assert [p["id"] for p in produtos] == [camiseta["id"], caneca["id"]]

    response = client.delete(f"/collections/{colecao['id']}/products/{camiseta['id']}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    response = client.delete(f"/collections/{colecao['id']}/products/{camiseta['id']}", headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = client.put(f"/collections/{colecao['id']}", json={"name": "Inverno", "slug": "inverno"}, headers=headers)
    assert response.json()["slug"] == "inverno"
    assert response.json()["product_count"] == 1

    assert client.delete(f"/collections/{colecao['id']}", headers=headers).status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/collections/{colecao['id']}", headers=headers).status_code == status.HTTP_404_NOT_FOUND


def test_produto_de_outra_loja_retorna_400(client, store, auth_headers):
    _, headers = store
    outra = client.post("/tenants/", json={"name": "Outra", "slug": "outra"}).json()
    produto_alheio = client.post(
        "/products/",
        json={"name": "Alheio", "price": "5.00"},
        headers=auth_headers(outra["id"]),
    ).json()

    response = client.post("/collections/", json={"name": "X", "product_ids": [produto_alheio["id"]]}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert produto_alheio["id"] in response.json()["detail"]

    assert client.get("/collections/", headers=auth_headers(outra["id"])).json() == []


def test_remover_produto_tira_da_colecao(client, store, create_product):
    _, headers = store
    produto = create_product()
    colecao = _criar_colecao(client, headers, product_ids=[produto["id"]])

    client.delete(f"/products/{produto['id']}", headers=headers)

    assert client.get(f"/collections/{colecao['id']}", headers=headers).json()["product_count"] == 0


def test_voucher_por_colecao_no_carrinho_e_no_pedido(client, store, create_product):
    _, headers = store
    camiseta = create_product(price="30.00")
    caneca = create_product(name="Caneca", price="12.00")
    avulso = create_product(name="Boné", price="100.00")
    colecao = _criar_colecao(client, headers, product_ids=[camiseta["id"], caneca["id"]])

    desconto = client.post(
        "/discounts/",
        json={
            "name": "Metade da coleção",
            "kind": "voucher",
            "type": "percentage",
            "value": "50",
            "scope": "specific_products",
            "apply_once_per_order": True,
            "applicable_collection_ids": [colecao["id"]],
        },
        headers=headers,
    ).json()
    assert desconto["applicable_collection_ids"] == [colecao["id"]]
    client.post(f"/discounts/{desconto['id']}/codes", json={"code": "COLECAO"}, headers=headers)

    carrinho = _carrinho(client, (camiseta, 2), (caneca, 3), (avulso, 1), email="cliente@exemplo.com")
    response = client.post(f"{LOJA}/cart/{carrinho['id']}/voucher", json={"code": "colecao"})
    assert response.status_code == status.HTTP_200_OK, response.text
    # só a caneca, a mais barata da coleção, com as 3 unidades
    assert Decimal(response.json()["discount_total"]) == Decimal("18.00")

    pedido = client.post(f"{LOJA}/cart/{carrinho['id']}/checkout", json={}).json()
    descontos = {item["product_id"]: Decimal(item["discount_amount"]) for item in pedido["items"]}
    assert descontos == {
        camiseta["id"]: Decimal("0.00"),
        caneca["id"]: Decimal("18.00"),
        avulso["id"]: Decimal("0.00"),
    }


def test_validacao_do_voucher_considera_colecoes(client, store, create_product):
    _, headers = store
    produto = create_product(price="40.00")
    colecao = _criar_colecao(client, headers, product_ids=[produto["id"]])
    desconto = client.post(
        "/discounts/",
        json={
            "name": "Cinco fixo",
            "type": "fixed",
            "value": "5",
            "scope": "specific_products",
            "applicable_collection_ids": [colecao["id"]],
        },
        headers=headers,
    ).json()
    client.post(f"/discounts/{desconto['id']}/codes", json={"code": "CINCO"}, headers=headers)

    itens = [
        {"product_id": produto["id"], "unit_price": "40.00", "quantity": 1},
        {"product_id": str(uuid4()), "unit_price": "10.00", "quantity": 1},
    ]
    data = client.post("/discounts/validate", json={"code": "CINCO", "items": itens}, headers=headers).json()
    assert data["valid"] is True
    assert Decimal(data["discount_amount"]) == Decimal("5.00")


def test_promocao_por_colecao_na_vitrine(client, store, create_product):
    _, headers = store
    produto = create_product(price="40.00")
    fora = create_product(name="Caneca", price="12.00")
    rascunho = create_product(name="Rascunho", status="draft")
    colecao = _criar_colecao(client, headers, product_ids=[produto["id"], rascunho["id"]])
    client.post(
        "/discounts/",
        json={
            "name": "Queima da coleção",
            "kind": "sale",
            "type": "percentage",
            "value": "25",
            "scope": "specific_products",
            "applicable_collection_ids": [colecao["id"]],
        },
        headers=headers,
    )

    vitrine = {p["id"]: p for p in client.get(f"{LOJA}/products").json()}
    assert Decimal(vitrine[produto["id"]]["sale_price"]) == Decimal("30.00")
    assert vitrine[fora["id"]]["sale_price"] is None

    response = client.get(f"{LOJA}/collections/{colecao['slug']}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["name"] == "Verão 2026"
    assert [p["id"] for p in data["products"]] == [produto["id"]]
    assert Decimal(data["products"][0]["sale_price"]) == Decimal("30.00")

    item = _carrinho(client, (produto, 1))
    item = client.get(f"{LOJA}/cart/{item['id']}").json()["items"][0]
    assert Decimal(item["unit_price"]) == Decimal("30.00")


def test_colecao_inativa_nao_aparece_na_vitrine(client, store):
    _, headers = store
    colecao = _criar_colecao(client, headers, is_active=False)
    assert client.get(f"{LOJA}/collections/{colecao['slug']}").status_code == status.HTTP_404_NOT_FOUND


def test_pagina_valida_colecao_da_loja(client, store, auth_headers):
    _, headers = store
    colecao = _criar_colecao(client, headers)
    outra = client.post("/tenants/", json={"name": "Outra", "slug": "outra"}).json()
    alheia = _criar_colecao(client, auth_headers(outra["id"]), name="Alheia")

    def _grade(collection):
        return {"type": "product-grid", "settings": {"source": "collection", "collection": collection}}

    response = client.post("/pages/", json={"title": "Verão", "sections": [_grade(colecao["id"])]}, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    assert response.json()["sections"][0]["settings"]["collection"] == colecao["id"]

    inexistente = str(uuid4())
    response = client.post(
        "/pages/",
        json={"title": "Outra", "sections": [_grade(inexistente), _grade(alheia["id"])]},
        headers=headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert sorted(response.json()["detail"]) == sorted(
        [f"collection {inexistente} not found", f"collection {alheia['id']} not found"]
    )

    response = client.post("/pages/", json={"title": "Handle", "sections": [_grade("verao-2026")]}, headers=headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["detail"] == ["sections[0].collection: must be a collection id"]
