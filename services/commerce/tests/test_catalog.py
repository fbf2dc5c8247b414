from decimal import Decimal
from uuid import uuid4

from fastapi import status


def _criar_categoria(client, headers, **overrides):
    payload = {"name": "Camisetas"}
    payload.update(overrides)
    response = client.post("/categories/", json=payload, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def test_slug_de_categoria_recebe_sufixo(client, store):
    _, headers = store
    primeira = _criar_categoria(client, headers)
    segunda = _criar_categoria(client, headers)
    terceira = _criar_categoria(client, headers, name="Camisetas!")

    assert primeira["slug"] == "camisetas"
    assert segunda["slug"] == "camisetas-2"
    assert terceira["slug"] == "camisetas-3"


def test_lista_categorias_com_contagem_de_produtos(client, store, create_product):
    _, headers = store
    categoria = _criar_categoria(client, headers)
    create_product(category_id=categoria["id"])
    create_product(name="Regata", category_id=categoria["id"])

    response = client.get("/categories/", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    categorias = response.json()
    assert len(categorias) == 1
    assert categorias[0]["product_count"] == 2


def test_contagem_de_produtos_nao_fica_presa_no_cache(client, store, create_product, redis_cache):
    _, headers = store
    categoria = _criar_categoria(client, headers)

    antes = client.get("/categories/", headers=headers).json()
    assert [c["product_count"] for c in antes] == [0]
    assert any(":categories:" in chave for chave in redis_cache.dados)

    create_product(category_id=categoria["id"])

    depois = client.get("/categories/", headers=headers).json()
    assert [c["product_count"] for c in depois] == [1]


def test_categorias_isoladas_por_tenant(client, store, auth_headers):
    _, headers = store
    categoria = _criar_categoria(client, headers)

    outro_admin = auth_headers(uuid4())
    response = client.get(f"/categories/{categoria['id']}", headers=outro_admin)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Categoria não encontrada"


def test_mover_categoria_para_descendente_retorna_400(client, store):
    _, headers = store
    raiz = _criar_categoria(client, headers, name="Roupas")
    filha = _criar_categoria(client, headers, name="Camisetas", parent_id=raiz["id"])
    neta = _criar_categoria(client, headers, name="Manga Longa", parent_id=filha["id"])

    response = client.post(f"/categories/{raiz['id']}/move", json={"parent_id": neta["id"]}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.post(f"/categories/{raiz['id']}/move", json={"parent_id": raiz["id"]}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.post(f"/categories/{neta['id']}/move", json={"parent_id": None}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["parent_id"] is None


def test_remover_categoria_sobe_filhos_e_solta_produtos(client, store, create_product):
    _, headers = store
    raiz = _criar_categoria(client, headers, name="Roupas")
    meio = _criar_categoria(client, headers, name="Camisetas", parent_id=raiz["id"])
    folha = _criar_categoria(client, headers, name="Polo", parent_id=meio["id"])
    produto = create_product(category_id=meio["id"])

    response = client.delete(f"/categories/{meio['id']}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = client.get(f"/categories/{folha['id']}", headers=headers)
    assert response.json()["parent_id"] == raiz["id"]

    response = client.get(f"/products/{produto['id']}", headers=headers)
    assert response.json()["category_id"] is None


def test_reordenar_e_remover_em_lote(client, store):
    _, headers = store
    a = _criar_categoria(client, headers, name="A")
    b = _criar_categoria(client, headers, name="B")
    c = _criar_categoria(client, headers, name="C")

    response = client.put(
        "/categories/reorder",
        json=[{"id": c["id"], "sort_order": 0}, {"id": a["id"], "sort_order": 1}, {"id": b["id"], "sort_order": 2}],
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert [item["name"] for item in response.json()] == ["C", "A", "B"]

    response = client.post("/categories/bulk-delete", json={"ids": [a["id"], b["id"], str(uuid4())]}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"deleted": 2}

    restantes = client.get("/categories/", headers=headers).json()
    assert [item["id"] for item in restantes] == [c["id"]]


def test_produto_com_categoria_de_outra_loja_retorna_400(client, store):
    _, headers = store
    response = client.post(
        "/products/",
        json={"name": "Caneca", "price": "10.00", "category_id": str(uuid4())},
        headers=headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Categoria não pertence a esta loja"


def test_crud_de_produto_e_busca_por_slug(client, store, create_product):
    _, headers = store
    produto = create_product(name="Camiseta Básica", sku="CAM-001")
    assert produto["slug"] == "camiseta-basica"
    assert Decimal(produto["price"]) == Decimal("20.00")

    response = client.get("/products/slug/camiseta-basica", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == produto["id"]

    response = client.get("/products/", params={"search": "cam-0"}, headers=headers)
    assert [item["id"] for item in response.json()] == [produto["id"]]

    response = client.put(f"/products/{produto['id']}", json={"price": "25.50"}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert Decimal(response.json()["price"]) == Decimal("25.50")

    response = client.delete(f"/products/{produto['id']}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    response = client.get(f"/products/{produto['id']}", headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Produto não encontrado"


def test_filtra_produtos_por_status(client, store, create_product):
    _, headers = store
    ativo = create_product(name="Ativo")
    create_product(name="Rascunho", status="draft")

    response = client.get("/products/", params={"status": "active"}, headers=headers)
    assert [item["id"] for item in response.json()] == [ativo["id"]]


def test_estatisticas_de_estoque(client, store, create_product):
    _, headers = store
    create_product(name="Cheio", quantity=10, price="10.00")
    create_product(name="Baixo", quantity=3, price="5.00")
    create_product(name="Zerado", quantity=0, status="draft")
    create_product(name="Digital", quantity=0, track_quantity=False, status="archived")

    response = client.get("/products/stats", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 4
    assert data["active"] == 2
    assert data["draft"] == 1
    assert data["archived"] == 1
    assert data["low_stock"] == 1
    assert data["out_of_stock"] == 1
    assert Decimal(data["total_value"]) == Decimal("115.00")


def test_variantes_do_produto(client, store, create_product):
    _, headers = store
    produto = create_product()

    response = client.post(
        f"/products/{produto['id']}/variants",
        json={"title": "Azul / M", "price": "22.00", "quantity": 4, "options": {"cor": "Azul", "tamanho": "M"}},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    variante = response.json()

    response = client.put(
        f"/products/{produto['id']}/variants/{variante['id']}",
        json={"quantity": 7},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["quantity"] == 7

    response = client.get(f"/products/{produto['id']}", headers=headers)
    assert [v["title"] for v in response.json()["variants"]] == ["Azul / M"]

    response = client.delete(f"/products/{produto['id']}/variants/{variante['id']}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/products/{produto['id']}/variants", headers=headers).json() == []
