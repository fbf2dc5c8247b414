from decimal import Decimal

from fastapi import status


def _zona(client, headers, nome="Brasil", paises=(("br", "Brasil"),)):
    response = client.post(
        "/shipping/zones",
        json={"name": nome, "countries": [{"country_code": c, "country_name": n} for c, n in paises]},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def _tarifa(client, headers, zona, **payload):
    response = client.post(f"/shipping/zones/{zona['id']}/rates", json=payload, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def _cotar(client, headers, **pedido):
    response = client.post("/shipping/quote", json=pedido, headers=headers)
    assert response.status_code == status.HTTP_200_OK, response.text
    return response.json()


def test_zona_normaliza_paises(client, store):
    _, headers = store
    zona = _zona(client, headers, paises=(("br", "Brasil"), ("pt", "Portugal")))
    assert sorted(pais["country_code"] for pais in zona["countries"]) == ["BR", "PT"]
    assert zona["rates"] == []

    response = client.put(f"/shipping/zones/{zona['id']}", json={"name": "Lusofonia"}, headers=headers)
    assert response.json()["name"] == "Lusofonia"
    assert len(response.json()["countries"]) == 2

    response = client.put(
        f"/shipping/zones/{zona['id']}",
        json={"countries": [{"country_code": "AO", "country_name": "Angola"}]},
        headers=headers,
    )
    assert [pais["country_code"] for pais in response.json()["countries"]] == ["AO"]


def test_precos_por_tipo_de_tarifa(client, store):
    _, headers = store
    zona = _zona(client, headers)
    _tarifa(client, headers, zona, name="Fixa", rate_type="flat", price="10.00", position=0)
    _tarifa(client, headers, zona, name="Peso", rate_type="weight", price="5.00", price_per_kg="2.50", position=1)
    _tarifa(client, headers, zona, name="Item", rate_type="item", price="1.00", price_per_item="0.75", position=2)

    cotacoes = _cotar(client, headers, country="br", subtotal="80", weight="2", items=4)
    assert [(c["name"], Decimal(c["price"])) for c in cotacoes] == [
        ("Fixa", Decimal("10.00")),
        ("Peso", Decimal("10.00")),
        ("Item", Decimal("4.00")),
    ]


def test_faixas_de_peso_e_valor_e_frete_gratis(client, store):
    _, headers = store
    zona = _zona(client, headers)
    _tarifa(client, headers, zona, name="Leve", price="8.00", max_weight="1")
    _tarifa(client, headers, zona, name="Pedido grande", price="15.00", min_order_total="100")
    _tarifa(client, headers, zona, name="Expressa", price="20.00", free_shipping_threshold="150", position=1)

    nomes = [c["name"] for c in _cotar(client, headers, country="BR", subtotal="50", weight="0.5")]
    assert sorted(nomes) == ["Expressa", "Leve"]

    cotacoes = _cotar(client, headers, country="BR", subtotal="200", weight="3")
    assert {c["name"]: Decimal(c["price"]) for c in cotacoes} == {
        "Pedido grande": Decimal("15.00"),
        "Expressa": Decimal("0.00"),
    }

    assert _cotar(client, headers, country="US", subtotal="50") == []


def test_ordenacao_por_posicao_e_preco(client, store):
    _, headers = store
    zona = _zona(client, headers)
    _tarifa(client, headers, zona, name="Cara", price="30.00")
    _tarifa(client, headers, zona, name="Barata", price="5.00")
    _tarifa(client, headers, zona, name="Primeiro", price="50.00", position=0)
    _tarifa(client, headers, zona, name="Depois", price="1.00", position=3)

    nomes = [c["name"] for c in _cotar(client, headers, country="BR", subtotal="10")]
    assert nomes == ["Barata", "Cara", "Primeiro", "Depois"]


def test_tarifa_inativa_ou_zona_inativa_nao_cota(client, store):
    _, headers = store
    zona = _zona(client, headers)
    tarifa = _tarifa(client, headers, zona, name="Padrão", price="9.00")
    assert len(_cotar(client, headers, country="BR", subtotal="10")) == 1

    client.put(f"/shipping/zones/{zona['id']}/rates/{tarifa['id']}", json={"is_active": False}, headers=headers)
    assert _cotar(client, headers, country="BR", subtotal="10") == []

    client.put(f"/shipping/zones/{zona['id']}/rates/{tarifa['id']}", json={"is_active": True}, headers=headers)
    client.put(f"/shipping/zones/{zona['id']}", json={"is_active": False}, headers=headers)
    assert _cotar(client, headers, country="BR", subtotal="10") == []


def test_faixa_invertida_retorna_422(client, store):
    _, headers = store
    zona = _zona(client, headers)
    response = client.post(
        f"/shipping/zones/{zona['id']}/rates",
        json={"name": "Errada", "min_weight": "5", "max_weight": "1"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    tarifa = _tarifa(client, headers, zona, name="Certa", max_weight="2")
    response = client.put(
        f"/shipping/zones/{zona['id']}/rates/{tarifa['id']}",
        json={"min_weight": "3"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["detail"] == "min_weight deve ser menor ou igual a max_weight"


def test_remover_tarifa_e_zona(client, store):
    _, headers = store
    zona = _zona(client, headers)
    tarifa = _tarifa(client, headers, zona, name="Padrão", price="9.00")

    response = client.delete(f"/shipping/zones/{zona['id']}/rates/{tarifa['id']}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/shipping/zones/{zona['id']}", headers=headers).json()["rates"] == []

    assert client.delete(f"/shipping/zones/{zona['id']}", headers=headers).status_code == status.HTTP_204_NO_CONTENT
    response = client.get(f"/shipping/zones/{zona['id']}", headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Zona de entrega não encontrada"
