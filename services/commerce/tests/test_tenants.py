from uuid import uuid4

from fastapi import status


def _tenant_payload(**overrides):
    payload = {
        "name": "Loja Central",
        "slug": "loja-central",
        "currency": "brl",
        "contact_email": "contato@lojacentral.com",
    }
    payload.update(overrides)
    return payload


def test_cria_tenant_com_configuracoes_padrao(client):
    response = client.post("/tenants/", json=_tenant_payload())
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["slug"] == "loja-central"
    assert data["currency"] == "BRL"
    assert data["plan"] == "basico"
    assert data["settings"]["low_stock_threshold"] == 10
    assert data["settings"]["free_shipping_enabled"] is False


def test_slug_duplicado_retorna_400(client):
    assert client.post("/tenants/", json=_tenant_payload()).status_code == status.HTTP_201_CREATED

    response = client.post("/tenants/", json=_tenant_payload(name="Outra"))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Já existe uma loja com este slug"


def test_slug_e_normalizado(client):
    response = client.post("/tenants/", json=_tenant_payload(slug="Loja da Ana"))
    assert response.status_code == status.HTTP_201_CREATED, response.text
    assert response.json()["slug"] == "loja-da-ana"

    response = client.post("/tenants/", json=_tenant_payload(slug=" Café Central! "))
    assert response.status_code == status.HTTP_201_CREATED, response.text
    assert response.json()["slug"] == "cafe-central"


def test_slug_sem_letras_retorna_422(client):
    response = client.post("/tenants/", json=_tenant_payload(slug="!!!"))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_admin_le_e_atualiza_configuracoes(client, store):
    tenant, headers = store

    response = client.get(f"/tenants/{tenant['id']}/settings", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["low_stock_threshold"] == 5

    response = client.put(
        f"/tenants/{tenant['id']}/settings",
        json={"free_shipping_enabled": True, "free_shipping_threshold": "50"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["free_shipping_enabled"] is True
    assert data["low_stock_threshold"] == 5


def test_admin_de_outro_tenant_recebe_403(client, store, auth_headers):
    tenant, _ = store
    response = client.get(f"/tenants/{tenant['id']}", headers=auth_headers(uuid4()))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_usuario_comum_nao_acessa_painel(client, store, auth_headers):
    tenant, _ = store
    headers = auth_headers(tenant["id"], user_type="user")
    response = client.get(f"/tenants/{tenant['id']}", headers=headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Somente administradores podem acessar o painel da loja"


def test_token_invalido_retorna_401(client, store):
    tenant, _ = store
    response = client.get(f"/tenants/{tenant['id']}", headers={"Authorization": "Bearer invalido"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_atualiza_slug_e_remove_tenant(client, store):
    tenant, headers = store

    response = client.put(f"/tenants/{tenant['id']}", json={"slug": "nova-loja"}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["slug"] == "nova-loja"

    client.post("/products/", json={"name": "Caneca", "price": "12.00"}, headers=headers)

    response = client.delete(f"/tenants/{tenant['id']}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = client.get(f"/tenants/{tenant['id']}", headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_openapi_fixado_em_3_0_3(client):
    response = client.get("/openapi.json")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["openapi"] == "3.0.3"


def test_root_informa_servico(client):
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["service"] == "commerce"
    assert data["config"]["cache_enabled"] is False
