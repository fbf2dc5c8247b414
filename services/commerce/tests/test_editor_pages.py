from uuid import uuid4

from fastapi import status

from app.services.editor_fields import describe_blocks, registered_field_types, validate_section


def test_campos_obrigatorios_em_itens_de_lista():
    configuracoes, erros = validate_section(
        "header",
        {"navLinks": [{"label": "Início", "href": "/"}, {"label": "Contato"}]},
    )
    assert erros == ["navLinks[1].href: required"]
    assert configuracoes["sticky"] is True
    assert configuracoes["backgroundColor"] == "#FFFFFF"


def test_valores_padrao_e_validacoes_do_hero():
    configuracoes, erros = validate_section("hero", {"title": "Bem-vindo"})
    assert erros == []
    assert configuracoes["alignment"] == "center"
    assert configuracoes["overlayOpacity"] == 40
    assert configuracoes["ctaLink"] == "/products"

    _, erros = validate_section(
        "hero",
        {"title": "", "overlayOpacity": 150, "alignment": "top", "textColor": "azul", "ctaLink": "ftp://x"},
    )
    assert erros == [
        "title: required",
        "ctaLink: must be an http(s) URL or internal path",
        "alignment: must be one of left, center, right",
        "overlayOpacity: must be <= 100",
        "textColor: must be a hex color like #RRGGBB",
    ]


def test_bloco_desconhecido():
    configuracoes, erros = validate_section("carrossel", {})
    assert configuracoes == {}
    assert erros == ["carrossel: unknown block type carrossel"]


def test_catalogo_de_blocos():
    tipos = {bloco["type"] for bloco in describe_blocks()}
    assert {"header", "hero", "featured-product", "product-grid"} <= tipos
    assert {"text", "number", "select", "color", "product", "products", "array"} <= set(registered_field_types())


def test_api_de_blocos_e_validacao(client, store):
    _, headers = store
    response = client.get("/pages/blocks", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    hero = next(bloco for bloco in response.json() if bloco["type"] == "hero")
    assert hero["fields"]["title"]["required"] is True

    response = client.post(
        "/pages/validate-section",
        json={"type": "header", "settings": {"navLinks": [{"label": "A", "href": "/a"}, {"label": "B"}]}},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["valid"] is False
    assert response.json()["errors"] == ["navLinks[1].href: required"]


def test_pagina_com_produto_inexistente_retorna_422(client, store):
    _, headers = store
    produto_id = str(uuid4())
    response = client.post(
        "/pages/",
        json={"title": "Início", "sections": [{"type": "featured-product", "settings": {"product": produto_id}}]},
        headers=headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["detail"] == [f"product {produto_id} not found"]


def test_erros_de_secao_indicam_a_posicao(client, store):
    _, headers = store
    response = client.post(
        "/pages/",
        json={"title": "Início", "sections": [{"type": "hero", "settings": {"title": "Oi"}}, {"type": "hero"}]},
        headers=headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["detail"] == ["sections[1].title: required"]


def test_publicar_pagina_e_ler_na_vitrine(client, store, create_product):
    _, headers = store
    produto = create_product()
    response = client.post(
        "/pages/",
        json={
            "title": "Página Inicial",
            "page_type": "home",
            "sections": [
                {"type": "hero", "settings": {"title": "Coleção de verão"}},
                {"id": "destaque", "type": "featured-product", "settings": {"product": produto["id"]}},
            ],
        },
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    pagina = response.json()
    assert pagina["slug"] == "pagina-inicial"
    assert pagina["status"] == "draft"
    assert pagina["sections"][0]["id"].startswith("hero-")
    assert pagina["sections"][1]["id"] == "destaque"
    assert pagina["sections"][1]["settings"]["buttonText"] == "Add to cart"

    response = client.get("/store/loja-teste/pages/pagina-inicial")
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = client.post(f"/pages/{pagina['id']}/publish", headers=headers)
    assert response.json()["status"] == "published"
    assert response.json()["published_at"] is not None

    response = client.get("/store/loja-teste/pages/pagina-inicial")
    assert response.status_code == status.HTTP_200_OK
    assert [secao["type"] for secao in response.json()["sections"]] == ["hero", "featured-product"]

    response = client.post(f"/pages/{pagina['id']}/publish", params={"publish": "false"}, headers=headers)
    assert response.json()["status"] == "draft"
    assert client.get("/store/loja-teste/pages/pagina-inicial").status_code == status.HTTP_404_NOT_FOUND


def test_atualizar_e_remover_pagina(client, store):
    _, headers = store
    pagina = client.post("/pages/", json={"title": "Sobre"}, headers=headers).json()

    response = client.put(
        f"/pages/{pagina['id']}",
        json={"title": "Sobre nós", "sections": [{"type": "hero", "settings": {"title": "Quem somos"}}]},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Sobre nós"
    assert response.json()["slug"] == "sobre"
    assert len(response.json()["sections"]) == 1

    response = client.put(f"/pages/{pagina['id']}", json={"sections": [{"type": "x"}]}, headers=headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    assert client.delete(f"/pages/{pagina['id']}", headers=headers).status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/pages/{pagina['id']}", headers=headers).status_code == status.HTTP_404_NOT_FOUND
