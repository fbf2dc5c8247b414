import importlib.util
import logging

from fastapi import status

import app.main as commerce_main


def test_request_id_e_devolvido(client):
    response = client.get("/", headers={"X-Request-ID": "req-123"})
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_gerado_quando_ausente(client):
    response = client.get("/store/qualquer/products")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.headers["X-Request-ID"]


def test_ready_sem_redis(client):
    response = client.get("/ready")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["service"] == "commerce"
    assert data["checks"] == {"database": True, "redis": None}


def test_main_usa_apenas_logs_estruturados(monkeypatch):
    """Carregar o app num processo sem handlers deixa só o formato JSON do structlog."""
    monkeypatch.setattr(logging.root, "handlers", [])
    spec = importlib.util.spec_from_file_location("commerce_main_isolado", commerce_main.__file__)
    spec.loader.exec_module(importlib.util.module_from_spec(spec))

    formatos = [handler.formatter._fmt for handler in logging.root.handlers]
    assert formatos == ["%(message)s"]
