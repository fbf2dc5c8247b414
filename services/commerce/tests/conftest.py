import fnmatch
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt

SECRET_KEY = os.getenv("SECRET_KEY", "ci-test-secret-commerce-0123456789abcdef")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS512")

SERVICE_DIR = Path(__file__).resolve().parents[1]
ROOT_DIR = SERVICE_DIR.parent.parent

service_path = str(SERVICE_DIR)
shared_path = str(ROOT_DIR / "services")
for path in (service_path, shared_path):
    if path in sys.path:
        sys.path.remove(path)
    sys.path.insert(0, path)

for module_name in list(sys.modules):
    if module_name == "app" or module_name.startswith("app."):
        sys.modules.pop(module_name)

# Garante que o app e os testes usem o mesmo segredo/algoritmo
os.environ.setdefault("SECRET_KEY", SECRET_KEY)
os.environ.setdefault("JWT_ALGORITHM", ALGORITHM)

os.environ.setdefault("COMMERCE_DATABASE_URL", f"sqlite:///{SERVICE_DIR / 'test_commerce.db'}")
os.environ["REDIS_URL"] = ""  # sem cache nem eventos nos testes

from app.main import app  # noqa: E402
from app.core.database import Base, SessionLocal, engine  # noqa: E402


def make_auth_headers(tenant_id, user_id=None, user_type: str = "admin") -> dict:
    """Gera um JWT compatível com o TokenPayload do serviço."""
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {
        "sub": str(user_id or uuid4()),
        "tenant_id": str(tenant_id),
        "user_type": user_type,
        "exp": int(exp.timestamp()),
    }
    token = jwt.encode(payload, os.environ["SECRET_KEY"], algorithm=os.environ["JWT_ALGORITHM"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def prepare_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def auth_headers():
    return make_auth_headers


@pytest.fixture
def store(client):
    """Cria uma loja com imposto de 10% e devolve (tenant, headers de admin)."""
    payload = {
        "name": "Loja Teste",
        "slug": "loja-teste",
        "currency": "usd",
        "contact_email": "contato@lojateste.com",
        "settings": {"tax_rate": "10", "low_stock_threshold": 5},
    }
    response = client.post("/tenants/", json=payload)
    assert response.status_code == 201, response.text
    tenant = response.json()
    return tenant, make_auth_headers(tenant["id"])


@pytest.fixture
def create_product(client, store):
    _, headers = store

    def _create(**overrides):
        payload = {
            "name": "Camiseta",
            "price": "20.00",
            "quantity": 10,
            "status": "active",
            "weight": "0.5",
        }
        payload.update(overrides)
        response = client.post("/products/", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


class RedisEmMemoria:
    """Subconjunto de get/set/keys/delete do redis.Redis guardado num dict."""

    def __init__(self):
        self.dados = {}

    def get(self, key):
        return self.dados.get(key)

    def set(self, key, value, ex=None):
        self.dados[key] = value
        return True

    def keys(self, pattern):
        return [key for key in self.dados if fnmatch.fnmatchcase(key, pattern)]

    def delete(self, *keys):
        for key in keys:
            self.dados.pop(key, None)
        return len(keys)


@pytest.fixture
def redis_cache(client, monkeypatch):
    """Liga o cache do app a um Redis em memória durante o teste."""
    cache = RedisEmMemoria()
    monkeypatch.setattr(client.app.state, "redis_cache", cache)
    return cache
