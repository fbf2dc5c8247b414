"""Testes para endpoints de health check (/health e /ready)."""

from unittest.mock import MagicMock

from fastapi import FastAPI, status
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from shared.health import check_database_health, check_redis_health, create_health_router


def _sqlite_engine():
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def _client(engine=None, redis_client=None) -> TestClient:
    app = FastAPI()
    app.include_router(
        create_health_router(
            service_name="commerce",
            database_engine=engine,
            redis_client=redis_client,
        )
    )
    return TestClient(app)


class TestDatabaseHealthCheck:
    """Testes para verificação de saúde do banco de dados."""

    def test_check_database_health_success(self):
        assert check_database_health(_sqlite_engine()) is True

    def test_check_database_health_failure(self):
        """Falha de conexão vira False em vez de exceção."""
        engine = MagicMock()
        engine.connect.side_effect = Exception("connection refused")
        assert check_database_health(engine) is False

    def test_check_database_health_without_engine(self):
        assert check_database_health(None) is False


class TestRedisHealthCheck:
    """Testes para verificação de saúde do Redis."""

    def test_check_redis_health_success(self):
        mock_redis = MagicMock()
        mock_redis.ping.return_value = True

        assert check_redis_health(mock_redis) is True
        mock_redis.ping.assert_called_once()

    def test_check_redis_health_failure(self):
        mock_redis = MagicMock()
        mock_redis.ping.side_effect = Exception("Connection failed")

        assert check_redis_health(mock_redis) is False

    def test_check_redis_health_none(self):
        """Redis não configurado retorna None."""
        assert check_redis_health(None) is None


class TestHealthEndpoints:
    """Testes para endpoints /health e /ready."""

    def test_health_endpoint_always_returns_ok(self):
        response = _client().get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "commerce"
        assert data["timestamp"].endswith("Z")

    def test_ready_endpoint_with_healthy_dependencies(self):
        response = _client(_sqlite_engine()).get("/ready")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"] == {"database": True, "redis": None}

    def test_ready_endpoint_with_unhealthy_database(self):
        engine = MagicMock()
        engine.connect.side_effect = Exception("connection refused")

        response = _client(engine).get("/ready")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["database"] is False

    def test_ready_endpoint_with_unhealthy_redis(self):
        mock_redis = MagicMock()
        mock_redis.ping.side_effect = Exception("Connection failed")

        response = _client(_sqlite_engine(), mock_redis).get("/ready")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["checks"]["redis"] is False
