"""Health check endpoints (/health and /ready) for the FastAPI services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import redis
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def check_database_health(engine: Optional[Engine]) -> bool:
    """Verifica se o banco de dados responde a um ``SELECT 1``.

    Args:
        engine: SQLAlchemy engine para conexão com banco

    Returns:
        True se banco está disponível, False caso contrário
    """
    if engine is None:
        return False

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception:
        return False


def check_redis_health(redis_client: Optional[redis.Redis]) -> Optional[bool]:
    """Verifica se o Redis responde ao PING.

    Returns:
        True se disponível, False se configurado mas indisponível,
        None se o Redis não está configurado
    """
    if redis_client is None:
        return None

    try:
        return bool(redis_client.ping())
    except Exception:
        return False


def create_health_router(
    service_name: str,
    database_engine: Optional[Engine] = None,
    redis_client: Optional[redis.Redis] = None,
) -> APIRouter:
    """Cria router FastAPI com endpoints /health e /ready.

    Args:
        service_name: Nome do serviço (ex: "commerce")
        database_engine: Engine SQLAlchemy para verificação de banco
        redis_client: Cliente Redis do cache (opcional)
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", status_code=status.HTTP_200_OK)
    def health():
        """Sempre retorna 200 se o processo está de pé; não verifica dependências."""
        return {
            "status": "ok",
            "service": service_name,
            "timestamp": _now(),
        }

    @router.get("/ready")
    def ready():
        """Retorna 200 quando banco e Redis (se configurado) respondem, 503 caso contrário."""
        checks = {
            "database": check_database_health(database_engine),
            "redis": check_redis_health(redis_client),
        }
        all_healthy = checks["database"] and checks["redis"] is not False

        return JSONResponse(
            content={
                "status": "ready" if all_healthy else "not_ready",
                "service": service_name,
                "timestamp": _now(),
                "checks": checks,
            },
            status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return router
