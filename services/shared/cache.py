"""Cache Redis por tenant com invalidação por tag.

As chaves seguem o formato ``{tenant_id}:{tag}:{sufixo}``. Invalidar uma tag
remove todas as chaves daquela tag para o tenant; invalidar o tenant remove
tudo o que pertence a ele.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional
from uuid import UUID

import redis

logger = logging.getLogger(__name__)

# Tags conhecidas
PRODUCTS = "products"
CATEGORIES = "categories"
STORE_CONFIG = "store_config"
ANALYTICS = "analytics"
INVENTORY = "inventory"
DISCOUNTS = "discounts"
CUSTOMERS = "customers"
ORDERS = "orders"


def create_redis_cache(redis_url: Optional[str]) -> Optional[redis.Redis]:
    """Cria cliente Redis para cache.

    Args:
        redis_url: URL de conexão Redis (ou None se não configurado)

    Returns:
        Cliente Redis ou None se não configurado
    """
    if not redis_url or not redis_url.strip():
        return None

    try:
        return redis.Redis.from_url(redis_url, decode_responses=True)
    except (ValueError, redis.RedisError):
        logger.warning("Invalid Redis URL for cache, caching disabled")
        return None


def cache_key(tenant_id: UUID | str, tag: str, *parts: Any) -> str:
    """Monta a chave ``{tenant}:{tag}:{partes...}``."""
    suffix = ":".join(str(part) for part in parts) if parts else "all"
    return f"{tenant_id}:{tag}:{suffix}"


def get_cached(cache: Optional[redis.Redis], key: str) -> Optional[Any]:
    """Recupera um valor JSON do cache.

    Returns:
        Valor decodificado ou None em caso de miss ou falha
    """
    if cache is None:
        return None

    try:
        cached_data = cache.get(key)
        if cached_data is None:
            return None
        return json.loads(cached_data)
    except Exception:
        logger.debug("Cache read failed for %s", key, exc_info=True)
        return None


def set_cached(cache: Optional[redis.Redis], key: str, value: Any, ttl: int = 300) -> bool:
    """Armazena um valor JSON no cache com TTL em segundos.

    Returns:
        True se armazenado com sucesso, False caso contrário
    """
    if cache is None:
        return False

    try:
        cache.set(key, json.dumps(value, default=str), ex=ttl)
        return True
    except Exception:
        logger.debug("Cache write failed for %s", key, exc_info=True)
        return False


def _delete_pattern(cache: redis.Redis, pattern: str) -> None:
    keys = cache.keys(pattern)
    if keys:
        cache.delete(*keys)


def invalidate_tag(cache: Optional[redis.Redis], tenant_id: UUID | str, tag: str) -> bool:
    """Invalida todas as chaves de uma tag para o tenant."""
    return invalidate_tags(cache, tenant_id, [tag])


def invalidate_tags(cache: Optional[redis.Redis], tenant_id: UUID | str, tags: Iterable[str]) -> bool:
    """Invalida várias tags do tenant de uma vez.

    Returns:
        True se invalidado com sucesso, False caso contrário
    """
    if cache is None:
        return False

    try:
        for tag in tags:
            _delete_pattern(cache, f"{tenant_id}:{tag}:*")
        return True
    except Exception:
        logger.warning("Cache invalidation failed for tenant %s", tenant_id, exc_info=True)
        return False


def invalidate_tenant(cache: Optional[redis.Redis], tenant_id: UUID | str) -> bool:
    """Remove todas as chaves de um tenant."""
    if cache is None:
        return False

    try:
        _delete_pattern(cache, f"{tenant_id}:*")
        return True
    except Exception:
        logger.warning("Cache invalidation failed for tenant %s", tenant_id, exc_info=True)
        return False
