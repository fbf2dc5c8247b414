"""Cache-aside reads and tag invalidation bound to the app's Redis client."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Tuple
from uuid import UUID

from fastapi import Request
from fastapi.encoders import jsonable_encoder

from shared import cache as tenant_cache

logger = logging.getLogger(__name__)

# tags invalidadas por escrita em cada entidade
WRITE_INVALIDATES: Dict[str, Tuple[str, ...]] = {
    "product": (tenant_cache.PRODUCTS, tenant_cache.CATEGORIES, tenant_cache.ANALYTICS, tenant_cache.INVENTORY),
    "category": (tenant_cache.CATEGORIES, tenant_cache.PRODUCTS),
    "collection": (tenant_cache.PRODUCTS,),
    "discount": (tenant_cache.DISCOUNTS, tenant_cache.PRODUCTS),
    "order": (tenant_cache.ORDERS, tenant_cache.ANALYTICS, tenant_cache.INVENTORY, tenant_cache.PRODUCTS),
    "customer": (tenant_cache.CUSTOMERS, tenant_cache.ANALYTICS),
    "store_config": (tenant_cache.STORE_CONFIG, tenant_cache.INVENTORY),
}


def _client(request: Request):
    return getattr(request.app.state, "redis_cache", None)


def cached(
    request: Request,
    tenant_id: UUID,
    tag: str,
    parts: Tuple[Any, ...],
    loader: Callable[[], Any],
) -> Any:
    client = _client(request)
    key = tenant_cache.cache_key(tenant_id, tag, *parts)
    hit = tenant_cache.get_cached(client, key)
    if hit is not None:
        return hit

    value = jsonable_encoder(loader())
    config = getattr(request.app.state, "config", None)
    ttl = config.cache.ttl_for(tag) if config is not None else 300
    tenant_cache.set_cached(client, key, value, ttl=ttl)
    return value


def invalidate_after_write(request: Request, tenant_id: UUID, entity: str) -> None:
    tags = WRITE_INVALIDATES.get(entity, ())
    if tags and tenant_cache.invalidate_tags(_client(request), tenant_id, tags):
        logger.debug("Invalidated %s for tenant %s", ", ".join(tags), tenant_id)


def invalidate_tenant(request: Request, tenant_id: UUID) -> None:
    tenant_cache.invalidate_tenant(_client(request), tenant_id)
