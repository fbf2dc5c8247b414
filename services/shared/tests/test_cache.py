"""Testes para o cache Redis por tenant."""

import json
from unittest.mock import MagicMock
from uuid import uuid4

from shared import cache as tenant_cache
from shared.cache import (
    cache_key,
    create_redis_cache,
    get_cached,
    invalidate_tag,
    invalidate_tags,
    invalidate_tenant,
    set_cached,
)


class TestRedisCache:
    """Testes para criação e configuração de cache Redis."""

    def test_create_redis_cache_with_url(self):
        """Testa criação de cache com URL Redis."""
        cache = create_redis_cache("redis://localhost:6379")
        assert cache is not None

    def test_create_redis_cache_without_redis(self):
        """Testa que retorna None se Redis não está configurado."""
        assert create_redis_cache(None) is None

    def test_create_redis_cache_with_empty_url(self):
        """Testa que retorna None se URL está vazia."""
        assert create_redis_cache("  ") is None


class TestCacheKeys:
    def test_cache_key_format(self):
        tenant_id = uuid4()
        assert cache_key(tenant_id, tenant_cache.PRODUCTS, "list", 50) == f"{tenant_id}:products:list:50"

    def test_cache_key_without_parts(self):
        tenant_id = uuid4()
        assert cache_key(tenant_id, tenant_cache.CATEGORIES) == f"{tenant_id}:categories:all"


class TestGetSet:
    """Testes de leitura e escrita de valores JSON."""

    def test_set_and_get_cached(self):
        """Testa armazenar e recuperar um valor do cache."""
        mock_redis = MagicMock()
        mock_redis.get.return_value = None
        key = cache_key(uuid4(), tenant_cache.ANALYTICS, "overview")
        value = {"revenue": {"value": 120.0, "previous": 60.0, "change": 100.0}}

        assert get_cached(mock_redis, key) is None

        assert set_cached(mock_redis, key, value, ttl=60) is True
        call_args = mock_redis.set.call_args
        assert call_args.args[0] == key
        assert call_args.kwargs.get("ex") == 60

        mock_redis.get.return_value = json.dumps(value)
        assert get_cached(mock_redis, key) == value

    def test_get_cached_invalid_json(self):
        """Testa que retorna None quando JSON é inválido."""
        mock_redis = MagicMock()
        mock_redis.get.return_value = "invalid json"

        assert get_cached(mock_redis, "k") is None

    def test_redis_failure_is_a_miss(self):
        mock_redis = MagicMock()
        mock_redis.get.side_effect = ConnectionError("down")
        mock_redis.set.side_effect = ConnectionError("down")

        assert get_cached(mock_redis, "k") is None
        assert set_cached(mock_redis, "k", {"a": 1}) is False


class TestInvalidation:
    """Testes para invalidação por tag e por tenant."""

    def test_invalidate_tag_deletes_matching_keys(self):
        mock_redis = MagicMock()
        tenant_id = uuid4()
        mock_redis.keys.return_value = [f"{tenant_id}:products:list", f"{tenant_id}:products:storefront:all"]

        assert invalidate_tag(mock_redis, tenant_id, tenant_cache.PRODUCTS) is True

        mock_redis.keys.assert_called_once_with(f"{tenant_id}:products:*")
        mock_redis.delete.assert_called_once_with(*mock_redis.keys.return_value)

    def test_invalidate_tags_skips_delete_without_keys(self):
        mock_redis = MagicMock()
        mock_redis.keys.return_value = []
        tenant_id = uuid4()

        assert invalidate_tags(mock_redis, tenant_id, [tenant_cache.ORDERS, tenant_cache.ANALYTICS]) is True

        patterns = [call.args[0] for call in mock_redis.keys.call_args_list]
        assert patterns == [f"{tenant_id}:orders:*", f"{tenant_id}:analytics:*"]
        mock_redis.delete.assert_not_called()

    def test_invalidate_tenant(self):
        mock_redis = MagicMock()
        tenant_id = uuid4()
        mock_redis.keys.return_value = [f"{tenant_id}:inventory:stats"]

        assert invalidate_tenant(mock_redis, tenant_id) is True
        mock_redis.keys.assert_called_once_with(f"{tenant_id}:*")

    def test_invalidation_failure_returns_false(self):
        mock_redis = MagicMock()
        mock_redis.keys.side_effect = ConnectionError("down")

        assert invalidate_tag(mock_redis, uuid4(), tenant_cache.DISCOUNTS) is False


class TestCacheIntegration:
    def test_cache_without_redis_gracefully_degrades(self):
        """Testa que sistema funciona sem Redis."""
        tenant_id = uuid4()
        key = cache_key(tenant_id, tenant_cache.STORE_CONFIG)

        assert get_cached(None, key) is None
        assert set_cached(None, key, {"tax_rate": "8.5"}) is False
        assert invalidate_tag(None, tenant_id, tenant_cache.STORE_CONFIG) is False
        assert invalidate_tenant(None, tenant_id) is False
