"""Domain event publisher backed by Redis Streams."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import redis

logger = logging.getLogger(__name__)


class EventPublisher:
    """Publish order and cart events to a Redis Stream.

    Publishing is best effort: a failure is logged and the caller carries on,
    since the database transaction has already been committed.
    """

    def __init__(self, redis_url: str, stream_name: str, *, maxlen: Optional[int] = 1000) -> None:
        self._stream_name = stream_name
        self._maxlen = maxlen
        self._client = redis.Redis.from_url(redis_url)

    @property
    def stream_name(self) -> str:
        return self._stream_name

    def publish(
        self,
        event_type: str,
        payload: Dict[str, Any],
        *,
        tenant_id: Optional[UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Send an event to the configured stream.

        Parameters
        ----------
        event_type:
            Canonical name, e.g. ``order.created``.
        payload:
            Serialisable body (will be JSON dumped).
        tenant_id:
            Tenant owning the event, copied into the envelope metadata.
        metadata:
            Extra envelope metadata (correlation ids, etc.).
        """

        envelope = dict(metadata or {})
        if tenant_id is not None:
            envelope["tenant_id"] = str(tenant_id)
        envelope.setdefault("published_at", datetime.now(timezone.utc).isoformat())

        event = {
            "event_type": event_type,
            "payload": json.dumps(payload, default=str),
            "metadata": json.dumps(envelope, default=str),
        }

        try:
            self._client.xadd(
                self._stream_name,
                event,
                maxlen=self._maxlen,
                approximate=bool(self._maxlen),
            )
            return True
        except Exception:
            logger.exception("Failed to publish event '%s' to stream '%s'", event_type, self._stream_name)
            return False
