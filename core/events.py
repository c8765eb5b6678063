#!/usr/bin/env python3
"""
Domain events consumed and emitted by the matching core.

Consumed:
- profile_updated: a candidate changed their profile (payload: user_id)
- preferences_updated: a user changed their job preferences (payload: user_id)
- application_submitted: a candidate applied to a job (payload: user_id, job_id)
- job_created / job_updated / job_closed: the job catalogue changed (payload: job_id)

Emitted:
- recommendation_generated: a recommendation page was computed

Two transports share one interface: InMemoryEventBus dispatches
synchronously in-process; RedisEventBus publishes JSON over Redis pub/sub
from a background worker so callers never wait on the network.
"""

import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from redis import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    PROFILE_UPDATED = "profile_updated"
    PREFERENCES_UPDATED = "preferences_updated"
    APPLICATION_SUBMITTED = "application_submitted"
    JOB_CREATED = "job_created"
    JOB_UPDATED = "job_updated"
    JOB_CLOSED = "job_closed"
    RECOMMENDATION_GENERATED = "recommendation_generated"


@dataclass
class DomainEvent:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if isinstance(self.type, EventType):
            self.type = self.type.value

    def to_json(self) -> str:
        return json.dumps({
            'type': self.type,
            'payload': self.payload,
            'event_id': self.event_id,
            'occurred_at': self.occurred_at.isoformat(),
        }, default=str)

    @classmethod
    def from_json(cls, raw: str) -> "DomainEvent":
        data = json.loads(raw)
        occurred_at = data.get('occurred_at')
        return cls(
            type=data['type'],
            payload=data.get('payload') or {},
            event_id=data.get('event_id') or uuid.uuid4().hex,
            occurred_at=datetime.fromisoformat(occurred_at) if occurred_at else datetime.now(timezone.utc),
        )

    @property
    def user_id(self) -> Optional[str]:
        # Accept producers that still send camelCase payloads
        return self.payload.get('user_id') or self.payload.get('userId')


EventHandler = Callable[[DomainEvent], None]


class EventBus(ABC):
    """Abstract event transport."""

    @abstractmethod
    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        pass

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        pass

    def start(self) -> None:
        """Begin receiving events, for transports that listen in the background."""
        pass

    def close(self) -> None:
        pass


class _HandlerRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: Dict[str, List[EventHandler]] = {}

    def add(self, event_type: str, handler: EventHandler) -> bool:
        """Register a handler. Returns True if it is the first for this type."""
        key = event_type.value if isinstance(event_type, EventType) else event_type
        with self._lock:
            handlers = self._handlers.setdefault(key, [])
            handlers.append(handler)
            return len(handlers) == 1

    def dispatch(self, event: DomainEvent) -> int:
        with self._lock:
            handlers = list(self._handlers.get(event.type, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler for {event.type} failed on event {event.event_id}: {e}", exc_info=True)
        return len(handlers)


class InMemoryEventBus(EventBus):
    """Synchronous in-process dispatch. Handler failures are logged, not raised."""

    def __init__(self):
        self._registry = _HandlerRegistry()

    def subscribe(self, event_type, handler):
        self._registry.add(event_type, handler)

    def publish(self, event):
        delivered = self._registry.dispatch(event)
        logger.debug(f"Dispatched {event.type} to {delivered} handler(s)")


class RedisEventBus(EventBus):
    """
    Redis pub/sub transport.

    Each event type maps to channel '{prefix}{event_type}'. publish() hands the
    event to a small worker pool and returns at once; the worker retries
    transient connection errors and logs events it could not deliver.
    Subscriptions are served by a background listener thread started with start().
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        channel_prefix: str = "jobmatch:events:",
        client: Optional[Redis] = None,
        publish_workers: int = 1,
    ):
        self.channel_prefix = channel_prefix
        self._redis = client or Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        self._registry = _HandlerRegistry()
        self._pubsub = None
        self._listener = None
        self._publisher = ThreadPoolExecutor(max_workers=publish_workers, thread_name_prefix="event-publish")

    def _channel(self, event_type: str) -> str:
        key = event_type.value if isinstance(event_type, EventType) else event_type
        return f"{self.channel_prefix}{key}"

    def subscribe(self, event_type, handler):
        if self._registry.add(event_type, handler):
            if self._pubsub is None:
                self._pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
            self._pubsub.subscribe(**{self._channel(event_type): self._on_message})

    def _on_message(self, message: Dict[str, Any]) -> None:
        try:
            event = DomainEvent.from_json(message['data'])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Dropping malformed event on {message.get('channel')}: {e}")
            return
        self._registry.dispatch(event)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _publish_raw(self, channel: str, data: str) -> int:
        return self._redis.publish(channel, data)

    def _deliver(self, event: DomainEvent) -> Optional[int]:
        try:
            receivers = self._publish_raw(self._channel(event.type), event.to_json())
        except RedisError as e:
            logger.error(f"Failed to publish {event.type} event {event.event_id}: {e}")
            return None
        logger.debug(f"Published {event.type} to {receivers} subscriber(s)")
        return receivers

    def publish(self, event) -> Optional[Future]:
        """Queue an event for delivery. Returns the delivery future, or None once closed."""
        try:
            return self._publisher.submit(self._deliver, event)
        except RuntimeError:
            logger.warning(f"Event bus closed, dropping {event.type} event {event.event_id}")
            return None

    def start(self):
        if self._pubsub is not None and self._listener is None:
            self._listener = self._pubsub.run_in_thread(sleep_time=0.1, daemon=True)
            logger.info("Redis event listener started")

    def close(self):
        # Drain queued publishes before the connection goes away
        self._publisher.shutdown(wait=True)
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None
        self._redis.close()
