#!/usr/bin/env python3
"""
Test suite for the matching core.

All tests can be run with standard Python tools:

    # Run all tests
    python -m pytest tests/ -v

    # Skip tests that need a live Redis
    python -m pytest tests/ -v -m "not redis"

    # Using unittest
    python -m unittest discover tests -v

Redis:
    RedisEventBus tests use a mocked client. Tests marked 'redis' talk to
    a real server at TEST_REDIS_URL (default redis://localhost:6379/15).
"""

import os

TEST_REDIS_URL = os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


def is_redis_available() -> bool:
    """Return True if a Redis server answers at TEST_REDIS_URL."""
    from redis import Redis
    from redis.exceptions import RedisError

    try:
        client = Redis.from_url(TEST_REDIS_URL, socket_connect_timeout=1)
        return bool(client.ping())
    except RedisError:
        return False
