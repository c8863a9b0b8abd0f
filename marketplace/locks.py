"""
Per-provider calendar locks

Session creation, rescheduling and assignment all read a provider's calendar
and then write to it. The lock serializes those sequences per provider so two
requests cannot both pass the conflict check for the same slot.

Redis locks cover multi-worker deployments; the in-process registry covers a
single worker and is the fallback when Redis is unreachable (fail-open).
"""

import logging
import os
import threading
import time
from contextlib import contextmanager
from typing import Optional

import redis
from fastapi import HTTPException

from .config import SCHEDULE_LOCK_BACKEND, SCHEDULE_LOCK_TIMEOUT

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# After a failed connection, skip Redis for this many seconds
REDIS_RETRY_COOLDOWN = 30
redis_failed_at: Optional[float] = None

_local_locks: dict[str, threading.Lock] = {}
_registry_lock = threading.Lock()


def get_redis_client() -> redis.Redis:
    """
    Get or create the Redis client
    Supports a single REDIS_URL or individual host/port settings
    """
    global redis_client, redis_failed_at

    if redis_client is None:
        if redis_failed_at is not None and time.time() - redis_failed_at < REDIS_RETRY_COOLDOWN:
            raise redis.ConnectionError("Redis unavailable, waiting for retry cooldown")

        redis_url = os.getenv("REDIS_URL")

        if redis_url:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=10,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        else:
            client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                password=os.getenv("REDIS_PASSWORD", None),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=10,
                retry_on_timeout=True,
            )

        try:
            client.ping()
        except redis.RedisError:
            redis_failed_at = time.time()
            raise

        logger.info("Redis connected for schedule locks")
        redis_client = client
        redis_failed_at = None

    return redis_client


def mark_redis_unavailable() -> None:
    """Drop the client so the next lock after the cooldown reconnects"""
    global redis_client, redis_failed_at

    redis_client = None
    redis_failed_at = time.time()


def _local_lock(key: str) -> threading.Lock:
    with _registry_lock:
        lock = _local_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _local_locks[key] = lock
        return lock


@contextmanager
def _memory_lock(key: str):
    lock = _local_lock(key)
    if not lock.acquire(timeout=SCHEDULE_LOCK_TIMEOUT):
        raise HTTPException(status_code=409, detail="Provider schedule is busy, please retry")
    try:
        yield
    finally:
        lock.release()


@contextmanager
def provider_schedule_lock(provider_id: Optional[int]):
    """Hold the calendar lock for one provider for the duration of the block"""
    if provider_id is None:
        yield
        return

    key = f"schedule-lock:provider:{provider_id}"

    if SCHEDULE_LOCK_BACKEND != "redis":
        with _memory_lock(key):
            yield
        return

    try:
        client = get_redis_client()
        lock = client.lock(key, timeout=SCHEDULE_LOCK_TIMEOUT, blocking_timeout=SCHEDULE_LOCK_TIMEOUT)
        acquired = lock.acquire()
    except redis.RedisError as e:
        logger.warning(f"⚠️ Redis lock unavailable for {key}, using in-process lock: {e}")
        if redis_client is not None:
            mark_redis_unavailable()
        with _memory_lock(key):
            yield
        return

    if not acquired:
        raise HTTPException(status_code=409, detail="Provider schedule is busy, please retry")

    try:
        yield
    finally:
        try:
            lock.release()
        except redis.RedisError as e:
            # Lock expired on its own; nothing left to release
            logger.warning(f"⚠️ Failed to release {key}: {e}")
