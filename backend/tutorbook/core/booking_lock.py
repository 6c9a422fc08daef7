from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, Optional

from redis import Redis

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

_LOCAL_LOCKS: Dict[str, "_LocalLockEntry"] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()


def slot_lock_key(tutor_id: str, session_date: str, time_slot: str) -> str:
    return f"slot:{tutor_id}:{session_date}:{time_slot}"


def _namespaced_key(key: str) -> str:
    return f"{settings.slot_lock_namespace}:lock:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if not settings.redis_url:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("slot_lock_sync_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


class _LocalLockEntry:
    """A process-local lock plus the number of threads holding or awaiting it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


def _checkout_local_lock(key: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS.get(key)
        if entry is None:
            entry = _LocalLockEntry()
            _LOCAL_LOCKS[key] = entry
        entry.users += 1
        return entry.lock


def _return_local_lock(key: str) -> None:
    # The entry is dropped once nobody holds or waits on it.
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS.get(key)
        if entry is None:
            return
        entry.users -= 1
        if entry.users <= 0:
            del _LOCAL_LOCKS[key]


def acquire_redis_slot_lock(key: str, ttl_s: int) -> bool:
    """
    Take the cross-process lock for ``key``.

    Returns True when there is no Redis to coordinate with; the database's
    unique index still guards the slot in that case.
    """
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_slot_lock("acquire", "redis_unavailable")
        return True
    try:
        acquired = bool(client.set(_namespaced_key(key), str(time.time()), nx=True, ex=ttl_s))
    except Exception as exc:
        prometheus_metrics.record_slot_lock("acquire", "error")
        logger.warning(
            "slot_lock_sync_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )
        return True
    prometheus_metrics.record_slot_lock("acquire", "success" if acquired else "blocked")
    return acquired


def release_redis_slot_lock(key: str) -> None:
    client = _get_sync_redis()
    if client is None:
        return
    try:
        deleted = client.delete(_namespaced_key(key))
        prometheus_metrics.record_slot_lock("release", "success" if deleted else "not_found")
    except Exception as exc:
        prometheus_metrics.record_slot_lock("release", "error")
        logger.warning(
            "slot_lock_sync_release_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )


@contextmanager
def slot_lock_sync(key: str, ttl_s: Optional[int] = None) -> Iterator[bool]:
    """
    Serialize check-then-write for one lock key.

    Threads in this process queue on a local lock (bounded by ``ttl_s``);
    other processes are excluded through Redis when it is configured.
    Yields False when the key is held elsewhere.
    """
    ttl = ttl_s or settings.slot_lock_ttl_seconds
    local = _checkout_local_lock(key)
    try:
        if not local.acquire(timeout=ttl):
            prometheus_metrics.record_slot_lock("acquire", "local_timeout")
            yield False
            return
        try:
            acquired = acquire_redis_slot_lock(key, ttl)
            try:
                yield acquired
            finally:
                if acquired:
                    release_redis_slot_lock(key)
        finally:
            local.release()
    finally:
        _return_local_lock(key)


def booking_lock_key(booking_id: str) -> str:
    return f"booking:{booking_id}:mutex"


@contextmanager
def booking_lock_sync(booking_id: str, ttl_s: Optional[int] = None) -> Iterator[bool]:
    """Serialize status changes of one booking across threads and processes."""
    with slot_lock_sync(booking_lock_key(booking_id), ttl_s) as acquired:
        yield acquired
