"""
Reload Service - Browser reload notifications over SSE

Provides:
- emit_reload(): Notify every connected browser (thread-safe)
- subscribe(): SSE generator for one browser connection
"""
import asyncio
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional

logger = logging.getLogger(__name__)

# In-memory subscribers, one queue per open browser tab
_subscribers: List[asyncio.Queue] = []
_subscribers_lock = threading.Lock()

# Event loop the SSE connections live on
_main_loop: Optional[asyncio.AbstractEventLoop] = None

KEEPALIVE_SECONDS = 30.0


def set_main_loop(loop: asyncio.AbstractEventLoop):
    """Set the main event loop for thread-safe event dispatch"""
    global _main_loop
    _main_loop = loop


class EventType:
    """Standard event types"""
    RELOAD = "reload"  # Full page reload after a successful rebuild
    BUILD_FAILED = "build.failed"  # Rebuild failed; page is left as is


def subscriber_count() -> int:
    with _subscribers_lock:
        return len(_subscribers)


def emit_reload(reason: str = "") -> int:
    """
    Tell every connected browser to reload

    Args:
        reason: Binding or pipeline that triggered the reload

    Returns:
        Number of subscribers notified
    """
    return _notify_subscribers(EventType.RELOAD, {"reason": reason})


def emit_build_failed(reason: str, error: str) -> int:
    return _notify_subscribers(EventType.BUILD_FAILED, {"reason": reason, "error": error})


def _notify_subscribers(event_type: str, payload: Dict[str, Any]) -> int:
    """
    Notify all subscribers about a new event.
    Thread-safe: can be called from background threads.
    """
    event_data = {
        "event_type": event_type,
        "payload": payload,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }

    with _subscribers_lock:
        queues = list(_subscribers)  # Copy to avoid holding lock during put

    for queue in queues:
        if _main_loop and _main_loop.is_running():
            _main_loop.call_soon_threadsafe(_safe_put, queue, event_data)
        else:
            _safe_put(queue, event_data)
    return len(queues)


def _safe_put(queue: asyncio.Queue, data: dict):
    """Safely put data into queue, ignore if full"""
    try:
        queue.put_nowait(data)
    except asyncio.QueueFull:
        logger.debug("[ReloadService] Dropping event for a slow subscriber")


async def subscribe() -> AsyncGenerator[str, None]:
    """
    Subscribe to reload events (SSE generator)

    Yields SSE-formatted event strings.
    """
    global _main_loop
    try:
        _main_loop = asyncio.get_running_loop()
    except RuntimeError:
        pass

    queue: asyncio.Queue = asyncio.Queue(maxsize=100)
    with _subscribers_lock:
        _subscribers.append(queue)

    try:
        # Send initial connection event
        yield ": connected\n\n"

        while True:
            try:
                event_data = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                yield f"event: {event_data['event_type']}\n"
                yield f"data: {json.dumps(event_data)}\n\n"
            except asyncio.TimeoutError:
                # Keep the connection open through proxies
                yield ": keepalive\n\n"
    finally:
        with _subscribers_lock:
            try:
                _subscribers.remove(queue)
            except ValueError:
                pass


__all__ = [
    "EventType",
    "emit_reload",
    "emit_build_failed",
    "subscribe",
    "subscriber_count",
    "set_main_loop",
]
