"""
Services package
Long-lived helpers used by the dev server (browser reload channel)
"""
from .reload_service import EventType, emit_build_failed, emit_reload, subscribe, subscriber_count

__all__ = [
    "EventType",
    "emit_build_failed",
    "emit_reload",
    "subscribe",
    "subscriber_count",
]
