"""
I/O Module: bounded event queue in front of the fusion engine.

- Bounded queue (no unbounded RAM growth)
- Non-blocking producers, drops counted as `queue_full`
- Single consumer, so inputs are processed in submission order
"""

from .event_loop import EventType, FusionEvent, FusionEventLoop

__all__ = [
    'EventType',
    'FusionEvent',
    'FusionEventLoop',
]
