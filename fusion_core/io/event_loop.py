"""
Single-consumer event loop for the fusion engine.

Producers (satellite receiver, sensor callback, peer transport) submit typed
events into one bounded queue; a single worker thread drains it and drives
the FusionOrchestrator, so every input is processed in submission order.

A full queue drops the event (metric `queue_full`) instead of blocking the
producer.
"""

from dataclasses import dataclass
from enum import Enum
from queue import Empty, Full, Queue
from typing import Any, Optional
import logging
import threading

from fusion_core.proto.fix import Fix
from fusion_core.proto.sensor_sample import SensorSample
from fusion_core.localization.fusion_orchestrator import FusionOrchestrator
from fusion_core.metrics import get_metrics

logger = logging.getLogger(__name__)


class EventType(Enum):
    SATELLITE_FIX = "satellite_fix"
    SENSOR_SAMPLE = "sensor_sample"
    PEER_PACKET = "peer_packet"


@dataclass(frozen=True)
class FusionEvent:
    """One queued input."""

    event_type: EventType
    payload: Any
    received_at_ms: Optional[int] = None


class FusionEventLoop:
    """
    Bounded queue + worker thread in front of a FusionOrchestrator.

    Usage:
        loop = FusionEventLoop(engine, max_queue_size=1000)
        loop.start()
        loop.submit_sample(sample)
        loop.submit_fix(fix)
        ...
        loop.stop()
    """

    def __init__(self, orchestrator: FusionOrchestrator, max_queue_size: int = 1000, poll_interval_s: float = 0.1):
        """
        Initialize event loop.

        Args:
            orchestrator: Engine that processes the events
            max_queue_size: Queue bound; submissions beyond it are dropped
            poll_interval_s: Worker wake-up interval for stop checks
        """
        if max_queue_size <= 0:
            raise ValueError(f"max_queue_size must be positive: {max_queue_size}")

        self.orchestrator = orchestrator
        self.metrics = get_metrics()
        self.poll_interval_s = poll_interval_s

        self._queue: "Queue[FusionEvent]" = Queue(maxsize=max_queue_size)
        self._running = False
        self._worker: Optional[threading.Thread] = None

    def start(self):
        """Start the worker thread."""
        if self._running:
            return

        self._running = True
        self._worker = threading.Thread(target=self._run, name="fusion-event-loop", daemon=True)
        self._worker.start()
        logger.info("Fusion event loop started")

    def stop(self, drain: bool = True, timeout: Optional[float] = 5.0):
        """
        Stop the worker thread.

        Args:
            drain: Process events already queued before stopping
            timeout: Join timeout in seconds
        """
        if not self._running:
            return

        if drain:
            self._queue.join()

        self._running = False
        if self._worker is not None:
            self._worker.join(timeout)
            self._worker = None

        logger.info("Fusion event loop stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()

    def submit_fix(self, fix: Fix) -> bool:
        return self._submit(FusionEvent(EventType.SATELLITE_FIX, fix))

    def submit_sample(self, sample: SensorSample) -> bool:
        return self._submit(FusionEvent(EventType.SENSOR_SAMPLE, sample))

    def submit_peer_packet(self, packet: bytes, received_at_ms: Optional[int] = None) -> bool:
        return self._submit(FusionEvent(EventType.PEER_PACKET, bytes(packet), received_at_ms))

    def _submit(self, event: FusionEvent) -> bool:
        """
        Enqueue without blocking.

        Returns:
            True if queued, False if dropped because the queue is full
        """
        try:
            self._queue.put_nowait(event)
        except Full:
            self.metrics.increment_drop('queue_full')
            logger.debug(f"Event queue full, dropping {event.event_type.value}")
            return False

        self.metrics.record_histogram('queue_depth', self._queue.qsize())
        return True

    def _run(self):
        while self._running:
            try:
                event = self._queue.get(timeout=self.poll_interval_s)
            except Empty:
                continue

            try:
                self._dispatch(event)
            except Exception:
                logger.exception(f"Failed to process {event.event_type.value} event")
            finally:
                self._queue.task_done()

    def _dispatch(self, event: FusionEvent):
        engine = self.orchestrator

        if event.event_type == EventType.SATELLITE_FIX:
            engine.on_satellite_fix(event.payload)
        elif event.event_type == EventType.SENSOR_SAMPLE:
            engine.on_sensor_sample(event.payload)
        elif event.event_type == EventType.PEER_PACKET:
            engine.on_peer_packet(event.payload, event.received_at_ms)
