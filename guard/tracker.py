from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class PresenceStatus(Enum):
    PRESENT = "present"
    ABSENT = "absent"


@dataclass(frozen=True)
class DetectionSample:
    timestamp: float  # ms, monotonic clock
    detected: bool


@dataclass
class PresenceState:
    status: PresenceStatus
    last_seen_at: float


EdgeListener = Callable[[PresenceStatus], None]


class PresenceTracker:
    """Debounces raw detection samples into Present/Absent edges.

    A miss only flips the status once nothing has been seen for longer than
    ``absence_threshold_ms``; a single hit flips it straight back. Listeners
    are called on transitions only.
    """

    def __init__(self, absence_threshold_ms: float = 4000, start_time: float = 0.0):
        self.absence_threshold_ms = absence_threshold_ms
        self._state = PresenceState(status=PresenceStatus.PRESENT, last_seen_at=start_time)
        self._listeners: List[EdgeListener] = []
        self._lock = Lock()

    def reset(self, start_time: float) -> None:
        with self._lock:
            self._state = PresenceState(status=PresenceStatus.PRESENT, last_seen_at=start_time)
        logger.debug("Presence tracker reset at t=%.0f", start_time)

    def add_listener(self, listener: EdgeListener) -> None:
        self._listeners.append(listener)

    @property
    def status(self) -> PresenceStatus:
        with self._lock:
            return self._state.status

    @property
    def last_seen_at(self) -> float:
        with self._lock:
            return self._state.last_seen_at

    def update(self, sample: DetectionSample) -> Optional[PresenceStatus]:
        """Apply one sample and return the edge it produced, if any."""
        edge: Optional[PresenceStatus] = None
        with self._lock:
            state = self._state
            if sample.detected:
                if sample.timestamp > state.last_seen_at:
                    state.last_seen_at = sample.timestamp
                if state.status is PresenceStatus.ABSENT:
                    state.status = PresenceStatus.PRESENT
                    edge = PresenceStatus.PRESENT
            elif (
                state.status is PresenceStatus.PRESENT
                and sample.timestamp - state.last_seen_at > self.absence_threshold_ms
            ):
                state.status = PresenceStatus.ABSENT
                edge = PresenceStatus.ABSENT
            gap = sample.timestamp - state.last_seen_at

        if edge is None:
            return None
        logger.info("Presence -> %s (%.0f ms since last seen)", edge.value, gap)
        for listener in list(self._listeners):
            listener(edge)
        return edge
