from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from threading import Event, Lock, RLock, Thread
from typing import Callable, Optional, Protocol

from .errors import CaptureError, DetectionTimeout
from .tracker import DetectionSample

logger = logging.getLogger(__name__)

DetectFn = Callable[[], bool]


class FrameSource(Protocol):
    def open(self) -> None: ...

    def close(self) -> None: ...


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class PresenceSampler:
    """Runs the detector on a fixed cadence and forwards each outcome.

    Each tick issues at most one ``detect()`` call on a worker thread. A tick
    that fires while the previous call is still running is skipped. Failed
    calls are reported to ``on_error`` and forwarded as a miss.
    """

    def __init__(
        self,
        on_sample: Callable[[DetectionSample], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.on_sample = on_sample
        self.on_error = on_error
        self.clock = clock
        self.skipped_ticks = 0

        self._lock = RLock()
        self._detect: Optional[DetectFn] = None
        self._interval = 1.2
        self._running = False
        self._in_flight = False
        self._generation = 0
        self._stop_event = Event()
        self._thread: Optional[Thread] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    def start(self, interval_ms: float, detect: DetectFn, source: Optional[FrameSource] = None) -> None:
        with self._lock:
            if self._running:
                raise RuntimeError("Sampler is already running")
        if source is not None:
            try:
                source.open()
            except CaptureError:
                logger.error("Capture source failed to open, sampler not started")
                raise
            except Exception as exc:
                logger.error("Capture source failed to open, sampler not started: %s", exc)
                raise CaptureError(str(exc)) from exc

        stop_event = Event()
        with self._lock:
            self._detect = detect
            self._interval = max(0.05, interval_ms / 1000.0)
            self._generation += 1
            self._running = True
            self._stop_event = stop_event
        self._thread = Thread(target=self._loop, args=(stop_event,), name="presence-sampler", daemon=True)
        self._thread.start()
        logger.info("Sampling every %.0f ms", interval_ms)

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
            self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread and thread.is_alive():
            thread.join(timeout=2)
        logger.info("Sampler stopped (skipped_ticks=%s)", self.skipped_ticks)

    def tick(self) -> bool:
        """Issue one detection unless one is already running."""
        with self._lock:
            if not self._running or self._detect is None:
                return False
            if self._in_flight:
                self.skipped_ticks += 1
                logger.debug("Detection still in flight, tick skipped")
                return False
            self._in_flight = True
            generation = self._generation
            detect = self._detect
        worker = Thread(target=self._run_detection, args=(detect, generation), name="presence-detect", daemon=True)
        worker.start()
        return True

    def _loop(self, stop_event: Event) -> None:
        while not stop_event.wait(self._interval):
            self.tick()

    def _run_detection(self, detect: DetectFn, generation: int) -> None:
        error: Optional[Exception] = None
        try:
            detected = bool(detect())
        except Exception as exc:
            detected = False
            error = exc
        timestamp = self.clock()

        with self._lock:
            try:
                if not self._running or generation != self._generation:
                    logger.debug("Sampler stopped, detection result discarded")
                    return
                if error is not None:
                    logger.warning("Presence detection failed, counted as a miss: %s", error)
                    self._report_error(error)
                self.on_sample(DetectionSample(timestamp=timestamp, detected=detected))
            finally:
                self._in_flight = False

    def _report_error(self, error: Exception) -> None:
        if not self.on_error:
            return
        try:
            self.on_error(error)
        except Exception:  # pragma: no cover - callback safety
            logger.error("on_error callback failed", exc_info=True)


class BoundedDetector:
    """Wraps a blocking detect call with a timeout.

    The call runs on a single background worker. If it has not returned
    within ``timeout_ms`` a ``DetectionTimeout`` is raised; while that call is
    still stuck, further calls fail fast with the same error.
    """

    def __init__(self, detect: DetectFn, timeout_ms: float):
        self._detect = detect
        self.timeout = timeout_ms / 1000.0
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="detector")
        self._pending: Optional[Future] = None
        self._lock = Lock()

    def __call__(self) -> bool:
        with self._lock:
            if self._pending is not None and not self._pending.done():
                raise DetectionTimeout("previous detection is still running")
            future = self._executor.submit(self._detect)
            self._pending = future
        try:
            return bool(future.result(timeout=self.timeout))
        except FuturesTimeoutError:
            raise DetectionTimeout(f"detection took longer than {self.timeout:.1f}s") from None

    def close(self) -> None:
        self._executor.shutdown(wait=False)
