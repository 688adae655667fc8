from __future__ import annotations

import logging
from typing import Callable, Optional

from .controller import AlarmController, AudioPlayer, Preferences
from .sampler import BoundedDetector, PresenceSampler, monotonic_ms
from .sounds import SoundCatalog, UnknownSoundError
from .tracker import PresenceStatus, PresenceTracker

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands: unlock | pause | resume | p (toggle pause) | sound <id> | "
    "test [id] | sounds | status | help | quit"
)


class GuardRuntime:
    def __init__(
        self,
        config,
        camera,
        detector,
        player: AudioPlayer,
        preferences: Preferences,
        catalog: SoundCatalog,
        test_player_factory: Optional[Callable[[], AudioPlayer]] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.config = config
        self.camera = camera
        self.detector = detector
        self.clock = clock
        self.detect_errors = 0
        self.last_detect_error: Optional[str] = None

        self.tracker = PresenceTracker(config.absence_threshold_ms, start_time=clock())
        self.controller = AlarmController(
            catalog=catalog,
            player=player,
            preferences=preferences,
            status_provider=lambda: self.tracker.status,
            test_player_factory=test_player_factory,
            default_sound=config.default_sound,
        )
        self.tracker.add_listener(self.controller.handle_edge)
        self.sampler = PresenceSampler(
            on_sample=self.tracker.update,
            on_error=self._on_detect_error,
            clock=clock,
        )
        self.detect = BoundedDetector(self._detect_once, config.detect_timeout_ms)

    @property
    def status(self) -> PresenceStatus:
        return self.tracker.status

    @property
    def playing(self) -> bool:
        return self.controller.playing

    @property
    def paused(self) -> bool:
        return self.controller.paused

    def start(self) -> None:
        self.detector.ensure_loaded()
        self.sampler.start(self.config.poll_interval_ms, self.detect, source=self.camera)
        self.tracker.reset(self.clock())
        logger.info(
            "Monitoring started (absence_threshold=%sms, poll_interval=%sms)",
            self.config.absence_threshold_ms,
            self.config.poll_interval_ms,
        )

    def stop(self) -> None:
        self.sampler.stop()
        self.camera.close()
        self.controller.shutdown()

    def shutdown(self) -> None:
        self.stop()
        self.detect.close()

    def unlock_audio(self) -> None:
        self.controller.unlock()

    def pause(self) -> None:
        self.controller.pause()

    def resume(self) -> None:
        self.controller.resume()

    def toggle_pause(self) -> bool:
        return self.controller.toggle_pause()

    def select_sound(self, sound_id: str) -> None:
        self.controller.select_sound(sound_id)

    def test_sound(self, sound_id: Optional[str] = None) -> bool:
        return self.controller.test_sound(sound_id)

    def describe(self) -> str:
        state = self.controller.snapshot()
        parts = [
            "status=" + self.status.value,
            f"playing={state.playing}",
            f"paused={state.paused}",
            f"audio_unlocked={state.audio_unlocked}",
            f"sound={state.active_sound_id}",
        ]
        if self.detect_errors:
            parts.append(f"detect_errors={self.detect_errors} (last: {self.last_detect_error})")
        return " ".join(parts)

    def _detect_once(self) -> bool:
        frame = self.camera.read()
        return self.detector.detect_presence(frame)

    def _on_detect_error(self, exc: Exception) -> None:
        self.detect_errors += 1
        self.last_detect_error = str(exc) or exc.__class__.__name__


def handle_command(runtime: GuardRuntime, line: str) -> Optional[str]:
    """Run one console command. Returns the reply, or None to quit."""
    parts = line.strip().split()
    if not parts:
        return ""
    cmd, args = parts[0].lower(), parts[1:]

    if cmd in ("quit", "exit", "q"):
        return None
    if cmd == "unlock":
        runtime.unlock_audio()
        return "Audio unlocked."
    if cmd == "pause":
        runtime.pause()
        return "Paused."
    if cmd == "resume":
        runtime.resume()
        return "Resumed."
    if cmd == "p":
        return "Paused." if runtime.toggle_pause() else "Resumed."
    if cmd == "sound":
        if not args:
            return f"Current sound: {runtime.controller.active_sound_id}"
        try:
            runtime.select_sound(args[0])
        except UnknownSoundError:
            return f"Unknown sound {args[0]!r}. Available: {', '.join(runtime.controller.catalog.ids())}"
        return f"Sound set to {args[0]}."
    if cmd == "test":
        sound_id = args[0] if args else None
        try:
            ok = runtime.test_sound(sound_id)
        except UnknownSoundError:
            return f"Unknown sound {sound_id!r}."
        return "Playing test sound." if ok else "Test sound could not be played."
    if cmd == "sounds":
        return "Available: " + ", ".join(runtime.controller.catalog.ids())
    if cmd == "status":
        return runtime.describe()
    if cmd == "help":
        return HELP_TEXT
    return f"Unknown command {cmd!r}. {HELP_TEXT}"


