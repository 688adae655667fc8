from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from threading import Lock
from typing import Callable, Optional, Protocol

from .errors import AudioPlaybackError
from .sounds import SoundCatalog, UnknownSoundError
from .storage import SOUND_PREFERENCE_KEY
from .tracker import PresenceStatus

logger = logging.getLogger(__name__)


class AudioPlayer(Protocol):
    def load(self, path: Path) -> None: ...

    def play(self, loop: bool) -> None: ...

    def stop(self) -> None: ...

    def is_playing(self) -> bool: ...


class Preferences(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


@dataclass
class AlarmState:
    audio_unlocked: bool = False
    paused: bool = False
    playing: bool = False
    active_sound_id: str = "alarm"


class AlarmController:
    """Turns presence edges and user commands into alarm playback.

    Edge-triggered playback only starts after ``unlock()`` and never while
    paused. ``state.playing`` always reflects what the player actually did.
    """

    def __init__(
        self,
        catalog: SoundCatalog,
        player: AudioPlayer,
        preferences: Preferences,
        status_provider: Callable[[], PresenceStatus],
        test_player_factory: Optional[Callable[[], AudioPlayer]] = None,
        default_sound: str = "alarm",
    ):
        self.catalog = catalog
        self.player = player
        self.preferences = preferences
        self.status_provider = status_provider
        self.test_player_factory = test_player_factory
        self._lock = Lock()
        self._test_player: Optional[AudioPlayer] = None

        sound_id = preferences.get(SOUND_PREFERENCE_KEY) or default_sound
        if sound_id not in catalog:
            logger.warning("Stored sound %r is not available, using %r", sound_id, default_sound)
            sound_id = default_sound if default_sound in catalog else catalog.ids()[0]
        self.state = AlarmState(active_sound_id=sound_id)
        logger.info("Alarm sound: %s", sound_id)

    def snapshot(self) -> AlarmState:
        with self._lock:
            return replace(self.state)

    @property
    def playing(self) -> bool:
        with self._lock:
            return self.state.playing

    @property
    def paused(self) -> bool:
        with self._lock:
            return self.state.paused

    @property
    def audio_unlocked(self) -> bool:
        with self._lock:
            return self.state.audio_unlocked

    @property
    def active_sound_id(self) -> str:
        with self._lock:
            return self.state.active_sound_id

    def handle_edge(self, status: PresenceStatus) -> None:
        with self._lock:
            if status is PresenceStatus.ABSENT:
                self._start_alarm()
            else:
                self._stop_alarm()

    def unlock(self) -> None:
        with self._lock:
            if self.state.audio_unlocked:
                return
            self.state.audio_unlocked = True
        logger.info("Audio unlocked")

    def pause(self) -> None:
        with self._lock:
            self.state.paused = True
            self._stop_alarm()
        logger.info("Monitoring paused")

    def resume(self) -> None:
        with self._lock:
            self.state.paused = False
            logger.info("Monitoring resumed")
            if self.status_provider() is PresenceStatus.ABSENT:
                self._start_alarm()

    def toggle_pause(self) -> bool:
        if self.paused:
            self.resume()
        else:
            self.pause()
        return self.paused

    def select_sound(self, sound_id: str) -> None:
        if sound_id not in self.catalog:
            raise UnknownSoundError(sound_id)
        with self._lock:
            self._stop_alarm()
            self.state.active_sound_id = sound_id
            try:
                self.preferences.set(SOUND_PREFERENCE_KEY, sound_id)
            except OSError as exc:
                logger.warning("Could not save sound preference %s: %s", sound_id, exc)
        logger.info("Alarm sound set to %s", sound_id)

    def test_sound(self, sound_id: Optional[str] = None) -> bool:
        """Play a sound once, outside of the alarm state."""
        sound_id = sound_id or self.active_sound_id
        path = self.catalog.resolve(sound_id)
        if self.test_player_factory is None:
            logger.warning("No test player configured, cannot play %s", sound_id)
            return False
        if self._test_player is not None:
            self._safe_stop(self._test_player)
        player = self.test_player_factory()
        self._test_player = player
        try:
            player.load(path)
            player.play(loop=False)
        except (AudioPlaybackError, OSError) as exc:
            logger.warning("Test playback of %s failed: %s", sound_id, exc)
            return False
        return True

    def shutdown(self) -> None:
        with self._lock:
            self._stop_alarm()
        if self._test_player is not None:
            self._safe_stop(self._test_player)
            self._test_player = None

    # Callers hold self._lock.
    def _start_alarm(self) -> None:
        state = self.state
        if state.playing:
            if self.player.is_playing():
                return
            logger.warning("Alarm playback ended unexpectedly, restarting")
            state.playing = False
        if not state.audio_unlocked:
            logger.info("Subject absent but audio is locked, alarm withheld")
            return
        if state.paused:
            logger.debug("Subject absent while paused, alarm withheld")
            return
        try:
            self.player.load(self.catalog.resolve(state.active_sound_id))
            self.player.play(loop=True)
        except (AudioPlaybackError, OSError) as exc:
            logger.warning("Alarm playback failed to start: %s", exc)
            state.playing = False
            return
        state.playing = True
        logger.info("Alarm started (sound=%s)", state.active_sound_id)

    def _stop_alarm(self) -> None:
        if not self.state.playing:
            return
        self._safe_stop(self.player)
        self.state.playing = False
        logger.info("Alarm stopped")

    @staticmethod
    def _safe_stop(player: AudioPlayer) -> None:
        try:
            player.stop()
        except (AudioPlaybackError, OSError) as exc:
            logger.warning("Stopping playback failed: %s", exc)
