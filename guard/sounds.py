from __future__ import annotations

import logging
import wave
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_SOUND_IDS = ("alarm", "troll")

SAMPLE_RATE = 24000


class UnknownSoundError(KeyError):
    pass


class SoundCatalog:
    """Read-only mapping of sound id to the WAV file that plays it."""

    def __init__(self, sounds: Mapping[str, Path]):
        if not sounds:
            raise ValueError("Sound catalog must contain at least one sound")
        self._sounds: Mapping[str, Path] = MappingProxyType({k: Path(v) for k, v in sounds.items()})

    @classmethod
    def from_directory(cls, sounds_dir: Path, sound_ids=DEFAULT_SOUND_IDS) -> "SoundCatalog":
        sounds_dir = Path(sounds_dir)
        found: Dict[str, Path] = {sound_id: sounds_dir / f"{sound_id}.wav" for sound_id in sound_ids}
        if sounds_dir.is_dir():
            for path in sorted(sounds_dir.glob("*.wav")):
                found.setdefault(path.stem, path)
        return cls(found)

    def resolve(self, sound_id: str) -> Path:
        try:
            return self._sounds[sound_id]
        except KeyError:
            raise UnknownSoundError(sound_id) from None

    def __contains__(self, sound_id: object) -> bool:
        return sound_id in self._sounds

    def __iter__(self) -> Iterator[str]:
        return iter(self._sounds)

    def __len__(self) -> int:
        return len(self._sounds)

    def ids(self) -> list[str]:
        return list(self._sounds)


def _alarm_tone(duration_seconds: float) -> np.ndarray:
    t = np.arange(int(duration_seconds * SAMPLE_RATE)) / SAMPLE_RATE
    tone = np.sin(2 * np.pi * 880.0 * t)
    # 4 Hz on/off pulse
    gate = (np.floor(t * 8) % 2 == 0).astype(np.float64)
    return 0.4 * tone * gate


def _troll_tone(duration_seconds: float) -> np.ndarray:
    t = np.arange(int(duration_seconds * SAMPLE_RATE)) / SAMPLE_RATE
    freq = np.where(np.floor(t * 2) % 2 == 0, 660.0, 440.0)
    phase = 2 * np.pi * np.cumsum(freq) / SAMPLE_RATE
    return 0.35 * np.sin(phase)


_GENERATORS = {
    "alarm": _alarm_tone,
    "troll": _troll_tone,
}


def ensure_sound(path: Path, sound_id: str, duration_seconds: float = 1.5) -> None:
    path = Path(path)
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    generator = _GENERATORS.get(sound_id, _alarm_tone)
    samples = generator(duration_seconds)
    frames = (np.clip(samples, -1.0, 1.0) * 32767).astype("<i2").tobytes()
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(frames)
    logger.info("Generated default %s sound at %s", sound_id, path)


def ensure_catalog(catalog: SoundCatalog) -> None:
    for sound_id in catalog:
        ensure_sound(catalog.resolve(sound_id), sound_id)
