import logging
import wave
from dataclasses import dataclass
from pathlib import Path
from threading import Event, Lock, Thread
from typing import List, Optional

import numpy as np
import pyaudio

from guard.errors import AudioPlaybackError

logger = logging.getLogger(__name__)


def create_pyaudio() -> pyaudio.PyAudio:
    pa = pyaudio.PyAudio()
    return pa


@dataclass
class OutputDeviceInfo:
    index: int
    name: str
    rate: int
    channels: int


@dataclass
class WavClip:
    frames: bytes
    rate: int
    channels: int
    sample_width: int

    @property
    def frame_size(self) -> int:
        return self.channels * self.sample_width


def get_output_device(pa: pyaudio.PyAudio, device_index: Optional[int]) -> OutputDeviceInfo:
    if device_index is None:
        device_index = int(pa.get_default_output_device_info()["index"])
    info = pa.get_device_info_by_index(device_index)
    rate = int(info.get("defaultSampleRate", 24000))
    channels = int(info.get("maxOutputChannels", 1)) or 1
    logger.info("Selected output device %s: %s (rate=%s, channels=%s)", device_index, info.get("name"), rate, channels)
    return OutputDeviceInfo(index=device_index, name=info.get("name", "unknown"), rate=rate, channels=channels)


def read_wav(path: Path) -> WavClip:
    try:
        with wave.open(str(path), "rb") as wav:
            clip = WavClip(
                frames=wav.readframes(wav.getnframes()),
                rate=wav.getframerate(),
                channels=wav.getnchannels(),
                sample_width=wav.getsampwidth(),
            )
    except (OSError, EOFError, wave.Error) as exc:
        raise AudioPlaybackError(f"Cannot read sound file {path}: {exc}") from exc
    if not clip.frames:
        raise AudioPlaybackError(f"Sound file {path} is empty")
    return clip


def scale_volume(frames: bytes, volume: float) -> bytes:
    if volume >= 1.0:
        return frames
    samples = np.frombuffer(frames, dtype=np.int16).astype(np.float32) * max(0.0, volume)
    return samples.astype(np.int16).tobytes()


class SoundPlayer:
    """Plays a WAV clip on a PyAudio output stream, optionally looping.

    ``play`` returns immediately; the clip is written from a background
    thread so ``stop`` can interrupt it between chunks.
    """

    def __init__(
        self,
        pa: pyaudio.PyAudio,
        device_index: Optional[int] = None,
        chunk_frames: int = 1024,
        volume: float = 1.0,
    ):
        self.pa = pa
        self.device_index = device_index
        self.chunk_frames = chunk_frames
        self.volume = volume
        self._clip: Optional[WavClip] = None
        self._clip_path: Optional[Path] = None
        self._stop_event = Event()
        self._thread: Optional[Thread] = None
        self._lock = Lock()

    def load(self, path: Path) -> None:
        path = Path(path)
        if self._clip is not None and self._clip_path == path:
            return
        clip = read_wav(path)
        if clip.sample_width == 2:
            clip.frames = scale_volume(clip.frames, self.volume)
        with self._lock:
            self._clip = clip
            self._clip_path = path
        logger.debug("Loaded %s (rate=%s, channels=%s)", path, clip.rate, clip.channels)

    def play(self, loop: bool) -> None:
        with self._lock:
            clip = self._clip
            if clip is None:
                raise AudioPlaybackError("No sound loaded")
            if self._thread and self._thread.is_alive():
                return
            try:
                stream = self.pa.open(
                    format=self.pa.get_format_from_width(clip.sample_width),
                    channels=clip.channels,
                    rate=clip.rate,
                    output=True,
                    output_device_index=self.device_index,
                )
            except OSError as exc:
                raise AudioPlaybackError(f"Cannot open output stream: {exc}") from exc
            self._stop_event = Event()
            self._thread = Thread(
                target=self._play_loop,
                args=(stream, clip, loop, self._stop_event),
                name="sound-playback",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        with self._lock:
            self._stop_event.set()
            thread = self._thread
            self._thread = None
        if thread and thread.is_alive():
            thread.join(timeout=1)

    def is_playing(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def _play_loop(self, stream, clip: WavClip, loop: bool, stop_event: Event) -> None:
        chunk_bytes = self.chunk_frames * clip.frame_size
        try:
            while not stop_event.is_set():
                for offset in range(0, len(clip.frames), chunk_bytes):
                    if stop_event.is_set():
                        break
                    stream.write(clip.frames[offset : offset + chunk_bytes])
                if not loop:
                    break
        except OSError as exc:
            logger.error("Audio output error: %s", exc)
        finally:
            stream.stop_stream()
            stream.close()


def list_output_devices(pa: pyaudio.PyAudio) -> List[OutputDeviceInfo]:
    devices: List[OutputDeviceInfo] = []
    for i in range(pa.get_device_count()):
        info = pa.get_device_info_by_index(i)
        if info.get("maxOutputChannels", 0) > 0:
            devices.append(
                OutputDeviceInfo(
                    index=i,
                    name=info.get("name", "unknown"),
                    rate=int(info.get("defaultSampleRate", 0)),
                    channels=int(info["maxOutputChannels"]),
                )
            )
    return devices
