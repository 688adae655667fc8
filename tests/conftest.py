import pytest

from guard.errors import AudioPlaybackError
from guard.sounds import SoundCatalog


class FakePlayer:
    def __init__(self, fail_play=False, fail_stop=False):
        self.fail_play = fail_play
        self.fail_stop = fail_stop
        self.loaded = []
        self.play_calls = []
        self.stop_calls = 0
        self._playing = False

    def load(self, path):
        self.loaded.append(path)

    def play(self, loop):
        self.play_calls.append(loop)
        if self.fail_play:
            raise AudioPlaybackError("autoplay refused")
        self._playing = True

    def stop(self):
        self.stop_calls += 1
        if self.fail_stop:
            raise AudioPlaybackError("device gone")
        self._playing = False

    def is_playing(self):
        return self._playing


class MemoryPreferences:
    def __init__(self, values=None):
        self.values = dict(values or {})
        self.writes = []

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value
        self.writes.append((key, value))


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def prefs():
    return MemoryPreferences()


@pytest.fixture
def catalog(tmp_path):
    return SoundCatalog({"alarm": tmp_path / "alarm.wav", "troll": tmp_path / "troll.wav"})


class ReadOnlyPreferences(MemoryPreferences):
    def set(self, key, value):
        raise PermissionError("read-only disk")
