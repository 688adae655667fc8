import os
from pathlib import Path

import pytest

from config import load_config

ENV_VARS = (
    "ABSENCE_THRESHOLD_MS",
    "POLL_INTERVAL_MS",
    "DETECT_TIMEOUT_MS",
    "CAMERA_INDEX",
    "DETECT_MIN_FACE_PX",
    "DETECT_SCALE",
    "PREFERENCES_PATH",
    "SOUNDS_DIR",
    "DEFAULT_SOUND",
    "OUTPUT_DEVICE_INDEX",
    "DEBUG",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for name in ENV_VARS:
        os.environ.pop(name, None)


def test_defaults(tmp_path):
    config = load_config(tmp_path / "missing.env")
    assert config.absence_threshold_ms == 4000
    assert config.poll_interval_ms == 1200
    assert config.default_sound == "alarm"
    assert config.preferences_path == Path("data/preferences.json")
    assert config.output_device_index is None
    assert config.log_level == "INFO"


def test_env_file_values(tmp_path):
    env = tmp_path / ".env"
    env.write_text("ABSENCE_THRESHOLD_MS=6000\nPOLL_INTERVAL_MS=500\nOUTPUT_DEVICE_INDEX=3\nDEBUG=1\n")
    config = load_config(env)
    assert config.absence_threshold_ms == 6000
    assert config.poll_interval_ms == 500
    assert config.output_device_index == 3
    assert config.debug is True
    assert config.log_level == "DEBUG"


def test_bad_integer(tmp_path, monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_MS", "fast")
    with pytest.raises(ValueError, match="POLL_INTERVAL_MS"):
        load_config(tmp_path / "missing.env")


def test_non_positive_interval(tmp_path, monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_MS", "0")
    with pytest.raises(ValueError):
        load_config(tmp_path / "missing.env")


def test_scale_out_of_range(tmp_path, monkeypatch):
    monkeypatch.setenv("DETECT_SCALE", "2.5")
    with pytest.raises(ValueError):
        load_config(tmp_path / "missing.env")
