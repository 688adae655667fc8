import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _get_env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip() in {"1", "true", "True", "yes", "YES", "y"}


def _get_env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _get_env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return float(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a float") from exc


@dataclass
class Config:
    absence_threshold_ms: int
    poll_interval_ms: int
    detect_timeout_ms: int
    camera_index: int
    detect_min_face_px: int
    detect_scale: float
    preferences_path: Path
    sounds_dir: Path
    default_sound: str
    output_device_index: Optional[int]
    debug: bool
    log_level: str


def load_config(env_path: Optional[Path] = None) -> Config:
    if env_path is None:
        env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    absence_threshold_ms = _get_env_int("ABSENCE_THRESHOLD_MS", 4000)
    poll_interval_ms = _get_env_int("POLL_INTERVAL_MS", 1200)
    if poll_interval_ms <= 0:
        raise ValueError("POLL_INTERVAL_MS must be positive")
    if absence_threshold_ms < 0:
        raise ValueError("ABSENCE_THRESHOLD_MS must not be negative")
    detect_timeout_ms = _get_env_int("DETECT_TIMEOUT_MS", 3000)
    camera_index = _get_env_int("CAMERA_INDEX", 0)
    detect_min_face_px = _get_env_int("DETECT_MIN_FACE_PX", 48)
    detect_scale = _get_env_float("DETECT_SCALE", 0.5)
    if not 0.0 < detect_scale <= 1.0:
        raise ValueError("DETECT_SCALE must be in (0, 1]")
    preferences_path = Path(os.getenv("PREFERENCES_PATH", "data/preferences.json"))
    sounds_dir = Path(os.getenv("SOUNDS_DIR", "data/sounds"))
    default_sound = os.getenv("DEFAULT_SOUND", "alarm")
    output_device_index_env = os.getenv("OUTPUT_DEVICE_INDEX")
    output_device_index = int(output_device_index_env) if output_device_index_env else None
    debug = _get_env_bool("DEBUG", False)
    log_level = os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO").upper()

    return Config(
        absence_threshold_ms=absence_threshold_ms,
        poll_interval_ms=poll_interval_ms,
        detect_timeout_ms=detect_timeout_ms,
        camera_index=camera_index,
        detect_min_face_px=detect_min_face_px,
        detect_scale=detect_scale,
        preferences_path=preferences_path,
        sounds_dir=sounds_dir,
        default_sound=default_sound,
        output_device_index=output_device_index,
        debug=debug,
        log_level=log_level,
    )


def setup_logging(log_level: str = "INFO") -> None:
    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    log_path = logs_dir / "focusguard.log"
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=[file_handler, console_handler],
    )
