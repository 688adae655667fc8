from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

logger = logging.getLogger(__name__)

SOUND_PREFERENCE_KEY = "soundType"


def load_preferences(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load preferences from %s: %s", path, exc)
        return {}
    if not isinstance(payload, dict):
        logger.warning("Ignoring preferences file %s: expected an object", path)
        return {}
    return {str(key): str(value) for key, value in payload.items() if value is not None}


def save_preferences(path: Path, values: Dict[str, str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(values, f, ensure_ascii=False, indent=2)
    tmp_path.replace(path)


class PreferenceStore:
    """Small key/value store persisted as a JSON object.

    Reads go to the file every time; writes rewrite the whole object.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return load_preferences(self.path).get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = load_preferences(self.path)
            values[key] = value
            save_preferences(self.path, values)
        logger.info("Preference %s=%s saved to %s", key, value, self.path)
