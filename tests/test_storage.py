import json

from guard.storage import SOUND_PREFERENCE_KEY, PreferenceStore


def test_missing_file_reads_empty(tmp_path):
    store = PreferenceStore(tmp_path / "prefs.json")
    assert store.get(SOUND_PREFERENCE_KEY) is None


def test_set_is_durable_across_instances(tmp_path):
    path = tmp_path / "nested" / "prefs.json"
    PreferenceStore(path).set(SOUND_PREFERENCE_KEY, "troll")
    assert PreferenceStore(path).get(SOUND_PREFERENCE_KEY) == "troll"
    assert json.loads(path.read_text(encoding="utf-8")) == {SOUND_PREFERENCE_KEY: "troll"}


def test_set_keeps_other_keys(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text(json.dumps({"volume": "0.5"}), encoding="utf-8")
    store = PreferenceStore(path)
    store.set(SOUND_PREFERENCE_KEY, "alarm")
    assert store.get("volume") == "0.5"
    assert store.get(SOUND_PREFERENCE_KEY) == "alarm"


def test_reads_see_external_writes(tmp_path):
    path = tmp_path / "prefs.json"
    store = PreferenceStore(path)
    path.write_text(json.dumps({SOUND_PREFERENCE_KEY: "troll"}), encoding="utf-8")
    assert store.get(SOUND_PREFERENCE_KEY) == "troll"


def test_corrupted_file_reads_empty(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")
    store = PreferenceStore(path)
    assert store.get(SOUND_PREFERENCE_KEY) is None
    store.set(SOUND_PREFERENCE_KEY, "alarm")
    assert store.get(SOUND_PREFERENCE_KEY) == "alarm"


def test_non_object_payload_is_ignored(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert PreferenceStore(path).get(SOUND_PREFERENCE_KEY) is None
