"""Tests for the preference store."""

import json
import os
from unittest.mock import patch

from readaloud.constants import PREFERRED_CLIENT_KEY
from readaloud.preferences import PreferenceStore


def test_missing_file_reads_empty(prefs):
    assert prefs.load() == {}
    assert prefs.get_preferred_client() is None
    assert prefs.get_preferred_voice("edge-tts", "en") is None


def test_preferred_client_round_trip(prefs):
    prefs.set_preferred_client("edge-tts")
    assert prefs.get_preferred_client() == "edge-tts"


def test_empty_engine_not_stored(prefs):
    prefs.set_preferred_client("")
    assert prefs.load() == {}


def test_voice_keyed_by_two_letter_language(prefs):
    prefs.set_preferred_voice("edge-tts", "en-US", "en-US-AriaNeural")
    assert prefs.get_preferred_voice("edge-tts", "en") == "en-US-AriaNeural"
    assert prefs.get_preferred_voice("edge-tts", "EN-GB") == "en-US-AriaNeural"
    assert prefs.load() == {"edge-tts-en": "en-US-AriaNeural"}


def test_voice_per_engine(prefs):
    prefs.set_preferred_voice("edge-tts", "fr", "fr-FR-DeniseNeural")
    assert prefs.get_preferred_voice("other", "fr") is None


def test_incomplete_voice_ignored(prefs):
    prefs.set_preferred_voice("edge-tts", "en", "")
    prefs.set_preferred_voice("edge-tts", "", "en-US-AriaNeural")
    assert prefs.load() == {}


def test_writes_merge(prefs):
    prefs.set_preferred_client("edge-tts")
    prefs.set_preferred_voice("edge-tts", "zh-CN", "zh-CN-XiaoxiaoNeural")
    data = prefs.load()
    assert data[PREFERRED_CLIENT_KEY] == "edge-tts"
    assert data["edge-tts-zh"] == "zh-CN-XiaoxiaoNeural"


def test_creates_parent_directory(tmp_path):
    store = PreferenceStore(str(tmp_path / "nested" / "dir" / "prefs.json"))
    store.set_preferred_client("edge-tts")
    assert (tmp_path / "nested" / "dir" / "prefs.json").exists()


def test_shared_file_between_stores(tmp_path):
    path = str(tmp_path / "prefs.json")
    PreferenceStore(path).set_preferred_voice("edge-tts", "ja", "ja-JP-NanamiNeural")
    assert PreferenceStore(path).get_preferred_voice("edge-tts", "ja-JP") == "ja-JP-NanamiNeural"


def test_malformed_file_reads_empty(tmp_path, caplog):
    path = tmp_path / "prefs.json"
    path.write_text("{not json")
    store = PreferenceStore(str(path))
    assert store.load() == {}
    assert "Malformed preferences file" in caplog.text


def test_non_object_file_reads_empty(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text(json.dumps(["a", "b"]))
    assert PreferenceStore(str(path)).load() == {}


def test_repeated_reads_served_from_memory(prefs):
    prefs.set_preferred_voice("edge-tts", "en", "en-US-AriaNeural")
    with patch("readaloud.preferences.json.load", wraps=json.load) as mock_load:
        for _ in range(5):
            assert prefs.get_preferred_voice("edge-tts", "en") == "en-US-AriaNeural"
    assert mock_load.call_count == 0


def test_sees_write_from_other_store(tmp_path):
    path = str(tmp_path / "prefs.json")
    reader = PreferenceStore(path)
    PreferenceStore(path).set_preferred_voice("edge-tts", "en", "en-GB-RyanNeural")
    assert reader.get_preferred_voice("edge-tts", "en") == "en-GB-RyanNeural"

    PreferenceStore(path).set_preferred_voice("edge-tts", "en", "en-US-GuyNeural")
    assert reader.get_preferred_voice("edge-tts", "en") == "en-US-GuyNeural"


def test_deleted_file_reads_empty(prefs):
    prefs.set_preferred_client("edge-tts")
    os.remove(prefs.path)
    assert prefs.get_preferred_client() is None
