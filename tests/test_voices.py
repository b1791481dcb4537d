"""Tests for the voice catalog helpers."""

from readaloud.constants import VOICE_GROUP_ID
from readaloud.models import Voice
from readaloud.voices import (
    EDGE_VOICES,
    RECOMMENDED_LOCALES,
    filter_voices,
    find_voice,
    group_voices,
    recommended_voices,
    search_voices,
    sort_voices,
    voices_by_language,
)


def test_catalog_ids_unique():
    ids = [v.id for v in EDGE_VOICES]
    assert len(ids) == len(set(ids))


def test_catalog_ids_match_locale():
    for voice in EDGE_VOICES:
        assert voice.id.startswith(voice.lang + "-")


def test_find_voice():
    assert find_voice("en-US-AriaNeural").name == "Aria"
    assert find_voice("xx-XX-Nobody") is None


def test_find_voice_in_custom_list():
    voices = [Voice("a-B-C", "C", "a-B")]
    assert find_voice("a-B-C", voices) is voices[0]
    assert find_voice("en-US-AriaNeural", voices) is None


def test_sort_region_priority():
    voices = [
        Voice("en-GB-A", "A", "en-GB"),
        Voice("fr-FR-B", "B", "fr-FR"),
        Voice("en-US-Z", "Z", "en-US"),
        Voice("zh-CN-Y", "Y", "zh-CN"),
    ]
    assert [v.region for v in sort_voices(voices)] == ["CN", "US", "GB", "FR"]


def test_sort_ties_by_case_sensitive_name():
    voices = [Voice("en-US-b", "beth", "en-US"), Voice("en-US-B", "Bob", "en-US")]
    assert [v.name for v in sort_voices(voices)] == ["Bob", "beth"]


def test_filter_prefix():
    voices = filter_voices(EDGE_VOICES, "zh-TW")
    assert voices
    assert all(v.lang == "zh-TW" for v in voices)


def test_filter_en_matches_us_and_gb():
    langs = {v.lang for v in filter_voices(EDGE_VOICES, "en")}
    assert {"en-US", "en-GB"} <= langs


def test_group_voices_single_group():
    groups = group_voices(EDGE_VOICES, "ja")
    assert len(groups) == 1
    assert groups[0].id == VOICE_GROUP_ID
    assert not groups[0].disabled
    assert all(v.lang.startswith("ja") for v in groups[0].voices)


def test_group_voices_disabled_when_empty():
    groups = group_voices(EDGE_VOICES, "xx")
    assert groups[0].voices == []
    assert groups[0].disabled


def test_group_voices_disabled_when_unavailable():
    assert group_voices(EDGE_VOICES, "en", available=False)[0].disabled


def test_voices_by_language():
    grouped = voices_by_language()
    assert "zh" in grouped and "en" in grouped
    assert all(v.lang.startswith("en") for v in grouped["en"])


def test_search_voices():
    assert [v.id for v in search_voices("ryan")] == ["en-GB-RyanNeural"]
    assert all("ja-JP" == v.lang for v in search_voices("ja-jp"))


def test_recommended_voices():
    voices = recommended_voices()
    assert voices
    assert all(v.lang in RECOMMENDED_LOCALES for v in voices)
