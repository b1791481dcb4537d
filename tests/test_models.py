"""Tests for constants and models."""

import dataclasses

import pytest

from readaloud import constants
from readaloud.models import ClientState, Mark, PlaybackEvent, PlaybackState, Voice, VoiceGroup


def test_paused_states():
    paused = {s for s in PlaybackState if s.is_paused}
    assert paused == {
        PlaybackState.PAUSED,
        PlaybackState.STOP_PAUSED,
        PlaybackState.BACKWARD_PAUSED,
        PlaybackState.FORWARD_PAUSED,
        PlaybackState.SETRATE_PAUSED,
        PlaybackState.SETVOICE_PAUSED,
    }
    assert not PlaybackState.PLAYING.is_paused
    assert not PlaybackState.STOPPED.is_paused


def test_voice_region():
    assert Voice("en-GB-RyanNeural", "Ryan", "en-GB").region == "GB"
    assert Voice("x", "X", "eo").region == ""


def test_voice_is_frozen():
    voice = Voice("en-US-AriaNeural", "Aria", "en-US", "Female")
    with pytest.raises(dataclasses.FrozenInstanceError):
        voice.disabled = True
    assert dataclasses.replace(voice, disabled=True).disabled


def test_voice_group_defaults():
    group = VoiceGroup("g", "Group")
    assert group.voices == []
    assert not group.disabled


def test_event_and_mark():
    event = PlaybackEvent("boundary", mark="0")
    assert (event.code, event.message, event.mark) == ("boundary", "", "0")
    mark = Mark(offset=4, name="1", text="Hi.", language="en")
    assert mark.offset == 4


def test_client_state_defaults():
    state = ClientState()
    assert state.voice_id == ""
    assert state.rate == constants.DEFAULT_RATE
    assert state.primary_lang == constants.DEFAULT_LANG


def test_constants_exist():
    """All module-level constants are defined."""
    expected = [
        "DEFAULT_VOICE",
        "AUDIO_CACHE_CAPACITY",
        "PRELOAD_IMMEDIATE_MARKS",
        "PRELOAD_UNIT_COUNT",
        "STOP_TIMEOUT",
        "MAX_EMPTY_UNITS",
        "TTS_RETRY_COUNT",
        "TTS_RETRY_BASE_DELAY",
        "TIMEOUT_OPTIONS",
        "VOICE_DEMO_PANGRAM",
        "VERSION",
    ]
    for name in expected:
        assert hasattr(constants, name), f"Missing constant: {name}"
    assert constants.MAX_EMPTY_UNITS == 10
    assert constants.AUDIO_CACHE_CAPACITY == 200
