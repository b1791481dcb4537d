"""Shared fixtures and fakes for readaloud tests."""

import asyncio

import pytest
from pydub import AudioSegment

from readaloud.client import EdgeSpeechClient
from readaloud.controller import PlaybackController
from readaloud.document import DocumentLanguage
from readaloud.errors import PlaybackError, ProviderError
from readaloud.preferences import PreferenceStore
from readaloud.ssml import build_unit


class FakeSynth:
    """Synthesizer stand-in: returns b"audio:<text>" and records every call."""

    def __init__(self, empty=(), fail=False, delay=0.0):
        self.calls = []
        self.empty = set(empty)
        self.fail = fail
        self.delay = delay

    async def __call__(self, text, voice, rate, pitch):
        self.calls.append((text, voice, rate, pitch))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ProviderError("service unavailable")
        if text.strip() in self.empty:
            return b""
        return f"audio:{text.strip()}".encode()

    def texts(self):
        return [c[0] for c in self.calls]


class FakeAudioHandle:
    """Finishes as soon as it starts unless hold=True, then on finish()/close()."""

    def __init__(self, data, hold=False):
        self.data = data
        self.hold = hold
        self.started = False
        self.closed = False
        self._paused = False
        self._done = asyncio.Event()

    @property
    def paused(self):
        return self._paused

    def start(self):
        self.started = True
        if not self.hold:
            self._done.set()

    def finish(self):
        self._done.set()

    async def wait(self):
        await self._done.wait()

    def pause(self):
        if self._paused or self._done.is_set():
            return False
        self._paused = True
        return True

    def resume(self):
        if not self._paused:
            return False
        self._paused = False
        return True

    def close(self):
        self.closed = True
        self._paused = False
        self._done.set()


class FakeAudio:
    """open_audio stand-in that keeps every handle it creates."""

    def __init__(self, hold=False, fail_on=()):
        self.hold = hold
        self.fail_on = set(fail_on)
        self.handles = []

    def __call__(self, data):
        if data in self.fail_on:
            raise PlaybackError("Could not decode mp3 audio")
        handle = FakeAudioHandle(data, hold=self.hold)
        self.handles.append(handle)
        return handle

    def open_handles(self):
        return [h for h in self.handles if not h.closed]


class FakeDocument:
    """List-backed document with a cursor; records every cursor call."""

    def __init__(self, units, lang="en-US", is_cjk=False):
        self.units = list(units)
        self.index = -1
        self.language = DocumentLanguage(lang, is_cjk)
        self.calls = []
        self.resolved = []
        self.granularity = None
        self.node_filter = None
        self.highlight = None

    def init_tts(self, granularity, node_filter, highlight):
        self.granularity = granularity
        self.node_filter = node_filter
        self.highlight = highlight

    def _at(self, index):
        self.index = index
        return self.units[index]

    def start(self):
        self.calls.append("start")
        return self._at(0) if self.units else None

    def next(self):
        self.calls.append("next")
        if self.index + 1 >= len(self.units):
            return None
        return self._at(self.index + 1)

    def prev(self):
        self.calls.append("prev")
        if self.index <= 0:
            return None
        return self._at(self.index - 1)

    def resume(self):
        self.calls.append("resume")
        if self.index < 0:
            return self.start()
        return self.units[self.index]

    def next_section(self):
        self.calls.append("next_section")

    def resolve_mark_to_range(self, name):
        self.resolved.append(name)
        return (self.index, name)


async def until(predicate, timeout=2.0):
    """Yield to the loop until predicate() holds."""
    async def poll():
        while not predicate():
            await asyncio.sleep(0.001)
    await asyncio.wait_for(poll(), timeout)


def unit(*sentences, lang="en-US"):
    return build_unit(lang, list(sentences))


@pytest.fixture
def prefs(tmp_path):
    return PreferenceStore(str(tmp_path / "prefs.json"))


@pytest.fixture
def synth():
    return FakeSynth()


@pytest.fixture
def fake_audio():
    return FakeAudio()


@pytest.fixture
def client(prefs, synth, fake_audio):
    return EdgeSpeechClient(prefs, synthesize=synth, open_audio=fake_audio)


@pytest.fixture
def make_controller(prefs):
    """Factory: controller over a FakeDocument with its own client."""
    def factory(units, synth=None, audio=None, lang="en-US", is_cjk=False):
        speech = EdgeSpeechClient(
            prefs,
            synthesize=synth if synth is not None else FakeSynth(),
            open_audio=audio if audio is not None else FakeAudio(),
        )
        document = FakeDocument(units, lang=lang, is_cjk=is_cjk)
        highlights = []
        controller = PlaybackController(document, client=speech, preferences=prefs, highlighter=highlights.append)
        controller.highlights = highlights
        return controller
    return factory


@pytest.fixture
def tiny_mp3(tmp_path):
    """Generate a 100ms silent MP3 for testing."""
    path = tmp_path / "test.mp3"
    silence = AudioSegment.silent(duration=100)
    silence.export(str(path), format="mp3")
    return path
