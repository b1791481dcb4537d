"""Speech client: synthesize and play one SSML unit, mark by mark.

speak() is an async generator of PlaybackEvents. Every expected failure
(no marks, silent marks, cancellation, provider outage, undecodable
audio) is reported as an event instead of an exception, so callers only
ever see exceptions for programming errors.

Usage:
    client = EdgeSpeechClient(PreferenceStore())
    await client.init()
    cancel = asyncio.Event()
    async for event in client.speak(unit, cancel):
        ...
"""

import asyncio
import dataclasses
import logging
from typing import AsyncIterator, Awaitable, Callable

from readaloud import audio, tts, voices
from readaloud.cache import AudioCache, cache_key
from readaloud.constants import (
    DEFAULT_PITCH,
    DEFAULT_RATE,
    DEFAULT_VOICE,
    ENGINE_NAME,
    PRELOAD_BACKGROUND_DELAY,
    PRELOAD_IMMEDIATE_MARKS,
    PROBE_TEXT,
)
from readaloud.errors import (
    AbortedError,
    EmptyAudioError,
    NoMarksError,
    PlaybackError,
    ProviderError,
)
from readaloud.models import (
    EVENT_BOUNDARY,
    EVENT_END,
    EVENT_ERROR,
    ClientState,
    Mark,
    PlaybackEvent,
    Voice,
    VoiceGroup,
)
from readaloud.preferences import PreferenceStore
from readaloud.ssml import parse_marks

logger = logging.getLogger(__name__)

Synthesizer = Callable[[str, str, float, float], Awaitable[bytes]]

ABORTED = "Aborted"


async def until_cancelled(awaitable, cancel: asyncio.Event):
    """Await awaitable, or raise AbortedError as soon as cancel is set.

    The awaited work is cancelled when the event wins. A result that
    arrives after the event was set is discarded.
    """
    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
    if cancel.is_set():
        if task.done() and not task.cancelled():
            task.exception()
        raise AbortedError(ABORTED)
    return task.result()


class EdgeSpeechClient:
    """Speech client backed by Microsoft Edge's online voices."""

    name = ENGINE_NAME

    def __init__(
        self,
        preferences: PreferenceStore | None = None,
        cache: AudioCache | None = None,
        synthesize: Synthesizer = tts.synthesize,
        open_audio: Callable[[bytes], audio.AudioHandle] = audio.open_audio,
        on_speak_mark: Callable[[Mark], None] | None = None,
    ):
        self.preferences = preferences if preferences is not None else PreferenceStore()
        self.cache = cache if cache is not None else AudioCache()
        self.state = ClientState()
        self.initialized = False
        self.on_speak_mark = on_speak_mark
        self._synthesize = synthesize
        self._open_audio = open_audio
        self._voices: list[Voice] = []
        self._audio = None
        self._background: set[asyncio.Task] = set()

    async def init(self) -> bool:
        """Load the catalog and check that the service answers."""
        self._voices = list(voices.EDGE_VOICES)
        try:
            await self._synthesize(PROBE_TEXT, DEFAULT_VOICE, DEFAULT_RATE, DEFAULT_PITCH)
            self.initialized = True
        except ProviderError as e:
            logger.warning("Edge TTS is unavailable: %s", e)
            self.initialized = False
        return self.initialized

    async def shutdown(self) -> None:
        self.initialized = False
        await self.stop()
        for task in list(self._background):
            task.cancel()
        self._voices = []

    # --- Voices ---

    def get_all_voices(self) -> list[Voice]:
        return [dataclasses.replace(v, disabled=not self.initialized) for v in self._voices]

    def get_voices(self, lang: str) -> list[VoiceGroup]:
        return voices.group_voices(self.get_all_voices(), lang, available=self.initialized)

    def voice_for_lang(self, lang: str) -> str:
        """Resolve the voice that speaks lang.

        Remembered preference, then the first enabled catalog voice for the
        language, then the current voice, then DEFAULT_VOICE.
        """
        preferred = self.preferences.get_preferred_voice(self.name, lang)
        if preferred and voices.find_voice(preferred, self._voices):
            return preferred
        for group in self.get_voices(lang):
            for voice in group.voices:
                if not voice.disabled:
                    return voice.id
        return self.state.voice_id or DEFAULT_VOICE

    def get_granularities(self) -> list[str]:
        return ["sentence"]

    def get_voice_id(self) -> str:
        return self.state.voice_id

    def get_speaking_lang(self) -> str:
        return self.state.speaking_lang

    # --- Parameters (apply to synthesis started afterwards) ---

    def set_rate(self, rate: float) -> None:
        self.state.rate = rate

    def set_pitch(self, pitch: float) -> None:
        self.state.pitch = pitch

    def set_voice(self, voice_id: str) -> None:
        # "" means pick per language when speaking
        if not voice_id or voices.find_voice(voice_id, self._voices):
            self.state.voice_id = voice_id
        else:
            logger.warning("Unknown voice %s, keeping %s", voice_id, self.state.voice_id)

    def set_primary_lang(self, lang: str) -> None:
        self.state.primary_lang = lang

    # --- Audio ---

    async def _fetch(self, text: str, voice_id: str) -> bytes:
        """Audio for text from the cache, synthesizing it on a miss."""
        text = text.strip()
        rate, pitch = self.state.rate, self.state.pitch
        key = cache_key(text, voice_id, rate, pitch)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Audio cache hit: %s", text[:30])
            return cached

        data = await self._synthesize(text, voice_id, rate, pitch)
        if not data:
            raise EmptyAudioError(f"No audio received for: {text[:30]}")
        self.cache.put(key, data)
        return data

    def _open(self, data: bytes):
        self._release()
        self._audio = self._open_audio(data)
        return self._audio

    def _release(self, handle=None) -> None:
        """Close the active audio handle (only if it is handle, when given)."""
        current = self._audio
        if current is None or (handle is not None and current is not handle):
            return
        self._audio = None
        current.close()

    @property
    def is_paused(self) -> bool:
        """True while a mark is held mid-playback by pause()."""
        return self._audio is not None and self._audio.paused

    async def pause(self) -> bool:
        if self._audio is not None:
            self._audio.pause()
        return True

    async def resume(self) -> bool:
        if self._audio is not None:
            self._audio.resume()
        return True

    async def stop(self) -> None:
        self._release()

    # --- Speaking ---

    def _parse(self, ssml: str) -> list[Mark]:
        _, marks = parse_marks(ssml, self.state.primary_lang)
        if not marks:
            raise NoMarksError("No marks found")
        return marks

    async def speak(
        self,
        ssml: str,
        cancel: asyncio.Event,
        preload: bool = False,
    ) -> AsyncIterator[PlaybackEvent]:
        try:
            marks = self._parse(ssml)
        except NoMarksError as e:
            logger.warning("%s in unit: %s", e, ssml[:80])
            yield PlaybackEvent(EVENT_ERROR, str(e))
            return

        if preload:
            await self._preload(marks)
            yield PlaybackEvent(EVENT_END, "Preload finished")
            return

        await self.stop()
        for mark in marks:
            if cancel.is_set():
                yield PlaybackEvent(EVENT_ERROR, ABORTED)
                return
            try:
                voice_id = self.voice_for_lang(mark.language)
                self.state.speaking_lang = mark.language
                data = await until_cancelled(self._fetch(mark.text, voice_id), cancel)
                handle = self._open(data)
                if self.on_speak_mark is not None:
                    self.on_speak_mark(mark)
                handle.start()
            except EmptyAudioError as e:
                logger.info("%s, skipping mark %s", e, mark.name)
                yield PlaybackEvent(EVENT_END, f"Chunk finished: {mark.name}", mark.name)
                continue
            except AbortedError:
                self._release()
                yield PlaybackEvent(EVENT_ERROR, ABORTED)
                return
            except ProviderError as e:
                logger.error("Synthesis failed at mark %s: %s", mark.name, e)
                yield PlaybackEvent(EVENT_ERROR, str(e))
                return
            except PlaybackError as e:
                logger.warning("Audio playback error at mark %s: %s", mark.name, e)
                self._release()
                # Unplayable marks are skipped like silent ones; only aborts and outages halt the unit
                yield PlaybackEvent(EVENT_ERROR, "Audio playback error", mark.name)
                yield PlaybackEvent(EVENT_END, f"Chunk finished: {mark.name}", mark.name)
                continue

            yield PlaybackEvent(EVENT_BOUNDARY, f"Start chunk: {mark.name}", mark.name)

            try:
                await until_cancelled(handle.wait(), cancel)
            except AbortedError:
                self._release()
                yield PlaybackEvent(EVENT_ERROR, ABORTED)
                return
            self._release(handle)
            yield PlaybackEvent(EVENT_END, f"Chunk finished: {mark.name}", mark.name)

    async def _preload(self, marks: list[Mark]) -> None:
        """Warm the cache: first marks now, the rest in the background."""
        for mark in marks[:PRELOAD_IMMEDIATE_MARKS]:
            voice_id = self.voice_for_lang(mark.language)
            self.state.voice_id = voice_id
            await self._preload_mark(mark, voice_id)

        rest = marks[PRELOAD_IMMEDIATE_MARKS:]
        if rest:
            task = asyncio.create_task(self._preload_background(rest))
            self._background.add(task)
            task.add_done_callback(self._background.discard)

    async def _preload_background(self, marks: list[Mark]) -> None:
        for mark in marks:
            await asyncio.sleep(PRELOAD_BACKGROUND_DELAY)
            await self._preload_mark(mark, self.voice_for_lang(mark.language))

    async def _preload_mark(self, mark: Mark, voice_id: str) -> None:
        try:
            await self._fetch(mark.text, voice_id)
        except EmptyAudioError:
            logger.debug("Nothing to preload for mark %s", mark.name)
        except ProviderError as e:
            logger.warning("Error preloading mark %s: %s", mark.name, e)
