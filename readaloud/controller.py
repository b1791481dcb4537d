"""Playback controller: sequence units across a document and own the play state.

One narration task runs at a time. Each task gets a fresh asyncio.Event
as its cancellation token; stop() sets it, stops the client and waits a
bounded time for the task to settle.
"""

import asyncio
import inspect
import logging
import re
from contextlib import aclosing
from typing import Any, Callable

from readaloud.client import EdgeSpeechClient
from readaloud.constants import (
    DEFAULT_RATE,
    HIGHLIGHT_REJECT_TAGS,
    MAX_EMPTY_UNITS,
    PRELOAD_UNIT_COUNT,
    STOP_TIMEOUT,
)
from readaloud.models import EVENT_BOUNDARY, EVENT_END, Mark, PlaybackState, VoiceGroup
from readaloud.preferences import PreferenceStore
from readaloud.ssml import parse_marks, preprocess

logger = logging.getLogger(__name__)

# Footnote markers such as <a>3</a>
FOOTNOTE_CONTENTS = (("a", re.compile(r"^\d+$")),)

Highlighter = Callable[[Any], None]


class NarrationListener:
    """Receives narration notifications. Override what you need."""

    def on_speak_mark(self, mark: Mark) -> None:
        pass

    def on_highlight_mark(self, text_range: Any) -> None:
        pass


def make_reject_filter(tags=(), contents=()) -> Callable[[str, str], bool]:
    """Build a node filter for the document's text flattening.

    The filter takes (tag, text) and returns False for elements that must
    not be spoken: any tag in tags, or a (tag, pattern) pair in contents
    whose pattern matches the element text.
    """
    rejected = {t.lower() for t in tags}

    def accept(tag: str, text: str) -> bool:
        tag = tag.lower()
        if tag in rejected:
            return False
        for content_tag, pattern in contents:
            if tag == content_tag and pattern.search(text or ""):
                return False
        return True

    return accept


class PlaybackController:
    def __init__(
        self,
        document,
        client: EdgeSpeechClient | None = None,
        preferences: PreferenceStore | None = None,
        highlighter: Highlighter | None = None,
    ):
        self.document = document
        self.preferences = preferences if preferences is not None else PreferenceStore()
        self.edge_client = client if client is not None else EdgeSpeechClient(self.preferences)
        self.edge_client.on_speak_mark = self.dispatch_speak_mark
        self.client = self.edge_client
        self.edge_voices = []
        self.highlighter = highlighter
        self.state = PlaybackState.STOPPED
        self.lang = ""
        self.rate = DEFAULT_RATE
        self._listeners: list[NarrationListener] = []
        self._empty_units = 0
        self._cancel: asyncio.Event | None = None
        self._speak_task: asyncio.Task | None = None
        self._preloads: set[asyncio.Task] = set()
        self._timer: asyncio.TimerHandle | None = None
        self._timer_loop = None

    # --- Setup ---

    async def init(self) -> bool:
        """Initialize the engines, then restore the preferred engine and voice."""
        available = []
        if await self.edge_client.init():
            available.append(self.edge_client)
        self.client = available[0] if available else self.edge_client

        preferred = self.preferences.get_preferred_client()
        for client in available:
            if client.name == preferred:
                self.client = client
        self.edge_voices = self.edge_client.get_all_voices()

        voice_id = self.preferences.get_preferred_voice(self.client.name, self.document.language.locale)
        if voice_id:
            self.client.set_voice(voice_id)
        return bool(available)

    def init_view(self) -> None:
        granularity = "sentence" if self.document.language.is_cjk else "word"
        supported = self.client.get_granularities()
        if granularity not in supported:
            granularity = supported[0]
        self.document.init_tts(
            granularity,
            make_reject_filter(HIGHLIGHT_REJECT_TAGS, FOOTNOTE_CONTENTS),
            self._highlight,
        )

    def subscribe(self, listener: NarrationListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: NarrationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Transport ---

    async def start(self) -> None:
        """Speak from the document start, or from the resume point when paused."""
        if self.state is PlaybackState.PLAYING:
            return
        self.init_view()
        if self.state.is_paused:
            unit = self.document.resume()
        else:
            unit = self.document.start()
        await self._speak(unit)
        self.preload_next()

    async def pause(self) -> None:
        if self.state is not PlaybackState.PLAYING:
            return
        self.state = PlaybackState.PAUSED
        await self.client.pause()

    async def resume(self) -> None:
        if self.state is PlaybackState.PLAYING:
            return
        if self.client.is_paused:
            self.state = PlaybackState.PLAYING
            await self.client.resume()
        else:
            await self.start()

    async def forward(self) -> None:
        self.state = PlaybackState.FORWARD_PAUSED
        await self._speak(self.document.next())
        self.preload_next()

    async def backward(self) -> None:
        self.state = PlaybackState.BACKWARD_PAUSED
        await self._speak(self.document.prev())
        self.preload_next()

    async def stop(self) -> None:
        self.state = PlaybackState.STOPPED
        if self._cancel is not None:
            self._cancel.set()
        await self.client.stop()

        task, self._speak_task = self._speak_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            try:
                await asyncio.wait_for(asyncio.shield(task), STOP_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("Narration did not stop within %.0fs, abandoning it", STOP_TIMEOUT)
        self._clear_highlight()

    async def wait_until_idle(self) -> None:
        """Block until no narration task is running (chained units included)."""
        while self._speak_task is not None:
            await asyncio.wait({self._speak_task})

    async def shutdown(self) -> None:
        self.set_timeout(0)
        await self.stop()
        for task in list(self._preloads):
            task.cancel()
        if self.edge_client.initialized:
            await self.edge_client.shutdown()

    # --- Parameters ---

    def set_lang(self, lang: str) -> None:
        self.lang = lang
        if self.edge_client.initialized:
            self.edge_client.set_primary_lang(lang)

    async def set_rate(self, rate: float) -> None:
        self.state = PlaybackState.SETRATE_PAUSED
        self.rate = rate
        self.client.set_rate(rate)

    async def set_voice(self, voice_id: str, lang: str) -> None:
        """Switch voice and remember it for lang.

        An empty voice_id selects automatic per-language voices.
        """
        self.state = PlaybackState.SETVOICE_PAUSED
        use_edge = any(
            (voice_id == "" or voice.id == voice_id) and not voice.disabled
            for voice in self.edge_voices
        )
        if use_edge:
            self.client = self.edge_client
            self.client.set_rate(self.rate)
        self.preferences.set_preferred_client(self.client.name)
        self.preferences.set_preferred_voice(self.client.name, lang, voice_id)
        self.client.set_voice(voice_id)

    def get_voices(self, lang: str) -> list[VoiceGroup]:
        return self.edge_client.get_voices(lang)

    def get_voice_id(self) -> str:
        return self.client.get_voice_id()

    def get_speaking_lang(self) -> str:
        return self.client.get_speaking_lang()

    # --- Sleep timer ---

    def set_timeout(self, seconds: float) -> None:
        """Stop narration after seconds. 0 cancels the timer."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if seconds <= 0:
            return
        self._timer_loop = asyncio.get_running_loop()
        self._timer = self._timer_loop.call_later(seconds, self._on_timeout)
        logger.info("Sleep timer set for %ds", seconds)

    def timeout_remaining(self) -> float:
        if self._timer is None:
            return 0.0
        return max(0.0, self._timer.when() - self._timer_loop.time())

    def _on_timeout(self) -> None:
        self._timer = None
        logger.info("Sleep timer expired, stopping narration")
        self._track(asyncio.ensure_future(self.stop()))

    # --- Look-ahead ---

    def preload_next(self, count: int = PRELOAD_UNIT_COUNT) -> int:
        """Warm the cache for the next count units, then restore the cursor.

        Relies on the document's next()/prev() being symmetric.
        """
        peeked = 0
        for _ in range(count):
            unit = self.document.next()
            if unit is None:
                continue
            peeked += 1
            unit = preprocess(unit)
            if unit:
                self._track(asyncio.ensure_future(self._preload_unit(unit)))
        for _ in range(peeked):
            self.document.prev()
        return peeked

    async def _preload_unit(self, ssml: str | None) -> None:
        if not ssml:
            return
        async with aclosing(self.client.speak(ssml, asyncio.Event(), preload=True)) as events:
            async for _ in events:
                pass

    def _track(self, task: asyncio.Future) -> None:
        self._preloads.add(task)
        task.add_done_callback(self._preloads.discard)

    # --- Narration ---

    async def _speak(self, unit: str | None) -> None:
        await self.stop()
        self._cancel = cancel = asyncio.Event()
        self.state = PlaybackState.PLAYING
        self._speak_task = asyncio.create_task(self._narrate(unit, cancel))

    def _detach(self) -> None:
        """Forget the running task so a chained stop() does not wait on itself."""
        if self._speak_task is asyncio.current_task():
            self._speak_task = None

    async def _narrate(self, unit: str | None, cancel: asyncio.Event) -> None:
        try:
            ssml = preprocess(unit)
            await self._preload_unit(ssml)
            if cancel.is_set():
                return
            if not ssml:
                await self._skip_empty(cancel, missing=True)
                return
            _, marks = parse_marks(ssml, self.client.state.primary_lang)
            if not marks:
                await self._skip_empty(cancel, missing=False)
                return
            self._empty_units = 0

            last_code = None
            async with aclosing(self.client.speak(ssml, cancel)) as events:
                async for event in events:
                    if cancel.is_set():
                        return
                    if event.code == EVENT_BOUNDARY:
                        if self.state in (PlaybackState.PLAYING, PlaybackState.PAUSED):
                            self._highlight_mark(event.mark)
                        if self.state is PlaybackState.PAUSED:
                            # Paused between marks: hold the mark that just started
                            await self.client.pause()
                    last_code = event.code

            if self.state is not PlaybackState.PLAYING or cancel.is_set():
                return
            if last_code == EVENT_END:
                self._detach()
                await self.forward()
            else:
                logger.warning("Unit ended with %s, stopping", last_code)
                self.state = PlaybackState.STOPPED
        except Exception:
            logger.exception("Narration failed")
            self.state = PlaybackState.STOPPED
        finally:
            self._detach()

    async def _skip_empty(self, cancel: asyncio.Event, missing: bool) -> None:
        self._empty_units += 1
        if self._empty_units > MAX_EMPTY_UNITS or self.state is not PlaybackState.PLAYING or cancel.is_set():
            logger.info("Nothing to say after %d units, not advancing", self._empty_units)
            if self.state is PlaybackState.PLAYING:
                self.state = PlaybackState.STOPPED
            return

        logger.debug("Empty unit, skipping (%d)", self._empty_units)
        self._detach()
        next_section = getattr(self.document, "next_section", None)
        if missing and callable(next_section):
            result = next_section()
            if inspect.isawaitable(result):
                await result
            # stop() may have run while the document was moving
            if cancel.is_set() or self.state is not PlaybackState.PLAYING:
                return
        await self.forward()

    # --- Highlighting & notifications ---

    def _highlight(self, text_range: Any) -> None:
        if self.highlighter is not None:
            self.highlighter(text_range)

    def _clear_highlight(self) -> None:
        self._highlight(None)

    def _highlight_mark(self, name: str | None) -> None:
        if name is None:
            return
        text_range = self.document.resolve_mark_to_range(name)
        self._highlight(text_range)
        for listener in list(self._listeners):
            listener.on_highlight_mark(text_range)

    def dispatch_speak_mark(self, mark: Mark) -> None:
        for listener in list(self._listeners):
            listener.on_speak_mark(mark)
