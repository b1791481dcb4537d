"""Bounded in-memory cache of synthesized audio, keyed by what was synthesized."""

import hashlib
import json
import logging
from collections import OrderedDict

from readaloud.constants import AUDIO_CACHE_CAPACITY

logger = logging.getLogger(__name__)


def cache_key(text: str, voice_id: str, rate: float, pitch: float) -> str:
    """Deterministic sha256 key over (stripped text, voice, rate, pitch)."""
    payload = json.dumps(
        {"text": text.strip(), "voice": voice_id, "rate": rate, "pitch": pitch},
        sort_keys=True,
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode()).hexdigest()


class AudioCache:
    """Insertion-ordered cache; the oldest entry goes once capacity is exceeded.

    Entries are never replaced: the first write for a key wins, so a
    duplicate synthesis racing the first one is simply dropped.
    """

    def __init__(self, capacity: int = AUDIO_CACHE_CAPACITY):
        self.capacity = capacity
        self._entries: OrderedDict[str, bytes] = OrderedDict()

    def get(self, key: str) -> bytes | None:
        return self._entries.get(key)

    def put(self, key: str, audio: bytes) -> None:
        if key in self._entries:
            return
        self._entries[key] = audio
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted audio cache entry %s", evicted[:12])

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
