"""Persist the preferred engine and, per engine and language, the preferred voice."""

import json
import logging
import os

from readaloud.constants import PREFERENCES_PATH, PREFERRED_CLIENT_KEY

logger = logging.getLogger(__name__)


def _normalize_language(language: str) -> str:
    """Reduce a locale to its two-letter primary subtag ("en-US" -> "en")."""
    if not language:
        return "n/a"
    return language.lower()[:2]


class PreferenceStore:
    """Key/value preferences stored as a flat JSON object.

    Keys are "preferredClient" and "<engine>-<lang>" (e.g. "edge-tts-en").
    The parsed file is kept in memory and re-read only when its mtime or
    size changes, so several controllers sharing a path still see each
    other's writes.
    """

    def __init__(self, path: str = PREFERENCES_PATH):
        self.path = path
        self._data: dict = {}
        self._stamp = None

    def _file_stamp(self):
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_size

    def _read(self) -> dict:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("Malformed preferences file: %s, ignoring it", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> dict:
        """Read all preferences. Missing or malformed files read as empty."""
        stamp = self._file_stamp()
        if stamp is None:
            self._data, self._stamp = {}, None
        elif stamp != self._stamp:
            self._data, self._stamp = self._read(), stamp
        return dict(self._data)

    def _save(self, data: dict) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        self._data, self._stamp = dict(data), self._file_stamp()

    def set_preferred_client(self, engine: str) -> None:
        if not engine:
            return
        data = self.load()
        data[PREFERRED_CLIENT_KEY] = engine
        self._save(data)

    def get_preferred_client(self) -> str | None:
        return self.load().get(PREFERRED_CLIENT_KEY) or None

    def set_preferred_voice(self, engine: str, language: str, voice_id: str) -> None:
        if not engine or not language or not voice_id:
            return
        data = self.load()
        data[f"{engine}-{_normalize_language(language)}"] = voice_id
        self._save(data)
        logger.debug("Preferred voice for %s/%s is now %s", engine, language, voice_id)

    def get_preferred_voice(self, engine: str, language: str) -> str | None:
        return self.load().get(f"{engine}-{_normalize_language(language)}") or None
