"""Data models for the speech-playback engine."""

from dataclasses import dataclass, field
from enum import Enum

from readaloud.constants import DEFAULT_LANG, DEFAULT_PITCH, DEFAULT_RATE

EVENT_BOUNDARY = "boundary"
EVENT_END = "end"
EVENT_ERROR = "error"


@dataclass(frozen=True)
class Mark:
    offset: int        # character offset of text inside the unit's plain text
    name: str
    text: str
    language: str


@dataclass(frozen=True)
class Voice:
    id: str            # Edge short name, e.g. "en-US-AriaNeural"
    name: str
    lang: str          # locale, e.g. "en-US"
    gender: str = ""
    disabled: bool = False

    @property
    def region(self) -> str:
        parts = self.lang.split("-")
        return parts[1] if len(parts) > 1 else ""


@dataclass
class VoiceGroup:
    id: str
    name: str
    voices: list[Voice] = field(default_factory=list)
    disabled: bool = False


@dataclass(frozen=True)
class PlaybackEvent:
    code: str          # "boundary", "end" or "error"
    message: str = ""
    mark: str | None = None


class PlaybackState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"
    STOP_PAUSED = "stop-paused"
    BACKWARD_PAUSED = "backward-paused"
    FORWARD_PAUSED = "forward-paused"
    SETRATE_PAUSED = "setrate-paused"
    SETVOICE_PAUSED = "setvoice-paused"

    @property
    def is_paused(self) -> bool:
        """True for every state that records why playback is held."""
        return self.value.endswith("paused")


@dataclass
class ClientState:
    """Mutable parameters owned by one speech client."""
    voice_id: str = ""
    rate: float = DEFAULT_RATE
    pitch: float = DEFAULT_PITCH
    primary_lang: str = DEFAULT_LANG
    speaking_lang: str = ""
