"""Exceptions raised inside the engine.

The speech client turns all of these into ``error``/``end`` playback
events, so only unexpected exceptions reach the controller.
"""


class NarrationError(Exception):
    """Base class for engine errors."""


class NoMarksError(NarrationError):
    """A markup unit contained nothing speakable."""


class EmptyAudioError(NarrationError):
    """The provider returned zero bytes for a mark."""


class AbortedError(NarrationError):
    """The cancellation event fired while a unit was in flight."""


class ProviderError(NarrationError):
    """Synthesis failed after all retries."""


class PlaybackError(NarrationError):
    """Audio could not be decoded or the output device refused it."""
