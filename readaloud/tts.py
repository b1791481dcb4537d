"""Speech synthesis via edge-tts with retry logic."""

import asyncio
import logging
import os
import time

import edge_tts
from edge_tts.exceptions import NoAudioReceived

from readaloud.constants import (
    DEFAULT_PITCH,
    DEFAULT_RATE,
    PITCH_HZ_PER_UNIT,
    TTS_RETRY_BASE_DELAY,
    TTS_RETRY_COUNT,
)
from readaloud.errors import ProviderError

logger = logging.getLogger(__name__)


def format_rate(rate: float) -> str:
    """Convert a rate multiplier to Edge's relative string (1.25 -> "+25%")."""
    percent = round((rate - 1.0) * 100)
    return f"{percent:+d}%"


def format_pitch(pitch: float) -> str:
    """Convert a pitch multiplier to Edge's relative string (0.9 -> "-10Hz")."""
    hertz = round((pitch - 1.0) * PITCH_HZ_PER_UNIT)
    return f"{hertz:+d}Hz"


def _communicate(text: str, voice: str, rate: float, pitch: float) -> edge_tts.Communicate:
    return edge_tts.Communicate(text, voice, rate=format_rate(rate), pitch=format_pitch(pitch))


async def synthesize(
    text: str,
    voice: str,
    rate: float = DEFAULT_RATE,
    pitch: float = DEFAULT_PITCH,
) -> bytes:
    """Synthesize text and return the MP3 bytes.

    Returns b"" when the service has nothing to say for the text (pure
    punctuation, for example). Network and protocol failures are retried
    with exponential backoff, then raised as ProviderError.
    """
    last_error = None
    for attempt in range(TTS_RETRY_COUNT):
        try:
            audio = bytearray()
            async for chunk in _communicate(text, voice, rate, pitch).stream():
                if chunk["type"] == "audio":
                    audio.extend(chunk["data"])
            return bytes(audio)
        except NoAudioReceived:
            logger.debug("No audio received for: %s", text[:50])
            return b""
        except Exception as e:
            last_error = e
            logger.warning("Synthesis attempt %d/%d failed: %s", attempt + 1, TTS_RETRY_COUNT, e)

        if attempt < TTS_RETRY_COUNT - 1:
            await asyncio.sleep(TTS_RETRY_BASE_DELAY * (2 ** attempt))

    raise ProviderError(f"Synthesis failed for voice {voice}: {last_error}") from last_error


def generate_single(
    text: str,
    voice: str,
    output_path: str,
    rate: float = DEFAULT_RATE,
    pitch: float = DEFAULT_PITCH,
) -> None:
    """Write one synthesized clip to output_path, retrying on failure.

    Sync wrapper around edge_tts.Communicate.save(). A 0-byte output file
    counts as a failure.
    """
    last_error = None
    for attempt in range(TTS_RETRY_COUNT):
        try:
            asyncio.run(_communicate(text, voice, rate, pitch).save(output_path))

            if os.path.exists(output_path) and os.path.getsize(output_path) > 0:
                return

            last_error = ProviderError(f"Synthesis produced 0-byte file for: {text[:50]}...")
        except Exception as e:
            last_error = e

        if attempt < TTS_RETRY_COUNT - 1:
            time.sleep(TTS_RETRY_BASE_DELAY * (2 ** attempt))

    raise last_error
