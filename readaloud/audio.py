"""Audio output: decode synthesized clips and play them through sounddevice."""

import asyncio
import io
import logging

import numpy as np
from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from readaloud.constants import AUDIO_FORMAT
from readaloud.errors import PlaybackError

logger = logging.getLogger(__name__)


def _sounddevice():
    # Imported on first playback: loading it needs the PortAudio shared library
    try:
        import sounddevice
    except OSError as e:
        raise PlaybackError(f"PortAudio is not available: {e}") from e
    return sounddevice


def decode(audio_bytes: bytes, fmt: str = AUDIO_FORMAT) -> tuple[np.ndarray, int]:
    """Decode encoded audio into float32 frames shaped (n_frames, channels)."""
    try:
        segment = AudioSegment.from_file(io.BytesIO(audio_bytes), format=fmt)
    except (CouldntDecodeError, OSError) as e:
        raise PlaybackError(f"Could not decode {fmt} audio: {e}") from e

    samples = np.array(segment.get_array_of_samples(), dtype=np.float32)
    # Normalize to [-1, 1] range
    samples /= float(1 << (8 * segment.sample_width - 1))
    return samples.reshape((-1, segment.channels)), segment.frame_rate


class AudioHandle:
    """One decoded clip bound to its own output stream.

    The stream callback runs on a PortAudio thread; completion is handed
    back to the event loop that called start(). The read position
    survives pause() so resume() continues mid-clip.
    """

    def __init__(self, samples: np.ndarray, sample_rate: int):
        if samples.ndim == 1:
            samples = samples.reshape(-1, 1)
        self.samples = np.ascontiguousarray(samples, dtype=np.float32)
        self.sample_rate = sample_rate
        self.position = 0
        self._sd = None
        self._stream = None
        self._loop = None
        self._done = asyncio.Event()
        self._paused = False
        self._closed = False

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._sd = _sounddevice()
        try:
            self._stream = self._sd.OutputStream(
                samplerate=self.sample_rate,
                channels=self.samples.shape[1],
                dtype="float32",
                callback=self._callback,
                finished_callback=self._on_finished,
            )
            self._stream.start()
        except self._sd.PortAudioError as e:
            self.close()
            raise PlaybackError(f"Audio device error: {e}") from e

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug("Output stream status: %s", status)
        chunk = self.samples[self.position:self.position + frames]
        outdata[:len(chunk)] = chunk
        self.position += len(chunk)
        if len(chunk) < frames:
            outdata[len(chunk):] = 0
            raise self._sd.CallbackStop

    def _on_finished(self) -> None:
        # Also fires when pause() stops the stream
        if self._paused or self._closed or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._done.set)

    async def wait(self) -> None:
        """Block until the clip has played out or the handle is closed."""
        await self._done.wait()

    def pause(self) -> bool:
        if self._stream is None or self._paused or self.finished:
            return False
        self._paused = True
        self._stream.stop()
        return True

    def resume(self) -> bool:
        if self._stream is None or not self._paused:
            return False
        self._paused = False
        self._stream.start()
        return True

    def close(self) -> None:
        """Stop output immediately and release the device. Safe to repeat."""
        if self._closed:
            return
        self._closed = True
        self._paused = False
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.abort()
            stream.close()
        self._done.set()


def open_audio(audio_bytes: bytes, fmt: str = AUDIO_FORMAT) -> AudioHandle:
    """Decode audio_bytes into a ready-to-start AudioHandle."""
    samples, sample_rate = decode(audio_bytes, fmt)
    return AudioHandle(samples, sample_rate)
