"""Frame sources: microphone capture and in-memory audio."""

import logging
import time
from dataclasses import dataclass
from typing import Iterator, List, Optional

import numpy as np

from sound_alert_engine.errors import (
    CapturePermissionDenied,
    CaptureUnavailable,
    CaptureUnsupported,
)
from sound_alert_engine.models import AudioFrame
from sound_alert_engine.processing.buffer import FrameBuffer

try:
    import pyaudio

    HAS_PYAUDIO = True
except ImportError:
    HAS_PYAUDIO = False

logger = logging.getLogger(__name__)

INT16_FULL_SCALE = 32768.0

_PERMISSION_MARKERS = ("permission", "access denied", "not allowed", "notallowed")


@dataclass
class AudioConfig:
    """Audio capture configuration.

    Attributes:
        sample_rate: Sample rate in Hz (default 48000)
        chunk_size: Samples read per capture call; one frame is produced per chunk
        channels: Number of audio channels (default 1 = mono)
        device_index: Specific audio device index, or None for default
    """

    sample_rate: int = 48000
    chunk_size: int = 1024
    channels: int = 1
    device_index: Optional[int] = None


class FrameSource:
    """Supplies successive analysis frames and owns the capture resource."""

    sample_rate: int

    def open(self) -> None:
        """Acquire the capture resource.

        Raises:
            CaptureError: If the resource cannot be acquired
        """

    def frames(self) -> Iterator[AudioFrame]:
        raise NotImplementedError

    def close(self) -> None:
        """Release the capture resource. Safe to call more than once."""


class ArrayFrameSource(FrameSource):
    """Slides an analysis window over audio that is already in memory.

    Useful for files, simulation and tests. Frames are stamped with their
    stream time so detections are reproducible.
    """

    def __init__(
        self,
        audio: np.ndarray,
        sample_rate: int,
        frame_size: int = 16384,
        hop_size: int = 1024,
        realtime: bool = False,
        start_ms: int = 0,
    ):
        """Initialize the source.

        Args:
            audio: Mono samples; integer types are scaled to [-1, 1)
            sample_rate: Sample rate in Hz
            frame_size: Samples per frame (must match the analyzer)
            hop_size: Samples the window advances per frame
            realtime: Sleep one hop between frames
            start_ms: Timestamp of the first sample
        """
        if hop_size <= 0:
            raise ValueError(f"hop_size must be positive, got {hop_size}")
        self.audio = to_float(audio)
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.hop_size = hop_size
        self.realtime = realtime
        self.start_ms = start_ms
        self._closed = False

    def open(self) -> None:
        self._closed = False

    def frames(self) -> Iterator[AudioFrame]:
        total = len(self.audio)
        for end in range(self.frame_size, total + 1, self.hop_size):
            if self._closed:
                return
            samples = self.audio[end - self.frame_size : end]
            timestamp = self.start_ms + int(end * 1000 / self.sample_rate)
            yield AudioFrame(samples=samples, sample_rate=self.sample_rate, timestamp_ms=timestamp)
            if self.realtime:
                time.sleep(self.hop_size / self.sample_rate)

    def close(self) -> None:
        self._closed = True

    @property
    def duration(self) -> float:
        return len(self.audio) / self.sample_rate


class AudioListener(FrameSource):
    """Handles audio capture from microphone input.

    Reads ``chunk_size`` samples at a time and yields the most recent
    ``frame_size`` samples after every read, so frames overlap and arrive at
    the capture cadence.
    """

    def __init__(self, config: AudioConfig, frame_size: int = 16384):
        """Initialize the audio listener.

        Args:
            config: Audio configuration settings
            frame_size: Samples per analysis frame
        """
        self.config = config
        self.sample_rate = config.sample_rate
        self.frame_size = frame_size
        self._buffer = FrameBuffer(frame_size)
        self._pyaudio: Optional["pyaudio.PyAudio"] = None
        self._stream = None
        self._running = False

    def open(self) -> None:
        """Initialize PyAudio and open the input stream.

        Raises:
            CaptureUnsupported: PyAudio is not installed
            CaptureUnavailable: No input device could be opened
            CapturePermissionDenied: The host refused access to the device
        """
        if not HAS_PYAUDIO:
            raise CaptureUnsupported(
                "PyAudio is required for audio capture. Install it with: pip install pyaudio"
            )

        logger.info("Initializing PyAudio...")
        try:
            self._pyaudio = pyaudio.PyAudio()
        except Exception as e:
            raise CaptureUnsupported(f"Audio host initialization failed: {e}") from e

        try:
            devices = self.list_devices()
            if not devices:
                raise CaptureUnavailable("No audio input devices found")

            if self.config.device_index is not None:
                if self.config.device_index not in [index for index, _, _ in devices]:
                    raise CaptureUnavailable(
                        f"Device index {self.config.device_index} has no input channels"
                    )
                logger.info(f"Using audio device index: {self.config.device_index}")
            else:
                logger.info("Using default audio device")

            try:
                self._stream = self._pyaudio.open(
                    format=pyaudio.paInt16,
                    channels=self.config.channels,
                    rate=self.config.sample_rate,
                    input=True,
                    input_device_index=self.config.device_index,
                    frames_per_buffer=self.config.chunk_size,
                )
            except OSError as e:
                message = str(e).lower()
                if any(marker in message for marker in _PERMISSION_MARKERS):
                    raise CapturePermissionDenied(f"Microphone access denied: {e}") from e
                raise CaptureUnavailable(f"Failed to open audio stream: {e}") from e
        except Exception:
            self.close()
            raise

        self._buffer.clear()
        self._running = True
        logger.info("Audio stream opened successfully")

    def list_devices(self) -> List[tuple]:
        """List available input devices as (index, name, input_channels)."""
        if not HAS_PYAUDIO:
            raise CaptureUnsupported("PyAudio is required to enumerate audio devices")

        owned = self._pyaudio is None
        host = pyaudio.PyAudio() if owned else self._pyaudio
        devices = []
        try:
            info = host.get_host_api_info_by_index(0)
            for i in range(info.get("deviceCount", 0)):
                device_info = host.get_device_info_by_host_api_device_index(0, i)
                channels = device_info.get("maxInputChannels", 0)
                if channels > 0:
                    devices.append((i, device_info.get("name"), channels))
                    logger.debug(f"  Index {i}: {device_info.get('name')} (Inputs: {channels})")
        finally:
            if owned:
                host.terminate()
        return devices

    def frames(self) -> Iterator[AudioFrame]:
        """Yield overlapping frames until the listener is closed."""
        if not self._stream:
            logger.error("Audio stream not initialized. Call open() first.")
            return

        logger.info("Listener started - capturing audio...")
        while self._running:
            try:
                data = self._stream.read(self.config.chunk_size, exception_on_overflow=False)
            except OSError as e:
                if self._running:
                    logger.error(f"Error in audio capture loop: {e}", exc_info=True)
                return

            chunk = np.frombuffer(data, dtype=np.int16)
            if self.config.channels > 1:
                chunk = chunk.reshape(-1, self.config.channels).mean(axis=1)
            self._buffer.write(chunk / INT16_FULL_SCALE)

            window = self._buffer.read()
            if window is not None:
                yield AudioFrame(samples=window, sample_rate=self.sample_rate)

    def close(self) -> None:
        """Release audio resources."""
        self._running = False

        if self._stream:
            try:
                self._stream.stop_stream()
                self._stream.close()
            except OSError as e:
                logger.debug(f"Ignoring error while closing stream: {e}")
            self._stream = None

        if self._pyaudio:
            self._pyaudio.terminate()
            self._pyaudio = None
            logger.info("Audio cleanup complete")


def to_float(audio: np.ndarray) -> np.ndarray:
    """Convert PCM samples of any common dtype to mono float32 in [-1, 1)."""
    audio = np.asarray(audio)
    if audio.dtype == np.uint8:
        audio = (audio.astype(np.float32) - 128.0) / 128.0
    elif np.issubdtype(audio.dtype, np.integer):
        audio = audio.astype(np.float32) / float(-np.iinfo(audio.dtype).min)
    else:
        audio = audio.astype(np.float32)

    if audio.ndim > 1:
        audio = audio.mean(axis=1)
    return audio
