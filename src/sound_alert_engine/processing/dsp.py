"""Digital Signal Processing (DSP) layer for audio analysis."""

import logging
from typing import Optional

import numpy as np

from sound_alert_engine.errors import AnalysisInitFailed, FrameMalformed
from sound_alert_engine.models import AudioFrame, Spectrum

logger = logging.getLogger(__name__)

MIN_FFT_SIZE = 32
MAX_FFT_SIZE = 32768


class SpectralAnalyzer:
    """Turns time-domain frames into byte-scale magnitude spectra.

    Mirrors a browser analyser node so that detection thresholds expressed
    on its 0..255 scale stay valid:
    Blackman window → FFT → |X|/N → temporal smoothing → dB → byte scale.

    The smoothing accumulator is not kept here. Callers pass the previous
    spectrum's ``smoothed`` array in and get the updated one back inside the
    returned Spectrum, which keeps ``analyze`` deterministic.
    """

    def __init__(
        self,
        fft_size: int = 16384,
        smoothing_time_constant: float = 0.1,
        min_decibels: float = -90.0,
        max_decibels: float = -10.0,
    ):
        """Initialize the analyzer.

        Args:
            fft_size: Transform size in samples (power of two, 32..32768)
            smoothing_time_constant: Weight of the previous spectrum, in [0, 1)
            min_decibels: Level mapped to byte 0
            max_decibels: Level mapped to byte 255

        Raises:
            AnalysisInitFailed: If the configuration is unusable
        """
        if (
            not isinstance(fft_size, (int, np.integer))
            or fft_size < MIN_FFT_SIZE
            or fft_size > MAX_FFT_SIZE
            or fft_size & (fft_size - 1)
        ):
            raise AnalysisInitFailed(
                f"fft_size must be a power of two in [{MIN_FFT_SIZE}, {MAX_FFT_SIZE}], got {fft_size}"
            )
        if not 0.0 <= smoothing_time_constant < 1.0:
            raise AnalysisInitFailed(
                f"smoothing_time_constant must be in [0, 1), got {smoothing_time_constant}"
            )
        if not min_decibels < max_decibels:
            raise AnalysisInitFailed(
                f"min_decibels ({min_decibels}) must be below max_decibels ({max_decibels})"
            )

        self.fft_size = int(fft_size)
        self.bin_count = self.fft_size // 2
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        # Periodic Blackman window
        self.window = np.blackman(self.fft_size + 1)[:-1]
        self._byte_scale = 255.0 / (max_decibels - min_decibels)

        logger.debug(
            f"Analyzer ready: fft_size={self.fft_size}, bins={self.bin_count}, "
            f"tau={smoothing_time_constant}, range=[{min_decibels}, {max_decibels}]dB"
        )

    def analyze(self, frame: AudioFrame, previous: Optional[np.ndarray] = None) -> Spectrum:
        """Compute the spectrum of a frame.

        Args:
            frame: Normalized time-domain frame of exactly ``fft_size`` samples
            previous: Smoothed linear magnitudes from the prior cycle, if any

        Returns:
            Spectrum with ``bin_count`` byte-scale magnitudes

        Raises:
            FrameMalformed: If the frame cannot be analyzed
        """
        samples = self._validate(frame)

        windowed = samples * self.window
        magnitude = np.abs(np.fft.rfft(windowed)[: self.bin_count]) / self.fft_size

        tau = self.smoothing_time_constant
        if previous is not None and len(previous) == self.bin_count:
            smoothed = tau * previous + (1.0 - tau) * magnitude
        else:
            smoothed = (1.0 - tau) * magnitude

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(smoothed)
        scaled = np.floor(self._byte_scale * (decibels - self.min_decibels))
        magnitudes = np.clip(np.nan_to_num(scaled, nan=0.0, neginf=0.0), 0, 255).astype(np.uint8)

        return Spectrum(magnitudes=magnitudes, sample_rate=frame.sample_rate, smoothed=smoothed)

    def _validate(self, frame: AudioFrame) -> np.ndarray:
        if frame.sample_rate is None or frame.sample_rate <= 0:
            raise FrameMalformed(f"Invalid sample rate: {frame.sample_rate}")

        samples = np.asarray(frame.samples, dtype=np.float64)
        if samples.ndim != 1:
            raise FrameMalformed(f"Expected mono samples, got shape {samples.shape}")
        if len(samples) != self.fft_size:
            raise FrameMalformed(f"Expected {self.fft_size} samples, got {len(samples)}")
        if not np.all(np.isfinite(samples)):
            raise FrameMalformed("Frame contains non-finite samples")
        return samples
