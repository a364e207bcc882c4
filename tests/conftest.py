"""Pytest configuration and shared fixtures.

Provides synthetic signals and spectra for exercising the detection
pipeline without a microphone.
"""

from typing import Dict, Iterable, Optional

import numpy as np
import pytest

from sound_alert_engine.config import EngineConfig
from sound_alert_engine.engine import Engine
from sound_alert_engine.models import AudioFrame, Band, Spectrum

SAMPLE_RATE = 48000
FFT_SIZE = 16384
BIN_COUNT = FFT_SIZE // 2


def make_spectrum(
    bands: Optional[Dict[Band, int]] = None,
    sample_rate: int = SAMPLE_RATE,
    bin_count: int = BIN_COUNT,
    fill: int = 0,
) -> Spectrum:
    """Build a byte-scale spectrum with every bin of each band set to a value."""
    magnitudes = np.full(bin_count, fill, dtype=np.uint8)
    spectrum = Spectrum(magnitudes=magnitudes, sample_rate=sample_rate)
    for band, value in (bands or {}).items():
        low = spectrum.bin_for(band.min)
        high = spectrum.bin_for(band.max)
        magnitudes[low : high + 1] = value
    return spectrum


def fire_spectrum(fundamental: int = 200, harmonic: int = 100) -> Spectrum:
    return make_spectrum({Band(3050, 3150): fundamental, Band(6150, 6250): harmonic})


def doorbell_spectrum(value: int = 200) -> Spectrum:
    return make_spectrum({Band(350, 550): value, Band(700, 1000): value})


def baby_spectrum(fundamental: int = 150, harmonic: int = 100) -> Spectrum:
    return make_spectrum({Band(250, 600): fundamental, Band(800, 1400): harmonic})


def tone_cluster(
    center: float,
    amplitude: float,
    spread: float = 90.0,
    step: float = 15.0,
    n_samples: int = FFT_SIZE,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """Sum of equal sine tones spaced ``step`` Hz apart around ``center``."""
    t = np.arange(n_samples) / sample_rate
    signal = np.zeros(n_samples)
    for frequency in np.arange(center - spread, center + spread + step / 2, step):
        signal += amplitude * np.sin(2 * np.pi * frequency * t)
    return signal


def fire_alarm_audio(n_samples: int = FFT_SIZE) -> np.ndarray:
    """A beep with energy around 3.1 kHz and its 6.2 kHz harmonic."""
    return tone_cluster(3100, 0.06, n_samples=n_samples) + tone_cluster(
        6200, 0.015, n_samples=n_samples
    )


def frame(samples: Iterable[float], timestamp_ms: Optional[int] = None) -> AudioFrame:
    return AudioFrame(
        samples=np.asarray(samples, dtype=np.float64),
        sample_rate=SAMPLE_RATE,
        timestamp_ms=timestamp_ms,
    )


def silence(n_samples: int = FFT_SIZE) -> np.ndarray:
    return np.zeros(n_samples)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now_ms: int = 0):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock():
    return FakeClock(1_000_000)


@pytest.fixture
def engine_config():
    return EngineConfig(fft_size=FFT_SIZE)


@pytest.fixture
def engine(clock, engine_config):
    return Engine(config=engine_config, clock=clock)
