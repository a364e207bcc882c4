"""Signal processing stages: spectral analysis, level tracking, buffering."""

from sound_alert_engine.processing.buffer import FrameBuffer
from sound_alert_engine.processing.dsp import SpectralAnalyzer
from sound_alert_engine.processing.level import LevelTracker, rms

__all__ = ["FrameBuffer", "LevelTracker", "SpectralAnalyzer", "rms"]
