"""Loudness tracking for level meters."""

import numpy as np

DEFAULT_GAIN = 5.0
DEFAULT_SMOOTHING = 0.25


def rms(samples: np.ndarray) -> float:
    """Root-mean-square of normalized samples (0.0 for an empty frame)."""
    if len(samples) == 0:
        return 0.0
    data = np.asarray(samples, dtype=np.float64)
    return float(np.sqrt(np.mean(data * data)))


class LevelTracker:
    """Single-pole smoothed RMS level in [0, 1].

    Each update moves ``level`` a fixed fraction of the way toward the
    frame's target level, so it converges without overshoot.
    """

    def __init__(self, gain: float = DEFAULT_GAIN, smoothing: float = DEFAULT_SMOOTHING):
        if not 0.0 < smoothing <= 1.0:
            raise ValueError(f"smoothing must be in (0, 1], got {smoothing}")
        self.gain = gain
        self.smoothing = smoothing
        self.level = 0.0

    def target_level(self, samples: np.ndarray) -> float:
        return min(rms(samples) * self.gain, 1.0)

    def update(self, samples: np.ndarray) -> float:
        """Fold a frame into the smoothed level and return the new level."""
        target = self.target_level(samples)
        self.level += (target - self.level) * self.smoothing
        return self.level

    def reset(self) -> None:
        self.level = 0.0
