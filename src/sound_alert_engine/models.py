"""Data models shared by the detection pipeline."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Union

import numpy as np


class SignatureKind(str, Enum):
    """The acoustic signatures the engine recognizes."""

    FIRE = "fire"
    DOORBELL = "doorbell"
    BABY_CRY = "baby_cry"

    @property
    def label(self) -> str:
        """Human readable alert text for this signature."""
        return _LABELS[self]

    @classmethod
    def parse(cls, value: Union[str, "SignatureKind"]) -> "SignatureKind":
        """Resolve a kind from its value or name ("baby", "baby-cry" also accepted)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        if key == "baby":
            key = "baby_cry"
        for kind in cls:
            if kind.value == key:
                return kind
        raise ValueError(f"Unknown signature kind: {value!r}")


_LABELS = {
    SignatureKind.FIRE: "Fire Alarm Detected!",
    SignatureKind.DOORBELL: "Doorbell Detected!",
    SignatureKind.BABY_CRY: "Baby Crying Detected!",
}


@dataclass(frozen=True)
class Band:
    """A frequency range (Hz) with an optional scoring weight."""

    min: float
    max: float
    weight: float = 1.0

    def contains(self, frequency: float) -> bool:
        return self.min <= frequency <= self.max

    def __repr__(self) -> str:
        return f"Band({self.min}, {self.max})"


@dataclass(frozen=True)
class AudioFrame:
    """A fixed-length block of normalized time-domain samples.

    Attributes:
        samples: Mono samples in the range [-1, 1]
        sample_rate: Sample rate in Hz in force for this frame
        timestamp_ms: Stream time of the frame, or None to use the engine clock
    """

    samples: np.ndarray
    sample_rate: int
    timestamp_ms: Optional[int] = None

    def __len__(self) -> int:
        return len(self.samples)


@dataclass(frozen=True)
class BandStats:
    """Peak and mean magnitude of a spectrum over a band."""

    peak: float
    average: float
    peak_frequency: float


@dataclass(frozen=True)
class Spectrum:
    """Byte-scale magnitudes indexed by frequency bin.

    Attributes:
        magnitudes: One value per bin in the range 0..255
        sample_rate: Sample rate of the analyzed frame in Hz
        smoothed: Linear smoothed magnitudes carried to the next analysis
    """

    magnitudes: np.ndarray
    sample_rate: int
    smoothed: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @property
    def bin_count(self) -> int:
        return len(self.magnitudes)

    @property
    def frame_length(self) -> int:
        return 2 * self.bin_count

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2.0

    def frequency_of(self, bin_index: int) -> float:
        """Center frequency (Hz) of a bin."""
        return bin_index * self.sample_rate / (2.0 * self.bin_count)

    def bin_for(self, frequency: float) -> int:
        """Nearest bin index for a frequency (Hz)."""
        return int(round(frequency * self.bin_count * 2 / self.sample_rate))

    def band_stats(self, band: Band) -> BandStats:
        """Peak, average and peak frequency over the bins covering a band.

        The band edges are widened outward to whole bins. Bins past the end of
        the spectrum are ignored; an empty selection yields zeros.
        """
        low = max(0, int(math.floor(band.min * self.bin_count / self.nyquist)))
        high = min(self.bin_count - 1, int(math.ceil(band.max * self.bin_count / self.nyquist)))
        return self._window_stats(low, high)

    def bin_window_stats(self, center: float, half_width: int) -> BandStats:
        """Peak, average and peak frequency over ``half_width`` bins either
        side of the bin nearest ``center`` (Hz), clamped to the spectrum."""
        center_bin = self.bin_for(center)
        low = max(0, center_bin - half_width)
        high = min(self.bin_count - 1, center_bin + half_width)
        return self._window_stats(low, high)

    def _window_stats(self, low: int, high: int) -> BandStats:
        if high < low:
            return BandStats(peak=0.0, average=0.0, peak_frequency=0.0)

        window = self.magnitudes[low : high + 1]
        offset = int(np.argmax(window))
        peak = float(window[offset])
        # Zero peak means no bin rose above the floor, so no frequency is reported
        peak_frequency = self.frequency_of(low + offset) if peak > 0 else 0.0
        return BandStats(
            peak=peak,
            average=float(np.mean(window, dtype=np.float64)),
            peak_frequency=peak_frequency,
        )


@dataclass(frozen=True)
class Candidate:
    """A provisional per-cycle detection, before gating."""

    kind: SignatureKind
    confidence: float
    frequency_hz: float
    amplitude: float


@dataclass(frozen=True)
class DetectionEvent:
    """A gated, user-facing detection.

    Attributes:
        kind: Which signature fired
        confidence: Heuristic confidence, below the kind's ceiling
        timestamp_ms: Time of emission in milliseconds
        frequency_hz: Dominant frequency of the contributing band
        amplitude: Byte-scale peak magnitude at that frequency
    """

    kind: SignatureKind
    confidence: float
    timestamp_ms: int
    frequency_hz: float
    amplitude: float

    @classmethod
    def from_candidate(cls, candidate: Candidate, timestamp_ms: int) -> "DetectionEvent":
        return cls(
            kind=candidate.kind,
            confidence=candidate.confidence,
            timestamp_ms=timestamp_ms,
            frequency_hz=candidate.frequency_hz,
            amplitude=candidate.amplitude,
        )

    @property
    def message(self) -> str:
        return self.kind.label

    def __str__(self) -> str:
        return (
            f"{self.kind.label} ({self.confidence:.0%} @ {self.frequency_hz:.0f}Hz, "
            f"amp {self.amplitude:.0f}, t={self.timestamp_ms}ms)"
        )


class EnabledMask:
    """Per-signature enablement, toggled by the consumer at any time.

    The engine reads a fresh snapshot every cycle, so changes take effect on
    the next frame without restarting the session.
    """

    def __init__(self, enabled: Optional[Mapping[Union[str, SignatureKind], bool]] = None):
        self._enabled: Dict[SignatureKind, bool] = {kind: True for kind in SignatureKind}
        if enabled:
            for key, value in enabled.items():
                self._enabled[SignatureKind.parse(key)] = bool(value)

    def is_enabled(self, kind: SignatureKind) -> bool:
        return self._enabled[kind]

    def set(self, kind: Union[str, SignatureKind], enabled: bool) -> None:
        self._enabled[SignatureKind.parse(kind)] = bool(enabled)

    def toggle(self, kind: Union[str, SignatureKind]) -> bool:
        """Flip a kind and return its new state."""
        kind = SignatureKind.parse(kind)
        self._enabled[kind] = not self._enabled[kind]
        return self._enabled[kind]

    def disable(self, kinds: Iterable[Union[str, SignatureKind]]) -> None:
        for kind in kinds:
            self.set(kind, False)

    def snapshot(self) -> Dict[SignatureKind, bool]:
        return dict(self._enabled)

    def __repr__(self) -> str:
        flags = ", ".join(f"{k.value}={v}" for k, v in self._enabled.items())
        return f"EnabledMask({flags})"
