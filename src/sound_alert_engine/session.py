"""Per-session detection state."""

from dataclasses import dataclass, field
from typing import Mapping, Optional

import numpy as np

from sound_alert_engine.gate import EventGate, GateRule
from sound_alert_engine.models import SignatureKind
from sound_alert_engine.processing.dsp import SpectralAnalyzer
from sound_alert_engine.processing.level import LevelTracker


@dataclass
class ListeningSession:
    """Everything that persists from one analysis cycle to the next.

    A fresh session is created on every start, so cooldowns, loudness and
    spectral smoothing never carry over from a previous session.

    Attributes:
        analyzer: Spectral transform built for this session
        gate: Cooldown state per signature kind
        level_tracker: Smoothed loudness accumulator
        smoothed_spectrum: Analyzer smoothing state from the last cycle
        started_at_ms: When the session began
        cycles: Number of frames analyzed
        skipped_frames: Number of malformed frames dropped
    """

    analyzer: SpectralAnalyzer
    gate: EventGate
    level_tracker: LevelTracker
    smoothed_spectrum: Optional[np.ndarray] = field(default=None, repr=False)
    started_at_ms: int = 0
    cycles: int = 0
    skipped_frames: int = 0

    @classmethod
    def create(
        cls,
        analyzer: SpectralAnalyzer,
        started_at_ms: int = 0,
        gate_rules: Optional[Mapping[SignatureKind, GateRule]] = None,
        level_gain: float = 5.0,
        level_smoothing: float = 0.25,
    ) -> "ListeningSession":
        return cls(
            analyzer=analyzer,
            gate=EventGate(gate_rules),
            level_tracker=LevelTracker(gain=level_gain, smoothing=level_smoothing),
            started_at_ms=started_at_ms,
        )

    @property
    def level(self) -> float:
        return self.level_tracker.level
