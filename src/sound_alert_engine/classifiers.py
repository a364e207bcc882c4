"""Heuristic spectral classifiers for each acoustic signature.

Each classifier inspects a single byte-scale Spectrum and returns at most one
Candidate. The band limits, thresholds and weights are calibration data tuned
against the analyzer's default decibel range; they are reproduced as fixed
constants rather than derived.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from sound_alert_engine.models import Band, BandStats, Candidate, SignatureKind, Spectrum

logger = logging.getLogger(__name__)


def _dominant(contributors: Sequence[BandStats]) -> BandStats:
    """Band with the largest peak; earlier bands win ties."""
    best = contributors[0]
    for stats in contributors[1:]:
        if stats.peak > best.peak:
            best = stats
    return best


class SignatureClassifier(ABC):
    """Base class for all signature classifiers."""

    kind: SignatureKind
    max_confidence: float

    @abstractmethod
    def classify(self, spectrum: Spectrum) -> Optional[Candidate]:
        """Return a Candidate if the spectrum matches this signature."""

    def _candidate(self, confidence: float, dominant: BandStats) -> Candidate:
        confidence = min(max(confidence, 0.0), self.max_confidence)
        return Candidate(
            kind=self.kind,
            confidence=confidence,
            frequency_hz=dominant.peak_frequency,
            amplitude=dominant.peak,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(max_confidence={self.max_confidence})"


class FireAlarmClassifier(SignatureClassifier):
    """Smoke/fire alarm beep: a 3.1 kHz tone with its 6.2 kHz harmonic.

    Both tones are measured over a fixed number of bins around their nearest
    bin, so the fundamental average reflects a narrow alarm tone rather than
    the quiet spectrum beside it.
    """

    kind = SignatureKind.FIRE
    max_confidence = 0.98

    FUNDAMENTAL_HZ = 3100.0
    HARMONIC_HZ = 6200.0
    FUNDAMENTAL_PEAK_MIN = 120
    FUNDAMENTAL_AVG_MIN = 40
    HARMONIC_PEAK_MIN = 60

    def __init__(self, fundamental_bins: int = 8, harmonic_bins: int = 6):
        """Initialize the classifier.

        Args:
            fundamental_bins: Bins either side of the 3.1 kHz bin
            harmonic_bins: Bins either side of the 6.2 kHz bin
        """
        if fundamental_bins < 0 or harmonic_bins < 0:
            raise ValueError(
                f"Bin half-widths must be non-negative, got {fundamental_bins}, {harmonic_bins}"
            )
        self.fundamental_bins = fundamental_bins
        self.harmonic_bins = harmonic_bins

    def classify(self, spectrum: Spectrum) -> Optional[Candidate]:
        fundamental = spectrum.bin_window_stats(self.FUNDAMENTAL_HZ, self.fundamental_bins)
        harmonic = spectrum.bin_window_stats(self.HARMONIC_HZ, self.harmonic_bins)

        if not (
            fundamental.peak > self.FUNDAMENTAL_PEAK_MIN
            and fundamental.average > self.FUNDAMENTAL_AVG_MIN
            and harmonic.peak > self.HARMONIC_PEAK_MIN
        ):
            return None

        confidence = (
            0.5 * min(fundamental.peak / 200, 1.0)
            + 0.3 * min(harmonic.peak / 120, 1.0)
            + 0.2 * min(fundamental.average / 80, 1.0)
        )
        return self._candidate(confidence, _dominant([fundamental, harmonic]))


class DoorbellClassifier(SignatureClassifier):
    """Doorbell chime: simultaneous energy in at least two of three bands."""

    kind = SignatureKind.DOORBELL
    max_confidence = 0.95

    BANDS: Tuple[Band, ...] = (
        Band(350, 550, weight=0.3),  # low fundamental
        Band(700, 1000, weight=0.4),  # mid range, most common
        Band(1200, 1600, weight=0.3),  # high harmonic
    )
    RANGE_PEAK_MIN = 65
    RANGE_AVG_MIN = 25
    MIN_ACTIVE_RANGES = 2
    MIN_WEIGHTED_SCORE = 180
    SCORE_SCALE = 350

    def classify(self, spectrum: Spectrum) -> Optional[Candidate]:
        weighted_score = 0.0
        active: List[BandStats] = []

        for band in self.BANDS:
            stats = spectrum.band_stats(band)
            if stats.peak > self.RANGE_PEAK_MIN and stats.average > self.RANGE_AVG_MIN:
                weighted_score += (stats.peak + stats.average) * band.weight
                active.append(stats)

        if len(active) < self.MIN_ACTIVE_RANGES or weighted_score <= self.MIN_WEIGHTED_SCORE:
            return None

        return self._candidate(weighted_score / self.SCORE_SCALE, _dominant(active))


class BabyCryClassifier(SignatureClassifier):
    """Infant crying: a 250-600 Hz fundamental with a rich harmonic series."""

    kind = SignatureKind.BABY_CRY
    max_confidence = 0.92

    FUNDAMENTAL = Band(250, 600)
    HARMONICS: Tuple[Band, ...] = (Band(800, 1400), Band(1600, 2800), Band(3000, 4500))
    FUNDAMENTAL_PEAK_MIN = 80
    FUNDAMENTAL_AVG_MIN = 35
    HARMONIC_PEAK_MIN = 45
    # The top band is accepted at a relaxed threshold. Kept as calibrated;
    # a candidate for recalibration against recorded cries.
    HIGH_HARMONIC_RELAXATION = 0.8

    def _harmonic_threshold(self, index: int) -> float:
        if index == len(self.HARMONICS) - 1:
            return self.HARMONIC_PEAK_MIN * self.HIGH_HARMONIC_RELAXATION
        return self.HARMONIC_PEAK_MIN

    def classify(self, spectrum: Spectrum) -> Optional[Candidate]:
        fundamental = spectrum.band_stats(self.FUNDAMENTAL)
        if not (
            fundamental.peak > self.FUNDAMENTAL_PEAK_MIN
            and fundamental.average > self.FUNDAMENTAL_AVG_MIN
        ):
            return None

        harmonics = [spectrum.band_stats(band) for band in self.HARMONICS]
        supporting = [
            stats
            for index, stats in enumerate(harmonics)
            if stats.peak > self._harmonic_threshold(index)
        ]
        if not supporting:
            return None

        confidence = (
            0.4 * min(fundamental.peak / 150, 1.0)
            + 0.4 * min(sum(stats.peak for stats in harmonics) / 200, 1.0)
            + 0.2 * min(fundamental.average / 70, 1.0)
        )
        return self._candidate(confidence, _dominant([fundamental] + supporting))


def default_classifiers() -> Dict[SignatureKind, SignatureClassifier]:
    """One classifier per signature kind."""
    return {
        SignatureKind.FIRE: FireAlarmClassifier(),
        SignatureKind.DOORBELL: DoorbellClassifier(),
        SignatureKind.BABY_CRY: BabyCryClassifier(),
    }


CLASSIFIERS: Mapping[SignatureKind, SignatureClassifier] = default_classifiers()


def classify_enabled(
    spectrum: Spectrum,
    enabled: Mapping[SignatureKind, bool],
    classifiers: Mapping[SignatureKind, SignatureClassifier] = CLASSIFIERS,
) -> List[Candidate]:
    """Run the classifiers of every enabled kind over a spectrum.

    Disabled kinds are skipped without touching the spectrum.

    Returns:
        At most one Candidate per kind, in ``classifiers`` order
    """
    candidates: List[Candidate] = []
    for kind, classifier in classifiers.items():
        if not enabled.get(kind, False):
            continue
        candidate = classifier.classify(spectrum)
        if candidate is not None:
            logger.debug(
                f"Candidate {kind.value}: conf={candidate.confidence:.2f}, "
                f"{candidate.frequency_hz:.0f}Hz, amp={candidate.amplitude:.0f}"
            )
            candidates.append(candidate)
    return candidates
