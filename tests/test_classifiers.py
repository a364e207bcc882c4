"""Tests for the signature classifiers."""

import numpy as np
import pytest

from conftest import (
    BIN_COUNT,
    FFT_SIZE,
    SAMPLE_RATE,
    baby_spectrum,
    doorbell_spectrum,
    fire_spectrum,
    make_spectrum,
)
from sound_alert_engine.classifiers import (
    BabyCryClassifier,
    DoorbellClassifier,
    FireAlarmClassifier,
    classify_enabled,
    default_classifiers,
)
from sound_alert_engine.models import AudioFrame, Band, SignatureKind, Spectrum
from sound_alert_engine.processing.dsp import SpectralAnalyzer

ALL_ENABLED = {kind: True for kind in SignatureKind}


@pytest.fixture
def saturated():
    return make_spectrum(fill=255)


@pytest.fixture
def empty():
    return make_spectrum()


class TestFireAlarm:
    def test_detects_fundamental_and_harmonic(self):
        spectrum = make_spectrum({Band(2950, 3250): 150, Band(6085, 6315): 80})
        spectrum.magnitudes[spectrum.bin_for(3100)] = 180

        candidate = FireAlarmClassifier().classify(spectrum)

        assert candidate is not None
        assert candidate.kind is SignatureKind.FIRE
        assert candidate.confidence > 0.75
        assert abs(candidate.frequency_hz - 3100) <= 150
        assert candidate.amplitude == 180

    def test_confidence_formula(self):
        candidate = FireAlarmClassifier().classify(fire_spectrum(200, 100))
        expected = 0.5 * 1.0 + 0.3 * (100 / 120) + 0.2 * 1.0
        assert candidate.confidence == pytest.approx(expected)

    def test_narrow_tone_fills_fundamental_window(self):
        spectrum = make_spectrum()
        center = spectrum.bin_for(3100)
        spectrum.magnitudes[center - 2 : center + 3] = 200
        spectrum.magnitudes[spectrum.bin_for(6200)] = 150

        candidate = FireAlarmClassifier().classify(spectrum)

        # 5 bins of 200 over the 17-bin window average about 59
        assert candidate is not None
        assert candidate.frequency_hz == spectrum.frequency_of(center - 2)

    def test_energy_outside_bin_window_ignored(self):
        spectrum = make_spectrum()
        center = spectrum.bin_for(3100)
        spectrum.magnitudes[center + 9 : center + 40] = 255
        spectrum.magnitudes[spectrum.bin_for(6200)] = 150
        assert FireAlarmClassifier().classify(spectrum) is None

    def test_pure_alarm_tone(self):
        t = np.arange(FFT_SIZE) / SAMPLE_RATE
        samples = 0.5 * np.sin(2 * np.pi * 3100 * t) + 0.3 * np.sin(2 * np.pi * 6200 * t)
        spectrum = SpectralAnalyzer(fft_size=FFT_SIZE).analyze(
            AudioFrame(samples=samples, sample_rate=SAMPLE_RATE)
        )

        candidate = FireAlarmClassifier().classify(spectrum)

        assert candidate is not None
        assert candidate.confidence > 0.75
        assert abs(candidate.frequency_hz - 3100) < 2 * SAMPLE_RATE / FFT_SIZE

    def test_negative_bin_width_rejected(self):
        with pytest.raises(ValueError):
            FireAlarmClassifier(fundamental_bins=-1)

    def test_requires_harmonic(self):
        spectrum = make_spectrum({Band(2950, 3250): 200})
        assert FireAlarmClassifier().classify(spectrum) is None

    def test_requires_fundamental_peak(self):
        assert FireAlarmClassifier().classify(fire_spectrum(fundamental=120)) is None

    def test_ignores_other_frequencies(self):
        spectrum = make_spectrum({Band(2500, 2700): 255, Band(5000, 5200): 255})
        assert FireAlarmClassifier().classify(spectrum) is None

    def test_ceiling(self, saturated):
        assert FireAlarmClassifier().classify(saturated).confidence == 0.98


class TestDoorbell:
    def test_two_active_ranges(self):
        candidate = DoorbellClassifier().classify(doorbell_spectrum(200))
        assert candidate is not None
        assert candidate.kind is SignatureKind.DOORBELL
        assert 0.7 < candidate.confidence <= 0.95
        assert 340 <= candidate.frequency_hz <= 1000
        assert candidate.amplitude == 200

    def test_single_range_is_not_enough(self):
        spectrum = make_spectrum({Band(700, 1000): 255})
        assert DoorbellClassifier().classify(spectrum) is None

    def test_weak_ranges_rejected(self):
        assert DoorbellClassifier().classify(doorbell_spectrum(60)) is None

    def test_weighted_score_must_exceed_minimum(self):
        # Both ranges active (peak 100, avg ~100) but the weighted sum stays near 140
        assert DoorbellClassifier().classify(doorbell_spectrum(100)) is None

    def test_dominant_frequency_from_loudest_range(self):
        spectrum = make_spectrum({Band(350, 550): 150, Band(1200, 1600): 240})
        candidate = DoorbellClassifier().classify(spectrum)
        assert candidate is not None
        assert 1200 <= candidate.frequency_hz <= 1600
        assert candidate.amplitude == 240

    def test_ceiling(self, saturated):
        assert DoorbellClassifier().classify(saturated).confidence == 0.95


class TestBabyCry:
    def test_fundamental_with_harmonic(self):
        candidate = BabyCryClassifier().classify(baby_spectrum())
        assert candidate is not None
        assert candidate.kind is SignatureKind.BABY_CRY
        assert candidate.confidence == pytest.approx(0.4 + 0.4 * 0.5 + 0.2)
        assert 245 <= candidate.frequency_hz <= 600
        assert candidate.amplitude == 150

    def test_needs_a_harmonic(self):
        spectrum = make_spectrum({Band(250, 600): 200})
        assert BabyCryClassifier().classify(spectrum) is None

    def test_relaxed_high_harmonic(self):
        spectrum = make_spectrum({Band(250, 600): 150, Band(3500, 3600): 40})
        candidate = BabyCryClassifier().classify(spectrum)
        assert candidate is not None

    def test_relaxed_threshold_not_applied_to_low_harmonics(self):
        spectrum = make_spectrum({Band(250, 600): 150, Band(1000, 1100): 40})
        assert BabyCryClassifier().classify(spectrum) is None

    def test_dominant_frequency_can_come_from_harmonic(self):
        spectrum = make_spectrum({Band(250, 600): 100, Band(2000, 2100): 220})
        candidate = BabyCryClassifier().classify(spectrum)
        assert candidate is not None
        assert 1600 <= candidate.frequency_hz <= 2800
        assert candidate.amplitude == 220

    def test_ceiling(self, saturated):
        assert BabyCryClassifier().classify(saturated).confidence == 0.92


class TestClassifyEnabled:
    def test_silence_produces_nothing(self, empty):
        assert classify_enabled(empty, ALL_ENABLED) == []

    def test_saturated_never_exceeds_ceilings(self, saturated):
        ceilings = {
            SignatureKind.FIRE: 0.98,
            SignatureKind.DOORBELL: 0.95,
            SignatureKind.BABY_CRY: 0.92,
        }
        candidates = classify_enabled(saturated, ALL_ENABLED)
        assert {c.kind for c in candidates} == set(SignatureKind)
        for candidate in candidates:
            assert 0 <= candidate.confidence <= ceilings[candidate.kind]

    def test_at_most_one_candidate_per_kind(self, saturated):
        kinds = [c.kind for c in classify_enabled(saturated, ALL_ENABLED)]
        assert len(kinds) == len(set(kinds))

    def test_disabled_kind_is_not_evaluated(self):
        class ExplodingSpectrum(Spectrum):
            def _window_stats(self, low, high):
                raise AssertionError("disabled classifier touched the spectrum")

        spectrum = ExplodingSpectrum(
            magnitudes=np.zeros(BIN_COUNT, dtype=np.uint8), sample_rate=SAMPLE_RATE
        )
        assert classify_enabled(spectrum, {kind: False for kind in SignatureKind}) == []

    def test_disabled_fire_skipped(self):
        enabled = dict(ALL_ENABLED, **{SignatureKind.FIRE: False})
        assert classify_enabled(fire_spectrum(), enabled) == []

    def test_default_registry_covers_every_kind(self):
        classifiers = default_classifiers()
        assert set(classifiers) == set(SignatureKind)
        for kind, classifier in classifiers.items():
            assert classifier.kind is kind
