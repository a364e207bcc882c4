"""Tests for confidence and cooldown gating."""

import pytest

from sound_alert_engine.gate import DEFAULT_GATE_RULES, EventGate, GateRule
from sound_alert_engine.models import Candidate, SignatureKind


def candidate(kind=SignatureKind.FIRE, confidence=0.9):
    return Candidate(kind=kind, confidence=confidence, frequency_hz=3100.0, amplitude=200.0)


class TestConfidenceGate:
    def test_fire_threshold_is_strict(self):
        gate = EventGate()
        assert gate.submit(candidate(confidence=0.75), 0) is None
        assert gate.submit(candidate(confidence=0.76), 0) is not None

    @pytest.mark.parametrize("kind", [SignatureKind.DOORBELL, SignatureKind.BABY_CRY])
    def test_other_kinds_threshold(self, kind):
        gate = EventGate()
        assert gate.submit(candidate(kind, 0.70), 0) is None
        assert gate.submit(candidate(kind, 0.71), 0) is not None

    def test_rejected_candidate_does_not_start_cooldown(self):
        gate = EventGate()
        gate.submit(candidate(confidence=0.5), 0)
        assert gate.last_emitted == {}
        assert gate.submit(candidate(), 10) is not None


class TestCooldownGate:
    def test_fire_repeat_within_cooldown_suppressed(self):
        gate = EventGate()
        events = [gate.submit(candidate(), t) for t in (0, 1000)]
        assert [e is not None for e in events] == [True, False]

    def test_fire_repeat_after_cooldown_emitted(self):
        gate = EventGate()
        events = [gate.submit(candidate(), t) for t in (0, 3500)]
        assert all(e is not None for e in events)

    def test_cooldown_boundary_is_exclusive(self):
        gate = EventGate()
        gate.submit(candidate(), 0)
        assert gate.submit(candidate(), 3000) is None
        assert gate.submit(candidate(), 3001) is not None

    def test_doorbell_cooldown(self):
        gate = EventGate()
        assert gate.submit(candidate(SignatureKind.DOORBELL), 0) is not None
        assert gate.submit(candidate(SignatureKind.DOORBELL), 7999) is None
        assert gate.submit(candidate(SignatureKind.DOORBELL), 8001) is not None

    def test_first_event_emitted_even_at_time_zero(self):
        assert EventGate().submit(candidate(), 0) is not None

    def test_kinds_are_independent(self):
        gate = EventGate()
        assert gate.submit(candidate(SignatureKind.FIRE), 0) is not None
        assert gate.submit(candidate(SignatureKind.DOORBELL), 0) is not None
        assert gate.submit(candidate(SignatureKind.BABY_CRY), 0) is not None

    def test_state_only_holds_fired_kinds(self):
        gate = EventGate()
        gate.submit(candidate(SignatureKind.DOORBELL), 42)
        assert gate.last_emitted == {SignatureKind.DOORBELL: 42}
        assert gate.is_armed(SignatureKind.FIRE, 42)
        assert not gate.is_armed(SignatureKind.DOORBELL, 43)

    def test_reset_rearms(self):
        gate = EventGate()
        gate.submit(candidate(), 0)
        gate.reset()
        assert gate.submit(candidate(), 1) is not None


def test_event_fields():
    event = EventGate().submit(candidate(confidence=0.9), 1234)
    assert event.kind is SignatureKind.FIRE
    assert event.confidence == 0.9
    assert event.timestamp_ms == 1234
    assert event.frequency_hz == 3100.0
    assert event.amplitude == 200.0
    assert event.message == "Fire Alarm Detected!"


def test_rule_overrides():
    gate = EventGate({SignatureKind.FIRE: GateRule(confidence_threshold=0.5, cooldown_ms=100)})
    assert gate.submit(candidate(confidence=0.6), 0) is not None
    assert gate.submit(candidate(confidence=0.6), 101) is not None
    assert gate.rules[SignatureKind.DOORBELL] == DEFAULT_GATE_RULES[SignatureKind.DOORBELL]
