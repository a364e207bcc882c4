"""Confidence and cooldown gating of candidate detections."""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from sound_alert_engine.models import Candidate, DetectionEvent, SignatureKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateRule:
    """Per-kind gating parameters.

    Attributes:
        confidence_threshold: Candidates must score strictly above this
        cooldown_ms: Minimum spacing between two events of the kind
    """

    confidence_threshold: float
    cooldown_ms: int


# Fire alarms re-arm quickly and accept a lower bar: a missed alarm costs more
# than a repeated one.
DEFAULT_GATE_RULES: Dict[SignatureKind, GateRule] = {
    SignatureKind.FIRE: GateRule(confidence_threshold=0.75, cooldown_ms=3000),
    SignatureKind.DOORBELL: GateRule(confidence_threshold=0.70, cooldown_ms=8000),
    SignatureKind.BABY_CRY: GateRule(confidence_threshold=0.70, cooldown_ms=8000),
}


class EventGate:
    """Turns a stream of per-cycle candidates into rate-limited events.

    Each kind is either armed or cooling down. A candidate that clears the
    confidence threshold while its kind is armed becomes a DetectionEvent and
    starts the cooldown; everything else is dropped.
    """

    def __init__(self, rules: Optional[Mapping[SignatureKind, GateRule]] = None):
        self.rules: Dict[SignatureKind, GateRule] = dict(DEFAULT_GATE_RULES)
        if rules:
            self.rules.update(rules)
        # Only kinds that have fired get an entry
        self.last_emitted: Dict[SignatureKind, int] = {}

    def is_armed(self, kind: SignatureKind, now_ms: int) -> bool:
        last = self.last_emitted.get(kind)
        if last is None:
            return True
        return now_ms - last > self.rules[kind].cooldown_ms

    def submit(self, candidate: Candidate, now_ms: int) -> Optional[DetectionEvent]:
        """Gate a candidate.

        Args:
            candidate: Candidate produced this cycle
            now_ms: Current time in milliseconds

        Returns:
            The emitted DetectionEvent, or None if the candidate was dropped
        """
        rule = self.rules[candidate.kind]

        if candidate.confidence <= rule.confidence_threshold:
            logger.debug(
                f"[{candidate.kind.value}] Below threshold: "
                f"{candidate.confidence:.2f} <= {rule.confidence_threshold:.2f}"
            )
            return None

        if not self.is_armed(candidate.kind, now_ms):
            logger.debug(f"[{candidate.kind.value}] Suppressing repeat during cooldown")
            return None

        self.last_emitted[candidate.kind] = now_ms
        return DetectionEvent.from_candidate(candidate, now_ms)

    def reset(self) -> None:
        self.last_emitted.clear()
