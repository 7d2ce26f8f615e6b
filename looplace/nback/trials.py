"""Trial records for the 2-back task."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class OutcomeKind(enum.Enum):
    """How a single 2-back trial was resolved."""

    PENDING = "pending"
    HIT = "hit"
    MISS = "miss"
    FALSE_ALARM = "false_alarm"
    CORRECT_REJECTION = "correct_rejection"


_TIMED_KINDS = frozenset({OutcomeKind.HIT, OutcomeKind.FALSE_ALARM})


@dataclass(frozen=True)
class TrialOutcome:
    """Outcome of a trial; hits and false alarms carry a reaction time."""

    kind: OutcomeKind = OutcomeKind.PENDING
    rt_ms: float | None = None

    def __post_init__(self) -> None:
        if self.kind in _TIMED_KINDS and self.rt_ms is None:
            raise ValueError(f"{self.kind.value} outcome requires a reaction time")
        if self.kind not in _TIMED_KINDS and self.rt_ms is not None:
            raise ValueError(f"{self.kind.value} outcome carries no reaction time")


@dataclass(frozen=True)
class TrialResponse:
    """A response to a stimulus: when it happened and how long after onset."""

    timestamp: float
    rt_ms: float


@dataclass
class NBackTrial:
    """One letter in the 2-back stream together with what happened on it."""

    index: int
    letter: str
    is_target: bool
    is_lure: bool
    presented_at: float | None = None
    response: TrialResponse | None = None
    outcome: TrialOutcome = field(default_factory=TrialOutcome)

    def is_completed(self) -> bool:
        """True once the trial has an outcome other than pending."""
        return self.outcome.kind is not OutcomeKind.PENDING