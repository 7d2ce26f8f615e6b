"""Trial records for the psychomotor vigilance task."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class OutcomeKind(enum.Enum):
    """How a single PVT trial was resolved."""

    PENDING = "pending"
    REACTION = "reaction"
    LAPSE = "lapse"
    FALSE_START = "false_start"


@dataclass(frozen=True)
class TrialOutcome:
    """Outcome of a trial; reactions carry their reaction time."""

    kind: OutcomeKind = OutcomeKind.PENDING
    rt_ms: float | None = None

    def __post_init__(self) -> None:
        if self.kind is OutcomeKind.REACTION and self.rt_ms is None:
            raise ValueError("reaction outcome requires a reaction time")
        if self.kind is not OutcomeKind.REACTION and self.rt_ms is not None:
            raise ValueError(f"{self.kind.value} outcome carries no reaction time")


@dataclass
class PvtTrial:
    """One wait-then-respond cycle of the PVT."""

    index: int
    iti_ms: int
    stimulus_onset: float | None = None
    onset_since_start_ms: float | None = None
    response_at: float | None = None
    outcome: TrialOutcome = field(default_factory=TrialOutcome)

    def is_completed(self) -> bool:
        """True once the trial has an outcome other than pending."""
        return self.outcome.kind is not OutcomeKind.PENDING

    def reaction_time_ms(self) -> float | None:
        """The reaction time for a valid reaction, otherwise None."""
        if self.outcome.kind is OutcomeKind.REACTION:
            return self.outcome.rt_ms
        return None