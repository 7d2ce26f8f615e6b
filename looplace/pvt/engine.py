"""State machine driving the psychomotor vigilance task."""

from __future__ import annotations

import enum
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

from looplace.pvt.metrics import PvtMetrics
from looplace.pvt.trials import OutcomeKind, PvtTrial, TrialOutcome

FALSE_START_THRESHOLD_MS = 100.0
_RUN_ID_MASK = (1 << 64) - 1


def now() -> float:
    """A monotonic timestamp in milliseconds."""
    return time.perf_counter() * 1000.0


@dataclass
class PvtConfig:
    """Tunable parameters of a PVT run."""

    target_trials: int = 18
    min_iti_ms: int = 2_000
    max_iti_ms: int = 10_000
    max_response_ms: int = 1_000
    min_reaction_trials: int = 12


class Phase(enum.Enum):
    """Stage of the engine's life cycle."""

    IDLE = "idle"
    WAITING = "waiting"
    STIMULUS_ACTIVE = "stimulus_active"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class EngineState:
    """Current phase and, while running, the trial it concerns."""

    phase: Phase = Phase.IDLE
    trial_index: int | None = None

    @property
    def is_running(self) -> bool:
        return self.phase in (Phase.WAITING, Phase.STIMULUS_ACTIVE)


@dataclass(frozen=True)
class ScheduledStimulus:
    """Request to show the stimulus of a trial after ``wait_ms``."""

    run_id: int
    trial_index: int
    wait_ms: int


class ResponseKind(enum.Enum):
    """What a response or timeout led to."""

    NEXT_SCHEDULED = "next_scheduled"
    RUN_COMPLETED = "run_completed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ResponseOutcome:
    """Result of a response or timeout; carries the next stimulus when scheduled."""

    kind: ResponseKind
    schedule: ScheduledStimulus | None = None


_IGNORED = ResponseOutcome(ResponseKind.IGNORED)


class PvtEngine:
    """Tracks trials of one PVT run and decides what happens next."""

    def __init__(
        self,
        config: PvtConfig | None = None,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], float] = now,
    ) -> None:
        self.config = config if config is not None else PvtConfig()
        self.state = EngineState()
        self.trials: list[PvtTrial] = []
        self.run_id = 0
        self.run_started_at: float | None = None
        self.run_finished_at: float | None = None
        self._total_false_starts = 0
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock

    def reset(self) -> None:
        """Forget the current run, keeping the run counter."""
        self.state = EngineState()
        self.trials.clear()
        self.run_started_at = None
        self.run_finished_at = None
        self._total_false_starts = 0

    def start(self) -> ScheduledStimulus | None:
        """Begin a new run; None if one is already in progress."""
        if self.state.is_running:
            return None

        self.reset()
        self.run_id = (self.run_id + 1) & _RUN_ID_MASK
        self.run_started_at = self._clock()

        first = PvtTrial(index=0, iti_ms=self._random_iti())
        self.trials.append(first)
        self.state = EngineState(Phase.WAITING, 0)
        return ScheduledStimulus(self.run_id, 0, first.iti_ms)

    def abort(self) -> None:
        """Cancel the run."""
        self.state = EngineState(Phase.ABORTED)
        self.run_finished_at = self._clock()

    def mark_stimulus_on(self, trial_index: int, timestamp: float) -> bool:
        """Record stimulus onset for the trial being waited on."""
        if self.state != EngineState(Phase.WAITING, trial_index):
            return False
        if self.run_started_at is None or not 0 <= trial_index < len(self.trials):
            return False

        trial = self.trials[trial_index]
        trial.stimulus_onset = timestamp
        trial.onset_since_start_ms = timestamp - self.run_started_at
        self.state = EngineState(Phase.STIMULUS_ACTIVE, trial_index)
        return True

    def register_response(self, timestamp: float) -> ResponseOutcome:
        """Handle a key press or tap at ``timestamp``."""
        phase, trial_index = self.state.phase, self.state.trial_index

        if phase is Phase.STIMULUS_ACTIVE:
            if not 0 <= trial_index < len(self.trials):
                return _IGNORED
            trial = self.trials[trial_index]
            if trial.stimulus_onset is None:
                return _IGNORED
            rt_ms = timestamp - trial.stimulus_onset
            trial.response_at = timestamp
            if rt_ms < FALSE_START_THRESHOLD_MS:
                trial.outcome = TrialOutcome(OutcomeKind.FALSE_START)
                self._total_false_starts += 1
            else:
                trial.outcome = TrialOutcome(OutcomeKind.REACTION, rt_ms)
            return self._schedule_next()

        if phase is Phase.WAITING:
            # Anticipation before the stimulus appeared.
            if 0 <= trial_index < len(self.trials):
                trial = self.trials[trial_index]
                trial.outcome = TrialOutcome(OutcomeKind.FALSE_START)
                trial.response_at = timestamp
            self._total_false_starts += 1
            return self._schedule_next()

        return _IGNORED

    def register_timeout(self, trial_index: int) -> ResponseOutcome:
        """Mark the active trial as a lapse once the response window expires."""
        if self.state != EngineState(Phase.STIMULUS_ACTIVE, trial_index):
            return _IGNORED
        if 0 <= trial_index < len(self.trials):
            self.trials[trial_index].outcome = TrialOutcome(OutcomeKind.LAPSE)
        return self._schedule_next()

    def metrics(self) -> PvtMetrics | None:
        """Metrics of the run, available only once it has completed."""
        if self.state.phase is not Phase.COMPLETED:
            return None
        return PvtMetrics.from_trials(
            self.trials, self._total_false_starts, self.config.min_reaction_trials
        )

    def _schedule_next(self) -> ResponseOutcome:
        completed = sum(1 for trial in self.trials if trial.is_completed())
        if completed >= self.config.target_trials:
            self.state = EngineState(Phase.COMPLETED)
            self.run_finished_at = self._clock()
            return ResponseOutcome(ResponseKind.RUN_COMPLETED)

        next_index = len(self.trials)
        iti = self._random_iti()
        self.trials.append(PvtTrial(index=next_index, iti_ms=iti))
        self.state = EngineState(Phase.WAITING, next_index)
        return ResponseOutcome(
            ResponseKind.NEXT_SCHEDULED, ScheduledStimulus(self.run_id, next_index, iti)
        )

    def _random_iti(self) -> int:
        return self._rng.randint(self.config.min_iti_ms, self.config.max_iti_ms)