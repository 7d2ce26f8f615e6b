"""Engine managing the 2-back stimulus schedule and response tracking."""

from __future__ import annotations

import enum
import math
import random
import time
from dataclasses import dataclass

from looplace.nback.metrics import NBackMetrics
from looplace.nback.trials import NBackTrial, OutcomeKind, TrialOutcome, TrialResponse

LETTER_POOL = "BCDFGHJKMPQRSTVWXYZ"
_RUN_ID_MASK = (1 << 64) - 1


def now() -> float:
    """A monotonic timestamp in milliseconds."""
    return time.perf_counter() * 1000.0


class RunMode(enum.Enum):
    """Phases of a 2-back session."""

    PRACTICE = "practice"
    MAIN = "main"

    @property
    def seed_tag(self) -> int:
        """Constant mixed into the seed so each mode draws its own sequence."""
        if self is RunMode.PRACTICE:
            return 0x41_5052_4143_5449
        return 0x4D_4149_4E52_554E


@dataclass
class NBackConfig:
    """Tunable parameters of the task."""

    total_trials: int = 60
    practice_trials: int = 12
    target_ratio: float = 0.3
    stimulus_ms: int = 500
    interstimulus_interval_ms: int = 2_500
    lead_in_ms: int = 750
    response_window_ms: int = 3_000
    seed: int = 1


class Phase(enum.Enum):
    """Stage of the engine's life cycle."""

    IDLE = "idle"
    WAITING = "waiting"
    STIMULUS_ACTIVE = "stimulus_active"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class EngineState:
    """Current phase together with the run mode and trial it concerns."""

    phase: Phase = Phase.IDLE
    mode: RunMode | None = None
    trial_index: int | None = None

    @property
    def is_running(self) -> bool:
        return self.phase in (Phase.WAITING, Phase.STIMULUS_ACTIVE)


class ResponseKind(enum.Enum):
    """How a recorded response was classified."""

    HIT = "hit"
    FALSE_ALARM = "false_alarm"


@dataclass(frozen=True)
class ScheduledStimulus:
    """Request to show a trial's letter after ``wait_ms``."""

    run_id: int
    trial_index: int
    wait_ms: int


@dataclass(frozen=True)
class ScheduledAdvance:
    """Request to close a trial's response window after ``wait_ms``."""

    run_id: int
    trial_index: int
    wait_ms: int


@dataclass(frozen=True)
class TrialSchedule:
    """Timing for presenting and then closing one trial."""

    stimulus: ScheduledStimulus
    advance: ScheduledAdvance


@dataclass(frozen=True)
class AdvanceOutcome:
    """Result of advancing: the next schedule, a completed mode, or nothing."""

    schedule: TrialSchedule | None = None
    completed_mode: RunMode | None = None

    @property
    def ignored(self) -> bool:
        return self.schedule is None and self.completed_mode is None


@dataclass(frozen=True)
class ResponseOutcome:
    """Result of a response; ``kind`` is None when the response was ignored."""

    kind: ResponseKind | None = None

    @property
    def recorded(self) -> bool:
        return self.kind is not None


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _random_letter(rng: random.Random, disallow: str | None = None) -> str:
    while True:
        letter = rng.choice(LETTER_POOL)
        if letter != disallow:
            return letter


class NBackEngine:
    """Generates 2-back sequences and tracks responses across practice and main runs."""

    def __init__(self, config: NBackConfig | None = None) -> None:
        self.config = config if config is not None else NBackConfig()
        self.state = EngineState()
        self.run_id = 0
        self._trials: list[NBackTrial] = []
        self._practice_metrics: NBackMetrics | None = None
        self._main_metrics: NBackMetrics | None = None

    def practice_metrics(self) -> NBackMetrics | None:
        """Metrics of the most recent completed practice run."""
        return self._practice_metrics

    def main_metrics(self) -> NBackMetrics | None:
        """Metrics of the most recent completed main run."""
        return self._main_metrics

    def trials(self) -> tuple[NBackTrial, ...]:
        """Trials of the current or most recent run."""
        return tuple(self._trials)

    def start(self, mode: RunMode) -> TrialSchedule | None:
        """Begin a run in ``mode``; None if one is already in progress."""
        if self.state.is_running:
            return None

        self.run_id = (self.run_id + 1) & _RUN_ID_MASK
        self._trials = self.generate_trials(mode)
        self.state = EngineState(Phase.WAITING, mode, 0)
        return self._schedule(0)

    def abort(self) -> None:
        """Cancel the run."""
        self.state = EngineState(Phase.ABORTED)

    def mark_stimulus_on(self, trial_index: int, timestamp: float) -> bool:
        """Record that the letter of the awaited trial is now visible."""
        state = self.state
        if state.phase is not Phase.WAITING or state.trial_index != trial_index:
            return False
        if not 0 <= trial_index < len(self._trials):
            return False
        self._trials[trial_index].presented_at = timestamp
        self.state = EngineState(Phase.STIMULUS_ACTIVE, state.mode, trial_index)
        return True

    def register_response(self, timestamp: float) -> ResponseOutcome:
        """Classify a response to the visible letter as a hit or false alarm."""
        if self.state.phase is not Phase.STIMULUS_ACTIVE:
            return ResponseOutcome()
        trial_index = self.state.trial_index
        if not 0 <= trial_index < len(self._trials):
            return ResponseOutcome()

        trial = self._trials[trial_index]
        if trial.response is not None or trial.presented_at is None:
            return ResponseOutcome()

        rt_ms = timestamp - trial.presented_at
        trial.response = TrialResponse(timestamp=timestamp, rt_ms=rt_ms)
        if trial.is_target:
            trial.outcome = TrialOutcome(OutcomeKind.HIT, rt_ms)
            return ResponseOutcome(ResponseKind.HIT)
        trial.outcome = TrialOutcome(OutcomeKind.FALSE_ALARM, rt_ms)
        return ResponseOutcome(ResponseKind.FALSE_ALARM)

    def advance(self, trial_index: int) -> AdvanceOutcome:
        """Close ``trial_index`` and move to the next trial or finish the run."""
        state = self.state
        if not state.is_running or state.trial_index != trial_index:
            return AdvanceOutcome()
        mode = state.mode

        if 0 <= trial_index < len(self._trials):
            trial = self._trials[trial_index]
            if trial.outcome.kind is OutcomeKind.PENDING:
                kind = OutcomeKind.MISS if trial.is_target else OutcomeKind.CORRECT_REJECTION
                trial.outcome = TrialOutcome(kind)

        next_index = trial_index + 1
        if next_index >= len(self._trials):
            self.state = EngineState(Phase.COMPLETED, mode)
            metrics = NBackMetrics.from_trials(self._trials)
            if mode is RunMode.PRACTICE:
                self._practice_metrics = metrics
            else:
                self._main_metrics = metrics
            return AdvanceOutcome(completed_mode=mode)

        self.state = EngineState(Phase.WAITING, mode, next_index)
        return AdvanceOutcome(schedule=self._schedule(next_index))

    def generate_trials(self, mode: RunMode) -> list[NBackTrial]:
        """Build the letter stream for ``mode`` from the seed, mode and run id."""
        length = (
            self.config.practice_trials if mode is RunMode.PRACTICE else self.config.total_trials
        )
        if length <= 0:
            return []

        rng = random.Random(self.config.seed ^ mode.seed_tag ^ self.run_id)
        letters = [_random_letter(rng) for _ in range(min(length, 2))]

        candidates = list(range(2, length))
        max_targets = len(candidates)
        if max_targets == 0:
            quota = 0
        else:
            quota = _round_half_away(max_targets * self.config.target_ratio)
            quota = min(max(quota, 1), max_targets)

        rng.shuffle(candidates)
        targets = set(candidates[:quota])

        for idx in range(2, length):
            two_back = letters[idx - 2]
            letters.append(two_back if idx in targets else _random_letter(rng, two_back))

        return [
            NBackTrial(
                index=idx,
                letter=letter,
                is_target=idx >= 2 and letter == letters[idx - 2],
                is_lure=idx >= 1 and letter == letters[idx - 1],
            )
            for idx, letter in enumerate(letters)
        ]

    def _schedule(self, trial_index: int) -> TrialSchedule:
        wait_ms = (
            self.config.lead_in_ms if trial_index == 0 else self.config.interstimulus_interval_ms
        )
        return TrialSchedule(
            stimulus=ScheduledStimulus(self.run_id, trial_index, wait_ms),
            advance=ScheduledAdvance(self.run_id, trial_index, self.config.response_window_ms),
        )