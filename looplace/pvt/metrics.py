"""Aggregated metrics for a PVT run."""

from __future__ import annotations

import dataclasses
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from looplace.pvt.trials import OutcomeKind, PvtTrial
from looplace.stats import mean, percentile, std_dev

_MAJOR_LAPSE_MS = 500.0
_MINOR_LAPSE_MS = 355.0
_MS_PER_MINUTE = 60_000.0


def slope_minutes(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Least-squares slope of ``ys`` against ``xs``; 0.0 when undefined."""
    if len(xs) < 2 or len(ys) < 2 or len(xs) != len(ys):
        return 0.0

    n = float(len(xs))
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = sum(x * x for x in xs)

    denominator = n * sum_x2 - sum_x * sum_x
    if abs(denominator) < sys.float_info.epsilon:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


@dataclass
class PvtMetrics:
    """Summary of a completed PVT run."""

    total_trials: int = 0
    reacted_trials: int = 0
    median_rt_ms: float = 0.0
    mean_rt_ms: float = 0.0
    sd_rt_ms: float = 0.0
    p10_rt_ms: float = 0.0
    p90_rt_ms: float = 0.0
    lapses_ge_500ms: int = 0
    minor_lapses_355_499ms: int = 0
    false_starts: int = 0
    time_on_task_slope_ms_per_min: float = 0.0
    meets_min_trial_requirement: bool = False

    @classmethod
    def from_trials(
        cls, trials: Sequence[PvtTrial], false_starts: int, min_required: int
    ) -> PvtMetrics:
        """Aggregate reaction times, lapses and time-on-task slope from trials."""
        total_trials = sum(1 for trial in trials if trial.is_completed())

        reaction_times: list[float] = []
        reaction_offsets: list[float] = []
        lapses = 0
        minor_lapses = 0

        for trial in trials:
            kind = trial.outcome.kind
            if kind is OutcomeKind.REACTION:
                rt_ms = trial.outcome.rt_ms
                reaction_times.append(rt_ms)
                onset = trial.onset_since_start_ms
                reaction_offsets.append(0.0 if onset is None else onset / _MS_PER_MINUTE)
                if rt_ms >= _MAJOR_LAPSE_MS:
                    lapses += 1
                elif rt_ms >= _MINOR_LAPSE_MS:
                    minor_lapses += 1
            elif kind is OutcomeKind.LAPSE:
                lapses += 1

        if not reaction_times:
            return cls(total_trials=total_trials, false_starts=false_starts)

        sorted_times = sorted(reaction_times)
        mean_rt = mean(reaction_times)

        return cls(
            total_trials=total_trials,
            reacted_trials=len(reaction_times),
            median_rt_ms=percentile(sorted_times, 0.5),
            mean_rt_ms=mean_rt,
            sd_rt_ms=std_dev(reaction_times, mean_rt),
            p10_rt_ms=percentile(sorted_times, 0.10),
            p90_rt_ms=percentile(sorted_times, 0.90),
            lapses_ge_500ms=lapses,
            minor_lapses_355_499ms=minor_lapses,
            false_starts=false_starts,
            time_on_task_slope_ms_per_min=slope_minutes(reaction_offsets, reaction_times),
            meets_min_trial_requirement=len(reaction_times) >= min_required,
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping of every metric, suitable for JSON serialisation."""
        return dataclasses.asdict(self)