"""Aggregated metrics for a 2-back run."""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from looplace.nback.trials import NBackTrial, OutcomeKind
from looplace.stats import mean, percentile, signal_detection_indices, std_dev


@dataclass
class NBackMetrics:
    """Summary of a completed 2-back run."""

    total_trials: int = 0
    target_trials: int = 0
    non_target_trials: int = 0
    hits: int = 0
    misses: int = 0
    false_alarms: int = 0
    correct_rejections: int = 0
    hit_rate: float = 0.0
    false_alarm_rate: float = 0.0
    accuracy: float = 0.0
    d_prime: float = 0.0
    criterion: float = 0.0
    mean_hit_rt_ms: float = 0.0
    median_hit_rt_ms: float = 0.0
    sd_hit_rt_ms: float = 0.0
    p10_hit_rt_ms: float = 0.0
    p90_hit_rt_ms: float = 0.0
    response_count: int = 0

    @classmethod
    def empty(cls) -> NBackMetrics:
        """Metrics with every count and rate at zero."""
        return cls()

    @classmethod
    def from_trials(cls, trials: Sequence[NBackTrial]) -> NBackMetrics:
        """Aggregate counts, signal-detection indices and hit RTs from trials."""
        total_trials = len(trials)
        if total_trials == 0:
            return cls.empty()

        target_trials = sum(1 for trial in trials if trial.is_target)
        non_target_trials = total_trials - target_trials

        counts = {kind: 0 for kind in OutcomeKind}
        hit_rts: list[float] = []
        for trial in trials:
            counts[trial.outcome.kind] += 1
            if trial.outcome.kind is OutcomeKind.HIT:
                hit_rts.append(trial.outcome.rt_ms)

        hits = counts[OutcomeKind.HIT]
        misses = counts[OutcomeKind.MISS]
        false_alarms = counts[OutcomeKind.FALSE_ALARM]
        correct_rejections = counts[OutcomeKind.CORRECT_REJECTION]

        hit_rts.sort()
        mean_rt = mean(hit_rts)
        d_prime, criterion = signal_detection_indices(
            hits, false_alarms, target_trials, non_target_trials
        )

        return cls(
            total_trials=total_trials,
            target_trials=target_trials,
            non_target_trials=non_target_trials,
            hits=hits,
            misses=misses,
            false_alarms=false_alarms,
            correct_rejections=correct_rejections,
            hit_rate=hits / target_trials if target_trials else 0.0,
            false_alarm_rate=false_alarms / non_target_trials if non_target_trials else 0.0,
            accuracy=(hits + correct_rejections) / total_trials,
            d_prime=d_prime,
            criterion=criterion,
            mean_hit_rt_ms=mean_rt,
            median_hit_rt_ms=percentile(hit_rts, 0.5),
            sd_hit_rt_ms=std_dev(hit_rts, mean_rt),
            p10_hit_rt_ms=percentile(hit_rts, 0.10),
            p90_hit_rt_ms=percentile(hit_rts, 0.90),
            response_count=hits + false_alarms,
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping of every metric, suitable for JSON serialisation."""
        return dataclasses.asdict(self)