import random

import pytest

from looplace.pvt.engine import (
    EngineState,
    Phase,
    PvtConfig,
    PvtEngine,
    ResponseKind,
    now,
)
from looplace.pvt.trials import OutcomeKind


class _Clock:
    def __init__(self, start=1000.0):
        self.value = start

    def __call__(self):
        return self.value


def _engine(**config):
    clock = _Clock()
    engine = PvtEngine(PvtConfig(**config), rng=random.Random(7), clock=clock)
    return engine, clock


def test_now_is_monotonic():
    first = now()
    second = now()
    assert second >= first


def test_start_schedules_first_trial_within_jitter():
    engine, _ = _engine()
    schedule = engine.start()
    assert schedule.run_id == 1
    assert schedule.trial_index == 0
    assert engine.config.min_iti_ms <= schedule.wait_ms <= engine.config.max_iti_ms
    assert engine.state == EngineState(Phase.WAITING, 0)
    assert engine.trials[0].iti_ms == schedule.wait_ms


def test_fixed_iti_when_bounds_match():
    engine, _ = _engine(min_iti_ms=3000, max_iti_ms=3000)
    assert engine.start().wait_ms == 3000


def test_start_while_running_is_refused():
    engine, _ = _engine()
    engine.start()
    assert engine.start() is None
    assert engine.run_id == 1


def test_mark_stimulus_requires_matching_trial():
    engine, clock = _engine()
    engine.start()
    assert engine.mark_stimulus_on(1, clock.value + 50.0) is False
    assert engine.mark_stimulus_on(0, clock.value + 2500.0) is True
    assert engine.state == EngineState(Phase.STIMULUS_ACTIVE, 0)
    assert engine.trials[0].onset_since_start_ms == pytest.approx(2500.0)


def test_reaction_is_recorded_and_next_trial_scheduled():
    engine, _ = _engine()
    engine.start()
    engine.mark_stimulus_on(0, 5000.0)
    outcome = engine.register_response(5312.0)
    assert outcome.kind is ResponseKind.NEXT_SCHEDULED
    assert outcome.schedule.trial_index == 1
    assert engine.trials[0].reaction_time_ms() == pytest.approx(312.0)
    assert engine.state == EngineState(Phase.WAITING, 1)


@pytest.mark.parametrize(
    "rt, kind",
    [(99.0, OutcomeKind.FALSE_START), (100.0, OutcomeKind.REACTION)],
)
def test_false_start_threshold(rt, kind):
    engine, _ = _engine()
    engine.start()
    engine.mark_stimulus_on(0, 5000.0)
    engine.register_response(5000.0 + rt)
    assert engine.trials[0].outcome.kind is kind


def test_response_before_stimulus_is_false_start():
    engine, _ = _engine()
    engine.start()
    outcome = engine.register_response(1200.0)
    assert outcome.kind is ResponseKind.NEXT_SCHEDULED
    assert engine.trials[0].outcome.kind is OutcomeKind.FALSE_START
    assert engine.trials[0].response_at == 1200.0


def test_response_when_idle_is_ignored():
    engine, _ = _engine()
    assert engine.register_response(10.0).kind is ResponseKind.IGNORED


def test_timeout_marks_lapse_only_for_active_trial():
    engine, _ = _engine()
    engine.start()
    assert engine.register_timeout(0).kind is ResponseKind.IGNORED
    engine.mark_stimulus_on(0, 4000.0)
    assert engine.register_timeout(1).kind is ResponseKind.IGNORED
    assert engine.register_timeout(0).kind is ResponseKind.NEXT_SCHEDULED
    assert engine.trials[0].outcome.kind is OutcomeKind.LAPSE


def test_full_run_completes_with_metrics():
    engine, clock = _engine(target_trials=3, min_reaction_trials=2)
    engine.start()
    assert engine.metrics() is None

    engine.register_response(1100.0)  # anticipation
    engine.mark_stimulus_on(1, 4000.0)
    engine.register_response(4300.0)
    engine.mark_stimulus_on(2, 8000.0)
    clock.value = 9000.0
    outcome = engine.register_response(8280.0)

    assert outcome.kind is ResponseKind.RUN_COMPLETED
    assert engine.state.phase is Phase.COMPLETED
    assert engine.run_finished_at == 9000.0
    metrics = engine.metrics()
    assert metrics.total_trials == 3
    assert metrics.false_starts == 1
    assert metrics.reacted_trials == 2
    assert metrics.meets_min_trial_requirement is True


def test_abort_then_restart_begins_new_run():
    engine, _ = _engine()
    engine.start()
    engine.abort()
    assert engine.state.phase is Phase.ABORTED
    assert engine.register_response(50.0).kind is ResponseKind.IGNORED
    schedule = engine.start()
    assert schedule.run_id == 2
    assert len(engine.trials) == 1


def test_reset_clears_trials():
    engine, _ = _engine()
    engine.start()
    engine.reset()
    assert engine.trials == []
    assert engine.state == EngineState()
    assert engine.run_started_at is None