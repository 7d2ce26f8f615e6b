import pytest

from looplace.nback.engine import (
    LETTER_POOL,
    EngineState,
    NBackConfig,
    NBackEngine,
    Phase,
    ResponseKind,
    RunMode,
    now,
)
from looplace.nback.trials import OutcomeKind


def _small_config(**overrides):
    values = dict(
        total_trials=4,
        practice_trials=4,
        target_ratio=0.5,
        stimulus_ms=300,
        interstimulus_interval_ms=200,
        lead_in_ms=10,
        response_window_ms=500,
        seed=9,
    )
    values.update(overrides)
    return NBackConfig(**values)


def _run_to(engine, index, onset):
    for i in range(index):
        engine.mark_stimulus_on(i, onset - 1000.0)
        engine.advance(i)
    assert engine.mark_stimulus_on(index, onset) is True


def test_generated_sequence_respects_two_back_constraints():
    engine = NBackEngine()
    engine.run_id = 42
    trials = engine.generate_trials(RunMode.MAIN)

    assert len(trials) == engine.config.total_trials
    for idx in range(2, len(trials)):
        trial, two_back = trials[idx], trials[idx - 2]
        if trial.is_target:
            assert trial.letter == two_back.letter
        else:
            assert trial.letter != two_back.letter


def test_run_completion_produces_metrics():
    engine = NBackEngine(_small_config())
    assert engine.start(RunMode.PRACTICE) is not None
    assert engine.state == EngineState(Phase.WAITING, RunMode.PRACTICE, 0)

    for idx in range(3):
        engine.mark_stimulus_on(idx, now())
        assert engine.advance(idx).schedule is not None
    engine.mark_stimulus_on(3, now())
    assert engine.advance(3).completed_mode is RunMode.PRACTICE

    metrics = engine.practice_metrics()
    assert metrics.total_trials == 4
    assert engine.main_metrics() is None


def test_sequence_is_deterministic_and_uses_pool():
    first, second = NBackEngine(), NBackEngine()
    first.run_id = second.run_id = 3
    letters = [t.letter for t in first.generate_trials(RunMode.PRACTICE)]
    assert letters == [t.letter for t in second.generate_trials(RunMode.PRACTICE)]
    assert all(letter in LETTER_POOL for letter in letters)


def test_lures_and_first_trials():
    trials = NBackEngine().generate_trials(RunMode.MAIN)
    assert not trials[0].is_target and not trials[1].is_target
    assert not trials[0].is_lure
    for idx in range(1, len(trials)):
        assert trials[idx].is_lure == (trials[idx].letter == trials[idx - 1].letter)


def test_at_least_one_target_even_with_zero_ratio():
    engine = NBackEngine(_small_config(practice_trials=3, target_ratio=0.0))
    trials = engine.generate_trials(RunMode.PRACTICE)
    assert [t.is_target for t in trials] == [False, False, True]


def test_empty_and_short_runs():
    engine = NBackEngine(_small_config(practice_trials=0, total_trials=2))
    assert engine.generate_trials(RunMode.PRACTICE) == []
    short = engine.generate_trials(RunMode.MAIN)
    assert len(short) == 2
    assert not any(t.is_target for t in short)


def test_schedule_timings_follow_config():
    config = _small_config()
    engine = NBackEngine(config)
    first = engine.start(RunMode.MAIN)
    assert first.stimulus.wait_ms == config.lead_in_ms
    assert first.advance.wait_ms == config.response_window_ms
    assert first.stimulus.run_id == engine.run_id
    engine.mark_stimulus_on(0, 100.0)
    second = engine.advance(0).schedule
    assert second.stimulus.wait_ms == config.interstimulus_interval_ms
    assert second.stimulus.trial_index == 1


def test_start_while_running_is_refused():
    engine = NBackEngine(_small_config())
    engine.start(RunMode.MAIN)
    assert engine.start(RunMode.PRACTICE) is None
    assert engine.state.mode is RunMode.MAIN


def test_mark_stimulus_on_wrong_index_is_rejected():
    engine = NBackEngine(_small_config())
    engine.start(RunMode.MAIN)
    assert engine.mark_stimulus_on(2, 50.0) is False
    assert engine.state.phase is Phase.WAITING


def test_hit_and_false_alarm_classification():
    engine = NBackEngine(_small_config(total_trials=8))
    engine.start(RunMode.MAIN)
    target = next(t.index for t in engine.trials() if t.is_target)

    _run_to(engine, target, 10_000.0)
    outcome = engine.register_response(10_450.0)
    assert outcome.kind is ResponseKind.HIT
    trial = engine.trials()[target]
    assert trial.outcome.kind is OutcomeKind.HIT
    assert trial.response.rt_ms == pytest.approx(450.0)
    assert engine.register_response(10_600.0).recorded is False

    fresh = NBackEngine(_small_config(total_trials=8))
    fresh.start(RunMode.MAIN)
    fresh.mark_stimulus_on(0, 500.0)
    assert fresh.register_response(900.0).kind is ResponseKind.FALSE_ALARM


def test_response_while_waiting_is_ignored():
    engine = NBackEngine(_small_config())
    engine.start(RunMode.MAIN)
    assert engine.register_response(10.0).recorded is False


def test_unanswered_target_becomes_miss():
    engine = NBackEngine(_small_config(total_trials=8))
    engine.start(RunMode.MAIN)
    target = next(t.index for t in engine.trials() if t.is_target)
    _run_to(engine, target, 5000.0)
    engine.advance(target)
    assert engine.trials()[target].outcome.kind is OutcomeKind.MISS


def test_advance_mismatch_and_abort():
    engine = NBackEngine(_small_config())
    engine.start(RunMode.MAIN)
    assert engine.advance(1).ignored is True
    engine.abort()
    assert engine.state.phase is Phase.ABORTED
    assert engine.advance(0).ignored is True
    assert engine.start(RunMode.MAIN) is not None
    assert engine.run_id == 2


def test_main_completion_stores_main_metrics():
    engine = NBackEngine(_small_config())
    engine.start(RunMode.MAIN)
    for idx in range(4):
        engine.mark_stimulus_on(idx, 100.0 * idx)
        outcome = engine.advance(idx)
    assert outcome.completed_mode is RunMode.MAIN
    assert engine.state == EngineState(Phase.COMPLETED, RunMode.MAIN)
    metrics = engine.main_metrics()
    assert metrics.misses == metrics.target_trials
    assert metrics.correct_rejections == metrics.non_target_trials
    assert engine.practice_metrics() is None