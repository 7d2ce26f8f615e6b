# looplace

Engines and metrics for two short cognitive tasks:

- **PVT** (psychomotor vigilance task), in `looplace.pvt`: random inter-trial
  intervals, reaction times, lapses (reactions of 500 ms or more, and
  timeouts), minor lapses (355–499 ms), false starts (responses under 100 ms
  after onset, or before the stimulus appeared) and a time-on-task slope in
  ms per minute.
- **2-back** working memory, in `looplace.nback`: seeded letter streams with a
  target ratio, hits, misses, false alarms, correct rejections, d′ and
  criterion (log-linear corrected), and hit reaction-time statistics.

The engines are plain state machines. They do no sleeping, rendering or input
handling themselves. They hand back schedules (how long to wait before showing
the next stimulus, or before closing a response window), and your code calls
back in when that time has passed or when the participant responds.
Timestamps are floats in milliseconds; `now()` in each engine module returns a
monotonic one.

## Installation

```
pip install .
```

There are no runtime dependencies.

## PVT

```python
from looplace.pvt.engine import PvtConfig, PvtEngine, now

engine = PvtEngine(PvtConfig(target_trials=3))
schedule = engine.start()          # ScheduledStimulus, or None if already running
while schedule is not None:
    # wait schedule.wait_ms, then show the counter
    engine.mark_stimulus_on(schedule.trial_index, now())
    # on a key press or tap:
    outcome = engine.register_response(now() + 250.0)
    schedule = outcome.schedule    # None once the run has completed

metrics = engine.metrics()         # PvtMetrics, or None unless the run completed
print(metrics.median_rt_ms, metrics.lapses_ge_500ms, metrics.false_starts)
```

- `PvtConfig` holds `target_trials` (18), `min_iti_ms` (2000), `max_iti_ms`
  (10000), `max_response_ms` (1000) and `min_reaction_trials` (12).
- `register_response` and `register_timeout` return a `ResponseOutcome` whose
  `kind` is a `ResponseKind`: `NEXT_SCHEDULED` (with `schedule` set),
  `RUN_COMPLETED` or `IGNORED`.
- Call `register_timeout(trial_index)` once `config.max_response_ms` has passed
  without a response; the trial becomes a lapse.
- `engine.state` is an `EngineState` with a `Phase` and, while running, the
  `trial_index`. `abort()` cancels a run and `reset()` clears it.
- `PvtEngine(config, rng=..., clock=...)` accepts a `random.Random` for the
  inter-trial intervals and a clock function, which makes runs reproducible in
  tests.

## 2-back

```python
from looplace.nback.engine import NBackEngine, RunMode, now

engine = NBackEngine()
schedule = engine.start(RunMode.PRACTICE)   # TrialSchedule, or None if running
while schedule is not None:
    index = schedule.stimulus.trial_index
    # wait schedule.stimulus.wait_ms, then show the letter
    engine.mark_stimulus_on(index, now())
    letter = engine.trials()[index].letter
    # on a key press: engine.register_response(now())
    # after schedule.advance.wait_ms:
    schedule = engine.advance(index).schedule   # None once the run completed

print(engine.practice_metrics())
```

- `NBackConfig` holds `total_trials` (60), `practice_trials` (12),
  `target_ratio` (0.3), `stimulus_ms` (500), `interstimulus_interval_ms`
  (2500), `lead_in_ms` (750), `response_window_ms` (3000) and `seed` (1).
  The first trial waits `lead_in_ms`, later trials
  `interstimulus_interval_ms`; every response window lasts
  `response_window_ms`.
- Letter streams are drawn from `LETTER_POOL` and depend only on the seed, the
  run mode and the run id, so `generate_trials(mode)` is reproducible. A
  non-target letter never repeats the one from two trials back.
- `register_response` returns a `ResponseOutcome`; its `kind` is
  `ResponseKind.HIT` or `ResponseKind.FALSE_ALARM`, or None when ignored.
- `advance` returns an `AdvanceOutcome` with either `schedule`,
  `completed_mode`, or neither (`ignored`). Pending trials are closed as misses
  (targets) or correct rejections.
- `practice_metrics()` and `main_metrics()` return the `NBackMetrics` of the
  last completed run in each mode.

## Metrics and statistics

`PvtMetrics.from_trials(trials, false_starts, min_required)` and
`NBackMetrics.from_trials(trials)` can be used on trial lists directly.
Both metrics classes offer `to_dict()` for storage or export.

`looplace.stats` provides `mean`, `std_dev` (sample), `percentile`
(linear interpolation on sorted values), `inverse_normal_cdf` (Acklam's
approximation) and `signal_detection_indices`; `looplace.pvt.metrics` provides
`slope_minutes`, a least-squares slope.

## What this package does not do

It has no user interface, no command, no timers and no storage of results.
Showing stimuli, collecting key presses, waiting out the returned schedules
and saving the `to_dict()` output are left to the application that uses it.

## Running the tests

```
pip install ".[test]"
pytest
```