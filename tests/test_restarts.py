from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from optimizer import AttemptOutcome, RestartConfig, resolve_seed, run_with_restarts, seeded_shuffle


def test_stops_at_first_success_and_reports_its_seed() -> None:
    calls = []

    def attempt(k, seed):
        calls.append((k, seed))
        return AttemptOutcome(ok=k == 2, state=f"state-{k}")

    res = run_with_restarts(attempt, RestartConfig(attempts=6, seed=100, seed_step=10))

    assert res.ok
    assert res.state == "state-2"
    assert res.seed == 120
    assert res.initial_seed == 100
    assert res.attempts == 3
    assert res.seeds == [100, 110, 120]
    assert calls == [(0, 100), (1, 110), (2, 120)]


def test_exhausted_attempts_keep_last_state() -> None:
    seen = []

    def attempt(k, seed):
        return AttemptOutcome(ok=False, state=k)

    def callback(attempt, seed, outcome):
        seen.append((attempt, outcome.ok))

    res = run_with_restarts(attempt, RestartConfig(attempts=4, seed=1), callback=callback)

    assert not res.ok
    assert res.state == 3
    assert res.attempts == 4
    assert seen == [(0, False), (1, False), (2, False), (3, False)]


def test_zero_is_a_valid_seed() -> None:
    assert resolve_seed(0) == 0
    res = run_with_restarts(lambda k, s: AttemptOutcome(ok=True, state=None), RestartConfig(seed=0))
    assert res.seed == 0


def test_missing_seed_uses_clock() -> None:
    assert resolve_seed(None) > 1_600_000_000_000


def test_attempts_must_be_positive() -> None:
    with pytest.raises(ValueError):
        run_with_restarts(lambda k, s: AttemptOutcome(ok=True, state=None), RestartConfig(attempts=0))


def test_seeded_shuffle_is_reproducible() -> None:
    items = list(range(20))
    assert seeded_shuffle(items, 9) == seeded_shuffle(items, 9)
    assert sorted(seeded_shuffle(items, 9)) == items
    assert items == list(range(20))
