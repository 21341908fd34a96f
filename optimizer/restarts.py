"""Seeded randomized restarts.

A small, problem-agnostic driver for randomized constructive heuristics:
run one randomized pass; if it dead-ends, start over from scratch with a
perturbed seed, up to a fixed number of attempts.

This is deliberately *not* backtracking. Each attempt is independent and fully
determined by its seed, so a run can be reproduced from the seed reported for
the successful attempt.

Seed schedule
-------------
attempt k (0-based) uses ``seed + k * seed_step``. The default step is a large
odd constant so consecutive attempts are decorrelated.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Protocol, Sequence, TypeVar


TState = TypeVar("TState")
T = TypeVar("T")

DEFAULT_SEED_STEP = 1013904223


@dataclass
class AttemptOutcome(Generic[TState]):
    ok: bool
    state: TState


class AttemptFn(Protocol[TState]):
    def __call__(self, attempt: int, seed: int) -> AttemptOutcome[TState]:  # pragma: no cover
        """Run one full randomized pass for `seed`."""


class CallbackFn(Protocol[TState]):
    def __call__(self, attempt: int, seed: int, outcome: AttemptOutcome[TState]) -> None:  # pragma: no cover
        """Optional progress callback called after each attempt."""


@dataclass(frozen=True)
class RestartConfig:
    """Configuration for the restart loop.

    Attributes:
        attempts: Maximum number of attempts (>= 1).
        seed: Initial seed. None => current time in milliseconds.
        seed_step: Offset added to the seed between attempts.
    """

    attempts: int = 6
    seed: Optional[int] = None
    seed_step: int = DEFAULT_SEED_STEP


@dataclass
class RestartResult(Generic[TState]):
    ok: bool
    state: TState  # successful state, or the last failed attempt's state
    seed: int  # seed of the attempt that produced `state`
    initial_seed: int
    attempts: int
    seeds: List[int] = field(default_factory=list)


def resolve_seed(seed: Optional[int]) -> int:
    if seed is None:
        return int(time.time() * 1000)
    return int(seed)


def sub_seed(seed: int, salt: int) -> int:
    """Derive a secondary seed for an independent random stream."""

    return int(seed) ^ int(salt)


def seeded_shuffle(items: Sequence[T], seed: int) -> List[T]:
    out = list(items)
    random.Random(seed).shuffle(out)
    return out


def run_with_restarts(
    attempt: AttemptFn[TState],
    config: RestartConfig = RestartConfig(),
    callback: Optional[CallbackFn[TState]] = None,
) -> RestartResult[TState]:
    """Run `attempt` with perturbed seeds until one succeeds or attempts run out."""

    if config.attempts < 1:
        raise ValueError("attempts must be >= 1")

    initial = resolve_seed(config.seed)
    seeds: List[int] = []
    outcome: Optional[AttemptOutcome[TState]] = None
    seed = initial

    for k in range(config.attempts):
        seed = initial + k * int(config.seed_step)
        seeds.append(seed)
        outcome = attempt(k, seed)
        if callback is not None:
            callback(attempt=k, seed=seed, outcome=outcome)
        if outcome.ok:
            break

    assert outcome is not None
    return RestartResult(
        ok=outcome.ok,
        state=outcome.state,
        seed=seed,
        initial_seed=initial,
        attempts=len(seeds),
        seeds=seeds,
    )
