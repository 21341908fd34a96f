"""Search engines used by the scheduling modules."""

from .restarts import (
    AttemptOutcome,
    RestartConfig,
    RestartResult,
    resolve_seed,
    run_with_restarts,
    seeded_shuffle,
    sub_seed,
)

__all__ = [
    "AttemptOutcome",
    "RestartConfig",
    "RestartResult",
    "resolve_seed",
    "run_with_restarts",
    "seeded_shuffle",
    "sub_seed",
]
