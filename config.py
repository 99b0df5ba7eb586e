from __future__ import annotations
import time
from contextlib import contextmanager
from dataclasses import dataclass, fields
from typing import Iterator, Optional

from errors import CancellationError


@dataclass
class Settings:
    """Process-wide tuning knobs for factoring and solving.

    Only change these between top-level calls.
    """
    solve_radius: float = 1000
    roots_per_side: int = 10
    step_size: float = 0.1
    epsilon: float = 2e-13
    max_newton_iterations: int = 200
    newton_epsilon: float = 2e-15
    max_non_linear_tries: int = 12
    non_linear_jump_at: int = 50
    non_linear_jump_size: float = 100
    non_linear_start: float = 0.01
    solution_proximity: float = 1e-14
    filter_solutions: bool = True
    max_solve_depth: int = 10
    zero_epsilon: float = 1e-9
    max_bisection_iter: int = 2000
    bisection_epsilon: float = 1e-12
    max_factor_depth: int = 40
    max_division_iterations: int = 200
    max_degree: int = 100
    decp: int = 7
    timeout: Optional[float] = None

    @contextmanager
    def override(self, **kw) -> Iterator["Settings"]:
        names = {f.name for f in fields(self)}
        saved = {}
        for k, v in kw.items():
            if k not in names:
                raise AttributeError(f"unknown setting '{k}'")
            saved[k] = getattr(self, k)
            setattr(self, k, v)
        try:
            yield self
        finally:
            for k, v in saved.items():
                setattr(self, k, v)


settings = Settings()

_deadline: Optional[float] = None


def arm(seconds: Optional[float] = None) -> None:
    global _deadline
    seconds = settings.timeout if seconds is None else seconds
    _deadline = None if seconds is None else time.monotonic() + seconds


def disarm() -> None:
    global _deadline
    _deadline = None


@contextmanager
def timeout(seconds: Optional[float]) -> Iterator[None]:
    """Arm the cancellation deadline for the duration of the block."""
    global _deadline
    saved = _deadline
    arm(seconds)
    try:
        yield
    finally:
        _deadline = saved


def check_timeout() -> None:
    if _deadline is not None and time.monotonic() > _deadline:
        raise CancellationError("computation timed out")
