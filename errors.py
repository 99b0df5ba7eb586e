from __future__ import annotations
import functools
import logging
from typing import Any, Callable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class CasError(Exception):
    "Base exception for the algebra engine."
    pass

class CancellationError(CasError, TimeoutError):
    "The computation ran past its deadline. Never absorbed by algorithm code."
    pass

class MalformedInputError(CasError, ValueError):
    "Input rejected at the call boundary."
    pass

class ParseError(MalformedInputError):
    "Text could not be turned into an expression."
    pass

class NotPolynomialError(MalformedInputError):
    "A polynomial view was requested for something that is not one."
    pass

class ValueLimitExceededError(MalformedInputError):
    "An input exceeds a hard limit (degree cap, required degree)."
    pass

class AlgorithmError(CasError):
    "A heuristic could not finish. Callers give up to their input."
    pass

class InfiniteLoopError(AlgorithmError):
    "A safety counter tripped."
    pass

class DivisionByZeroError(CasError, ZeroDivisionError):
    "Division by zero, including singular coefficient matrices."
    pass

class SolveError(CasError):
    "A system of equations has no distinct solution."
    pass


# errors a heuristic step is allowed to give up on
RECOVERABLE = (CasError, ArithmeticError, ValueError, KeyError, IndexError,
               TypeError, RecursionError)


def give_up_to(fallback: Callable[..., T]) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator: on a recoverable error return ``fallback(*args, **kwargs)``.

    CancellationError is always re-raised.
    """
    def wrap(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def inner(*args: Any, **kwargs: Any) -> T:
            try:
                return fn(*args, **kwargs)
            except CancellationError:
                raise
            except RECOVERABLE as e:
                log.debug("%s gave up: %r", fn.__qualname__, e)
                return fallback(*args, **kwargs)
        return inner
    return wrap


def attempt(fn: Callable[[], T], fallback: T) -> T:
    "Run ``fn``; return ``fallback`` on a recoverable error."
    try:
        return fn()
    except CancellationError:
        raise
    except RECOVERABLE as e:
        log.debug("attempt gave up: %r", e)
        return fallback
