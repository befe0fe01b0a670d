"""Outcome values for gateway-backed operations and the raise_errors boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from loguru import logger

from .errors import CommandFailed, ValidationFailed

log = logger

T = TypeVar('T')

#: Failures that follow the per-call ``raise_errors`` flag. Anything else
#: (programmer errors included) always propagates.
RECOVERABLE = (CommandFailed, ValidationFailed)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> 'Outcome[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> 'Outcome[T]':
        return cls(error=error)


def attempt(func: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """Run ``func`` and capture a recoverable failure instead of raising."""
    try:
        return Outcome.success(func(*args, **kwargs))
    except RECOVERABLE as ex:
        return Outcome.failure(ex)


def settle(outcome: Outcome[T], *, raise_errors: bool, sentinel: Any = None):
    """Translate an outcome into a return value or the original exception."""
    if outcome.ok:
        return outcome.value
    if raise_errors:
        raise outcome.error
    log.debug('Returning {!r} after failure: {}', sentinel, outcome.error)
    return sentinel
