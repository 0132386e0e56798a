from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

RATE_LIMIT = "RATE_LIMIT"


class RateLimitError(RuntimeError):
    """Raised when the remote model refuses a call because of throttling."""

    def __init__(self, cause: BaseException | None = None) -> None:
        super().__init__(RATE_LIMIT)
        self.cause = cause


def is_rate_limit_error(error: Any) -> bool:
    """Return True when ``error`` looks like an HTTP 429 / quota failure.

    Matches a ``status`` attribute equal to 429, or a string form containing ``429``, ``RESOURCE_EXHAUSTED`` or ``quota``.
    The substring match is case-sensitive.
    """
    if error is None:
        return False
    if getattr(error, "status", None) == 429:
        return True
    text = str(error)
    return "429" in text or "RESOURCE_EXHAUSTED" in text or "quota" in text


# -----------------------------------------------------------------------------
# Outcome of one gateway call
# -----------------------------------------------------------------------------

class Outcome(ABC, Generic[T]):
    ok = False
    rate_limited = False

    @abstractmethod
    def unwrap(self, default: T) -> T:
        """Return the value, raise RateLimitError, or fall back to ``default``."""
        pass


@dataclass(frozen=True)
class Ok(Outcome[T]):
    value: T
    ok = True

    def unwrap(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class RateLimited(Outcome[T]):
    error: BaseException
    rate_limited = True

    def unwrap(self, default: T) -> T:
        raise RateLimitError(self.error) from self.error


@dataclass(frozen=True)
class Failed(Outcome[T]):
    error: BaseException

    def unwrap(self, default: T) -> T:
        return default


def classify(error: BaseException) -> Outcome:
    if is_rate_limit_error(error):
        return RateLimited(error)
    return Failed(error)
