from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from pymongo.errors import PyMongoError

T = TypeVar("T")

RECOVERABLE_ERRORS: tuple[type[Exception], ...] = (PyMongoError,)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of one attempt in a fallback chain: either a value or the error
    that prevented producing it.

    Outcomes compose into ordered chains where every tier only runs when all
    the previous ones failed:

        Outcome.attempt(primary)
            .or_else(lambda ex: Outcome.attempt(fallback))
            .unwrap_or(lambda ex: terminal_default)

    Only recoverable errors (driver errors by default) are captured. Any
    other exception escapes `attempt` untouched and aborts the chain.
    """
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def attempt(
        cls,
        func: Callable[[], T],
        recover: tuple[type[Exception], ...] = RECOVERABLE_ERRORS,
    ) -> "Outcome[T]":
        """Run func and capture either its result or a recoverable error."""
        try:
            return cls(value=func())
        except recover as ex:
            return cls(error=ex)

    def or_else(self, fallback: Callable[[Exception], "Outcome[T]"]) -> "Outcome[T]":
        """
        Return this outcome if it succeeded, otherwise the outcome of the
        fallback. The fallback receives the error that triggered it and is
        not called at all on success.
        """
        if self.ok:
            return self
        return fallback(self.error)

    def unwrap_or(self, default: Callable[[Exception], T]) -> T:
        """Return the value, or the terminal default built from the error."""
        if self.ok:
            return self.value
        return default(self.error)
