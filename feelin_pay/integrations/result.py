"""
CallResult: outcome of one external call.

Service code never lets an integration exception escape past the
component that made the call. It converts the exception into a failed
CallResult so callers branch on a value instead of a try/except.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CallResult(Generic[T]):
    """Success value or typed failure."""
    ok: bool
    value: Optional[T] = None
    error: Optional[Exception] = None

    @classmethod
    def succeeded(cls, value: Optional[T] = None) -> "CallResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failed(cls, error: Exception) -> "CallResult[T]":
        return cls(ok=False, error=error)

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return getattr(self.error, "message", None) or str(self.error)
