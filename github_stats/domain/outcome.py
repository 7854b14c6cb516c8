"""Outcome of a single outbound request."""

from dataclasses import dataclass
from typing import Any, Optional


SUCCESS = "success"
EMPTY = "empty"
FAILURE = "failure"


@dataclass(frozen=True)
class FetchResult:
    """
    Distinguishes data, expected absence and failure.

    Empty covers resources that are legitimately absent (not found, forbidden,
    no content). Failure covers everything that went wrong on the way.
    """

    kind: str
    value: Any = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "FetchResult":
        return cls(SUCCESS, value=value)

    @classmethod
    def empty(cls, reason: Optional[str] = None) -> "FetchResult":
        return cls(EMPTY, reason=reason)

    @classmethod
    def failure(cls, reason: str) -> "FetchResult":
        return cls(FAILURE, reason=reason)

    @property
    def ok(self) -> bool:
        return self.kind == SUCCESS

    @property
    def is_empty(self) -> bool:
        return self.kind == EMPTY

    @property
    def is_failure(self) -> bool:
        return self.kind == FAILURE

    def value_or(self, default: Any) -> Any:
        return self.value if self.ok else default
