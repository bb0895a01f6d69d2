"""
Tagged result values passed between proxy components.

Components never raise for expected failures. They return a Result
carrying either a value or a ProxyError, and the orchestrator decides
how to fall back based on the error kind.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Classification of everything that can stop a live answer."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ProxyError:
    """A classified failure."""

    kind: ErrorKind
    """Which branch of the fallback ladder applies."""

    message: str
    """Human readable description, rendered as {"error": message}."""

    status_code: int | None = None
    """Upstream status code, when the upstream answered at all."""

    body: Any = None
    """Upstream response body, propagated verbatim when nothing is cached."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a ProxyError, never both."""

    value: T | None = None
    error: ProxyError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> "Result[T]":
        return cls(error=ProxyError(kind, message, status_code, body))
