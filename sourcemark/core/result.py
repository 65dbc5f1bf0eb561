"""Result type for explicit error handling.

Remote operations and file reads return a Result instead of raising, so the
caller decides where a failure ends up (usually the recoverable-error sink).

Usage:
    match cli.create_release("my-app@1.2.3"):
        case Ok(_):
            console.success("release created")
        case Err(error):
            sink.handle(error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

__all__ = ["Err", "Ok", "Result"]

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed result; ``error`` is usually a frozen dataclass payload."""

    error: E


Result: TypeAlias = Ok[T] | Err[E]
