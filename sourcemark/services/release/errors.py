"""Error types for the release pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

__all__ = ["PipelineError", "ReleaseError", "ReleaseErrorKind"]

ReleaseErrorKind = Literal[
    "invalid_options",
    "release_name_missing",
    "cli_missing",
    "step_failed",
    "artifact_failed",
    "unknown",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Structured failure payload returned by collaborators and steps.

    Attributes:
        kind: Failure category.
        message: One-line description.
        hint: Extra detail (usually the CLI's stderr).
        step: Pipeline step that failed, if any.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    step: str | None = None

    def pretty(self) -> str:
        prefix = f"{self.step}: " if self.step else ""
        if self.hint:
            return f"{prefix}{self.message} (hint: {self.hint})"
        return f"{prefix}{self.message}"


class PipelineError(Exception):
    """Uniform exception shape handed to error callbacks or raised to the host."""

    def __init__(self, error: ReleaseError) -> None:
        super().__init__(error.pretty())
        self.error = error

    @property
    def kind(self) -> ReleaseErrorKind:
        return self.error.kind

    @property
    def step(self) -> str | None:
        return self.error.step
