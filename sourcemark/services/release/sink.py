"""Recoverable-error sink.

Every failure of the plugin (option validation, release naming, pipeline
steps, artifact upload) goes through RecoverableErrorSink.handle(). The error
policy is chosen once from the options: with an error handler, errors are
delivered to it and the build carries on; without one, the first error is
raised to the host build.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sourcemark.core.config import ErrorHandler
from sourcemark.output.console import ConsoleProtocol

from .errors import PipelineError, ReleaseError

__all__ = [
    "DelegatePolicy",
    "ErrorPolicy",
    "RaisePolicy",
    "RecoverableErrorSink",
    "coerce_error",
    "policy_from_handler",
]


@dataclass(frozen=True, slots=True)
class RaisePolicy:
    """Re-raise every error to the host build."""


@dataclass(frozen=True, slots=True)
class DelegatePolicy:
    """Deliver every error to a user callback and keep going."""

    handler: ErrorHandler


ErrorPolicy = RaisePolicy | DelegatePolicy


def policy_from_handler(handler: ErrorHandler | None) -> ErrorPolicy:
    if handler is None:
        return RaisePolicy()
    return DelegatePolicy(handler)


def coerce_error(error: object) -> Exception:
    """Bring any reported failure to an Exception instance."""
    if isinstance(error, Exception):
        return error
    if isinstance(error, ReleaseError):
        return PipelineError(error)
    return PipelineError(ReleaseError(kind="unknown", message="An unknown error occurred"))


@dataclass
class RecoverableErrorSink:
    """Single decision point between delegating and raising.

    Attributes:
        policy: Fixed at construction.
        console: Receives one debug line per handled error.
        errors: Every error handled so far, in order.
    """

    policy: ErrorPolicy
    console: ConsoleProtocol
    errors: list[Exception] = field(default_factory=lambda: [])

    def handle(self, error: object) -> None:
        """Report an error according to the policy.

        Raises:
            Exception: The coerced error, under RaisePolicy.
        """
        exc = coerce_error(error)
        self.errors.append(exc)
        self.console.debug(f"handling error: {exc}")

        match self.policy:
            case DelegatePolicy(handler=handler):
                handler(exc)
            case RaisePolicy():
                raise exc

    @property
    def failed(self) -> bool:
        return bool(self.errors)
