"""Release management: naming, remote pipeline and error routing."""

from .errors import PipelineError, ReleaseError
from .name import determine_release_name
from .pipeline import (
    RELEASE_STEPS,
    PipelineReport,
    PipelineStep,
    ReleaseSettings,
    StepOutcome,
    run_pipeline,
)
from .sentry_cli import ReleaseCli, SentryCli
from .sink import DelegatePolicy, RaisePolicy, RecoverableErrorSink, policy_from_handler

__all__ = [
    "DelegatePolicy",
    "PipelineError",
    "PipelineReport",
    "PipelineStep",
    "RELEASE_STEPS",
    "RaisePolicy",
    "RecoverableErrorSink",
    "ReleaseCli",
    "ReleaseError",
    "ReleaseSettings",
    "SentryCli",
    "StepOutcome",
    "determine_release_name",
    "policy_from_handler",
    "run_pipeline",
]
