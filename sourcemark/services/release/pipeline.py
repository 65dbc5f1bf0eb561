"""Release pipeline.

The pipeline is an ordered tuple of step descriptors run by one generic
runner. Order is fixed: create, clean-artifacts, upload-sourcemaps,
set-commits, finalize, deploy. Each step is enabled by the options, none is
retried, and every failure is reported through the recoverable-error sink.
Only release creation is fatal: when it fails, nothing else runs.

Usage:
    report = run_pipeline(
        ReleaseSettings.from_options("my-app@1.2.3", options),
        cli=SentryCli(options, cwd=root, console=console),
        sink=sink,
        console=console,
    )
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Literal

from sourcemark.core.config import DeployOptions, IncludeEntry, Options, SetCommitsOptions
from sourcemark.core.result import Err, Result
from sourcemark.output.console import ConsoleProtocol

from .errors import ReleaseError
from .sentry_cli import ReleaseCli
from .sink import RecoverableErrorSink

__all__ = [
    "RELEASE_STEPS",
    "PipelineReport",
    "PipelineStep",
    "ReleaseSettings",
    "StepName",
    "StepOutcome",
    "run_pipeline",
]

StepName = Literal[
    "create",
    "clean-artifacts",
    "upload-sourcemaps",
    "set-commits",
    "finalize",
    "deploy",
]
StepStatus = Literal["ok", "failed", "skipped", "not_run"]


@dataclass(frozen=True, slots=True)
class ReleaseSettings:
    """The part of the options the pipeline consumes, for one release."""

    name: str
    clean_artifacts: bool = False
    upload_source_maps: bool = True
    finalize: bool = True
    include: tuple[IncludeEntry, ...] = ()
    dist: str | None = None
    set_commits: SetCommitsOptions | None = None
    deploy: DeployOptions | None = None

    @classmethod
    def from_options(cls, name: str, options: Options) -> ReleaseSettings:
        return cls(
            name=name,
            clean_artifacts=options.clean_artifacts,
            upload_source_maps=options.upload_source_maps,
            finalize=options.finalize,
            include=options.include,
            dist=options.dist,
            set_commits=options.set_commits,
            deploy=options.deploy,
        )


@dataclass(frozen=True, slots=True)
class PipelineStep:
    """One remote operation against the release.

    Attributes:
        name: Stable step identifier, used in reports and errors.
        enabled: Whether the step runs for the given settings.
        action: Performs the step; never partially applied.
        fatal: A failure stops the remaining steps.
    """

    name: StepName
    enabled: Callable[[ReleaseSettings], bool]
    action: Callable[[ReleaseCli, ReleaseSettings], Result[None, ReleaseError]]
    fatal: bool = False


def _set_commits(cli: ReleaseCli, s: ReleaseSettings) -> Result[None, ReleaseError]:
    if s.set_commits is None:
        return Err(ReleaseError(kind="invalid_options", message="set_commits is not configured"))
    return cli.set_commits(s.name, s.set_commits)


def _deploy(cli: ReleaseCli, s: ReleaseSettings) -> Result[None, ReleaseError]:
    if s.deploy is None:
        return Err(ReleaseError(kind="invalid_options", message="deploy is not configured"))
    return cli.add_deploy(s.name, s.deploy)


RELEASE_STEPS: tuple[PipelineStep, ...] = (
    PipelineStep(
        name="create",
        enabled=lambda s: True,
        action=lambda cli, s: cli.create_release(s.name),
        fatal=True,
    ),
    PipelineStep(
        name="clean-artifacts",
        enabled=lambda s: s.clean_artifacts,
        action=lambda cli, s: cli.delete_artifacts(s.name),
    ),
    PipelineStep(
        name="upload-sourcemaps",
        enabled=lambda s: s.upload_source_maps and bool(s.include),
        action=lambda cli, s: cli.upload_source_maps(s.name, s.include, s.dist),
    ),
    PipelineStep(
        name="set-commits",
        enabled=lambda s: s.set_commits is not None,
        action=_set_commits,
    ),
    PipelineStep(
        name="finalize",
        enabled=lambda s: s.finalize,
        action=lambda cli, s: cli.finalize(s.name),
    ),
    PipelineStep(
        name="deploy",
        enabled=lambda s: s.deploy is not None,
        action=_deploy,
    ),
)


@dataclass(frozen=True, slots=True)
class StepOutcome:
    step: StepName
    status: StepStatus
    error: ReleaseError | None = None


@dataclass(frozen=True, slots=True)
class PipelineReport:
    """What happened to each step, in pipeline order."""

    release: str
    outcomes: tuple[StepOutcome, ...]

    @property
    def executed(self) -> tuple[StepName, ...]:
        """Steps that were attempted, successful or not."""
        return tuple(o.step for o in self.outcomes if o.status in ("ok", "failed"))

    @property
    def failed(self) -> tuple[StepOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status == "failed")

    @property
    def ok(self) -> bool:
        return not self.failed and all(o.status != "not_run" for o in self.outcomes)

    def outcome(self, step: StepName) -> StepOutcome | None:
        for o in self.outcomes:
            if o.step == step:
                return o
        return None


def _run_step(
    step: PipelineStep, cli: ReleaseCli, settings: ReleaseSettings
) -> Result[None, ReleaseError]:
    try:
        return step.action(cli, settings)
    except Exception as e:  # collaborator bug or transport failure
        return Err(
            ReleaseError(
                kind="step_failed",
                message=f"{type(e).__name__}: {e}",
            )
        )


def run_pipeline(
    settings: ReleaseSettings,
    *,
    cli: ReleaseCli,
    sink: RecoverableErrorSink,
    console: ConsoleProtocol,
    steps: tuple[PipelineStep, ...] = RELEASE_STEPS,
) -> PipelineReport:
    """Run the release steps strictly in order.

    Failures are routed to the sink, which either records them and lets the
    run continue or raises to the caller. A failed fatal step marks every
    later step as ``not_run``. Without a release name no step runs.
    """
    if not settings.name.strip():
        missing = ReleaseError(
            kind="release_name_missing",
            message="Unable to determine a release name. Please set the `release` option.",
        )
        console.error(missing.pretty())
        sink.handle(missing)
        return PipelineReport(
            release=settings.name,
            outcomes=tuple(StepOutcome(step.name, "not_run") for step in steps),
        )

    outcomes: list[StepOutcome] = []
    aborted = False

    for step in steps:
        if aborted:
            outcomes.append(StepOutcome(step.name, "not_run"))
            continue
        if not step.enabled(settings):
            console.debug(f"{step.name}: skipped")
            outcomes.append(StepOutcome(step.name, "skipped"))
            continue

        console.debug(f"{step.name}: running for release {settings.name}")
        result = _run_step(step, cli, settings)
        if isinstance(result, Err):
            error = replace(result.error, step=step.name)
            outcomes.append(StepOutcome(step.name, "failed", error))
            aborted = step.fatal
            console.error(error.pretty())
            sink.handle(error)
            continue

        console.success(f"{step.name}: {settings.name}")
        outcomes.append(StepOutcome(step.name, "ok"))

    return PipelineReport(release=settings.name, outcomes=tuple(outcomes))
