from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from sourcemark.core.config import DeployOptions, IncludeEntry, SetCommitsOptions
from sourcemark.core.result import Err, Ok, Result
from sourcemark.services.release.errors import ReleaseError


@dataclass
class FakeReleaseCli:
    """In-memory release collaborator recording every call.

    ``failures`` maps a method name to the message of the error it returns.
    """

    failures: dict[str, str] = field(default_factory=lambda: {})
    calls: list[str] = field(default_factory=lambda: [])
    uploaded_files: dict[str, str] = field(default_factory=lambda: {})
    upload_args: dict[str, object] = field(default_factory=lambda: {})

    def _result(self, method: str) -> Result[None, ReleaseError]:
        self.calls.append(method)
        message = self.failures.get(method)
        if message is not None:
            return Err(ReleaseError(kind="step_failed", message=message))
        return Ok(None)

    def create_release(self, name: str) -> Result[None, ReleaseError]:
        return self._result("create_release")

    def delete_artifacts(self, name: str) -> Result[None, ReleaseError]:
        return self._result("delete_artifacts")

    def upload_source_maps(
        self, name: str, include: Sequence[IncludeEntry], dist: str | None
    ) -> Result[None, ReleaseError]:
        self.upload_args = {"name": name, "include": tuple(include), "dist": dist}
        return self._result("upload_source_maps")

    def set_commits(self, name: str, options: SetCommitsOptions) -> Result[None, ReleaseError]:
        return self._result("set_commits")

    def finalize(self, name: str) -> Result[None, ReleaseError]:
        return self._result("finalize")

    def add_deploy(self, name: str, deploy: DeployOptions) -> Result[None, ReleaseError]:
        return self._result("add_deploy")

    def upload_debug_id_bundle(
        self, directory: Path, *, release: str | None, dist: str | None
    ) -> Result[None, ReleaseError]:
        # The directory is temporary; capture its content while it exists.
        self.uploaded_files = {
            p.name: p.read_text(encoding="utf-8") for p in sorted(directory.iterdir())
        }
        self.upload_args = {"release": release, "dist": dist}
        return self._result("upload_debug_id_bundle")


@pytest.fixture
def fake_cli() -> FakeReleaseCli:
    return FakeReleaseCli()
