"""Release name resolution.

A configured release name always wins. Otherwise the name is the commit SHA
exposed by the CI provider, or ``git rev-parse HEAD`` as a last resort.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from sourcemark.core.result import Err
from sourcemark.platform.process import run as run_process

from .timeouts import GIT_TIMEOUT_SECONDS

__all__ = ["RELEASE_ENV_VARS", "determine_release_name", "git_revision"]

# First match wins.
RELEASE_ENV_VARS = (
    "SENTRY_RELEASE",
    # GitHub Actions
    "GITHUB_SHA",
    # Netlify
    "COMMIT_REF",
    # Cloudflare Pages
    "CF_PAGES_COMMIT_SHA",
    # AWS CodeBuild
    "CODEBUILD_RESOLVED_SOURCE_VERSION",
    # CircleCI
    "CIRCLE_SHA1",
    # Vercel
    "VERCEL_GIT_COMMIT_SHA",
    "VERCEL_GITHUB_COMMIT_SHA",
    "VERCEL_GITLAB_COMMIT_SHA",
    "VERCEL_BITBUCKET_COMMIT_SHA",
    # GitLab CI
    "CI_COMMIT_SHA",
    # Bitbucket Pipelines
    "BITBUCKET_COMMIT",
    # Heroku
    "SOURCE_VERSION",
)


def git_revision(cwd: Path) -> str | None:
    result = run_process(["git", "rev-parse", "HEAD"], cwd=cwd, timeout=GIT_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return None
    return result.value.strip() or None


def determine_release_name(
    *,
    configured: str | None,
    cwd: Path,
    env: Mapping[str, str] | None = None,
) -> str | None:
    """Return the release name, or None if nothing identifies this build."""
    if configured:
        return configured

    environ = os.environ if env is None else env
    for key in RELEASE_ENV_VARS:
        value = (environ.get(key) or "").strip()
        if value:
            return value

    return git_revision(cwd)
