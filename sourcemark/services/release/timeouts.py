from __future__ import annotations

# sentry-cli calls that only touch release metadata
CLI_TIMEOUT_SECONDS = 60.0

# Artifact uploads (source maps, debug id bundles)
CLI_UPLOAD_TIMEOUT_SECONDS = 10 * 60.0

# Local git operations used for release naming
GIT_TIMEOUT_SECONDS = 30.0
