"""Debug-id artifact upload.

After the bundle is written, every emitted script that carries an injected
debug id is copied with its source map into a temporary directory. The map
gets the same debug id, so the backend can pair them without relying on file
names, and the directory is uploaded in one call.
"""

from __future__ import annotations

import fnmatch
import glob
import json
import tempfile
from dataclasses import dataclass
from pathlib import Path

from sourcemark.core.config import SourcemapsOptions
from sourcemark.core.result import Err, Ok, Result
from sourcemark.core.structured import as_str_dict
from sourcemark.inject.debug_id import CHUNK_EXTENSIONS, find_debug_id, find_source_map
from sourcemark.output.console import ConsoleProtocol
from sourcemark.services.release.errors import ReleaseError
from sourcemark.services.release.sentry_cli import ReleaseCli
from sourcemark.services.release.sink import RecoverableErrorSink

__all__ = [
    "PreparedArtifact",
    "collect_assets",
    "prepare_artifact",
    "upload_debug_id_artifacts",
]


@dataclass(frozen=True, slots=True)
class PreparedArtifact:
    source: Path
    debug_id: str
    bundle_path: Path
    map_path: Path | None


def _is_ignored(rel: str, patterns: tuple[str, ...]) -> bool:
    return any(fnmatch.fnmatch(rel, p) or fnmatch.fnmatch("/" + rel, p) for p in patterns)


def collect_assets(assets: tuple[str, ...], ignore: tuple[str, ...], *, cwd: Path) -> list[Path]:
    """Resolve asset globs relative to cwd, keeping scripts only."""
    found: set[Path] = set()
    for pattern in assets:
        for match in glob.glob(pattern, root_dir=cwd, recursive=True):
            path = Path(match)
            path = path if path.is_absolute() else cwd / path
            if not path.is_file() or not path.name.endswith(CHUNK_EXTENSIONS):
                continue
            try:
                rel = path.relative_to(cwd).as_posix()
            except ValueError:
                rel = path.as_posix()
            if _is_ignored(rel, ignore):
                continue
            found.add(path)
    return sorted(found)


def prepare_artifact(
    path: Path, *, index: int, out_dir: Path, console: ConsoleProtocol
) -> Result[PreparedArtifact | None, ReleaseError]:
    """Copy one script and its map into out_dir under a debug-id name.

    Returns Ok(None) for scripts without an injected debug id.
    """
    try:
        code = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return Err(ReleaseError(kind="artifact_failed", message=f"cannot read {path}", hint=str(e)))

    debug_id = find_debug_id(code)
    if debug_id is None:
        console.warning(f"no debug id found in {path}, skipping upload")
        return Ok(None)

    stem = f"{debug_id}-{index}"
    bundle_path = out_dir / f"{stem}.js"
    map_path: Path | None = None
    try:
        bundle_path.write_text(f"{code}\n//# debugId={debug_id}\n", encoding="utf-8")

        source_map = find_source_map(path, code)
        if source_map is None:
            console.warning(f"no source map found for {path}")
        else:
            raw = as_str_dict(json.loads(source_map.read_text(encoding="utf-8")))
            if raw is None:
                return Err(
                    ReleaseError(
                        kind="artifact_failed",
                        message=f"source map is not a JSON object: {source_map}",
                    )
                )
            raw["debug_id"] = debug_id
            raw["debugId"] = debug_id
            map_path = out_dir / f"{stem}.js.map"
            map_path.write_text(json.dumps(raw), encoding="utf-8")
    except (OSError, ValueError) as e:
        return Err(
            ReleaseError(kind="artifact_failed", message=f"cannot prepare {path}", hint=str(e))
        )

    return Ok(
        PreparedArtifact(source=path, debug_id=debug_id, bundle_path=bundle_path, map_path=map_path)
    )


def upload_debug_id_artifacts(
    sourcemaps: SourcemapsOptions,
    *,
    release: str | None,
    dist: str | None,
    cwd: Path,
    cli: ReleaseCli,
    sink: RecoverableErrorSink,
    console: ConsoleProtocol,
) -> list[PreparedArtifact]:
    """Prepare and upload every debug-id carrying asset.

    Failures go to the sink; the temporary directory is removed either way.
    """
    paths = collect_assets(sourcemaps.assets, sourcemaps.ignore, cwd=cwd)
    if not paths:
        console.warning("didn't find any matching assets to upload")
        return []

    prepared: list[PreparedArtifact] = []
    with tempfile.TemporaryDirectory(prefix="sourcemark-") as tmp:
        out_dir = Path(tmp)
        for index, path in enumerate(paths):
            result = prepare_artifact(path, index=index, out_dir=out_dir, console=console)
            if isinstance(result, Err):
                sink.handle(result.error)
                continue
            if result.value is not None:
                prepared.append(result.value)

        if not prepared:
            return []

        console.debug(f"uploading {len(prepared)} debug id artifact(s) from {out_dir}")
        upload = cli.upload_debug_id_bundle(out_dir, release=release, dist=dist)
        if isinstance(upload, Err):
            sink.handle(upload.error)
            return []

    console.success(f"uploaded {len(prepared)} debug id artifact(s)")
    return prepared
