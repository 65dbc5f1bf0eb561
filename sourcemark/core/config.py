"""Typed plugin options.

Options come either from a TOML file (``sourcemark.toml`` or the
``[tool.sourcemark]`` table of ``pyproject.toml``) or from a mapping handed
over by the host build. Everything is normalized into frozen dataclasses
before the pipeline sees it.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_str,
    get_str_list,
    get_table,
)

if TYPE_CHECKING:
    from sourcemark.output.console import ConsoleProtocol

__all__ = [
    "ConfigError",
    "DeployOptions",
    "ErrorHandler",
    "IncludeEntry",
    "Options",
    "SetCommitsOptions",
    "SourcemapsOptions",
    "load_options",
    "validate_options",
]

ErrorHandler = Callable[[Exception], None]

DEFAULT_INCLUDE_IGNORE = ("node_modules",)
DEFAULT_INCLUDE_EXT = ("js", "map", "jsbundle", "bundle")
DEFAULT_ASSETS_IGNORE = ("**/node_modules/**",)

_ENV_FALLBACKS = {
    "auth_token": "SENTRY_AUTH_TOKEN",
    "org": "SENTRY_ORG",
    "project": "SENTRY_PROJECT",
    "url": "SENTRY_URL",
}


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when an options file cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class IncludeEntry:
    """One set of paths to upload source maps from."""

    paths: tuple[str, ...]
    ignore: tuple[str, ...] = DEFAULT_INCLUDE_IGNORE
    ignore_file: str | None = None
    ext: tuple[str, ...] = DEFAULT_INCLUDE_EXT
    url_prefix: str | None = None
    url_suffix: str | None = None
    strip_prefix: tuple[str, ...] = ()
    strip_common_prefix: bool = False
    source_map_reference: bool = True
    rewrite: bool = True
    validate: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, object], defaults: IncludeEntry | None = None) -> IncludeEntry:
        base = defaults or cls(paths=())

        def _bool(key: str, fallback: bool) -> bool:
            value = get_bool(data, key)
            return fallback if value is None else value

        return cls(
            paths=get_str_list(data, "paths") or (),
            ignore=get_str_list(data, "ignore") or base.ignore,
            ignore_file=get_str(data, "ignore_file") or base.ignore_file,
            ext=get_str_list(data, "ext") or base.ext,
            url_prefix=get_str(data, "url_prefix") or base.url_prefix,
            url_suffix=get_str(data, "url_suffix") or base.url_suffix,
            strip_prefix=get_str_list(data, "strip_prefix") or base.strip_prefix,
            strip_common_prefix=_bool("strip_common_prefix", base.strip_common_prefix),
            source_map_reference=_bool("source_map_reference", base.source_map_reference),
            rewrite=_bool("rewrite", base.rewrite),
            validate=_bool("validate", base.validate),
        )


@dataclass(frozen=True, slots=True)
class SetCommitsOptions:
    """Commit association for a release.

    Either ``auto`` is set, or ``repo`` and ``commit`` name an explicit range
    (``previous_commit`` optional).
    """

    auto: bool = False
    repo: str | None = None
    commit: str | None = None
    previous_commit: str | None = None
    ignore_missing: bool = False
    ignore_empty: bool = False


@dataclass(frozen=True, slots=True)
class DeployOptions:
    """Deploy metadata attached to a finalized release."""

    env: str | None
    started: str | None = None
    finished: str | None = None
    time: str | None = None
    name: str | None = None
    url: str | None = None


@dataclass(frozen=True, slots=True)
class SourcemapsOptions:
    """Emitted assets to prepare for debug-id based upload."""

    assets: tuple[str, ...]
    ignore: tuple[str, ...] = DEFAULT_ASSETS_IGNORE


@dataclass(frozen=True, slots=True)
class Options:
    """Everything the injectors and the release pipeline consume."""

    release: str | None = None
    dist: str | None = None
    org: str | None = None
    project: str | None = None
    auth_token: str | None = None
    url: str | None = None
    include: tuple[IncludeEntry, ...] = ()
    clean_artifacts: bool = False
    upload_source_maps: bool = True
    finalize: bool = True
    inject_release: bool = True
    inject_build_information: bool = False
    set_commits: SetCommitsOptions | None = None
    deploy: DeployOptions | None = None
    sourcemaps: SourcemapsOptions | None = None
    silent: bool = False
    debug: bool = False
    error_handler: ErrorHandler | None = field(default=None, compare=False)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, object],
        env: Mapping[str, str] | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> Options:
        """Create Options from a mapping (parsed TOML or host options).

        Credentials missing from the mapping are read from the usual
        ``SENTRY_*`` environment variables.
        """
        environ = os.environ if env is None else env

        def _fallback(key: str) -> str | None:
            value = get_str(data, key)
            if value is not None:
                return value
            return (environ.get(_ENV_FALLBACKS[key]) or "").strip() or None

        def _flag(key: str, default: bool) -> bool:
            value = get_bool(data, key)
            return default if value is None else value

        set_commits = get_table(data, "set_commits")
        deploy = get_table(data, "deploy")
        sourcemaps = get_table(data, "sourcemaps")

        return cls(
            release=get_str(data, "release"),
            dist=get_str(data, "dist"),
            org=_fallback("org"),
            project=_fallback("project"),
            auth_token=_fallback("auth_token"),
            url=_fallback("url"),
            include=_parse_include(data),
            clean_artifacts=_flag("clean_artifacts", False),
            upload_source_maps=_flag("upload_source_maps", True),
            finalize=_flag("finalize", True),
            inject_release=_flag("inject_release", True),
            inject_build_information=_flag("inject_build_information", False),
            set_commits=_parse_set_commits(set_commits) if set_commits is not None else None,
            deploy=_parse_deploy(deploy) if deploy is not None else None,
            sourcemaps=_parse_sourcemaps(sourcemaps) if sourcemaps is not None else None,
            silent=_flag("silent", False),
            debug=_flag("debug", False),
            error_handler=error_handler,
        )


def _parse_include(data: Mapping[str, object]) -> tuple[IncludeEntry, ...]:
    """Accept a path, a list of paths, a table, or a list of tables.

    Top-level upload settings (``ignore``, ``ext``, ``url_prefix`` ...) act as
    defaults for every entry.
    """
    defaults = IncludeEntry.from_dict(data)
    raw = data.get("include")

    if isinstance(raw, str):
        return (IncludeEntry.from_dict({"paths": raw}, defaults),)

    table = as_str_dict(raw)
    if table is not None:
        return (IncludeEntry.from_dict(table, defaults),)

    items = as_obj_list(raw)
    if items is None:
        return ()

    entries: list[IncludeEntry] = []
    loose_paths: list[str] = []
    for item in items:
        if isinstance(item, str) and item.strip():
            loose_paths.append(item.strip())
            continue
        item_table = as_str_dict(item)
        if item_table is not None:
            entries.append(IncludeEntry.from_dict(item_table, defaults))
    if loose_paths:
        entries.insert(0, IncludeEntry.from_dict({"paths": loose_paths}, defaults))
    return tuple(entries)


def _parse_set_commits(data: StrDict) -> SetCommitsOptions:
    return SetCommitsOptions(
        auto=get_bool(data, "auto") or False,
        repo=get_str(data, "repo"),
        commit=get_str(data, "commit"),
        previous_commit=get_str(data, "previous_commit"),
        ignore_missing=get_bool(data, "ignore_missing") or False,
        ignore_empty=get_bool(data, "ignore_empty") or False,
    )


def _get_scalar(data: StrDict, key: str) -> str | None:
    value = data.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return str(value)
    return get_str(data, key)


def _parse_deploy(data: StrDict) -> DeployOptions:
    return DeployOptions(
        env=get_str(data, "env"),
        started=_get_scalar(data, "started"),
        finished=_get_scalar(data, "finished"),
        time=_get_scalar(data, "time"),
        name=get_str(data, "name"),
        url=get_str(data, "url"),
    )


def _parse_sourcemaps(data: StrDict) -> SourcemapsOptions:
    return SourcemapsOptions(
        assets=get_str_list(data, "assets") or (),
        ignore=get_str_list(data, "ignore") or DEFAULT_ASSETS_IGNORE,
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Options file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading options: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Options root must be a TOML table", path=path))

    if path.name == "pyproject.toml":
        tool = get_table(data, "tool") or {}
        section = get_table(tool, "sourcemark")
        if section is None:
            return Err(ConfigError("Missing [tool.sourcemark] table", path=path))
        return Ok(section)
    return Ok(data)


def load_options(
    path: Path,
    *,
    env: Mapping[str, str] | None = None,
    error_handler: ErrorHandler | None = None,
) -> Result[Options, ConfigError]:
    """Load and normalize options from a TOML file.

    Args:
        path: ``sourcemark.toml`` or ``pyproject.toml``.
        env: Environment used for credential fallbacks (default: os.environ).
        error_handler: Programmatic error callback; cannot come from TOML.

    Returns:
        Ok(Options) on success, Err(ConfigError) on failure.
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Options.from_dict(result.value, env=env, error_handler=error_handler))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid options structure: {e}", path=path))


def validate_options(options: Options, console: ConsoleProtocol) -> bool:
    """Print every option problem and return False if there was any."""
    ok = True

    sc = options.set_commits
    if sc is not None and not sc.auto and not (sc.repo and sc.commit):
        console.error(
            "set_commits: either set `auto = true` or provide both `repo` and `commit`."
        )
        ok = False
    if sc is not None and sc.auto and (sc.repo or sc.commit):
        console.warning("set_commits: `auto` is enabled, `repo` and `commit` will be ignored.")

    if options.deploy is not None and options.deploy.env is None:
        console.error("deploy: `env` is required when deploy information is configured.")
        ok = False

    for entry in options.include:
        if not entry.paths:
            console.error("include: every entry needs at least one path.")
            ok = False
            break

    return ok
