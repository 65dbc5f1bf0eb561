"""Release name injection.

Every user entry module gets an appended ``import "<synthetic id>";``. The
host resolves that id back to this plugin, which serves a tiny module setting
``SENTRY_RELEASE`` on the runtime global. Import statements hoist, so
appending is as good as prepending and leaves upstream source maps alone.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from pathlib import Path

from sourcemark.core.edit_buffer import EditBuffer
from sourcemark.core.structured import as_str_dict, get_table

from .hooks import BuildPlugin, ResolvedId, TransformResult

__all__ = [
    "SOURCE_EXTENSIONS",
    "SYNTHETIC_MODULE_ID",
    "ReleaseInjectionPlugin",
    "generate_global_injector_code",
    "get_build_information",
    "is_dependency_path",
]

# The NUL prefix keeps the id from ever colliding with a file on disk.
SYNTHETIC_MODULE_ID = "\0sentry-release-injection-file"

SOURCE_EXTENSIONS = (".js", ".ts", ".jsx", ".tsx", ".mjs")

_DEPENDENCY_SEGMENT = re.compile(r"\\node_modules\\|/node_modules/")

# Packages whose major version is worth shipping in build information.
_TRACKED_PACKAGES = (
    "react",
    "@angular/core",
    "vue",
    "ember-source",
    "svelte",
    "@sveltejs/kit",
    "webpack",
    "vite",
    "gatsby",
    "next",
    "remix",
    "rollup",
    "esbuild",
)

_MAJOR = re.compile(r"(\d+)\.")


def is_dependency_path(path: str) -> bool:
    return _DEPENDENCY_SEGMENT.search(path) is not None


def get_build_information(project_root: Path) -> dict[str, object]:
    """Summarize declared JavaScript dependencies of the project.

    Reads ``package.json`` in project_root. A missing or unreadable file
    yields empty lists rather than an error.
    """
    deps: list[str] = []
    versions: dict[str, int] = {}
    try:
        raw: object = json.loads((project_root / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        raw = None

    package = as_str_dict(raw) or {}
    declared: dict[str, object] = {}
    for section in ("dependencies", "devDependencies"):
        declared.update(get_table(package, section) or {})

    for name in sorted(declared):
        deps.append(name)
        version = declared[name]
        if name in _TRACKED_PACKAGES and isinstance(version, str):
            m = _MAJOR.search(version)
            if m:
                versions[name] = int(m.group(1))

    return {"deps": deps, "depsVersions": versions}


def generate_global_injector_code(
    release: str,
    build_info: Mapping[str, object] | None = None,
) -> str:
    """Build the synthetic module body that publishes the release name."""
    code = (
        "\n"
        "var _global =\n"
        "  typeof window !== 'undefined' ?\n"
        "    window :\n"
        "    typeof global !== 'undefined' ?\n"
        "      global :\n"
        "      typeof self !== 'undefined' ?\n"
        "        self :\n"
        "        {};\n"
        "\n"
        f"_global.SENTRY_RELEASE={{id:{json.dumps(release)}}};"
    )
    if build_info is not None:
        code += f"\n_global.SENTRY_BUILD_INFO={json.dumps(dict(build_info))};"
    return code


class ReleaseInjectionPlugin(BuildPlugin):
    """Pull the release-name module into every user source module."""

    name = "sourcemark-release-injection"

    def __init__(self, injection_code: str) -> None:
        self.injection_code = injection_code

    def resolve_id(self, module_id: str) -> ResolvedId | None:
        if module_id != SYNTHETIC_MODULE_ID:
            return None
        return ResolvedId(id=SYNTHETIC_MODULE_ID, external=False, module_side_effects=True)

    def load(self, module_id: str) -> str | None:
        if module_id != SYNTHETIC_MODULE_ID:
            return None
        return self.injection_code

    def transform(self, code: str, module_id: str) -> TransformResult | None:
        if module_id == SYNTHETIC_MODULE_ID:
            return None
        if is_dependency_path(module_id):
            return None
        if not module_id.endswith(SOURCE_EXTENSIONS):
            return None

        buf = EditBuffer(code, filename=module_id)
        buf.append(f'\n\n;import "{SYNTHETIC_MODULE_ID}";')
        return TransformResult(code=buf.to_string(), map=buf.generate_map())
