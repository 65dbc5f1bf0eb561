"""Debug id injection into rendered chunks.

Each JavaScript chunk receives a one-line snippet recording its debug id on
the runtime global, keyed by the stack of an Error created inside the chunk.
The snippet goes after any leading comments and directive prologue, since a
statement in front of ``"use strict";`` would turn the directive into a plain
expression.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from sourcemark.core.debug_id import debug_id_for
from sourcemark.core.edit_buffer import EditBuffer, utf16_length
from sourcemark.core.result import Err, Ok, Result
from sourcemark.core.structured import as_str_dict
from sourcemark.core.vlq import decode_mappings, encode_mappings
from sourcemark.platform.files import write_texts_atomically

from .hooks import BuildPlugin, Chunk, RenderedChunk

__all__ = [
    "CHUNK_EXTENSIONS",
    "DEBUG_ID_IDENTIFIER",
    "DebugIdInjectionPlugin",
    "InjectError",
    "InjectedFile",
    "debug_id_snippet",
    "find_debug_id",
    "find_source_map",
    "inject_debug_id",
    "inject_directory",
    "inject_file",
]

# Chunks can be any emitted file (html, md, ...); only scripts are touched.
CHUNK_EXTENSIONS = (".js", ".mjs", ".cjs")

# Leading whitespace, block comments and line comments in any order, then at
# most one directive. Always matches, possibly the empty string.
PROLOGUE = re.compile(r"""^(?:\s+|/\*[\s\S]*?\*/|//.*[\n\r])*(?:"[^"]*";|'[^']*';)?""")

DEBUG_ID_IDENTIFIER = re.compile(
    r"sentry-dbid-([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})"
)

_SOURCE_MAPPING_URL = re.compile(r"^[/@]{2}[#@]\s*sourceMappingURL=(\S+)\s*$", re.MULTILINE)


def debug_id_snippet(debug_id: str) -> str:
    """Return the self-contained snippet recording debug_id at runtime."""
    return (
        ';!function(){try{var e="undefined"!=typeof window?window:"undefined"!=typeof global'
        '?global:"undefined"!=typeof self?self:{},n=(new Error).stack;'
        "n&&(e._sentryDebugIds=e._sentryDebugIds||{},"
        f'e._sentryDebugIds[n]="{debug_id}",'
        f'e._sentryDebugIdIdentifier="sentry-dbid-{debug_id}")'
        "}catch(e){}}();"
    )


def _insertion_offset(code: str) -> int:
    match = PROLOGUE.match(code)
    return match.end() if match else 0


def inject_debug_id(code: str, file_name: str) -> RenderedChunk:
    """Insert the debug id snippet for code and regenerate its map."""
    snippet = debug_id_snippet(debug_id_for(code))
    buf = EditBuffer(code, filename=file_name)

    if _insertion_offset(code):
        buf.replace_match(PROLOGUE, lambda matched: f"{matched}{snippet}")
    else:
        # An empty match cannot be replaced; nothing precedes the code.
        buf.prepend(snippet)

    return RenderedChunk(code=buf.to_string(), map=buf.generate_map(file=file_name))


def find_debug_id(code: str) -> str | None:
    """Return the debug id recorded by an injected snippet, if any."""
    match = DEBUG_ID_IDENTIFIER.search(code)
    return match.group(1) if match else None


class DebugIdInjectionPlugin(BuildPlugin):
    """render_chunk hook injecting a content-derived debug id per chunk."""

    name = "sourcemark-debug-id-injection"

    def render_chunk(self, code: str, chunk: Chunk) -> RenderedChunk | None:
        if not chunk.file_name.endswith(CHUNK_EXTENSIONS):
            return None
        return inject_debug_id(code, chunk.file_name)


# -----------------------------------------------------------------------------
# Post-build injection
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InjectError:
    path: Path
    message: str


@dataclass(frozen=True, slots=True)
class InjectedFile:
    path: Path
    debug_id: str
    map_path: Path | None
    skipped: bool = False


def find_source_map(path: Path, code: str) -> Path | None:
    """Locate the source map of an emitted file.

    The last ``sourceMappingURL`` comment wins; data URLs and remote URLs are
    ignored. Falls back to a ``<file>.map`` sibling.
    """
    urls = _SOURCE_MAPPING_URL.findall(code)
    if urls:
        url = urls[-1]
        if not url.startswith("data:") and "://" not in url:
            candidate = (path.parent / url.split("?", 1)[0]).resolve()
            if candidate.is_file():
                return candidate
    sibling = path.with_name(path.name + ".map")
    return sibling if sibling.is_file() else None


def _shift_map(
    raw: dict[str, object], *, line: int, column: int, delta: int, debug_id: str
) -> dict[str, object]:
    """Move mappings after a single-line insertion and record the debug id."""
    mappings = raw.get("mappings")
    if isinstance(mappings, str) and delta:
        lines = decode_mappings(mappings)
        if line < len(lines):
            lines[line] = [
                (seg[0] + delta, *seg[1:]) if seg[0] >= column else seg for seg in lines[line]
            ]
        raw["mappings"] = encode_mappings(lines)
    raw["debug_id"] = debug_id
    raw["debugId"] = debug_id
    return raw


def inject_file(path: Path, *, dry_run: bool = False) -> Result[InjectedFile, InjectError]:
    """Inject a debug id into one emitted file and patch its source map.

    Files that already carry a debug id are left untouched, so running the
    injection twice over the same output is harmless.
    """
    try:
        code = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return Err(InjectError(path=path, message=f"cannot read: {e}"))

    map_path = find_source_map(path, code)
    existing = find_debug_id(code)
    if existing is not None:
        return Ok(InjectedFile(path=path, debug_id=existing, map_path=map_path, skipped=True))

    rendered = inject_debug_id(code, path.name)
    debug_id = find_debug_id(rendered.code) or debug_id_for(code)
    if dry_run:
        return Ok(InjectedFile(path=path, debug_id=debug_id, map_path=map_path))

    # Map columns count UTF-16 code units.
    offset = _insertion_offset(code)
    line = code.count("\n", 0, offset)
    column = utf16_length(code[code.rfind("\n", 0, offset) + 1 : offset])
    delta = utf16_length(debug_id_snippet(debug_id))

    outputs = [(path, rendered.code)]
    if map_path is not None:
        try:
            raw = as_str_dict(json.loads(map_path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as e:
            return Err(InjectError(path=map_path, message=f"cannot read: {e}"))
        except ValueError as e:
            return Err(InjectError(path=map_path, message=f"invalid source map: {e}"))
        if raw is None:
            return Err(InjectError(path=map_path, message="source map is not a JSON object"))
        try:
            patched = _shift_map(raw, line=line, column=column, delta=delta, debug_id=debug_id)
        except ValueError as e:
            return Err(InjectError(path=map_path, message=f"invalid source map: {e}"))
        outputs.append((map_path, json.dumps(patched)))

    # Script and map are replaced together; a failure leaves both untouched.
    try:
        write_texts_atomically(outputs)
    except OSError as e:
        return Err(InjectError(path=path, message=f"cannot write: {e}"))

    return Ok(InjectedFile(path=path, debug_id=debug_id, map_path=map_path))


def inject_directory(
    root: Path, *, dry_run: bool = False
) -> list[Result[InjectedFile, InjectError]]:
    """Inject every script under root, skipping dependency trees."""
    results: list[Result[InjectedFile, InjectError]] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or not path.name.endswith(CHUNK_EXTENSIONS):
            continue
        if "node_modules" in path.relative_to(root).parts:
            continue
        results.append(inject_file(path, dry_run=dry_run))
    return results
