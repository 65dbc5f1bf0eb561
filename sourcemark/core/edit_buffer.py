"""Position-preserving text edits.

EditBuffer records edits against the original text instead of mutating a
string in place. Rendering the edited text and generating the source map are
two separate passes over the same edit list, so every generated position can
be traced back to the original offset it came from.

Usage:
    buf = EditBuffer(code, filename="main.js")
    buf.append('\\n;import "virtual";')
    result = TransformResult(code=buf.to_string(), map=buf.generate_map())
"""

from __future__ import annotations

import base64
import json
import re
from bisect import bisect_right
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from .vlq import Segment, encode_mappings

__all__ = ["EditBuffer", "EditError", "SourceMap", "utf16_length"]


def utf16_length(text: str) -> int:
    """Length of text in UTF-16 code units, the unit of source map columns."""
    return len(text.encode("utf-16-le")) // 2


class EditError(ValueError):
    """Raised for edits the buffer cannot represent faithfully."""


@dataclass(frozen=True, slots=True)
class SourceMap:
    """A version 3 source map."""

    mappings: str
    sources: tuple[str, ...]
    names: tuple[str, ...] = ()
    file: str | None = None
    sources_content: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {"version": 3}
        if self.file is not None:
            out["file"] = self.file
        out["sources"] = list(self.sources)
        if self.sources_content is not None:
            out["sourcesContent"] = list(self.sources_content)
        out["names"] = list(self.names)
        out["mappings"] = self.mappings
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def to_url(self) -> str:
        """Return the map as a base64 data URL for inline sourceMappingURL comments."""
        encoded = base64.b64encode(self.to_json().encode("utf-8")).decode("ascii")
        return f"data:application/json;charset=utf-8;base64,{encoded}"


@dataclass(frozen=True, slots=True)
class _Edit:
    start: int
    end: int
    content: str
    seq: int

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end


class EditBuffer:
    """Text buffer with an explicit edit list anchored at original offsets.

    Attributes:
        original: The unedited text. Never modified.
        filename: Default source name used by generate_map().
    """

    def __init__(self, original: str, filename: str | None = None) -> None:
        self.original = original
        self.filename = filename
        self._intro = ""
        self._outro = ""
        self._edits: list[_Edit] = []
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", original)]

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def prepend(self, text: str) -> EditBuffer:
        """Insert text before everything, including earlier prepends."""
        self._intro = text + self._intro
        return self

    def append(self, text: str) -> EditBuffer:
        """Insert text after everything, including earlier appends."""
        self._outro = self._outro + text
        return self

    def insert(self, offset: int, text: str) -> EditBuffer:
        """Insert text at an original offset.

        Raises:
            EditError: If the offset is out of range or inside a replaced range.
        """
        if not 0 <= offset <= len(self.original):
            raise EditError(f"offset out of range: {offset}")
        if text:
            self._add(offset, offset, text)
        return self

    def replace_match(
        self,
        pattern: str | re.Pattern[str],
        replacer: Callable[[str], str] | str,
    ) -> EditBuffer:
        """Replace the first match of pattern in the original text.

        A replacement that keeps the matched text as its prefix or suffix is
        stored as an insertion next to the match, so the matched original
        text stays mapped character for character.

        Args:
            pattern: Regular expression searched in the original text.
            replacer: Replacement text, or a function of the matched text.

        Raises:
            EditError: If the pattern matches the empty string, or the match
                overlaps an existing replacement. Callers wanting to insert at
                an empty match must use prepend() or insert().
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        match = regex.search(self.original)
        if match is None:
            return self

        matched = match.group(0)
        if not matched:
            raise EditError("cannot replace an empty match")

        replacement = replacer(matched) if callable(replacer) else replacer
        start, end = match.span()
        if replacement.startswith(matched):
            return self.insert(end, replacement[len(matched) :])
        if replacement.endswith(matched):
            return self.insert(start, replacement[: len(replacement) - len(matched)])
        self._add(start, end, replacement)
        return self

    def _add(self, start: int, end: int, content: str) -> None:
        for edit in self._edits:
            if edit.is_insertion and start < edit.start < end:
                raise EditError(f"replacement [{start}, {end}) spans an insertion")
            if not edit.is_insertion and edit.start < end and start < edit.end:
                raise EditError(f"edit [{start}, {end}) overlaps [{edit.start}, {edit.end})")
        self._edits.append(_Edit(start, end, content, len(self._edits)))

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _chunks(self) -> Iterator[tuple[str, int | None, bool]]:
        """Yield (text, original offset, is original text) in output order."""
        if self._intro:
            yield self._intro, None, False

        pos = 0
        ordered = sorted(self._edits, key=lambda e: (e.start, not e.is_insertion, e.seq))
        for edit in ordered:
            if edit.start > pos:
                yield self.original[pos : edit.start], pos, True
            if edit.is_insertion:
                yield edit.content, None, False
            else:
                yield edit.content, edit.start, False
            pos = max(pos, edit.end)
        if pos < len(self.original):
            yield self.original[pos:], pos, True

        if self._outro:
            yield self._outro, None, False

    def to_string(self) -> str:
        return "".join(text for text, _, _ in self._chunks())

    def __str__(self) -> str:
        return self.to_string()

    def has_changed(self) -> bool:
        return bool(self._intro or self._outro or self._edits)

    def _locate(self, offset: int) -> tuple[int, int]:
        line = bisect_right(self._line_starts, offset) - 1
        return line, utf16_length(self.original[self._line_starts[line] : offset])

    def generate_map(
        self,
        *,
        file: str | None = None,
        source: str | None = None,
        include_content: bool = False,
    ) -> SourceMap:
        """Build a source map from the edited text back to the original.

        Original text is mapped at the start of every span and every line.
        Inserted text is left unmapped; replacement text maps its first
        character to the start of the range it replaced.

        Args:
            file: Value for the map's ``file`` field.
            source: Source name; defaults to the buffer's filename.
            include_content: Embed the original text as ``sourcesContent``.
        """
        lines: list[list[Segment]] = [[]]
        gen_col = 0

        for text, origin, is_original in self._chunks():
            if not text:
                continue
            offset = origin if origin is not None else 0
            for i, part in enumerate(text.split("\n")):
                if i > 0:
                    lines.append([])
                    gen_col = 0
                mapped = origin is not None and (i == 0 or (is_original and part != ""))
                if mapped:
                    orig_line, orig_col = self._locate(offset)
                    lines[-1].append((gen_col, 0, orig_line, orig_col))
                gen_col += utf16_length(part)
                offset += len(part) + 1

        name = source if source is not None else (self.filename or "")
        return SourceMap(
            mappings=encode_mappings(lines),
            sources=(name,),
            file=file,
            sources_content=(self.original,) if include_content else None,
        )
