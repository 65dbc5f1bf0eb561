"""Host build hook surface.

A plugin is an object with some of the hook methods below. Every hook
declines by returning None, in which case the host proceeds as if the plugin
did not exist.
"""

from __future__ import annotations

from dataclasses import dataclass

from sourcemark.core.edit_buffer import SourceMap

__all__ = ["BuildPlugin", "Chunk", "RenderedChunk", "ResolvedId", "TransformResult"]


@dataclass(frozen=True, slots=True)
class ResolvedId:
    """Answer to resolve_id for a module the plugin owns."""

    id: str
    external: bool = False
    module_side_effects: bool = True


@dataclass(frozen=True, slots=True)
class TransformResult:
    code: str
    map: SourceMap


@dataclass(frozen=True, slots=True)
class Chunk:
    """A finalized output chunk as handed to render_chunk."""

    file_name: str


@dataclass(frozen=True, slots=True)
class RenderedChunk:
    code: str
    map: SourceMap


class BuildPlugin:
    """Base class for hook objects. Subclasses override what they need."""

    name: str = "sourcemark"

    def resolve_id(self, module_id: str) -> ResolvedId | None:
        return None

    def load(self, module_id: str) -> str | None:
        return None

    def transform(self, code: str, module_id: str) -> TransformResult | None:
        return None

    def render_chunk(self, code: str, chunk: Chunk) -> RenderedChunk | None:
        return None

    def write_bundle(self) -> None:
        return None
