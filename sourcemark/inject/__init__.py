"""Build-time code injection (release global and debug ids)."""

from .debug_id import DebugIdInjectionPlugin, debug_id_snippet, inject_debug_id
from .hooks import BuildPlugin, Chunk, RenderedChunk, ResolvedId, TransformResult
from .release import (
    SYNTHETIC_MODULE_ID,
    ReleaseInjectionPlugin,
    generate_global_injector_code,
)

__all__ = [
    "BuildPlugin",
    "Chunk",
    "DebugIdInjectionPlugin",
    "ReleaseInjectionPlugin",
    "RenderedChunk",
    "ResolvedId",
    "SYNTHETIC_MODULE_ID",
    "TransformResult",
    "debug_id_snippet",
    "generate_global_injector_code",
    "inject_debug_id",
]
