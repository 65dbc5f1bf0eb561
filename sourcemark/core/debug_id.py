"""Content-derived debug identifiers.

A debug id ties a deployed artifact to the source map produced for it. It is
computed from the artifact bytes only, so renaming, moving or re-serving the
file from a CDN never changes it.
"""

from __future__ import annotations

import hashlib
import re

__all__ = ["DEBUG_ID_PATTERN", "debug_id_for"]

DEBUG_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)

_VARIANTS = "89ab"


def debug_id_for(content: bytes | str) -> str:
    """Derive a UUID-shaped identifier from content.

    The first 128 bits of the MD5 digest are laid out as a version 4 UUID:
    the version nibble is forced to 4 and the variant nibble to one of
    8/9/a/b, picked from the digest character it replaces.

    Args:
        content: Artifact content. Text is encoded as UTF-8.

    Returns:
        Lowercase 8-4-4-4-12 identifier. Empty content is valid input.
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    digest = hashlib.md5(data).hexdigest()
    variant = _VARIANTS[ord(digest[16]) % 4]
    return (
        f"{digest[0:8]}-{digest[8:12]}-4{digest[13:16]}-{variant}{digest[17:20]}-{digest[20:32]}"
    )
