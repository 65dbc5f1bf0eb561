"""Base64 VLQ codec for source map ``mappings`` fields.

Segments are handled in absolute form: ``(generated column,)`` for an
unmapped position, ``(generated column, source, original line, original
column)`` for a mapped one, plus a trailing name index when present.
"""

from __future__ import annotations

from collections.abc import Sequence

__all__ = ["Segment", "decode", "decode_mappings", "encode", "encode_mappings"]

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_INDEX = {c: i for i, c in enumerate(_ALPHABET)}

_SHIFT = 5
_MASK = (1 << _SHIFT) - 1
_CONTINUATION = 1 << _SHIFT

Segment = tuple[int, ...]


def encode(value: int) -> str:
    vlq = (value << 1) if value >= 0 else ((-value) << 1) | 1
    out: list[str] = []
    while True:
        digit = vlq & _MASK
        vlq >>= _SHIFT
        if vlq:
            digit |= _CONTINUATION
        out.append(_ALPHABET[digit])
        if not vlq:
            return "".join(out)


def decode(text: str) -> list[int]:
    """Decode a run of VLQ digits into signed integers.

    Raises:
        ValueError: On a character outside the base64 alphabet or a
            truncated value.
    """
    values: list[int] = []
    shift = 0
    acc = 0
    for ch in text:
        digit = _INDEX.get(ch)
        if digit is None:
            raise ValueError(f"invalid VLQ character: {ch!r}")
        acc += (digit & _MASK) << shift
        if digit & _CONTINUATION:
            shift += _SHIFT
            continue
        negative = acc & 1
        acc >>= 1
        values.append(-acc if negative else acc)
        acc = 0
        shift = 0
    if shift:
        raise ValueError("truncated VLQ value")
    return values


def encode_mappings(lines: Sequence[Sequence[Segment]]) -> str:
    """Encode absolute segments per generated line into a mappings string.

    Generated columns are relative within a line; every other field is
    relative to the previous segment carrying it, across the whole map.
    """
    prev = [0, 0, 0, 0]  # source, original line, original column, name
    encoded_lines: list[str] = []
    for segments in lines:
        prev_gen_col = 0
        parts: list[str] = []
        for segment in segments:
            text = encode(segment[0] - prev_gen_col)
            prev_gen_col = segment[0]
            for i, value in enumerate(segment[1:]):
                text += encode(value - prev[i])
                prev[i] = value
            parts.append(text)
        encoded_lines.append(",".join(parts))
    return ";".join(encoded_lines)


def decode_mappings(mappings: str) -> list[list[Segment]]:
    """Inverse of encode_mappings.

    Raises:
        ValueError: On malformed VLQ data or a segment with an invalid
            field count.
    """
    prev = [0, 0, 0, 0]
    lines: list[list[Segment]] = []
    for encoded_line in mappings.split(";"):
        gen_col = 0
        segments: list[Segment] = []
        for part in encoded_line.split(","):
            if not part:
                continue
            fields = decode(part)
            if len(fields) not in (1, 4, 5):
                raise ValueError(f"invalid segment field count: {len(fields)}")
            gen_col += fields[0]
            absolute = [gen_col]
            for i, delta in enumerate(fields[1:]):
                prev[i] += delta
                absolute.append(prev[i])
            segments.append(tuple(absolute))
        lines.append(segments)
    return lines
