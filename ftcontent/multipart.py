"""Locate typed sub-parts inside a raw multipart message body."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import NoMatchingPart, NotMultipart
from .mime import normalize_mime_type
from .models import MultipartPart

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"

_BOUNDARY_PARAM = re.compile(r"""boundary\s*=\s*(?:"([^"]+)"|([^;\s]+))""", re.IGNORECASE)
_HEADER_SEPARATORS = (b"\r\n\r\n", b"\n\n")


def _clean_boundary(boundary: Optional[str]) -> Optional[str]:
    if not boundary:
        return None
    cleaned = boundary.strip().strip('"')
    # RFC 2046 caps boundaries at 70 characters and forbids line breaks.
    if not cleaned or len(cleaned) > 70 or "\r" in cleaned or "\n" in cleaned:
        return None
    return cleaned


def boundary_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Return the boundary parameter of a multipart Content-Type header."""
    if not content_type or not normalize_mime_type(content_type).startswith("multipart/"):
        return None
    match = _BOUNDARY_PARAM.search(content_type)
    if not match:
        return None
    return _clean_boundary(match.group(1) or match.group(2))


def _delimiter_pattern(boundary: str) -> re.Pattern:
    # A delimiter starts a line and is followed by "--" or the end of its line;
    # the line break in front of it belongs to the delimiter, not the payload.
    token = re.escape(boundary.encode("ascii", "replace"))
    return re.compile(rb"(?:\A|\r?\n)--" + token + rb"(?=--|[ \t]*\r?\n)")


def _parse_headers(raw: bytes) -> dict[str, str]:
    headers: dict[str, str] = {}
    last: Optional[str] = None
    for line in raw.decode("latin-1").splitlines():
        if not line.strip():
            continue
        if line[0] in " \t" and last is not None:
            headers[last] = f"{headers[last]} {line.strip()}".strip()
            continue
        name, sep, value = line.partition(":")
        if not sep:
            continue
        last = name.strip().lower()
        headers[last] = value.strip()
    return headers


def _split_part(segment: bytes) -> Optional[MultipartPart]:
    # The delimiter line ends with optional padding and a line break.
    line_end = segment.find(b"\n")
    if line_end == -1 or segment[:line_end].strip():
        return None
    segment = segment[line_end + 1 :]

    if segment.startswith((b"\r\n", b"\n")):
        raw_headers = b""
        payload = segment[2:] if segment.startswith(b"\r\n") else segment[1:]
    else:
        positions = [
            (segment.find(sep), sep) for sep in _HEADER_SEPARATORS if segment.find(sep) != -1
        ]
        if not positions:
            return None
        index, sep = min(positions)
        raw_headers, payload = segment[:index], segment[index + len(sep) :]

    headers = _parse_headers(raw_headers)
    content_type = headers.get("content-type") or DEFAULT_CONTENT_TYPE
    return MultipartPart(content_type=content_type, headers=headers, payload=payload)


@dataclass(frozen=True)
class MultipartBody:
    """Ordered, immutable view over the parts of a multipart body."""

    parts: tuple[MultipartPart, ...]

    @classmethod
    def parse(cls, body: bytes, boundary: Optional[str]) -> "MultipartBody":
        cleaned = _clean_boundary(boundary)
        if cleaned is None:
            raise NotMultipart("Missing or malformed boundary")
        delimiter = _delimiter_pattern(cleaned)
        if not body or not delimiter.search(body):
            raise NotMultipart(f"Boundary {cleaned!r} does not occur in body")

        segments = delimiter.split(body)
        parts: list[MultipartPart] = []
        # segments[0] is the preamble.
        for segment in segments[1:]:
            if segment.startswith(b"--"):
                break
            part = _split_part(segment)
            if part is None:
                logger.debug("Skipping malformed multipart section (%d bytes)", len(segment))
                continue
            parts.append(part)
        return cls(parts=tuple(parts))

    def find(self, mime_type: str) -> Optional[MultipartPart]:
        wanted = normalize_mime_type(mime_type)
        for part in self.parts:
            if normalize_mime_type(part.content_type) == wanted:
                return part
        return None


def select_part(
    body: bytes, boundary: Optional[str], candidate_types: Sequence[str]
) -> tuple[str, MultipartPart]:
    """Return the first part matching the candidates in priority order.

    Raises ``NotMultipart`` when the body has no usable boundary and
    ``NoMatchingPart`` when none of ``candidate_types`` is present.
    """
    multipart = MultipartBody.parse(body, boundary)
    for candidate in candidate_types:
        part = multipart.find(candidate)
        if part is not None:
            return normalize_mime_type(candidate), part
    raise NoMatchingPart(candidate_types)


def extract(
    body: bytes, boundary: Optional[str], candidate_types: Sequence[str]
) -> Optional[tuple[str, bytes]]:
    """Return ``(mime_type, payload)`` of the best matching part, or None."""
    try:
        mime_type, part = select_part(body, boundary, candidate_types)
    except (NotMultipart, NoMatchingPart) as exc:
        logger.debug("No embedded content extracted: %s", exc)
        return None
    return mime_type, part.payload
