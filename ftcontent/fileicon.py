"""Turn embedded or generated previews into persisted fileicon content."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

from .config import Settings
from .errors import DecodeFailure
from .mime import DEFAULT_FILEICON_PREFIX, build_fileicon_name, mime_type_for_path
from .models import ContentDescriptor, MultipartPart
from .multipart import select_part
from .preview import PREVIEW_MIME_TYPE, decode_image, generate_preview

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_TYPES = ("image/jpeg", "image/png")


class ContentStore(Protocol):
    def persist(self, descriptor: ContentDescriptor) -> Path: ...


def build_content(
    correlation_key: str,
    mime_type: str,
    data: bytes,
    prefix: str = DEFAULT_FILEICON_PREFIX,
) -> ContentDescriptor:
    """Wrap ``data`` in a descriptor named after the correlation key."""
    return ContentDescriptor(
        identifier=build_fileicon_name(correlation_key, mime_type, prefix),
        size=len(data),
        mime_type=mime_type,
        data=data,
    )


def decode_part_payload(part: MultipartPart) -> bytes:
    """Undo the part's Content-Transfer-Encoding (base64 or identity)."""
    encoding = (part.header("content-transfer-encoding") or "").strip().lower()
    if encoding != "base64":
        return part.payload
    try:
        return base64.b64decode(b"".join(part.payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeFailure(f"Invalid base64 payload: {exc}") from exc


def extract_fileicon(
    body: bytes,
    boundary: Optional[str],
    correlation_key: str,
    store: ContentStore,
    candidate_types: Sequence[str] = DEFAULT_CANDIDATE_TYPES,
    prefix: str = DEFAULT_FILEICON_PREFIX,
) -> ContentDescriptor:
    """Persist the preview image embedded in a multipart message body.

    ``NotMultipart`` and ``NoMatchingPart`` signal that the message carries no
    preview; ``DecodeFailure`` that it carries one that cannot be used.
    """
    mime_type, part = select_part(body, boundary, candidate_types)
    data = decode_part_payload(part)
    decode_image(data)
    descriptor = build_content(correlation_key, mime_type, data, prefix)
    store.persist(descriptor)
    logger.debug("Extracted fileicon %s (%s bytes)", descriptor.identifier, descriptor.size)
    return descriptor


def create_fileicon(
    source_path: Path,
    correlation_key: str,
    store: ContentStore,
    settings: Settings,
) -> ContentDescriptor:
    """Generate a size-bounded preview of ``source_path`` and persist it."""
    source = Path(source_path).read_bytes()
    data = generate_preview(
        source,
        max_bytes=settings.preview_max_bytes,
        initial_scale=settings.preview_scale,
        initial_quality=settings.preview_quality,
        quality_step=settings.preview_quality_step,
        log=logger,
    )
    descriptor = build_content(correlation_key, PREVIEW_MIME_TYPE, data, settings.fileicon_prefix)
    store.persist(descriptor)
    logger.debug("Generated fileicon %s for image %s", descriptor.identifier, source_path)
    return descriptor


def content_from_path(path: Path) -> ContentDescriptor:
    """Describe an existing file without loading its bytes."""
    path = Path(path)
    return ContentDescriptor(
        identifier=path.name,
        size=path.stat().st_size,
        mime_type=mime_type_for_path(path) or "application/octet-stream",
    )
