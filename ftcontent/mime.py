"""MIME type helpers and content identifier construction."""

from __future__ import annotations

from pathlib import PurePath
from typing import Optional

from .errors import UnknownMimeExtension

TRANSFER_METADATA_MIME_TYPE = "application/vnd.gsma.rcs-ft-http+xml"
DEFAULT_FILEICON_PREFIX = "thumnail"

_EXTENSION_BY_MIME = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/bmp": "bmp",
    "image/webp": "webp",
    "image/tiff": "tif",
    "video/mp4": "mp4",
    "video/3gpp": "3gp",
    "audio/amr": "amr",
    "audio/mpeg": "mp3",
    "audio/aac": "aac",
    "text/plain": "txt",
    "text/vcard": "vcf",
    "text/x-vcard": "vcf",
    "application/pdf": "pdf",
    "application/zip": "zip",
}

_MIME_BY_EXTENSION = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "mp4": "video/mp4",
    "3gp": "video/3gpp",
    "amr": "audio/amr",
    "mp3": "audio/mpeg",
    "aac": "audio/aac",
    "txt": "text/plain",
    "vcf": "text/vcard",
    "pdf": "application/pdf",
    "zip": "application/zip",
}

IMAGE_MIME_TYPES = frozenset(
    mime for mime in _EXTENSION_BY_MIME if mime.startswith("image/")
)


def normalize_mime_type(value: Optional[str]) -> str:
    """Lower-case primary type without parameters ('Image/JPEG; x=y' -> 'image/jpeg')."""
    if not value:
        return ""
    return value.split(";", 1)[0].strip().lower()


def is_image_type(value: Optional[str]) -> bool:
    return normalize_mime_type(value) in IMAGE_MIME_TYPES


def is_transfer_metadata_type(value: Optional[str]) -> bool:
    """True for the HTTP file-transfer metadata document type."""
    return bool(value) and value.lower().startswith(TRANSFER_METADATA_MIME_TYPE)


def extension_for(mime_type: str) -> Optional[str]:
    return _EXTENSION_BY_MIME.get(normalize_mime_type(mime_type))


def mime_type_for_path(path: str | PurePath) -> Optional[str]:
    suffix = PurePath(path).suffix.lstrip(".").lower()
    return _MIME_BY_EXTENSION.get(suffix)


def build_fileicon_name(
    correlation_key: str, mime_type: str, prefix: str = DEFAULT_FILEICON_PREFIX
) -> str:
    """Return '<prefix>_<correlation_key>.<extension>' for a fileicon."""
    extension = extension_for(mime_type)
    if extension is None:
        raise UnknownMimeExtension(mime_type)
    return f"{prefix}_{correlation_key}.{extension}"
