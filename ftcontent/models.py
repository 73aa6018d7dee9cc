"""Typed containers shared across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional


@dataclass
class ContentDescriptor:
    """A named content object and the bytes it owns until persisted."""

    identifier: str
    size: int
    mime_type: str
    data: Optional[bytes] = field(default=None, repr=False)

    @property
    def released(self) -> bool:
        return self.data is None

    def release(self) -> None:
        """Drop the backing bytes once storage has taken them over."""
        self.data = None


@dataclass(frozen=True)
class MultipartPart:
    """One delimited section of a multipart body."""

    content_type: str
    headers: Mapping[str, str]
    payload: bytes = field(repr=False)

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)


@dataclass(frozen=True)
class PreviewReference:
    """Where the thumbnail of an out-of-band transfer can be fetched."""

    url: str
    mime_type: str
    size: Optional[int] = None


@dataclass(frozen=True)
class TransferMetadataDocument:
    """Validated description of an HTTP-retrievable file transfer."""

    url: str
    size: int
    mime_type: str
    until: Optional[datetime] = None
    file_name: Optional[str] = None
    preview: Optional[PreviewReference] = None


@dataclass
class QualityBudget:
    """State of the size-bounded re-encoding loop."""

    quality: int
    max_bytes: int
    candidate_size: Optional[int] = None

    @property
    def satisfied(self) -> bool:
        return self.candidate_size is not None and self.candidate_size <= self.max_bytes

    def lower(self, step: int) -> bool:
        """Move to the next quality level; False once quality 1 was already tried."""
        if self.quality <= 1:
            return False
        self.quality = max(self.quality - step, 1)
        return True
