"""Download the thumbnail referenced by a transfer metadata document."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from requests import Response

from .config import Settings
from .errors import InvalidMimeType, SizeBudgetExceeded
from .mime import is_image_type, normalize_mime_type
from .models import PreviewReference

logger = logging.getLogger(__name__)


class PreviewDownloader:
    """Fetch preview bytes over HTTP with type and size checks."""

    CHUNK_SIZE = 8192

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = settings.http_user_agent

    def download(self, preview: PreviewReference, max_bytes: Optional[int] = None) -> bytes:
        """Return the thumbnail bytes, bounded by ``max_bytes`` (or the preview budget)."""
        limit = max_bytes if max_bytes is not None else self.settings.preview_max_bytes
        if preview.size is not None and preview.size > limit:
            raise SizeBudgetExceeded(
                f"Thumbnail declares {preview.size} bytes, budget is {limit}"
            )

        response = self._get(preview.url)
        try:
            content_type = response.headers.get("Content-Type") or preview.mime_type
            if not is_image_type(content_type):
                raise InvalidMimeType(
                    f"Thumbnail at {preview.url} served as {normalize_mime_type(content_type)!r}"
                )
            chunks: list[bytes] = []
            received = 0
            for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                received += len(chunk)
                if received > limit:
                    raise SizeBudgetExceeded(
                        f"Thumbnail at {preview.url} exceeds budget of {limit} bytes"
                    )
                chunks.append(chunk)
        finally:
            response.close()

        logger.debug("Downloaded thumbnail %s (%s bytes)", preview.url, received)
        return b"".join(chunks)

    def _get(self, url: str) -> Response:
        resp = self.session.get(url, stream=True, timeout=self.settings.http_timeout)
        if resp.status_code >= 400:
            logger.error("Thumbnail request failed (%s): %s", resp.status_code, url)
            resp.raise_for_status()
        return resp
