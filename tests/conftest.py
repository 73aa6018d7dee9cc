from __future__ import annotations

import io
import random

import pytest
from PIL import Image

from ftcontent.config import Settings
from ftcontent.content_store import LocalContentStore


def noise_image(width: int, height: int, mode: str = "RGB", seed: int = 7) -> Image.Image:
    """Random pixels, so JPEG sizes react strongly to quality."""
    channels = len(mode)
    data = random.Random(seed).randbytes(width * height * channels)
    return Image.frombytes(mode, (width, height), data)


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return encode(noise_image(400, 300))


@pytest.fixture
def jpeg_bytes() -> bytes:
    return encode(noise_image(64, 48), "JPEG")


@pytest.fixture
def store(tmp_path) -> LocalContentStore:
    return LocalContentStore(tmp_path / "content", tmp_path / "index" / "content.db")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        FT_CONTENT_DIR=tmp_path / "content",
        FT_CONTENT_INDEX_DB=tmp_path / "index" / "content.db",
        FT_PREVIEW_SCALE=0.25,
    )
