from __future__ import annotations

import base64
import io

import pytest
from PIL import Image

from ftcontent.errors import DecodeFailure, NoMatchingPart, NotMultipart, SizeBudgetExceeded
from ftcontent.fileicon import build_content, content_from_path, create_fileicon, extract_fileicon

from conftest import encode, noise_image


def _body(content_type: str, payload: bytes, encoding: str | None = None) -> bytes:
    headers = f"Content-Type: {content_type}\r\n"
    if encoding:
        headers += f"Content-Transfer-Encoding: {encoding}\r\n"
    return (
        b"--sep\r\n"
        b"Content-Type: application/vnd.gsma.rcs-ft-http+xml\r\n\r\n"
        b"<file/>\r\n"
        b"--sep\r\n" + headers.encode() + b"\r\n" + payload + b"\r\n"
        b"--sep--\r\n"
    )


def test_extract_base64_fileicon(store, jpeg_bytes):
    encoded = base64.encodebytes(jpeg_bytes)
    body = _body("image/jpeg", encoded, encoding="base64")

    descriptor = extract_fileicon(body, "sep", "contrib-1", store)

    assert descriptor.identifier == "thumnail_contrib-1.jpg"
    assert descriptor.mime_type == "image/jpeg"
    assert descriptor.size == len(jpeg_bytes)
    assert descriptor.released
    assert store.path_for(descriptor.identifier).read_bytes() == jpeg_bytes


def test_extract_binary_png_fallback(store):
    png = encode(noise_image(16, 16))
    body = _body("image/png", png, encoding="binary")

    descriptor = extract_fileicon(body, "sep", "contrib-2", store)

    assert descriptor.identifier == "thumnail_contrib-2.png"
    assert store.path_for(descriptor.identifier).read_bytes() == png


def test_absent_preview_is_distinguished(store):
    with pytest.raises(NotMultipart):
        extract_fileicon(b"plain text message", "sep", "k", store)
    with pytest.raises(NoMatchingPart):
        extract_fileicon(_body("text/plain", b"hi"), "sep", "k", store)


@pytest.mark.parametrize(
    "payload, encoding",
    [(b"!!! not base64 !!!", "base64"), (b"definitely not a jpeg", None)],
)
def test_unusable_preview_raises_and_persists_nothing(store, payload, encoding):
    with pytest.raises(DecodeFailure):
        extract_fileicon(_body("image/jpeg", payload, encoding), "sep", "k", store)

    assert list(store.root.iterdir()) == []


def test_create_fileicon_from_image_file(tmp_path, store, settings, png_bytes):
    source = tmp_path / "photo.png"
    source.write_bytes(png_bytes)

    descriptor = create_fileicon(source, "msg-9", store, settings)

    stored = store.path_for("thumnail_msg-9.jpg")
    assert descriptor.identifier == stored.name
    assert descriptor.mime_type == "image/jpeg"
    assert descriptor.size == stored.stat().st_size <= settings.preview_max_bytes
    with Image.open(io.BytesIO(stored.read_bytes())) as img:
        assert img.format == "JPEG"


def test_create_fileicon_budget_failure_persists_nothing(tmp_path, store, settings, png_bytes):
    source = tmp_path / "photo.png"
    source.write_bytes(png_bytes)
    tight = settings.model_copy(update={"preview_max_bytes": 10})

    with pytest.raises(SizeBudgetExceeded):
        create_fileicon(source, "msg-9", store, tight)

    assert list(store.root.iterdir()) == []


def test_build_content_owns_data():
    descriptor = build_content("k", "image/png", b"1234", prefix="icon")

    assert (descriptor.identifier, descriptor.size, descriptor.data) == ("icon_k.png", 4, b"1234")


def test_content_from_path(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"x" * 12)

    descriptor = content_from_path(path)

    assert (descriptor.identifier, descriptor.size, descriptor.mime_type) == ("clip.mp4", 12, "video/mp4")
    assert descriptor.data is None
