"""Parse and render HTTP file-transfer metadata documents.

Two layouts are accepted. The flat one::

    <file>
      <url>https://host/f/abc</url>
      <size>183442</size>
      <type>image/jpeg</type>
      <until>2026-08-06T18:35:49Z</until>
      <name>IMG_0001.jpg</name>
      <thumbnail><url>https://host/t/abc</url><type>image/jpeg</type><size>7427</size></thumbnail>
    </file>

and the GSMA one, where the file and its thumbnail are ``file-info`` elements
with ``file-size``, ``file-name``, ``content-type`` and ``<data url until/>``.
"""

from __future__ import annotations

import re
from typing import Literal, Optional

from lxml import etree

from .errors import InvalidMimeType, InvalidSize, MalformedDocument, MissingField
from .mime import is_image_type
from .models import PreviewReference, TransferMetadataDocument
from .utils import isoformat_utc, parse_iso_datetime

_DIGITS = re.compile(r"[0-9]+", re.ASCII)


def _make_parser() -> etree.XMLParser:
    # lxml parser instances must not be shared between threads.
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        huge_tree=False,
        remove_comments=True,
        remove_pis=True,
    )


def _local(element) -> str:
    return etree.QName(element).localname


def _children(element) -> list:
    return [child for child in element if isinstance(child.tag, str)]


def _child(element, name: str):
    for child in _children(element):
        if _local(child) == name:
            return child
    return None


def _text(element, name: str) -> Optional[str]:
    child = _child(element, name)
    if child is None:
        return None
    return (child.text or "").strip()


def _load_root(xml: bytes):
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    if not xml or not xml.strip():
        raise MalformedDocument("Empty document")
    try:
        root = etree.fromstring(xml, _make_parser())
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise MalformedDocument(f"Document is not well-formed: {exc}") from exc
    if _local(root) != "file":
        raise MalformedDocument(f"Unexpected root element '{_local(root)}'")
    return root


def _flat_fields(root) -> dict:
    fields = {
        "url": _text(root, "url"),
        "size": _text(root, "size"),
        "type": _text(root, "type"),
        "until": _text(root, "until"),
        "name": _text(root, "name"),
        "thumbnail": None,
    }
    thumbnail = _child(root, "thumbnail")
    if thumbnail is not None:
        fields["thumbnail"] = {
            "url": _text(thumbnail, "url"),
            "type": _text(thumbnail, "type"),
            "size": _text(thumbnail, "size"),
        }
    return fields


def _gsma_info(info) -> dict:
    data = _child(info, "data")
    if data is None:
        url = until = None
    else:
        url = (data.get("url") or "").strip()
        until = (data.get("until") or "").strip() or None
    return {
        "url": url,
        "until": until,
        "size": _text(info, "file-size"),
        "type": _text(info, "content-type"),
        "name": _text(info, "file-name"),
    }


def _gsma_fields(root) -> dict:
    infos = {
        (info.get("type") or "file").strip().lower(): info
        for info in _children(root)
        if _local(info) == "file-info"
    }
    if "file" not in infos:
        raise MissingField("file-info")
    fields = _gsma_info(infos["file"])
    fields["thumbnail"] = _gsma_info(infos["thumbnail"]) if "thumbnail" in infos else None
    return fields


def _require(fields: dict, name: str, label: Optional[str] = None) -> str:
    value = fields.get(name)
    if value is None:
        raise MissingField(label or name)
    return value


def _size(value: str, label: str) -> int:
    if not _DIGITS.fullmatch(value):
        raise InvalidSize(f"{label} must be a non-negative integer, got {value!r}")
    return int(value)


def parse_transfer_metadata(xml: bytes) -> TransferMetadataDocument:
    """Deserialize and validate a transfer metadata document.

    Checks run in order: well-formedness, presence of required fields, then
    value ranges, so a document missing its size and carrying a bad type
    reports the missing size.
    """
    root = _load_root(xml)
    has_file_info = any(_local(child) == "file-info" for child in _children(root))
    fields = _gsma_fields(root) if has_file_info else _flat_fields(root)

    url = _require(fields, "url")
    raw_size = _require(fields, "size")
    mime_type = _require(fields, "type")
    if not url:
        raise MissingField("url")
    thumbnail = fields.get("thumbnail")
    if thumbnail is not None:
        if not _require(thumbnail, "url", "thumbnail.url"):
            raise MissingField("thumbnail.url")
        _require(thumbnail, "type", "thumbnail.type")

    size = _size(raw_size, "size")
    if not mime_type:
        raise InvalidMimeType("type must not be empty")

    until = None
    if fields.get("until"):
        try:
            until = parse_iso_datetime(fields["until"])
        except ValueError as exc:
            raise MalformedDocument(f"Invalid until timestamp {fields['until']!r}") from exc

    preview = None
    if thumbnail is not None:
        if not is_image_type(thumbnail["type"]):
            raise InvalidMimeType(f"Thumbnail type {thumbnail['type']!r} is not an image type")
        preview = PreviewReference(
            url=thumbnail["url"],
            mime_type=thumbnail["type"],
            size=_size(thumbnail["size"], "thumbnail.size") if thumbnail.get("size") else None,
        )

    return TransferMetadataDocument(
        url=url,
        size=size,
        mime_type=mime_type,
        until=until,
        file_name=fields.get("name") or None,
        preview=preview,
    )


def _sub(parent, name: str, text: str):
    child = etree.SubElement(parent, name)
    child.text = text
    return child


def _render_flat(doc: TransferMetadataDocument):
    root = etree.Element("file")
    _sub(root, "url", doc.url)
    _sub(root, "size", str(doc.size))
    _sub(root, "type", doc.mime_type)
    if doc.until is not None:
        _sub(root, "until", isoformat_utc(doc.until))
    if doc.file_name:
        _sub(root, "name", doc.file_name)
    if doc.preview is not None:
        thumbnail = etree.SubElement(root, "thumbnail")
        _sub(thumbnail, "url", doc.preview.url)
        _sub(thumbnail, "type", doc.preview.mime_type)
        if doc.preview.size is not None:
            _sub(thumbnail, "size", str(doc.preview.size))
    return root


def _render_gsma(doc: TransferMetadataDocument):
    root = etree.Element("file")
    if doc.preview is not None:
        info = etree.SubElement(root, "file-info", type="thumbnail")
        if doc.preview.size is not None:
            _sub(info, "file-size", str(doc.preview.size))
        _sub(info, "content-type", doc.preview.mime_type)
        etree.SubElement(info, "data", url=doc.preview.url)
    info = etree.SubElement(root, "file-info", type="file")
    _sub(info, "file-size", str(doc.size))
    if doc.file_name:
        _sub(info, "file-name", doc.file_name)
    _sub(info, "content-type", doc.mime_type)
    data = etree.SubElement(info, "data", url=doc.url)
    if doc.until is not None:
        data.set("until", isoformat_utc(doc.until))
    return root


def render_transfer_metadata(
    doc: TransferMetadataDocument, layout: Literal["flat", "gsma"] = "flat"
) -> bytes:
    """Serialize ``doc`` so that ``parse_transfer_metadata`` yields it back."""
    if layout == "flat":
        root = _render_flat(doc)
    elif layout == "gsma":
        root = _render_gsma(doc)
    else:
        raise ValueError(f"Unknown layout {layout!r}")
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8")
