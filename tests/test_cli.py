from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

from conftest import encode, noise_image

CLI_PATH = Path(__file__).resolve().parents[1] / "scripts" / "ftcontent_cli.py"


@pytest.fixture
def cli(monkeypatch, tmp_path):
    monkeypatch.setenv("FT_CONTENT_DIR", str(tmp_path / "content"))
    monkeypatch.setenv("FT_CONTENT_INDEX_DB", str(tmp_path / "index.db"))
    monkeypatch.setenv("FT_PREVIEW_SCALE", "0.25")
    spec = importlib.util.spec_from_file_location("ftcontent_cli", CLI_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_parse_info_prints_summary(cli, tmp_path, capsys):
    document = tmp_path / "info.xml"
    document.write_bytes(
        b"<file><url>http://x/y</url><size>12</size><type>video/mp4</type>"
        b"<until>2026-01-02T03:04:05Z</until></file>"
    )

    assert cli.main(["parse-info", str(document)]) == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary == {
        "url": "http://x/y",
        "size": 12,
        "type": "video/mp4",
        "until": "2026-01-02T03:04:05Z",
        "name": None,
        "thumbnail": None,
    }


def test_parse_info_failure_exits_non_zero(cli, tmp_path):
    document = tmp_path / "info.xml"
    document.write_bytes(b"<file><url>http://x/y</url><type>video/mp4</type></file>")

    assert cli.main(["parse-info", str(document)]) == 1


def test_preview_stores_jpeg(cli, tmp_path, capsys):
    image = tmp_path / "photo.png"
    image.write_bytes(encode(noise_image(400, 300)))

    assert cli.main(["preview", str(image), "--key", "m1"]) == 0

    stored = Path(capsys.readouterr().out.strip())
    assert stored.name == "thumnail_m1.jpg"
    assert stored.read_bytes().startswith(b"\xff\xd8")


def test_extract_uses_content_type_boundary(cli, tmp_path, capsys):
    png = encode(noise_image(8, 8))
    body = tmp_path / "body.bin"
    body.write_bytes(
        b"--zz\r\nContent-Type: image/png\r\n\r\n" + png + b"\r\n--zz--\r\n"
    )

    code = cli.main(
        ["extract", str(body), "--content-type", 'multipart/related; boundary="zz"', "--key", "c7"]
    )

    assert code == 0
    stored = Path(capsys.readouterr().out.strip())
    assert stored.name == "thumnail_c7.png"
    assert stored.read_bytes() == png


def test_extract_without_preview_is_not_an_error(cli, tmp_path, capsys):
    body = tmp_path / "body.bin"
    body.write_bytes(b"just text")

    assert cli.main(["extract", str(body), "--boundary", "zz", "--key", "c8"]) == 0
    assert capsys.readouterr().out == ""
