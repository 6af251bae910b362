"""Tests for image upload storage."""
import base64
import re

from dunesea.uploads import PLACEHOLDER_PNG, content_type_for, extension_for

from conftest import JPEG_DATA_URL, PNG_DATA_URL

DEFAULT = "/uploads/default.png"


def test_extension_from_mime_then_hint():
    assert extension_for("image/png") == ".png"
    assert extension_for("image/jpeg") == ".jpg"
    assert extension_for("image/webp") == ".webp"
    assert extension_for("image/gif") == ".gif"
    assert extension_for("", "photo.JPEG") == ".jpg"
    assert extension_for("application/octet-stream", "scan.webp") == ".webp"
    assert extension_for("", "notes.txt") == ".png"
    assert extension_for("", "") == ".png"


def test_content_type_for():
    assert content_type_for(".png") == "image/png"
    assert content_type_for(".JPG") == "image/jpeg"
    assert content_type_for(".svg") == "image/svg+xml"
    assert content_type_for(".exe") == "application/octet-stream"


def test_save_data_url_png(uploads):
    path = uploads.save_data_url(PNG_DATA_URL, "photo.png", "item-1", prefix="inv")

    assert re.fullmatch(r"/uploads/inv_item-1_\d+\.png", path)
    saved = uploads.uploads_dir / path.rsplit("/", 1)[1]
    assert saved.read_bytes() == PLACEHOLDER_PNG


def test_save_data_url_jpeg_and_prefix(uploads):
    path = uploads.save_data_url(JPEG_DATA_URL, "", "abc", prefix="gal")

    assert path.startswith("/uploads/gal_abc_")
    assert path.endswith(".jpg")


def test_save_raw_base64_uses_hint(uploads):
    raw = base64.b64encode(b"RIFF" + b"\x00" * 20).decode("ascii")

    path = uploads.save_data_url(raw, "front.webp", "x1")

    assert path.endswith(".webp")


def test_save_sanitizes_id(uploads):
    path = uploads.save_data_url(PNG_DATA_URL, "", "../../etc/passwd")

    assert path.startswith("/uploads/inv_etcpasswd_")


def test_unusable_uploads_fall_back_to_default(uploads):
    assert uploads.save_data_url("", "x.png", "1") == DEFAULT
    assert uploads.save_data_url(None, "x.png", "1") == DEFAULT
    # Decodes to fewer than 8 bytes
    assert uploads.save_data_url("data:image/png;base64,AAAA", "x.png", "1") == DEFAULT
    # Not base64 at all
    assert uploads.save_data_url("data:image/png;base64,abc", "x.png", "1") == DEFAULT


def test_remove_upload(uploads):
    path = uploads.save_data_url(PNG_DATA_URL, "", "item-1")
    saved = uploads.uploads_dir / path.rsplit("/", 1)[1]

    assert uploads.remove(path) is True
    assert not saved.exists()
    # Already gone
    assert uploads.remove(path) is False


def test_remove_never_touches_default(uploads):
    uploads.ensure_default_image()

    assert uploads.remove(DEFAULT) is False
    assert uploads.remove("/static/logo.png") is False
    assert uploads.default_image.exists()


def test_ensure_default_image_keeps_existing(uploads):
    uploads.default_image.write_bytes(b"custom placeholder")

    uploads.ensure_default_image()

    assert uploads.default_image.read_bytes() == b"custom placeholder"


def test_resolve_falls_back_to_default(uploads):
    assert uploads.resolve("missing.png") is None

    uploads.ensure_default_image()
    path = uploads.save_data_url(PNG_DATA_URL, "", "item-1")
    name = path.rsplit("/", 1)[1]

    assert uploads.resolve(name) == uploads.uploads_dir / name
    assert uploads.resolve("missing.png") == uploads.default_image
    assert uploads.resolve("../store.py") == uploads.default_image
    assert uploads.resolve("..") == uploads.default_image
