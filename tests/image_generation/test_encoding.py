"""Tests for image reference encoding and upload size checks."""
import base64
import logging
from unittest.mock import MagicMock

import pytest

from app.services.image_generation.base import ImageInput, InputError
from app.services.image_generation.encoding import (
    build_image_references,
    check_upload_size,
    to_data_uri,
)


def test_to_data_uri():
    assert to_data_uri(b"abc", "image/webp") == "data:image/webp;base64," + base64.b64encode(b"abc").decode()


def test_to_data_uri_without_mime():
    assert to_data_uri(b"abc", None).startswith("data:application/octet-stream;base64,")


def test_order_and_omission():
    refs = build_image_references(
        [
            ("image1", ImageInput()),
            ("image2", ImageInput(url="https://example.com/2.png")),
        ]
    )
    assert refs == ["https://example.com/2.png"]


def test_bytes_win_over_url():
    refs = build_image_references(
        [("image1", ImageInput(content=b"\x01", mime_type="image/png", url="https://example.com/1.png"))]
    )
    assert refs == ["data:image/png;base64,AQ=="]


def test_large_inline_image_only_warns():
    log = MagicMock(spec=logging.Logger)
    refs = build_image_references(
        [("image1", ImageInput(content=b"x" * 100, mime_type="image/png"))],
        warn_bytes=10,
        log=log,
    )
    assert len(refs) == 1
    assert log.warning.call_args.args[0] == "inline_image_very_large"


def test_check_upload_size_rejects():
    with pytest.raises(InputError) as exc_info:
        check_upload_size("image2", ImageInput(content=b"x" * 11), max_bytes=10)
    assert exc_info.value.status_code == 413
    assert "image2" in exc_info.value.details


def test_check_upload_size_accepts_url_and_small_files():
    check_upload_size("image1", ImageInput(url="https://example.com/1.png"), max_bytes=10)
    check_upload_size("image1", ImageInput(content=b"x" * 10), max_bytes=10)


def test_check_upload_size_uses_declared_size_without_content():
    image = ImageInput(size=11)
    assert image.is_present
    with pytest.raises(InputError) as exc_info:
        check_upload_size("image1", image, max_bytes=10)
    assert "11 bytes" in exc_info.value.details
