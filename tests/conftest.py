"""Shared test fixtures and factories."""

from io import BytesIO

import pytest
from PIL import Image


def _image_bytes(width: int = 64, height: int = 32, fmt: str = "PNG", color: str = "red") -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image():
    """Factory: encoded image bytes of the given size/format."""
    return _image_bytes


@pytest.fixture
def png_bytes() -> bytes:
    """A small 2:1 red PNG."""
    return _image_bytes()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A 3:4 blue JPEG."""
    return _image_bytes(300, 400, fmt="JPEG", color="blue")
