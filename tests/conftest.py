"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from dal.record_store import FlatFileRecordStore


def _make_image(size=(150, 100), fmt: str = "JPEG", color=(200, 60, 40)) -> bytes:
    mode = "RGBA" if fmt == "PNG" else "RGB"
    fill = color + (255,) if mode == "RGBA" else color
    buffer = io.BytesIO()
    Image.new(mode, size, fill).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Return a factory producing encoded images of a given size and format."""
    return _make_image


@pytest.fixture
def images_dir(tmp_path: Path) -> Path:
    """Return an empty images directory."""
    path = tmp_path / "images"
    path.mkdir()
    return path


@pytest.fixture
def store(images_dir: Path) -> FlatFileRecordStore:
    """Return a record store over the temporary images directory."""
    return FlatFileRecordStore(images_dir)
