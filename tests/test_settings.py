"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from utils.settings import GallerySettings


def test_from_env_reads_overrides(monkeypatch, tmp_path: Path):
    target = tmp_path / "gallery" / "images"
    monkeypatch.setenv("GALLERY_IMAGES_DIR", str(target))
    monkeypatch.setenv("GALLERY_URL_PREFIX", "media/")
    monkeypatch.setenv("GALLERY_MAX_UPLOAD_BYTES", "1024")
    monkeypatch.setenv("GALLERY_THUMBNAIL_SIZE", "120")
    monkeypatch.setenv("GALLERY_SWEEP_ON_STARTUP", "yes")

    settings = GallerySettings.from_env()

    assert settings.images_dir == target and target.is_dir()
    assert settings.url_prefix == "/media"
    assert settings.max_upload_bytes == 1024
    assert settings.thumbnail_size == (120, 120)
    assert settings.modal_size == (800, 800)
    assert settings.sweep_on_startup is True


def test_images_dir_pointing_at_file_is_rejected(tmp_path: Path):
    target = tmp_path / "not-a-dir"
    target.write_text("x")

    with pytest.raises(RuntimeError):
        GallerySettings.from_env(images_dir=target)


def test_invalid_integer_is_rejected(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("GALLERY_MAX_UPLOAD_BYTES", "lots")

    with pytest.raises(RuntimeError):
        GallerySettings.from_env(images_dir=tmp_path)
