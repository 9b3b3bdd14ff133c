"""Runtime configuration for the gallery service.

Settings are read from environment variables (a `.env` file is loaded by the
application entry point) and validated once at startup.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_IMAGES_DIR = Path(__file__).resolve().parent.parent / "public" / "images"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be an integer.") from exc
    if value <= 0:
        raise RuntimeError(f"{name}={raw!r} must be a positive integer.")
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GallerySettings:
    """Validated settings shared through `app.state.settings`.

    Attributes:
        images_dir: Directory holding metadata documents and binaries.
        url_prefix: Web path the images directory is served under.
        max_upload_bytes: Upload size ceiling.
        modal_size: Bounding box for the modal viewer variant.
        thumbnail_size: Bounding box for the grid thumbnail.
        sweep_on_startup: Remove orphaned binaries when the app starts.
        log_level: Root logging level name.
    """

    images_dir: Path
    url_prefix: str = "/images"
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    modal_size: Tuple[int, int] = (800, 800)
    thumbnail_size: Tuple[int, int] = (280, 280)
    sweep_on_startup: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, images_dir: Optional[Path | str] = None) -> "GallerySettings":
        """Build settings from the environment, creating the images directory.

        Args:
            images_dir: Overrides `GALLERY_IMAGES_DIR` when given.

        Raises:
            RuntimeError: If a value is invalid or the images directory cannot
                be created.
        """
        env_dir = images_dir or os.getenv("GALLERY_IMAGES_DIR") or DEFAULT_IMAGES_DIR
        modal = _env_int("GALLERY_MODAL_SIZE", 800)
        thumb = _env_int("GALLERY_THUMBNAIL_SIZE", 280)
        return cls(
            images_dir=ensure_images_dir(env_dir),
            url_prefix="/" + os.getenv("GALLERY_URL_PREFIX", "/images").strip("/"),
            max_upload_bytes=_env_int("GALLERY_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            modal_size=(modal, modal),
            thumbnail_size=(thumb, thumb),
            sweep_on_startup=_env_bool("GALLERY_SWEEP_ON_STARTUP"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def ensure_images_dir(images_dir: Path | str) -> Path:
    """Create `images_dir` if needed and return it as a Path.

    Raises:
        RuntimeError: If the path is a file or cannot be created.
    """
    path = Path(images_dir).expanduser()

    # If the path exists but is not a directory, that's a configuration error.
    if path.exists() and not path.is_dir():
        raise RuntimeError(
            f"GALLERY_IMAGES_DIR points to a file, not a directory ({path}). "
            "Please set it to a directory path."
        )

    try:
        path.mkdir(parents=True, exist_ok=True)
    except Exception as exc:
        raise RuntimeError(f"Failed to create or access images directory at {path}") from exc
    return path
