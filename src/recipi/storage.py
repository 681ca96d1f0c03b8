import logging
import uuid
from pathlib import Path

from .config import CONFIG

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def save_upload(upload, directory: Path | None = None) -> str | None:
    """Write an uploaded image into the media directory and return its URL.

    Returns None when nothing was uploaded (browsers send an empty part when
    the file input is left blank).
    """
    if upload is None or not getattr(upload, "filename", None):
        return None
    suffix = Path(upload.filename).suffix.lower()
    if suffix not in IMAGE_SUFFIXES:
        raise ValueError(f"Unsupported image type: {suffix or 'none'}")
    directory = Path(directory or CONFIG.media_dir)
    directory.mkdir(parents=True, exist_ok=True)
    name = f"{uuid.uuid4().hex}{suffix}"
    with (directory / name).open("wb") as fh:
        fh.write(upload.file.read())
    logger.info("Stored upload %s as %s", upload.filename, name)
    return f"{CONFIG.media_url.rstrip('/')}/{name}"


def remove_upload(url: str | None, directory: Path | None = None) -> None:
    if not url:
        return
    path = Path(directory or CONFIG.media_dir) / Path(url).name
    if path.exists():
        path.unlink()
