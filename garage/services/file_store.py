"""Upload storage: validate, optionally encrypt, and write files to local disk.

Files live under ``uploads.base_dir/{category}/{ulid}{ext}``. When
``FERNET_KEY`` is set the bytes are Fernet-encrypted and the file gets an
``.enc`` suffix. Callers only ever see the opaque location string.
"""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from garage.config import get_settings
from garage.errors import DependencyError, NotFoundError, ValidationError
from garage.models.base import new_id
from garage.services import encryption

logger = logging.getLogger(__name__)

CATEGORIES = ("qa_photo", "receipt", "voice_note", "attachment")

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
    "audio/mpeg": ".mp3",
    "audio/ogg": ".ogg",
    "audio/webm": ".webm",
    "audio/wav": ".wav",
}


def _base() -> Path:
    return Path(get_settings().uploads.base_dir)


def validate_upload(data: bytes, content_type: str, category: str) -> str:
    """Check category, size and type; returns the file extension to use."""
    cfg = get_settings().uploads
    if category not in CATEGORIES:
        raise ValidationError(f"Category must be one of {', '.join(CATEGORIES)}")
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > cfg.max_bytes:
        raise ValidationError(f"File exceeds the {cfg.max_bytes} byte limit")
    if content_type not in cfg.allowed_types:
        raise ValidationError(f"Content type {content_type} is not allowed")
    if category == "qa_photo" and not content_type.startswith("image/"):
        raise ValidationError("QA photos must be images")
    if category == "voice_note" and not content_type.startswith("audio/"):
        raise ValidationError("Voice notes must be audio")
    if content_type.startswith("image/"):
        try:
            Image.open(io.BytesIO(data)).verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise ValidationError("File is not a valid image") from exc
    return EXTENSIONS.get(content_type, "")


def _save_sync(data: bytes, category: str, ext: str) -> str:
    target_dir = _base() / category
    target_dir.mkdir(parents=True, exist_ok=True)
    name = f"{new_id()}{ext}"
    payload = data
    if encryption.key_configured():
        payload, name = encryption.seal(data), f"{name}.enc"
    (target_dir / name).write_bytes(payload)
    return f"{category}/{name}"


async def save_upload(data: bytes, content_type: str, category: str) -> str:
    """Validate and store an upload. Returns its location."""
    ext = validate_upload(data, content_type, category)
    try:
        location = await asyncio.to_thread(_save_sync, data, category, ext)
    except OSError as exc:
        logger.exception("Upload storage failed for category %s", category)
        raise DependencyError("File storage is unavailable") from exc
    logger.info("Stored %s upload at %s (%d bytes)", category, location, len(data))
    return location


def _resolve(location: str) -> Path:
    base = _base().resolve()
    path = (base / location).resolve()
    if base not in path.parents:
        raise ValidationError("Invalid file location")
    return path


def exists(location: str, category: str | None = None) -> bool:
    """True when ``location`` names a stored upload, inside ``category`` when given."""
    try:
        path = _resolve(location)
    except ValidationError:
        return False
    if category and path.relative_to(_base().resolve()).parts[0] != category:
        return False
    return path.is_file()


async def confirm_uploads(locations: list[str], category: str | None = None) -> None:
    """Raise ``ValidationError`` unless every location was stored by ``save_upload``."""
    missing = [loc for loc in locations if not await asyncio.to_thread(exists, loc, category)]
    if missing:
        kind = f"{category} uploads" if category else "uploads"
        raise ValidationError(f"Not stored {kind}: {', '.join(missing)}")


def read_upload_sync(location: str) -> bytes:
    path = _resolve(location)
    if not path.exists():
        raise NotFoundError("File not found")
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise DependencyError("File storage is unavailable") from exc
    if path.suffix == ".enc":
        return encryption.unseal(data)
    return data


async def read_upload(location: str) -> bytes:
    return await asyncio.to_thread(read_upload_sync, location)
