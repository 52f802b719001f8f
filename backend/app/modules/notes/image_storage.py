"""Blob storage for note images.

Image bytes live on disk under ``IMAGE_STORAGE_ROOT``; the database keeps only
the relative path, size and hash.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

DEFAULT_MAX_BYTES = 25 * 1024 * 1024
FALLBACK_EXTENSION = "img"
_SAFE_EXTENSION = re.compile(r"^[a-z0-9]{1,10}$")

logger = logging.getLogger("app.notes.storage")

_MAGIC_PREFIXES = (
    (b"\xff\xd8\xff", "jpg", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "png", "image/png"),
    (b"GIF87a", "gif", "image/gif"),
    (b"GIF89a", "gif", "image/gif"),
    (b"BM", "bmp", "image/bmp"),
    (b"II*\x00", "tiff", "image/tiff"),
    (b"MM\x00*", "tiff", "image/tiff"),
)


class ImageTooLargeError(ValueError):
    pass


class UnsupportedImageError(ValueError):
    pass


@dataclass(frozen=True)
class StoredImage:
    StoragePath: str
    FileSizeBytes: int
    Hash: str
    ContentType: str | None
    OriginalFileName: str | None


def _GetStorageRoot() -> Path:
    root = os.getenv("IMAGE_STORAGE_ROOT", "").strip()
    if root:
        return Path(root)
    return Path(__file__).resolve().parents[3] / "storage" / "images"


def _EnsureStorageRoot() -> Path:
    root = _GetStorageRoot()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _ResolveMaxBytes() -> int:
    raw = os.getenv("IMAGE_STORAGE_MAX_BYTES", "").strip()
    if not raw:
        return DEFAULT_MAX_BYTES
    try:
        return max(1, int(raw))
    except ValueError:
        return DEFAULT_MAX_BYTES


def _SniffImage(data: bytes) -> tuple[str, str] | None:
    for prefix, ext, content_type in _MAGIC_PREFIXES:
        if data.startswith(prefix):
            return ext, content_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp", "image/webp"
    if data[4:12] in {b"ftypheic", b"ftypheix", b"ftypmif1"}:
        return "heic", "image/heic"
    return None


def DetectImageType(content_type: str | None, filename: str | None, data: bytes) -> tuple[str, str]:
    """Return ``(extension, content_type)`` or raise if the payload is not an image."""
    sniffed = _SniffImage(data)
    if sniffed:
        return sniffed
    normalized = (content_type or "").split(";", 1)[0].strip().lower()
    if normalized.startswith("image/"):
        subtype = normalized.split("/", 1)[1].replace("jpeg", "jpg")
        ext = re.split(r"[^a-z0-9]", subtype, maxsplit=1)[0] or FALLBACK_EXTENSION
        if filename and "." in filename:
            candidate = filename.rsplit(".", 1)[-1].strip().lower()
            if _SAFE_EXTENSION.match(candidate):
                ext = candidate
        return ext[:10], normalized
    raise UnsupportedImageError("Only image uploads are supported.")


def SaveImageBytes(
    *, data: bytes, owner_user_id: int, filename: str | None, content_type: str | None
) -> StoredImage:
    if data is None:
        data = b""
    if not data:
        raise UnsupportedImageError("Image file is empty.")
    max_bytes = _ResolveMaxBytes()
    if len(data) > max_bytes:
        raise ImageTooLargeError(f"Image exceeds {max_bytes // (1024 * 1024)} MB.")
    ext, resolved_type = DetectImageType(content_type, filename, data)

    now = datetime.utcnow()
    storage_root = _EnsureStorageRoot()
    relative_dir = Path(str(owner_user_id)) / f"{now.year:04d}" / f"{now.month:02d}"
    target_dir = storage_root / relative_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    file_name = f"{uuid.uuid4().hex}.{ext}"
    (target_dir / file_name).write_bytes(data)

    return StoredImage(
        StoragePath=(relative_dir / file_name).as_posix(),
        FileSizeBytes=len(data),
        Hash=hashlib.sha256(data).hexdigest(),
        ContentType=resolved_type,
        OriginalFileName=filename,
    )


def ResolveImagePath(storage_path: str) -> Path:
    root = _EnsureStorageRoot()
    candidate = (root / storage_path).resolve()
    try:
        candidate.relative_to(root.resolve())
    except ValueError as exc:
        raise ValueError("Invalid storage path.") from exc
    return candidate


def ReadImageBytes(storage_path: str) -> bytes:
    return ResolveImagePath(storage_path).read_bytes()


def DeleteStoredImages(storage_paths: list[str]) -> int:
    removed = 0
    for storage_path in storage_paths:
        try:
            path = ResolveImagePath(storage_path)
        except ValueError:
            logger.warning("skipping image outside storage root path=%s", storage_path)
            continue
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            logger.debug("image already removed path=%s", storage_path)
        except OSError:
            logger.exception("failed to remove image path=%s", storage_path)
    return removed
