import hashlib

import pytest

from app.modules.notes.image_storage import (
    DeleteStoredImages,
    DetectImageType,
    ImageTooLargeError,
    ReadImageBytes,
    ResolveImagePath,
    SaveImageBytes,
    UnsupportedImageError,
)


def test_detect_image_type_prefers_magic_bytes(png_bytes):
    assert DetectImageType("application/octet-stream", "scan.bin", png_bytes) == ("png", "image/png")
    assert DetectImageType(None, None, b"\xff\xd8\xff\xe0rest") == ("jpg", "image/jpeg")


def test_detect_image_type_falls_back_to_content_type():
    assert DetectImageType("image/jpeg", None, b"unknown") == ("jpg", "image/jpeg")
    assert DetectImageType("image/svg+xml", "logo.svg", b"<svg/>") == ("svg", "image/svg+xml")


def test_detect_image_type_rejects_non_images():
    with pytest.raises(UnsupportedImageError):
        DetectImageType("text/plain", "notes.txt", b"hello")


def test_save_and_read_image(png_bytes, image_root):
    stored = SaveImageBytes(data=png_bytes, owner_user_id=7, filename="scan.png", content_type="image/png")

    assert stored.StoragePath.startswith("7/")
    assert stored.StoragePath.endswith(".png")
    assert stored.FileSizeBytes == len(png_bytes)
    assert stored.Hash == hashlib.sha256(png_bytes).hexdigest()
    assert stored.OriginalFileName == "scan.png"
    assert ReadImageBytes(stored.StoragePath) == png_bytes
    assert ResolveImagePath(stored.StoragePath).is_relative_to(image_root.resolve())


def test_save_image_enforces_limits(png_bytes, monkeypatch):
    with pytest.raises(UnsupportedImageError):
        SaveImageBytes(data=b"", owner_user_id=1, filename=None, content_type="image/png")

    monkeypatch.setenv("IMAGE_STORAGE_MAX_BYTES", "10")
    with pytest.raises(ImageTooLargeError):
        SaveImageBytes(data=png_bytes, owner_user_id=1, filename=None, content_type="image/png")


def test_resolve_image_path_blocks_traversal():
    with pytest.raises(ValueError):
        ResolveImagePath("../../etc/passwd")


def test_delete_stored_images_counts_removed(png_bytes):
    stored = SaveImageBytes(data=png_bytes, owner_user_id=1, filename=None, content_type="image/png")
    assert DeleteStoredImages([stored.StoragePath, "1/missing.png", "../outside.png"]) == 1
    assert not ResolveImagePath(stored.StoragePath).exists()


def test_detect_image_type_ignores_unsafe_filename_extension():
    assert DetectImageType("image/png", "scan.x/y", b"not-magic-bytes") == ("png", "image/png")
    assert DetectImageType("image/png", "scan.averyveryverylongext", b"raw") == ("png", "image/png")
    assert DetectImageType("image/svg+xml", None, b"<svg/>") == ("svg", "image/svg+xml")
