import io

import pytest
from cryptography.fernet import Fernet
from PIL import Image

from garage.config import get_settings
from garage.errors import DependencyError, NotFoundError, ValidationError
from garage.services import file_store


@pytest.fixture
def jpeg_bytes():
    img = Image.new("RGB", (640, 480), color=(70, 130, 180))
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def store_dir(tmp_path, monkeypatch):
    """Point uploads.base_dir at a temp directory."""
    base = tmp_path / "uploads"
    monkeypatch.setattr(get_settings().uploads, "base_dir", str(base))
    monkeypatch.delenv("FERNET_KEY", raising=False)
    return base


async def test_save_and_read_plaintext(jpeg_bytes, store_dir):
    location = await file_store.save_upload(jpeg_bytes, "image/jpeg", "qa_photo")
    assert location.startswith("qa_photo/")
    assert location.endswith(".jpg")
    assert (store_dir / location).read_bytes() == jpeg_bytes
    assert await file_store.read_upload(location) == jpeg_bytes


async def test_encrypted_upload_needs_the_same_key(jpeg_bytes, store_dir, monkeypatch):
    monkeypatch.setenv("FERNET_KEY", Fernet.generate_key().decode())
    location = await file_store.save_upload(jpeg_bytes, "image/jpeg", "qa_photo")

    monkeypatch.setenv("FERNET_KEY", Fernet.generate_key().decode())
    with pytest.raises(DependencyError):
        await file_store.read_upload(location)

    monkeypatch.delenv("FERNET_KEY")
    with pytest.raises(DependencyError):
        await file_store.read_upload(location)


async def test_uploads_encrypted_at_rest_when_key_set(jpeg_bytes, store_dir, monkeypatch):
    monkeypatch.setenv("FERNET_KEY", Fernet.generate_key().decode())
    location = await file_store.save_upload(jpeg_bytes, "image/jpeg", "receipt")
    assert location.endswith(".jpg.enc")
    assert (store_dir / location).read_bytes() != jpeg_bytes
    assert await file_store.read_upload(location) == jpeg_bytes


async def test_voice_note_accepted(store_dir):
    location = await file_store.save_upload(b"OggS fake audio", "audio/ogg", "voice_note")
    assert location.startswith("voice_note/")


@pytest.mark.parametrize("data, content_type, category", [
    (b"", "image/jpeg", "qa_photo"),
    (b"not really a jpeg", "image/jpeg", "qa_photo"),
    (b"%PDF-1.4", "application/pdf", "qa_photo"),
    (b"OggS", "audio/ogg", "receipt_scan"),
    (b"%PDF-1.4", "application/pdf", "voice_note"),
    (b"MZ", "application/x-msdownload", "attachment"),
])
def test_rejected_uploads(data, content_type, category, store_dir):
    with pytest.raises(ValidationError):
        file_store.validate_upload(data, content_type, category)


def test_size_limit(store_dir, monkeypatch):
    monkeypatch.setattr(get_settings().uploads, "max_bytes", 4)
    with pytest.raises(ValidationError):
        file_store.validate_upload(b"%PDF-1.4", "application/pdf", "receipt")


def test_location_cannot_escape_base(store_dir):
    with pytest.raises(ValidationError):
        file_store.read_upload_sync("../../etc/passwd")


def test_missing_file(store_dir):
    with pytest.raises(NotFoundError):
        file_store.read_upload_sync("qa_photo/01J0000000000000000000000.jpg")


async def test_exists_checks_category_and_base(jpeg_bytes, store_dir):
    photo = await file_store.save_upload(jpeg_bytes, "image/jpeg", "qa_photo")
    receipt = await file_store.save_upload(jpeg_bytes, "image/jpeg", "receipt")

    assert file_store.exists(photo)
    assert file_store.exists(photo, "qa_photo")
    assert not file_store.exists(receipt, "qa_photo")
    assert not file_store.exists(f"qa_photo/../{receipt}", "qa_photo")
    assert not file_store.exists("qa_photo/01J0000000000000000000000.jpg", "qa_photo")
    assert not file_store.exists("../../etc/passwd")
    assert not file_store.exists("qa_photo", "qa_photo")


async def test_confirm_uploads_names_the_missing_locations(jpeg_bytes, store_dir):
    photo = await file_store.save_upload(jpeg_bytes, "image/jpeg", "qa_photo")
    await file_store.confirm_uploads([photo], "qa_photo")
    with pytest.raises(ValidationError, match="qa_photo/ghost.jpg"):
        await file_store.confirm_uploads([photo, "qa_photo/ghost.jpg"], "qa_photo")
