import logging
import os
import time
import uuid
from typing import Optional

from fastapi import UploadFile

from . import config
from .errors import UploadError

log = logging.getLogger(__name__)

# Tipe gambar yang diterima, dikenali dari byte awal file (bukan dari header klien)
ALLOWED_SIGNATURES = {
    b"\xff\xd8\xff": ("image/jpeg", "jpg"),
    b"\x89PNG\r\n\x1a\n": ("image/png", "png"),
    b"GIF87a": ("image/gif", "gif"),
    b"GIF89a": ("image/gif", "gif"),
}


def sniff_image_type(head: bytes) -> Optional[tuple]:
    for signature, kind in ALLOWED_SIGNATURES.items():
        if head.startswith(signature):
            return kind
    return None


def photo_path(filename: str) -> str:
    return os.path.join(config.UPLOAD_PATH, os.path.basename(filename))


def save_photo(upload: Optional[UploadFile]) -> str:
    """Simpan foto fasilitas, kembalikan nama file baru (unik)."""
    if upload is None or not upload.filename:
        raise UploadError("No file uploaded or upload error")

    # baca paling banyak batas + 1 byte, file besar tidak ditampung seluruhnya
    content = upload.file.read(config.MAX_FILE_SIZE + 1)
    if not content:
        raise UploadError("No file uploaded or upload error")
    if len(content) > config.MAX_FILE_SIZE:
        raise UploadError("File size exceeds maximum limit")

    kind = sniff_image_type(content[:16])
    if kind is None:
        raise UploadError("Invalid file type")

    # ekstensi mengikuti isi file, bukan nama dari klien
    filename = f"{uuid.uuid4().hex}_{int(time.time())}.{kind[1]}"

    try:
        os.makedirs(config.UPLOAD_PATH, exist_ok=True)
        with open(photo_path(filename), "wb") as f:
            f.write(content)
    except OSError:
        log.exception("Failed to store uploaded file %s", upload.filename)
        raise UploadError("Failed to move uploaded file")

    log.info("Photo stored filename=%s size=%s type=%s", filename, len(content), kind[0])
    return filename


def delete_photo(filename: Optional[str]) -> bool:
    if not filename:
        return False
    path = photo_path(filename)
    try:
        if os.path.exists(path):
            os.remove(path)
            return True
    except OSError:
        # file gagal dihapus tidak membatalkan operasi database
        log.warning("Failed to delete photo %s", path, exc_info=True)
    return False
