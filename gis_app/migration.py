"""Membuat tabel, admin bawaan, dan import data fasilitas awal dari GeoJSON.

Jalankan lewat ``python init_db.py [folder_geojson]``.
"""
import json
import logging
import os
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import config
from .auth import get_password_hash
from .database import Base, SessionLocal, engine
from .models import Facility, User
from .validator import FACILITY_RULES, validate

log = logging.getLogger(__name__)

DEFAULT_ADDRESS = "Kelurahan Cirendeu, Kecamatan Ciputat Timur, Kota Tangerang Selatan, Banten"

# nama file GeoJSON -> (kategori, deskripsi default)
GEOJSON_SOURCES = {
    "masjid": ("Masjid", "Tempat ibadah umat Islam"),
    "pendidikan": ("Pendidikan", "Lembaga pendidikan dan pembelajaran"),
    "kesehatan": ("Kesehatan", "Fasilitas pelayanan kesehatan"),
    "prasarana": ("Prasarana Umum", "Infrastruktur dan prasarana umum"),
    "fasilitas": ("Fasilitas Publik", "Fasilitas pelayanan publik"),
}

# Data GeoJSON dipercaya: teks disimpan apa adanya, koordinat & kategori tetap dicek
IMPORT_RULES = {name: dict(rule, sanitize=False) for name, rule in FACILITY_RULES.items()}


def create_tables() -> None:
    Base.metadata.create_all(bind=engine)


def create_default_admin(db: Session) -> bool:
    """Buat admin bawaan jika belum ada. True jika baru dibuat."""
    if db.query(User).filter(User.email == config.DEFAULT_ADMIN_EMAIL).first():
        return False
    db.add(User(
        name=config.DEFAULT_ADMIN_NAME,
        email=config.DEFAULT_ADMIN_EMAIL,
        password_hash=get_password_hash(config.DEFAULT_ADMIN_PASSWORD),
    ))
    db.commit()
    log.info("Default admin created email=%s", config.DEFAULT_ADMIN_EMAIL)
    return True


def _find_geojson(directory: str, key: str) -> Optional[str]:
    for ext in (".geojson", ".json"):
        path = os.path.join(directory, key + ext)
        if os.path.isfile(path):
            return path
    return None


def _feature_name(properties: dict) -> str:
    for key in ("Nama", "nama", "jalan"):
        if properties.get(key):
            return str(properties[key])
    return "Unknown"


def import_facilities(db: Session, directory: Optional[str] = None) -> int:
    """Import fasilitas dari file GeoJSON; dilewati jika tabel sudah berisi data.

    Tanpa ``directory`` dipakai data bawaan Cirendeu di ``config.GEOJSON_DIR``.
    Feature yang tidak lolos validasi dilewati dan dicatat di log.
    """
    directory = directory or config.GEOJSON_DIR
    if db.query(func.count(Facility.id)).scalar():
        log.info("Facility data already present, skipping import")
        return 0

    total = 0
    for key, (category, description) in GEOJSON_SOURCES.items():
        path = _find_geojson(directory, key)
        if path is None:
            continue
        with open(path, encoding="utf-8") as f:
            collection = json.load(f)
        for feature in collection.get("features", []):
            geometry = feature.get("geometry") or {}
            coordinates = geometry.get("coordinates") or []
            if geometry.get("type") != "Point" or len(coordinates) < 2:
                log.warning("Skipping non-point feature in %s", path)
                continue
            result = validate({
                "name": _feature_name(feature.get("properties") or {}),
                "address": DEFAULT_ADDRESS,
                "description": description,
                "latitude": coordinates[1],
                "longitude": coordinates[0],
                "category": category,
            }, IMPORT_RULES)
            if not result.valid:
                log.warning("Skipping invalid feature in %s: %s", path, ", ".join(result.errors))
                continue
            db.add(Facility(**result.data))
            total += 1
    db.commit()
    log.info("%s facilities imported from %s", total, directory)
    return total


def run_migration(geojson_dir: Optional[str] = None) -> int:
    create_tables()
    db = SessionLocal()
    try:
        create_default_admin(db)
        return import_facilities(db, geojson_dir)
    finally:
        db.close()
