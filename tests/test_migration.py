"""Tests for the default-admin seed and GeoJSON import."""

import json

from sqlalchemy import func

from gis_app import config
from gis_app.auth import verify_password
from gis_app.migration import DEFAULT_ADDRESS, create_default_admin, import_facilities
from gis_app.models import CATEGORIES, Facility, User


def _write_collection(path, features):
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}), encoding="utf-8")


def _point(lon, lat, **properties):
    return {"type": "Feature", "properties": properties, "geometry": {"type": "Point", "coordinates": [lon, lat]}}


def test_default_admin_created_once(db):
    assert create_default_admin(db) is True
    assert create_default_admin(db) is False
    admins = db.query(User).filter(User.email == config.DEFAULT_ADMIN_EMAIL).all()
    assert len(admins) == 1
    assert verify_password(config.DEFAULT_ADMIN_PASSWORD, admins[0].password_hash)


def test_import_geojson(db, tmp_path):
    _write_collection(tmp_path / "masjid.geojson", [
        _point(106.77, -6.31, Nama="Masjid Al-Ikhlas"),
        _point(106.78, -6.32, nama="Musholla Nurul Huda"),
    ])
    _write_collection(tmp_path / "prasarana.json", [
        _point(106.76, -6.30, jalan="Jl. Cirendeu Raya"),
        _point(106.75, -6.29),
        {"type": "Feature", "properties": {}, "geometry": {"type": "LineString", "coordinates": [[1, 2], [3, 4]]}},
    ])

    assert import_facilities(db, str(tmp_path)) == 4

    masjid = db.query(Facility).filter(Facility.name == "Masjid Al-Ikhlas").one()
    assert masjid.category == "Masjid"
    assert masjid.latitude == -6.31
    assert masjid.longitude == 106.77
    assert masjid.address == DEFAULT_ADDRESS
    assert masjid.description == "Tempat ibadah umat Islam"

    names = {f.name for f in db.query(Facility).filter(Facility.category == "Prasarana Umum")}
    assert names == {"Jl. Cirendeu Raya", "Unknown"}


def test_import_skipped_when_data_exists(db, tmp_path):
    db.add(Facility(name="Existing", latitude=0, longitude=0, category="Masjid"))
    db.commit()
    _write_collection(tmp_path / "masjid.geojson", [_point(106.77, -6.31, Nama="Baru")])
    assert import_facilities(db, str(tmp_path)) == 0
    assert db.query(Facility).count() == 1


def test_invalid_coordinates_are_skipped(db, tmp_path):
    _write_collection(tmp_path / "masjid.geojson", [
        _point(500, 200, Nama="Titik Salah"),
        _point("timur", -6.3, Nama="Bukan Angka"),
        _point(106.77, -6.31, Nama="Masjid Benar"),
    ])
    assert import_facilities(db, str(tmp_path)) == 1
    facility = db.query(Facility).one()
    assert facility.name == "Masjid Benar"
    assert -90 <= facility.latitude <= 90


def test_default_dataset_seeds_every_category(db):
    assert import_facilities(db) == 53
    counts = dict(db.query(Facility.category, func.count(Facility.id)).group_by(Facility.category).all())
    assert set(counts) == set(CATEGORIES)
    assert counts["Masjid"] == 18
    assert counts["Fasilitas Publik"] == 6
    # teks disimpan apa adanya, tidak di-escape
    assert db.query(Facility).filter(Facility.name == "Masjid Darussa'adah").count() == 1
    assert all(-90 <= f.latitude <= 90 for f in db.query(Facility))
