import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import SessionContext, require_auth
from ..database import get_db
from ..errors import BadRequestError, NotFoundError, PersistenceError, ValidationError
from ..models import Facility
from ..payloads import FacilityPayload, read_facility_payload
from ..responses import success
from ..uploads import delete_photo, save_photo
from ..validator import FACILITY_RULES, is_empty, validate

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/facilities", tags=["Facilities"])

# Metadata kategori untuk legenda & marker peta
CATEGORY_META = [
    {"value": "Masjid", "label": "Masjid", "icon": "fas fa-mosque", "color": "#2ecc71"},
    {"value": "Pendidikan", "label": "Pendidikan", "icon": "fas fa-graduation-cap", "color": "#3498db"},
    {"value": "Kesehatan", "label": "Kesehatan", "icon": "fas fa-hospital", "color": "#e74c3c"},
    {"value": "Prasarana Umum", "label": "Prasarana Umum", "icon": "fas fa-building", "color": "#9b59b6"},
    {"value": "Fasilitas Publik", "label": "Fasilitas Publik", "icon": "fas fa-gas-pump", "color": "#f39c12"},
]

UPDATABLE_FIELDS = ("name", "category", "latitude", "longitude", "address", "description")
# Field wajib: nilai kosong saat update diabaikan (tidak menghapus isi lama)
REQUIRED_FIELDS = ("name", "category", "latitude", "longitude")


def _database_error(db: Session, what: str) -> PersistenceError:
    db.rollback()
    log.exception("Database error %s", what)
    return PersistenceError()


def _category_stats(db: Session) -> dict:
    rows = (
        db.query(Facility.category, func.count(Facility.id))
        .group_by(Facility.category)
        .order_by(Facility.category.asc())
        .all()
    )
    total = db.query(func.count(Facility.id)).scalar()
    return {
        "total": int(total or 0),
        "by_category": [{"kategori": c, "count": int(n)} for c, n in rows],
    }


@router.get("")
def list_facilities(
    action: Optional[str] = None,
    kategori: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=0),
    offset: int = Query(0, ge=0),
    output_format: Optional[str] = Query(None, alias="format"),
    db: Session = Depends(get_db),
):
    # action selesai di sini, tidak lanjut ke daftar fasilitas
    if action:
        if action == "categories":
            return success(CATEGORY_META)
        if action == "stats":
            try:
                return success(_category_stats(db))
            except SQLAlchemyError:
                raise _database_error(db, "getting statistics")
        raise BadRequestError("Invalid action")

    try:
        query = db.query(Facility)
        if kategori:
            query = query.filter(Facility.category == kategori)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Facility.name.ilike(pattern),
                Facility.address.ilike(pattern),
                Facility.description.ilike(pattern),
            ))
        total = query.count()
        facilities = (
            query.order_by(Facility.created_at.desc(), Facility.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
    except SQLAlchemyError:
        raise _database_error(db, "getting facilities")

    if output_format == "geojson":
        return success({
            "type": "FeatureCollection",
            "features": [f.to_feature() for f in facilities],
        })

    return success({
        "facilities": [f.to_dict() for f in facilities],
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": (offset + limit) < total,
        },
    })


@router.get("/{facility_id}")
def get_facility(facility_id: int, db: Session = Depends(get_db)):
    try:
        facility = db.get(Facility, facility_id)
    except SQLAlchemyError:
        raise _database_error(db, "getting facility")
    if not facility:
        raise NotFoundError("Facility not found")
    return success(facility.to_dict())


@router.post("")
def create_facility(
    session: SessionContext = Depends(require_auth),
    payload: FacilityPayload = Depends(read_facility_payload),
    db: Session = Depends(get_db),
):
    result = validate(payload.data, FACILITY_RULES)
    if not result.valid:
        raise ValidationError(result.errors)
    data = result.data

    photo_filename = save_photo(payload.photo) if payload.photo else None

    try:
        facility = Facility(
            name=data["name"],
            photo_filename=photo_filename,
            address=data["address"],
            description=data["description"],
            latitude=data["latitude"],
            longitude=data["longitude"],
            category=data["category"],
        )
        db.add(facility)
        db.commit()
        db.refresh(facility)
    except SQLAlchemyError:
        delete_photo(photo_filename)
        raise _database_error(db, "creating facility")

    log.info("Facility created facility_id=%s created_by=%s", facility.id, session.user_id)
    return success(facility.to_dict(), "Facility created successfully")


@router.api_route("/{facility_id}", methods=["PUT", "POST"])
def update_facility(
    facility_id: int,
    session: SessionContext = Depends(require_auth),
    payload: FacilityPayload = Depends(read_facility_payload),
    db: Session = Depends(get_db),
):
    try:
        facility = db.get(Facility, facility_id)
    except SQLAlchemyError:
        raise _database_error(db, "loading facility for update")
    if not facility:
        raise NotFoundError("Facility not found")

    changes: Dict[str, Any] = {}
    for name in UPDATABLE_FIELDS:
        if name not in payload.data:
            continue
        value = payload.data[name]
        if name in REQUIRED_FIELDS and is_empty(value):
            continue
        changes[name] = value

    if not changes and payload.photo is None:
        raise BadRequestError("No valid data provided for update")

    result = validate(changes, {name: FACILITY_RULES[name] for name in changes})
    if not result.valid:
        raise ValidationError(result.errors)

    old_photo = facility.photo_filename
    new_photo = save_photo(payload.photo) if payload.photo else None

    try:
        for name, value in result.data.items():
            setattr(facility, name, value)
        if new_photo:
            facility.photo_filename = new_photo
        # updated_at selalu diperbarui, juga saat hanya foto yang berubah
        facility.updated_at = func.now()
        db.commit()
        db.refresh(facility)
    except SQLAlchemyError:
        delete_photo(new_photo)
        raise _database_error(db, "updating facility")

    if new_photo and old_photo:
        delete_photo(old_photo)

    log.info("Facility updated facility_id=%s updated_by=%s", facility_id, session.user_id)
    return success(facility.to_dict(), "Facility updated successfully")


@router.put("")
def update_without_id(session: SessionContext = Depends(require_auth)):
    raise BadRequestError("Facility ID required for update")


@router.delete("")
def delete_without_id(session: SessionContext = Depends(require_auth)):
    raise BadRequestError("Facility ID required for deletion")


@router.delete("/{facility_id}")
def delete_facility(
    facility_id: int,
    session: SessionContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    try:
        facility = db.get(Facility, facility_id)
        if not facility:
            raise NotFoundError("Facility not found")
        name, photo = facility.name, facility.photo_filename
        db.delete(facility)
        db.commit()
    except SQLAlchemyError:
        raise _database_error(db, "deleting facility")

    delete_photo(photo)
    log.info("Facility deleted facility_id=%s facility_name=%s deleted_by=%s", facility_id, name, session.user_id)
    return success(None, "Facility deleted successfully")
