from sqlalchemy import Column, Integer, String, Text, Float, func
from sqlalchemy.sql.sqltypes import DateTime
from .database import Base

CATEGORIES = ("Masjid", "Pendidikan", "Kesehatan", "Prasarana Umum", "Fasilitas Publik")


def _iso(value):
    return value.isoformat() if value else None


class User(Base):
    __tablename__ = "pengguna"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(40), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self, with_created: bool = False) -> dict:
        # password_hash tidak pernah ikut keluar
        data = {"id": self.id, "name": self.name, "email": self.email}
        if with_created:
            data["created_at"] = _iso(self.created_at)
        return data


class LoginSession(Base):
    """Sesi login aktif. Cookie hanya valid selama barisnya masih ada (logout menghapusnya)."""
    __tablename__ = "sesi_login"
    id = Column(String(64), primary_key=True)
    user_id = Column(Integer, index=True, nullable=False)
    login_time = Column(Integer, nullable=False)


class Facility(Base):
    __tablename__ = "fasilitas_umum"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    photo_filename = Column(String(250), nullable=True)
    address = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "photo_filename": self.photo_filename,
            "address": self.address,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "category": self.category,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def to_feature(self) -> dict:
        """GeoJSON Feature (Point) untuk peta Leaflet. Koordinat: [lon, lat]."""
        return {
            "type": "Feature",
            "properties": {
                "id": self.id,
                "nama": self.name,
                "alamat": self.address,
                "deskripsi": self.description,
                "kategori": self.category,
                "foto": self.photo_filename,
                "foto_fasilitas": self.photo_filename,
            },
            "geometry": {
                "type": "Point",
                "coordinates": [float(self.longitude), float(self.latitude)],
            },
        }
