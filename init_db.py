"""
Inisialisasi database: buat tabel, admin bawaan, dan import data GeoJSON awal.

    python init_db.py                 # tabel + admin + 53 fasilitas bawaan (gis_app/data)
    python init_db.py folder_lain     # import masjid.geojson, pendidikan.geojson, ... dari folder lain
"""
import logging
import sys

from gis_app import config
from gis_app.migration import run_migration

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
    geojson_dir = sys.argv[1] if len(sys.argv) > 1 else None
    total = run_migration(geojson_dir)
    print(f"✅ Migration selesai ({total} fasilitas diimport)")
    print(f"🔑 Login admin: {config.DEFAULT_ADMIN_EMAIL} / {config.DEFAULT_ADMIN_PASSWORD}")
