"""
Initialize storage — creates the events table and the data directory.
Safe to run repeatedly; the backend also does this on startup.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import create_tables, make_engine
from app.errors import StorageError
from app.services.media_store import MediaStore


def main():
    print("🗄️  Motion Event Recorder — Storage Initialization")
    print("=" * 50)
    print(f"📡 Database: {settings.DATABASE_URL}")

    engine = make_engine(settings.DATABASE_URL)

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except SQLAlchemyError as e:
        print(f"❌ Cannot open database: {e}")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables(engine)
    with engine.connect() as conn:
        count = conn.execute(text("SELECT COUNT(*) FROM events")).scalar()
    print(f"✅ Table 'events' ready ({count} rows)")

    media = MediaStore(settings.DATA_DIR)
    try:
        media.ensure_dir()
    except StorageError as e:
        print(f"❌ {e}")
        sys.exit(1)
    print(f"✅ Data directory ready: {media.data_dir}")

    print("\n🎉 Storage ready! You can now start the backend:")
    print(f"   uvicorn app.main:create_app --factory --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
