import logging
import sys

from solar_logger.database import SessionLocal, Base, engine

# Import all models to ensure they are registered with SQLAlchemy
from solar_logger.models.record import DailyRecordRow  # noqa: F401
from solar_logger.services.csv_io import import_records_from_csv
from solar_logger.services.records import reconcile
from solar_logger.services.store import apply_update, load_records

logger = logging.getLogger(__name__)


def init_db(seed_csv: str = None):
    """Create tables and optionally merge records from a CSV file."""
    Base.metadata.create_all(bind=engine)

    if seed_csv is None:
        return 0

    with open(seed_csv, encoding="utf-8-sig") as f:
        result = import_records_from_csv(f.read())

    db = SessionLocal()
    try:
        if load_records(db):
            logger.info("Database already contains records, merging seed by date")
        apply_update(db, lambda records: reconcile(records, result.records))
    finally:
        db.close()
    for warning in result.warnings:
        logger.warning(warning)
    return len(result.records)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Initializing database...")
    count = init_db(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"Database initialization completed! {count} records seeded.")
