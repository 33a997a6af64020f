import logging
import os
from datetime import datetime, timezone

from celery import Celery
from celery.schedules import crontab

from solar_logger.config import BACKUP_DIR, REDIS_URL
from solar_logger.database import SessionLocal
from solar_logger.services.csv_io import export_filename, export_records_to_csv
from solar_logger.services.store import RecordStoreError, read_records

logger = logging.getLogger(__name__)

# Celery Configuration
celery_app = Celery('solar_logger', broker=REDIS_URL)
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
)

# Schedule configuration (daily, shortly after midnight)
celery_app.conf.beat_schedule = {
    'export-records-snapshot-daily': {
        'task': 'solar_logger.tasks.export_records_snapshot',
        'schedule': crontab(hour=0, minute=5),
    },
}


def write_snapshot(directory: str, today=None):
    """Write the current collection as CSV into ``directory``; return the path, or None if empty."""
    today = today or datetime.now(timezone.utc).date()
    db = SessionLocal()
    try:
        records = read_records(db)
    finally:
        db.close()
    if not records:
        logger.info("No records to snapshot")
        return None
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, export_filename(today))
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(export_records_to_csv(records))
    logger.info(f"Wrote snapshot of {len(records)} records to {path}")
    return path


@celery_app.task(bind=True, max_retries=3, name='solar_logger.tasks.export_records_snapshot')
def export_records_snapshot(self, directory: str = None):
    """Daily CSV backup of the record collection."""
    try:
        return write_snapshot(directory or BACKUP_DIR)
    except (OSError, RecordStoreError) as e:
        logger.error(f"Snapshot task error: {e}")
        raise self.retry(exc=e, countdown=60)
