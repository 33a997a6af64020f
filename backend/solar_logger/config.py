import os

# Database URL Configuration
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./solar_records.db")

# Redis / cache
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
CACHE_ENABLED = os.environ.get("CACHE_ENABLED", "1").lower() not in ("0", "false", "no")
CACHE_TTL_SECONDS = int(os.environ.get("CACHE_TTL_SECONDS", "30"))

# Daily CSV snapshots written by the beat task
BACKUP_DIR = os.environ.get("BACKUP_DIR", "./backups")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost,http://localhost:5173").split(",")
    if origin.strip()
]

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
