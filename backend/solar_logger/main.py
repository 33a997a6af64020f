import logging, time
from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import redis

from solar_logger.config import CORS_ORIGINS, LOG_LEVEL
from solar_logger.constants import APP_TITLE
from solar_logger.database import Base, SessionLocal, engine
from solar_logger.routes import records, stats
from solar_logger.services import cache
from solar_logger.services.store import RecordStoreError

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'no-referrer',
    'Strict-Transport-Security': 'max-age=63072000; includeSubDomains; preload',
}


class SecureHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} - {response.status_code} - {elapsed_ms:.2f}ms")
        return response

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=f"{APP_TITLE} API",
    description="API for logging daily power station recovery and solar generation",
    version="1.0.0"
)

# Enable compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

app.add_middleware(SecureHeadersMiddleware)
app.add_middleware(RequestLogMiddleware)

# API versioning: v1
app.include_router(records.router, prefix="/api/v1", tags=["records"])
app.include_router(stats.router, prefix="/api/v1", tags=["stats"])


@app.exception_handler(RecordStoreError)
async def record_store_error_handler(request: Request, exc: RecordStoreError):
    logger.error(f"Record store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Record store unavailable, no changes were saved"})


@app.get("/")
def read_root():
    return {"message": f"Welcome to {APP_TITLE} API", "docs": "/docs"}

@app.get("/health")
def health_check():
    db_status, redis_status = 'ok', 'ok'
    db = SessionLocal()
    try:
        db.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        db_status = f"error: {str(e)}"
    finally:
        db.close()
    try:
        if not cache.redis_client.ping():
            redis_status = "error: cannot ping Redis"
    except redis.RedisError as e:
        redis_status = f"error: {str(e)}"
    return {"db": db_status, "redis": redis_status}
