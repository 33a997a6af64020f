from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy import create_engine

from solar_logger.config import DATABASE_URL

Base = declarative_base()

# SQLite connections are handed across FastAPI's worker threads
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

__all__ = ['Base', 'SessionLocal', 'engine', 'get_db']


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
