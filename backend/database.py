# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings


def normalize_url(url: str) -> str:
    # Hosted Postgres hands out postgres://, SQLAlchemy wants postgresql://
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def build_engine(url: str, **kwargs):
    url = normalize_url(url)
    if url.startswith("sqlite"):
        # Only for SQLite: share connections across threads and wait on locks
        connect_args = {"check_same_thread": False, "timeout": settings.SQLITE_TIMEOUT}
    else:
        connect_args = {}
    return create_engine(url, connect_args=connect_args, **kwargs)


SQLALCHEMY_DATABASE_URL = normalize_url(settings.DATABASE_URL)

engine = build_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    # Register every model on the metadata before creating tables
    import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
