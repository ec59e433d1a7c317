from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from ..config import get_settings

settings = get_settings()
database_url = settings.sqlalchemy_database_url

if database_url.startswith("sqlite"):
    engine = create_engine(
        database_url,
        echo=settings.debug,
        connect_args={"check_same_thread": False}
    )
else:
    # Shared by the query endpoints and the ingestion job
    engine = create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=settings.debug
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    # Import models to register them with Base
    from ..models import article  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind=None):
    Base.metadata.drop_all(bind=bind or engine)
