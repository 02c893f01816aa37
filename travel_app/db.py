import os
import logging
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from travel_app.config import get_settings

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = get_settings().database_url


def make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    return create_engine(url, connect_args={"check_same_thread": False})


engine = make_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_database():
    # Register every model on Base.metadata before creating tables
    from travel_app.models import user, hotel, booking, notification  # noqa: F401

    if SQLALCHEMY_DATABASE_URL.startswith("sqlite:///./"):
        data_dir = os.path.dirname(SQLALCHEMY_DATABASE_URL[len("sqlite:///"):])
        if data_dir and not os.path.exists(data_dir):
            os.makedirs(data_dir)
    Base.metadata.create_all(bind=engine)


def get_db():
    """Provide a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Commit everything done inside the block, or roll it all back."""
    try:
        yield db
        db.commit()
    except Exception:
        logger.debug("Rolling back transaction")
        db.rollback()
        raise
