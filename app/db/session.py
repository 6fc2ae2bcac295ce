import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import SQLALCHEMY_DATABASE_URI
from app.core.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

# Determine if we are using SQLite
is_sqlite = SQLALCHEMY_DATABASE_URI.startswith("sqlite")

connect_args = {}
if is_sqlite:
    connect_args = {"check_same_thread": False}

engine = create_engine(SQLALCHEMY_DATABASE_URI, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def unit_of_work(db: Session):
    """
    One all-or-nothing write set. Commits when the block exits cleanly and
    rolls back on any exception. Storage failures are re-raised as
    StorageUnavailableError so callers can retry the whole operation.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction rolled back after storage error: {e}")
        raise StorageUnavailableError(str(e)) from e
    except Exception:
        db.rollback()
        raise
