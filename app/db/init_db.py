import logging

from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

def init_db(bind=None) -> None:
    """Create any missing tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database schema ready")
