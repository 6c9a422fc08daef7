"""Create all tables on the configured database."""

import logging

from .database import Base, engine
from .models import Booking, SubjectOffering, TutorProfile  # noqa: F401

logger = logging.getLogger(__name__)


def init_db() -> None:
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
