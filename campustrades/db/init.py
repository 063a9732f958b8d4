"""Initialize database tables."""
import logging

from sqlmodel import SQLModel

from campustrades.models.profile import Profile
from campustrades.models.product import Product, ItemRequest
from campustrades.models.conversation import Conversation
from campustrades.models.message import Message
from campustrades.models.rating import Rating
from campustrades.models.favorite import Favorite
from campustrades.db.config import engine

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create all tables in the database."""
    logger.info("[DB INIT] Creating all tables...")
    SQLModel.metadata.create_all(bind or engine)
    logger.info("[DB INIT] Tables created successfully.")


if __name__ == "__main__":
    init_db()
