import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


DATABASE_ECHO = _flag("DATABASE_ECHO", False)
CREATE_TABLES = _flag("CREATE_TABLES", True)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Refuse to delete a book while copies of it exist.
BOOK_DELETE_REQUIRES_NO_COPIES = _flag("BOOK_DELETE_REQUIRES_NO_COPIES", True)


def configure_logging(level: str | None = None):
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
