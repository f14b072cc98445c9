"""Database package for the Quizzy blog API."""

from quizzy.db.database import get_db, init_db, Base
from quizzy.db.models import Author, Blog

__all__ = ["get_db", "init_db", "Base", "Author", "Blog"]
