"""Database layer."""

from keyward.db.session import close_db, get_session_factory, init_db

__all__ = ["close_db", "get_session_factory", "init_db"]
