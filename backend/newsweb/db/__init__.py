"""Database package."""

from newsweb.db.postgres import get_engine, get_session, init_db, session_factory

__all__ = ["get_engine", "get_session", "init_db", "session_factory"]
