"""Persistence layer (SQLAlchemy models, session, repositories)."""
