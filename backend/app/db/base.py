"""SQLAlchemy declarative base shared by the ORM models and Alembic."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models (currently only ``posts``)."""
