"""
SQLAlchemy declarative base.

Every Taskflow model (users, lists, shares, tasks, steps) inherits from Base,
so Alembic sees one shared metadata object.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase


# Stable constraint names keep Alembic autogenerate diffs clean
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
