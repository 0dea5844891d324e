"""
Declarative base.

All ORM models inherit from Base so a single metadata object
describes the schema.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""

    pass
