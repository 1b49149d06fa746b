"""
Base model class for all SQLAlchemy models.

WHY: Centralizing common model functionality (timestamps, ID) in a base class
keeps every table consistent and lets Alembic discover them from one metadata.
"""

from datetime import datetime
from enum import Enum
from typing import Type
from sqlalchemy import Column, Integer, DateTime, Enum as SQLEnum
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    WHY: DeclarativeBase provides the foundation for SQLAlchemy 2.0 models
    with improved type hints and async support.
    """

    pass


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    """

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PrimaryKeyMixin:
    """
    Mixin to add an auto-incrementing integer primary key to models.
    """

    id = Column(Integer, primary_key=True, index=True)


def enum_column_type(enum_cls: Type[Enum], name: str) -> SQLEnum:
    """
    Build a SQL enum type that stores the enum *value*.

    WHY: values_callable ensures the enum value (lowercase) is stored,
    not the member name (UPPERCASE), so the API and the database agree.

    Args:
        enum_cls: Python enum class
        name: Database type name

    Returns:
        SQLAlchemy Enum type
    """
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda enum: [e.value for e in enum],
    )
