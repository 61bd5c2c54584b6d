"""
Declarative base shared by all models.
"""

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    # Set once on insert; status transitions leave every other column alone
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
