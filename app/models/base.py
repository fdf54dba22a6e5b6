import uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, DateTime
from datetime import datetime

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin for timestamp columns"""
    __abstract__ = True
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


__all__ = ["Base", "TimestampMixin", "generate_uuid"]
