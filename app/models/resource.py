"""Tiered learning resources and their download log."""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey

from app.models.base import Base, TimestampMixin, generate_uuid


class Resource(Base, TimestampMixin):
    __tablename__ = "resources"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False)  # guide, template, video, checklist
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    download_url = Column(String, nullable=False)
    tier_required = Column(Integer, nullable=False, default=1)
    download_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String, nullable=True)


class ResourceDownload(Base):
    __tablename__ = "resource_downloads"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    resource_id = Column(String, ForeignKey("resources.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("registered_users.id"), nullable=False, index=True)
    downloaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)
