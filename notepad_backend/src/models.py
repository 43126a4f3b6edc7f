from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, String, Text, false

from src.db import Base


class Category(Base):
    """SQLAlchemy model representing an owner's note category ("Personal", "Work", ...)."""
    __tablename__ = "notepad_categories"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)

    name = Column(Text, nullable=False)
    icon = Column(String(64), nullable=True)
    sort_order = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class Note(Base):
    """SQLAlchemy model representing a note, optionally filed under a category of the same owner."""
    __tablename__ = "notes"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)

    category_id = Column(String(36), ForeignKey("notepad_categories.id"), nullable=True, index=True)

    title = Column(Text, nullable=True)
    body = Column(Text, nullable=False)
    color = Column(String(32), nullable=True)  # e.g. "#FFF7C2"
    is_pinned = Column(Boolean, nullable=False, default=False, server_default=false())
    is_archived = Column(Boolean, nullable=False, default=False, server_default=false())

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
