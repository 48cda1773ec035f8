"""
SQLAlchemy ORM models for Foosrank.

Players are stored as whole JSON documents keyed by their ITSF licence
number. The player store always writes a complete document, so there are
no per-field columns to keep in sync; the document format is defined by
``foosrank.players.models.Player.to_dict()``.

Tables:
- players: One JSON document per player
- player_images: Profile photos, kept apart from the documents
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, LargeBinary, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class PlayerRecord(Base):
    """Persisted player document."""

    __tablename__ = "players"

    # ITSF licence number (assigned upstream, never generated here)
    itsf_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    json_data: Mapped[dict] = mapped_column(JSON, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PlayerRecord(itsf_id={self.itsf_id})>"


class PlayerImageRecord(Base):
    """Persisted player photo."""

    __tablename__ = "player_images"

    itsf_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    image_data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    image_format: Mapped[str] = mapped_column(String(10), nullable=False, default="jpg")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PlayerImageRecord(itsf_id={self.itsf_id}, format='{self.image_format}')>"
