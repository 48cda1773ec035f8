"""Persistence of player documents and images."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from foosrank.db.models import PlayerImageRecord, PlayerRecord
from foosrank.db.session import get_session


class PlayerRepository:
    """
    Key/value store of player JSON documents and images backed by the database.

    Each call runs in its own session and commits before returning, so a
    successful ``put_*`` is durable. No caching happens here; the player
    store keeps the in-memory map.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def load_players(self) -> dict[int, dict[str, Any]]:
        with get_session(self.session_factory) as session:
            rows = session.execute(select(PlayerRecord)).scalars().all()
            return {row.itsf_id: row.json_data for row in rows}

    def get_player(self, itsf_id: int) -> dict[str, Any] | None:
        with get_session(self.session_factory) as session:
            row = session.get(PlayerRecord, itsf_id)
            if row is None:
                return None
            return row.json_data

    def put_player(self, itsf_id: int, document: dict[str, Any]) -> None:
        with get_session(self.session_factory) as session:
            row = session.get(PlayerRecord, itsf_id)
            if row is None:
                session.add(
                    PlayerRecord(
                        itsf_id=itsf_id,
                        json_data=document,
                        updated_at=datetime.utcnow(),
                    )
                )
            else:
                row.json_data = document
                row.updated_at = datetime.utcnow()

    def get_image(self, itsf_id: int) -> tuple[bytes, str] | None:
        with get_session(self.session_factory) as session:
            row = session.get(PlayerImageRecord, itsf_id)
            if row is None:
                return None
            return row.image_data, row.image_format

    def put_image(self, itsf_id: int, image_data: bytes, image_format: str) -> None:
        with get_session(self.session_factory) as session:
            row = session.get(PlayerImageRecord, itsf_id)
            if row is None:
                session.add(
                    PlayerImageRecord(
                        itsf_id=itsf_id,
                        image_data=image_data,
                        image_format=image_format,
                        updated_at=datetime.utcnow(),
                    )
                )
            else:
                row.image_data = image_data
                row.image_format = image_format
                row.updated_at = datetime.utcnow()

    def list_image_ids(self) -> list[int]:
        with get_session(self.session_factory) as session:
            return list(
                session.execute(
                    select(PlayerImageRecord.itsf_id).order_by(PlayerImageRecord.itsf_id)
                ).scalars()
            )
