"""
Player store - the single owner of all player records.

Both ingestion jobs and the web routes read and write players through one
PlayerStore instance. It keeps every player in memory and writes each
change straight through to the PlayerRepository.

Rules:
- Every method takes the same exclusive lock for its whole duration.
  Nothing awaits while the lock is held; all methods are synchronous.
- A mutation copies the current record, applies the change, writes the
  complete document to the repository and only then replaces the
  in-memory record. A failed write leaves the map untouched.
- Ranking-style lists are merged by semantic key: any entry that
  ``matches()`` the new one is removed before the new one is appended.
- Reads hand out deep copies, never references into the map.
"""

from __future__ import annotations

import copy
import io
import json
import logging
import threading
import time
import zipfile
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, Optional, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from foosrank.config import settings
from foosrank.db.repository import PlayerRepository
from foosrank.players.models import (
    ItsfRanking,
    NationalChampionshipResult,
    NationalProfile,
    NationalRanking,
    NationalTeam,
    Player,
    PlayerComment,
    PlayerImage,
)

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """The player store could not complete an operation."""


class StoreLockError(StoreError):
    """The store lock could not be acquired in time."""


class _Keyed(Protocol):
    def matches(self, other) -> bool: ...


EntryT = TypeVar("EntryT", bound=_Keyed)


def replace_matching(entries: list[EntryT], entry: EntryT) -> None:
    """Drop every entry with the same key as ``entry``, then append it."""
    entries[:] = [existing for existing in entries if not entry.matches(existing)]
    entries.append(entry)


class PlayerStore:
    """
    Synchronized player map with write-through persistence.

    Usage:
        store = PlayerStore.load(PlayerRepository(make_session_factory()))
        missing = store.missing_ids([1001, 1002])
        store.upsert_itsf_ranking(1001, ItsfRanking(2022, 1, ...))
    """

    def __init__(
        self,
        repository: PlayerRepository,
        players: Optional[dict[int, Player]] = None,
        lock_timeout: Optional[float] = None,
    ):
        self.repository = repository
        self._players: dict[int, Player] = dict(players or {})
        self._lock = threading.Lock()
        self.lock_timeout = settings.store_lock_timeout if lock_timeout is None else lock_timeout

    @classmethod
    def load(cls, repository: PlayerRepository, lock_timeout: Optional[float] = None) -> "PlayerStore":
        """Read every stored player document into a new store."""
        try:
            documents = repository.load_players()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load players: {exc}") from exc

        players = {}
        for itsf_id, document in documents.items():
            try:
                players[itsf_id] = Player.from_dict(document)
            except (KeyError, ValueError, TypeError) as exc:
                raise StoreError(f"Corrupt player document {itsf_id}: {exc}") from exc

        logger.info("Loaded %d players", len(players))
        return cls(repository, players, lock_timeout=lock_timeout)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise StoreLockError(f"Player store lock not acquired within {self.lock_timeout}s")
        try:
            yield
        finally:
            self._lock.release()

    def _write(self, player: Player) -> None:
        """Persist the whole record, then publish it to the map. Lock must be held."""
        try:
            self.repository.put_player(player.itsf_id, player.to_dict())
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to write player {player.itsf_id}: {exc}") from exc
        self._players[player.itsf_id] = player

    def _modify(self, itsf_id: int, change: Callable[[Player], None]) -> bool:
        """
        Read-modify-write one player.

        Returns:
            False if the player is unknown (nothing is written)
        """
        with self._locked():
            current = self._players.get(itsf_id)
            if current is None:
                return False
            updated = copy.deepcopy(current)
            change(updated)
            self._write(updated)
            return True

    # =========================================================================
    # Reads
    # =========================================================================

    def get_player(self, itsf_id: int) -> Optional[Player]:
        with self._locked():
            player = self._players.get(itsf_id)
            return copy.deepcopy(player) if player is not None else None

    def get_player_ids(self) -> list[int]:
        with self._locked():
            return sorted(self._players)

    def has_player(self, itsf_id: int) -> bool:
        with self._locked():
            return itsf_id in self._players

    def missing_ids(self, itsf_ids: Iterable[int]) -> list[int]:
        """Ids not in the store, in first-seen order and without duplicates."""
        with self._locked():
            missing: list[int] = []
            for itsf_id in itsf_ids:
                if itsf_id not in self._players and itsf_id not in missing:
                    missing.append(itsf_id)
            return missing

    def dtfb_links(self, dtfb_ids: Iterable[int]) -> dict[int, int]:
        """Map each given DTFB id that is linked to a player onto that player's itsf_id."""
        wanted = set(dtfb_ids)
        with self._locked():
            return {
                player.dtfb_id: itsf_id
                for itsf_id, player in self._players.items()
                if player.dtfb_id is not None and player.dtfb_id in wanted
            }

    def find_by_dtfb_id(self, dtfb_id: int) -> Optional[Player]:
        with self._locked():
            for player in self._players.values():
                if player.dtfb_id == dtfb_id:
                    return copy.deepcopy(player)
            return None

    def __len__(self) -> int:
        with self._locked():
            return len(self._players)

    # =========================================================================
    # Upserts
    # =========================================================================

    def upsert_player(self, player: Player) -> None:
        """Insert or replace the whole record keyed by ``itsf_id``."""
        with self._locked():
            self._write(copy.deepcopy(player))

    def upsert_itsf_ranking(self, itsf_id: int, ranking: ItsfRanking) -> bool:
        return self._modify(itsf_id, lambda p: replace_matching(p.itsf_rankings, ranking))

    def upsert_national_ranking(self, itsf_id: int, ranking: NationalRanking) -> bool:
        return self._modify(itsf_id, lambda p: replace_matching(p.dtfb_national_rankings, ranking))

    def upsert_championship_result(self, itsf_id: int, result: NationalChampionshipResult) -> bool:
        return self._modify(
            itsf_id, lambda p: replace_matching(p.dtfb_championship_results, result)
        )

    def upsert_team(self, itsf_id: int, year: int, name: str) -> bool:
        return self._modify(
            itsf_id, lambda p: replace_matching(p.dtfb_league_teams, NationalTeam(year, name))
        )

    def set_dtfb_id(self, itsf_id: int, dtfb_id: int) -> bool:
        def change(player: Player) -> None:
            player.dtfb_id = dtfb_id

        return self._modify(itsf_id, change)

    def link_national_profile(self, profile: NationalProfile) -> bool:
        """
        Attach a DTFB profile to the player with the same licence number.

        Sets ``dtfb_id`` and merges all national rankings, championship
        results and teams in a single write.

        Returns:
            False if no player carries the profile's licence number
        """
        def change(player: Player) -> None:
            player.dtfb_id = profile.dtfb_id
            for ranking in profile.national_rankings:
                replace_matching(player.dtfb_national_rankings, ranking)
            for result in profile.championship_results:
                replace_matching(player.dtfb_championship_results, result)
            for team in profile.teams:
                replace_matching(player.dtfb_league_teams, team)

        return self._modify(profile.itsf_id, change)

    def add_comment(self, itsf_id: int, text: str, timestamp: Optional[int] = None) -> bool:
        stamp = int(time.time()) if timestamp is None else timestamp

        def change(player: Player) -> None:
            player.comments.append(PlayerComment(timestamp=stamp, text=text))
            player.comments.sort(key=lambda comment: comment.timestamp)

        return self._modify(itsf_id, change)

    # =========================================================================
    # Images
    # =========================================================================

    def get_image(self, itsf_id: int) -> Optional[PlayerImage]:
        with self._locked():
            try:
                stored = self.repository.get_image(itsf_id)
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to read image {itsf_id}: {exc}") from exc
        if stored is None:
            return None
        image_data, image_format = stored
        return PlayerImage(itsf_id=itsf_id, image_data=image_data, image_format=image_format)

    def set_image(self, image: PlayerImage) -> None:
        with self._locked():
            try:
                self.repository.put_image(image.itsf_id, image.image_data, image.image_format)
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to write image {image.itsf_id}: {exc}") from exc

    # =========================================================================
    # Backup
    # =========================================================================

    def export_archive(self) -> bytes:
        """
        Zip every player document and image.

        Layout: ``players.json`` (list of documents ordered by itsf_id) and
        ``images/<itsf_id>.<format>``.
        """
        buffer = io.BytesIO()
        with self._locked():
            documents = [self._players[itsf_id].to_dict() for itsf_id in sorted(self._players)]
            try:
                image_ids = self.repository.list_image_ids()
                images = [(itsf_id, self.repository.get_image(itsf_id)) for itsf_id in image_ids]
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to read images for export: {exc}") from exc

        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("players.json", json.dumps(documents, indent=2))
            for itsf_id, stored in images:
                if stored is None:
                    continue
                image_data, image_format = stored
                # Photos are already compressed
                archive.writestr(
                    f"images/{itsf_id}.{image_format}",
                    image_data,
                    compress_type=zipfile.ZIP_STORED,
                )
        return buffer.getvalue()
