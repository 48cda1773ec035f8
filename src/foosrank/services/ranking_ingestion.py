"""
Ranking ingestion - turns upstream ranking lists into stored players and rankings.

One ingestion pass handles one ranking unit:

1. Fetch the ranking list: (place, external_id) pairs in list order
2. Work out which referenced players the store does not know yet
3. Fetch those players in batches of K through the BoundedFetcher,
   profile and photo concurrently in the same bounded window
   - profile fetched -> store the player
   - profile failed (fetch or write) -> log it, skip the player
   - photo not found -> nothing to store, not an error
   - photo failed (fetch or write) -> log it, skip the photo
   - photo of a player that was not stored -> dropped
4. Store a ranking entry for every pair in the list, known or new
5. Report progress after each batch

A job runs this for every unit it was given. A unit whose ranking list
cannot be fetched is logged and abandoned; the remaining units still run.
Per-player and per-ranking failures never end a batch or a unit early.

Progress accounting: max starts at the number of units and grows by the
size of each unit's missing set once it is known. current advances by the
batch size after each batch and by one after each unit.

Usage:
    async with ItsfExtractor() as extractor:
        ingestor = ItsfRankingIngestor(store, extractor, JobProgress("ITSF", 1))
        stats = await ingestor.run(units)
        print(stats.summary())
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, Iterable, Iterator, Optional, Sequence

from foosrank.config import settings
from foosrank.players.models import ItsfRanking, Player, PlayerImage
from foosrank.players.store import PlayerStore, StoreError
from foosrank.scrape.base import ItsfRankingUnit, PageExtractor, ScrapeError
from foosrank.scrape.fetcher import BoundedFetcher, FetchOutcome
from foosrank.tasks.progress import JobProgress

logger = logging.getLogger(__name__)


@dataclass
class IngestionStats:
    """Statistics from one ingestion job."""
    units_total: int = 0
    units_failed: int = 0
    profiles_stored: int = 0
    profiles_skipped: int = 0
    profiles_failed: int = 0
    images_stored: int = 0
    images_missing: int = 0
    images_failed: int = 0
    images_skipped: int = 0
    rankings_upserted: int = 0
    rankings_skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary of the ingestion run."""
        lines = [
            "Ranking ingestion complete:",
            f"  Units processed:       {self.units_total} ({self.units_failed} failed)",
            f"  Profiles stored:       {self.profiles_stored}",
            f"  Profiles skipped:      {self.profiles_skipped}",
            f"  Profiles failed:       {self.profiles_failed}",
            f"  Images stored:         {self.images_stored}",
            f"  Images not available:  {self.images_missing}",
            f"  Images failed:         {self.images_failed}",
            f"  Images skipped:        {self.images_skipped}",
            f"  Rankings upserted:     {self.rankings_upserted}",
            f"  Rankings skipped:      {self.rankings_skipped}",
        ]
        if self.errors:
            lines.append(f"  Errors: {len(self.errors)}")
            for err in self.errors[:5]:
                lines.append(f"    - {err}")
            if len(self.errors) > 5:
                lines.append(f"    ... and {len(self.errors) - 5} more")
        return "\n".join(lines)


def batched(items: Iterable[Any], size: int) -> Iterator[list[Any]]:
    """Yield consecutive chunks of at most ``size`` items."""
    iterator = iter(items)
    while batch := list(islice(iterator, size)):
        yield batch


class RankingIngestor(ABC):
    """
    Source-independent ingestion state machine.

    Subclasses decide what "missing" means for their source and how
    profiles and placements are written to the store.
    """

    tag: str = ""
    fetch_images: bool = True

    def __init__(
        self,
        store: PlayerStore,
        extractor: PageExtractor,
        progress: JobProgress,
        concurrency: Optional[int] = None,
        ranking_count: Optional[int] = None,
    ):
        self.store = store
        self.extractor = extractor
        self.progress = progress
        self.fetcher = BoundedFetcher(concurrency or settings.fetch_concurrency)
        self.ranking_count = ranking_count or settings.ranking_count
        self.stats = IngestionStats()

    def log(self, message: str) -> None:
        self.progress.log(f"{self.tag} {message}")

    async def run(self, units: Sequence[Any]) -> IngestionStats:
        """Ingest every unit in order; always ends with progress at (max, max)."""
        units = list(units)
        self.stats.units_total = len(units)
        self.progress.set_progress(0, len(units))

        try:
            for unit in units:
                try:
                    await self.ingest_unit(unit)
                except (ScrapeError, StoreError) as exc:
                    self.stats.units_failed += 1
                    self.stats.errors.append(f"{unit.label}: {exc}")
                    self.log(f"Failed to ingest rankings for {unit.label}: {exc}")
                self.progress.advance()
        finally:
            self.progress.finish()

        logger.info(
            "%s ingestion finished: %d units (%d failed), %d profiles stored",
            self.tag, self.stats.units_total, self.stats.units_failed, self.stats.profiles_stored,
        )
        return self.stats

    async def ingest_unit(self, unit: Any) -> None:
        self.log(f"Downloading rankings for {unit.label}")
        placements = await self.extractor.fetch_ranking_page(unit, self.ranking_count)
        if not placements:
            self.log(f"No placements found for {unit.label}")

        missing = self.find_missing([external_id for _, external_id in placements])
        if missing:
            self.progress.extend(len(missing))
            self.log(f"Downloading {len(missing)} player profiles")
            for batch in batched(missing, self.fetcher.concurrency):
                await self.ingest_batch(batch)
                self.progress.advance(len(batch))

        upserted = self.store_placements(unit, placements)
        self.log(f"... done with {unit.label}: {upserted} of {len(placements)} rankings stored")

    async def ingest_batch(self, batch: list[int]) -> None:
        self.log(f"Fetching batch of {len(batch)} players")
        if self.fetch_images:
            profiles, images = await asyncio.gather(
                self.fetcher.run(batch, self.extractor.fetch_profile),
                self.fetcher.run(batch, self.extractor.fetch_image),
            )
        else:
            profiles = await self.fetcher.run(batch, self.extractor.fetch_profile)
            images = []

        stored = {outcome.item for outcome in profiles if self._handle_profile(outcome)}
        for outcome in images:
            if outcome.item in stored:
                self._handle_image(outcome)
            elif outcome.ok:
                # No player record to attach the photo to
                self.stats.images_skipped += 1

    def _handle_profile(self, outcome: FetchOutcome) -> bool:
        """Store one profile outcome. Returns True if a player was written."""
        if outcome.ok:
            try:
                written = self.store_profile(outcome.item, outcome.value)
            except StoreError as exc:
                self.stats.profiles_failed += 1
                self.stats.errors.append(f"profile {outcome.item}: {exc}")
                self.log(f"Failed to store player {outcome.item}: {exc}")
                return False
            if written:
                self.stats.profiles_stored += 1
            else:
                self.stats.profiles_skipped += 1
            return written
        if outcome.not_found:
            self.stats.profiles_skipped += 1
            self.log(f"No profile found for player {outcome.item}")
        else:
            self.stats.profiles_failed += 1
            self.stats.errors.append(f"profile {outcome.item}: {outcome.error}")
            self.log(f"Failed to download player {outcome.item}: {outcome.error}")
        return False

    def _handle_image(self, outcome: FetchOutcome) -> None:
        if outcome.ok:
            image: PlayerImage = outcome.value
            try:
                self.store.set_image(image)
            except StoreError as exc:
                self.stats.images_failed += 1
                self.stats.errors.append(f"image {outcome.item}: {exc}")
                self.log(f"Failed to store image for player {outcome.item}: {exc}")
                return
            self.stats.images_stored += 1
        elif outcome.not_found:
            self.stats.images_missing += 1
        else:
            self.stats.images_failed += 1
            self.stats.errors.append(f"image {outcome.item}: {outcome.error}")
            self.log(f"Failed to download image for player {outcome.item}: {outcome.error}")

    @abstractmethod
    def find_missing(self, external_ids: list[int]) -> list[int]:
        """External ids whose profile still has to be fetched."""
        pass

    @abstractmethod
    def store_profile(self, external_id: int, profile: Any) -> bool:
        """Write a fetched profile. Returns False if it was skipped."""
        pass

    @abstractmethod
    def store_placements(self, unit: Any, placements: list[tuple[int, int]]) -> int:
        """Upsert a ranking entry per placement. Returns the number stored."""
        pass


class ItsfRankingIngestor(RankingIngestor):
    """Ingests ITSF ranking lists, creating players from ITSF profiles."""

    tag = "[ITSF]"
    fetch_images = True

    def find_missing(self, external_ids: list[int]) -> list[int]:
        return self.store.missing_ids(external_ids)

    def store_profile(self, external_id: int, profile: Player) -> bool:
        self.store.upsert_player(profile)
        self.log(
            f"Downloaded player info for {profile.itsf_id}: {profile.first_name} "
            f"{profile.last_name} ({profile.category.value}, {profile.country_code})"
        )
        return True

    def store_placements(self, unit: ItsfRankingUnit, placements: list[tuple[int, int]]) -> int:
        upserted = 0
        skipped: list[int] = []
        for place, itsf_id in placements:
            ranking = ItsfRanking(
                year=unit.year,
                place=place,
                category=unit.category,
                ranking_class=unit.ranking_class,
            )
            try:
                written = self.store.upsert_itsf_ranking(itsf_id, ranking)
            except StoreError as exc:
                self.stats.errors.append(f"ranking {itsf_id}: {exc}")
                self.log(f"Failed to store ranking of player {itsf_id}: {exc}")
                written = False
            if written:
                upserted += 1
            else:
                skipped.append(itsf_id)

        self.stats.rankings_upserted += upserted
        self.stats.rankings_skipped += len(skipped)
        if skipped:
            self.log(f"Skipped rankings of {len(skipped)} players: {skipped}")
        return upserted
