"""
Job kinds offered to the supervisor.

Each job kind wraps one ingestor: it opens an extractor for the duration of
the job, runs the ingestor over the requested ranking units and logs the
ingestion summary. The HTTP layer and the download script both start jobs
through the registry built here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import product
from typing import Callable, Optional

from foosrank.config import settings
from foosrank.players.models import ChampionshipCategory, RankingCategory, RankingClass
from foosrank.players.store import PlayerStore
from foosrank.scrape.base import ItsfRankingUnit, NationalRankingUnit, PageExtractor
from foosrank.scrape.dtfb import DtfbExtractor
from foosrank.scrape.itsf import ItsfExtractor
from foosrank.services.national_ingestion import DtfbRankingIngestor
from foosrank.services.ranking_ingestion import IngestionStats, ItsfRankingIngestor
from foosrank.tasks.progress import JobProgress
from foosrank.tasks.registry import JobDefinition, JobRegistry

logger = logging.getLogger(__name__)

ITSF_RANKINGS_JOB = "itsf_rankings"
DTFB_RANKINGS_JOB = "dtfb_rankings"

ExtractorFactory = Callable[[], PageExtractor]


def itsf_units(
    years: list[int],
    categories: list[RankingCategory],
    classes: list[RankingClass],
) -> list[ItsfRankingUnit]:
    """Every (year, category, class) combination, year outermost."""
    return [
        ItsfRankingUnit(year=year, category=category, ranking_class=ranking_class)
        for year, category, ranking_class in product(years, categories, classes)
    ]


@dataclass(frozen=True)
class ItsfDownloadParams:
    """Parameters of an ITSF rankings job."""

    years: list[int]
    categories: list[RankingCategory] = field(default_factory=lambda: list(RankingCategory))
    classes: list[RankingClass] = field(default_factory=lambda: list(RankingClass))
    count: Optional[int] = None

    @classmethod
    def full(cls, count: Optional[int] = None) -> "ItsfDownloadParams":
        """All configured seasons, all categories and classes."""
        return cls(years=settings.full_download_years(), count=count)

    def units(self) -> list[ItsfRankingUnit]:
        return itsf_units(self.years, self.categories, self.classes)


@dataclass(frozen=True)
class DtfbDownloadParams:
    """Parameters of a DTFB rankings job."""

    units: list[NationalRankingUnit]
    count: Optional[int] = None

    @classmethod
    def single(
        cls,
        ranking_id: int,
        year: int,
        category: ChampionshipCategory,
        count: Optional[int] = None,
    ) -> "DtfbDownloadParams":
        unit = NationalRankingUnit(year=year, category=category, ranking_id=ranking_id)
        return cls(units=[unit], count=count)


def build_job_registry(
    store: PlayerStore,
    itsf_extractor_factory: ExtractorFactory = ItsfExtractor,
    dtfb_extractor_factory: ExtractorFactory = DtfbExtractor,
    concurrency: Optional[int] = None,
) -> JobRegistry:
    """
    Register the ranking download jobs against one player store.

    The extractor factories are called once per job run, so each job owns
    its own HTTP client.
    """

    async def run_itsf_rankings(progress: JobProgress, params: ItsfDownloadParams) -> None:
        async with itsf_extractor_factory() as extractor:
            ingestor = ItsfRankingIngestor(
                store,
                extractor,
                progress,
                concurrency=concurrency,
                ranking_count=params.count,
            )
            stats = await ingestor.run(params.units())
        _log_summary(ITSF_RANKINGS_JOB, stats)

    async def run_dtfb_rankings(progress: JobProgress, params: DtfbDownloadParams) -> None:
        async with dtfb_extractor_factory() as extractor:
            ingestor = DtfbRankingIngestor(
                store,
                extractor,
                progress,
                concurrency=concurrency,
                ranking_count=params.count,
            )
            stats = await ingestor.run(params.units)
        _log_summary(DTFB_RANKINGS_JOB, stats)

    registry = JobRegistry()
    registry.register(
        JobDefinition(
            kind=ITSF_RANKINGS_JOB,
            title="ITSF Rankings Download",
            runner=run_itsf_rankings,
            description="Download ITSF ranking lists with missing player profiles and photos",
        )
    )
    registry.register(
        JobDefinition(
            kind=DTFB_RANKINGS_JOB,
            title="DTFB Rankings Download",
            runner=run_dtfb_rankings,
            description="Download DTFB ranking lists and link national player profiles",
        )
    )
    return registry


def _log_summary(kind: str, stats: IngestionStats) -> None:
    for line in stats.summary().splitlines():
        logger.info("[%s] %s", kind, line)
