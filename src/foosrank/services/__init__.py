"""
Foosrank services - ranking ingestion and the job kinds built on it.

Pipeline per ranking unit:
1. Fetch the ranking list from the source
2. Fetch profiles (and photos) of players the store does not know yet
3. Merge ranking entries into the player store

Usage:
    from foosrank.services import build_job_registry, ItsfDownloadParams

    registry = build_job_registry(store)
    supervisor = JobSupervisor(registry)
    supervisor.start_job("itsf_rankings", ItsfDownloadParams(years=[2019]))
"""

from foosrank.services.jobs import (
    DTFB_RANKINGS_JOB,
    ITSF_RANKINGS_JOB,
    DtfbDownloadParams,
    ItsfDownloadParams,
    build_job_registry,
    itsf_units,
)
from foosrank.services.national_ingestion import DtfbRankingIngestor
from foosrank.services.ranking_ingestion import (
    IngestionStats,
    ItsfRankingIngestor,
    RankingIngestor,
)

__all__ = [
    # Ingestion
    "IngestionStats",
    "RankingIngestor",
    "ItsfRankingIngestor",
    "DtfbRankingIngestor",
    # Jobs
    "ITSF_RANKINGS_JOB",
    "DTFB_RANKINGS_JOB",
    "ItsfDownloadParams",
    "DtfbDownloadParams",
    "build_job_registry",
    "itsf_units",
]
