#!/usr/bin/env python3
"""
Download ranking lists into the player database without the web server.

ITSF, one unit:
    python scripts/download_rankings.py itsf --years 2019 --categories open --classes singles

ITSF, every configured season, category and class:
    python scripts/download_rankings.py itsf --all

DTFB ranking list 123 as the 2019 men's ranking:
    python scripts/download_rankings.py dtfb --ranking-id 123 --year 2019 --category men

The job runs through the same supervisor and job registry as the API.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from time import perf_counter

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from foosrank.config import settings
from foosrank.db import PlayerRepository, get_engine, init_db, make_session_factory
from foosrank.logging_config import configure_logging
from foosrank.players import ChampionshipCategory, PlayerStore, RankingCategory, RankingClass
from foosrank.services import (
    DTFB_RANKINGS_JOB,
    ITSF_RANKINGS_JOB,
    DtfbDownloadParams,
    ItsfDownloadParams,
    build_job_registry,
)
from foosrank.tasks import JobSupervisor


def _csv_list(value: str, parse) -> list:
    return [parse(item.strip()) for item in value.split(",") if item.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download ranking lists and missing player profiles.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Max upstream requests in flight (default: {settings.fetch_concurrency})",
    )
    parser.add_argument("--count", type=int, default=None, help="Places to request per ranking list")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument(
        "--metrics-json",
        default=None,
        help="Write a JSON summary of the job to this path on completion.",
    )

    sources = parser.add_subparsers(dest="source", required=True)

    itsf = sources.add_parser("itsf", help="ITSF international rankings")
    itsf.add_argument("--all", action="store_true", help="All configured seasons, categories and classes")
    itsf.add_argument("--years", default=None, help="Comma-separated seasons, e.g. 2018,2019")
    itsf.add_argument(
        "--categories",
        default=",".join(c.value for c in RankingCategory),
        help="Comma-separated categories (open, women, junior, senior)",
    )
    itsf.add_argument(
        "--classes",
        default=",".join(c.value for c in RankingClass),
        help="Comma-separated classes (singles, doubles, combined)",
    )

    dtfb = sources.add_parser("dtfb", help="DTFB national rankings")
    dtfb.add_argument("--ranking-id", type=int, required=True, help="DTFB ranking list id")
    dtfb.add_argument("--year", type=int, required=True, help="Season of the ranking list")
    dtfb.add_argument(
        "--category",
        required=True,
        choices=[c.value for c in ChampionshipCategory],
        help="Category of the ranking list",
    )
    return parser


def _job_request(args: argparse.Namespace) -> tuple[str, object]:
    if args.source == "dtfb":
        return DTFB_RANKINGS_JOB, DtfbDownloadParams.single(
            args.ranking_id, args.year, ChampionshipCategory(args.category), count=args.count
        )

    if args.all:
        return ITSF_RANKINGS_JOB, ItsfDownloadParams.full(count=args.count)

    if not args.years:
        raise ValueError("either --all or --years is required")
    return ITSF_RANKINGS_JOB, ItsfDownloadParams(
        years=_csv_list(args.years, int),
        categories=_csv_list(args.categories, lambda v: RankingCategory(v.lower())),
        classes=_csv_list(args.classes, lambda v: RankingClass(v.lower())),
        count=args.count,
    )


async def run(args: argparse.Namespace) -> dict:
    kind, params = _job_request(args)

    engine = get_engine(args.database_url)
    init_db(engine)
    store = PlayerStore.load(PlayerRepository(make_session_factory(engine)))

    supervisor = JobSupervisor(build_job_registry(store, concurrency=args.concurrency))
    handle = supervisor.start_job(kind, params)
    await handle.wait()

    current, max_value = handle.progress.get_progress()
    return {
        "kind": kind,
        "job_id": handle.job_id,
        "progress": [current, max_value],
        "players": len(store),
        "log": handle.progress.get_log(),
    }


def main() -> int:
    args = _build_parser().parse_args()
    configure_logging(level=args.log_level)

    started = perf_counter()
    try:
        result = asyncio.run(run(args))
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 1
    elapsed = perf_counter() - started

    print("-" * 60)
    print(f"Job:          {result['kind']} ({result['job_id']})")
    print(f"Progress:     {result['progress'][0]}/{result['progress'][1]}")
    print(f"Players:      {result['players']}")
    print(f"Log entries:  {len(result['log'])}")
    print(f"Elapsed:      {elapsed:.2f}s")

    if args.metrics_json:
        payload = dict(result, elapsed_s=round(elapsed, 3))
        metrics_path = Path(args.metrics_json)
        metrics_path.parent.mkdir(parents=True, exist_ok=True)
        metrics_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
