"""
Web scraping module for Foosrank.

This module handles all data collection from the federation websites:
- ITSF (tablesoccer.org): international rankings, player profiles, photos
- DTFB (dtfb.de): national rankings, championship results, league teams

Key components:
- PageExtractor: Interface the ingestion jobs depend on
- HttpPageExtractor: httpx-based base with retries and error mapping
- ItsfExtractor / DtfbExtractor: The two source variants
- BoundedFetcher: Concurrent fetching with a hard in-flight limit

The scraping architecture uses:
- httpx for async HTTP
- BeautifulSoup (lxml) for HTML parsing
- Retry logic with exponential backoff for reliability
"""

from foosrank.scrape.base import (
    FetchError,
    HttpPageExtractor,
    ItsfRankingUnit,
    NationalRankingUnit,
    NotFoundError,
    PageExtractor,
    ParseError,
    ScrapeError,
)
from foosrank.scrape.dtfb import DtfbExtractor
from foosrank.scrape.fetcher import BoundedFetcher, FetchOutcome
from foosrank.scrape.itsf import ItsfExtractor

__all__ = [
    "BoundedFetcher",
    "DtfbExtractor",
    "FetchError",
    "FetchOutcome",
    "HttpPageExtractor",
    "ItsfExtractor",
    "ItsfRankingUnit",
    "NationalRankingUnit",
    "NotFoundError",
    "PageExtractor",
    "ParseError",
    "ScrapeError",
]
