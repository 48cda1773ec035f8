"""
Base page extractor and common data structures.

Provides the foundation for the source-specific extractors (ITSF, DTFB).
The ingestion jobs only talk to the PageExtractor interface, so changes in
the upstream page layouts stay inside the extractor modules.

Key features:
- Async context manager for proper client cleanup
- Retry logic with exponential backoff for transport failures
- Error taxonomy that keeps "not found" apart from real failures
- Ranking unit types describing one ranking list to ingest
"""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from foosrank.config import settings
from foosrank.players.models import (
    ChampionshipCategory,
    PlayerImage,
    RankingCategory,
    RankingClass,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================

class ScrapeError(Exception):
    """Base class for all extractor errors."""


class FetchError(ScrapeError):
    """Network/transport failure or an unexpected HTTP status."""


class ParseError(ScrapeError):
    """The page or response did not have the expected shape."""


class NotFoundError(ScrapeError):
    """
    The requested resource does not exist upstream (HTTP 404).

    This is a valid outcome (e.g. a player without a photo), not a failure.
    """


# =============================================================================
# Ranking Units
# =============================================================================

@dataclass(frozen=True)
class ItsfRankingUnit:
    """One ITSF ranking list: (year, category, class)."""

    year: int
    category: RankingCategory
    ranking_class: RankingClass

    source = "itsf"

    @property
    def label(self) -> str:
        return f"{self.year} {self.category.value} {self.ranking_class.value}"


@dataclass(frozen=True)
class NationalRankingUnit:
    """
    One DTFB ranking list.

    DTFB addresses its lists by a numeric id only, so the season and
    category the list belongs to are supplied by the caller.
    """

    year: int
    category: ChampionshipCategory
    ranking_id: int

    source = "dtfb"

    @property
    def label(self) -> str:
        return f"{self.year} {self.category.value} (list {self.ranking_id})"


# =============================================================================
# Extractor Interface
# =============================================================================

class PageExtractor(ABC):
    """
    Source-specific access to ranking lists, profiles and photos.

    Subclasses must implement:
    - fetch_ranking_page(): (place, external_id) pairs of one ranking list
    - fetch_profile(): profile of one player
    - fetch_image(): photo of one player

    All three raise NotFoundError, FetchError or ParseError on failure.

    Usage:
        async with ItsfExtractor() as extractor:
            placements = await extractor.fetch_ranking_page(unit, 100)
    """

    source: str = ""

    async def __aenter__(self) -> "PageExtractor":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    @abstractmethod
    async def fetch_ranking_page(self, unit: Any, count: int) -> list[tuple[int, int]]:
        """Return the (place, external_id) pairs of a ranking list, in list order."""
        pass

    @abstractmethod
    async def fetch_profile(self, external_id: int) -> Any:
        pass

    @abstractmethod
    async def fetch_image(self, external_id: int) -> PlayerImage:
        pass


class HttpPageExtractor(PageExtractor):
    """
    PageExtractor backed by an httpx.AsyncClient.

    The client is created in ``__aenter__`` unless one is passed in, which
    lets tests inject a client with a mock transport.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "HttpPageExtractor":
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": settings.http_user_agent},
                timeout=settings.http_timeout,
                follow_redirects=True,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Extractor not initialized. Use 'async with' context manager.")
        return self._client

    async def get(self, url: str, max_attempts: Optional[int] = None) -> httpx.Response:
        """
        GET a URL with retry logic.

        Transport errors and 5xx responses are retried with exponential
        backoff; 404 raises NotFoundError. Other 4xx responses and other
        httpx errors (too many redirects, body decoding) raise FetchError
        straight away.

        Raises:
            NotFoundError: HTTP 404
            FetchError: any other httpx error or error status, after retries where they apply
        """
        if max_attempts is None:
            max_attempts = settings.http_max_retries

        last_error: Optional[Exception] = None

        for attempt in range(max_attempts):
            try:
                response = await self.client.get(url)
            except httpx.TransportError as exc:
                last_error = exc
            except httpx.HTTPError as exc:
                # Redirect loops and undecodable bodies are final
                raise FetchError(f"{url}: {exc}") from exc
            else:
                if response.status_code == 404:
                    raise NotFoundError(f"{url}: not found")
                if response.status_code < 400:
                    return response
                last_error = FetchError(f"{url}: HTTP {response.status_code}")
                if response.status_code < 500:
                    break

            if attempt < max_attempts - 1:
                # Exponential backoff with jitter
                delay = settings.http_retry_base_delay * (2 ** attempt)
                delay += random.uniform(0, settings.http_retry_base_delay)
                logger.debug(
                    "[Retry %d/%d] GET %s failed: %s. Retrying in %.1fs",
                    attempt + 1, max_attempts, url, last_error, delay,
                )
                await asyncio.sleep(delay)

        if isinstance(last_error, FetchError):
            raise last_error
        raise FetchError(f"{url}: {last_error}") from last_error

    async def get_text(self, url: str) -> str:
        return (await self.get(url)).text

    async def get_json(self, url: str) -> Any:
        response = await self.get(url)
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"{url}: invalid JSON: {exc}") from exc

    async def get_bytes(self, url: str) -> bytes:
        return (await self.get(url)).content
