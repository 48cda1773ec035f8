"""
DTFB extractor - the national source.

Ranking lists are HTML pages linking to each player's detail page
(``?task=spieler_details&id=<dtfb_id>``); the list order is the ranking
order. Player details are available as JSON from the sportsmanager
component:

    {"data": {
        "spieler": {"spieler_id": 123, "lizenznr": "4567", ...},
        "teams": [{"saisonbezeichnung": 2019, "teamname": "...", "bezeichnung": "1. Bundesliga"}],
        "turnier_platzierungen": [{"saisonbezeichnung": 2019, "turnierbezeichnung":
            "Deutsche Meisterschaft", "disziplin": "Herren Einzel", "platz": 3}],
        "ranglisten_platzierungen": [{"saisonbezeichnung": 2019, "platz": 12,
            "bezeichnung": "Herren"}]
    }}

``lizenznr`` is the player's ITSF licence number and links the national
profile to a stored player. DTFB publishes no player photos.
"""

import logging
from typing import Any, Optional

from bs4 import BeautifulSoup

from foosrank.config import settings
from foosrank.players.models import (
    ChampionshipCategory,
    ChampionshipClass,
    NationalChampionshipResult,
    NationalProfile,
    NationalRanking,
    NationalTeam,
    PlayerImage,
)
from foosrank.scrape.base import HttpPageExtractor, NationalRankingUnit, NotFoundError, ParseError

logger = logging.getLogger(__name__)

PLAYER_LINK_MARKER = "?task=spieler_details&id="
NATIONAL_CHAMPIONSHIP = "Deutsche Meisterschaft"

RANKING_CATEGORIES: dict[str, ChampionshipCategory] = {
    "Herren": ChampionshipCategory.MEN,
    "Damen": ChampionshipCategory.WOMEN,
    "Junioren": ChampionshipCategory.JUNIOR,
    "Senioren": ChampionshipCategory.SENIOR,
}

# Substring of the discipline name -> category, checked in order
DISCIPLINE_CATEGORIES: list[tuple[str, ChampionshipCategory]] = [
    ("Herren", ChampionshipCategory.MEN),
    ("Damen", ChampionshipCategory.WOMEN),
    ("Junior", ChampionshipCategory.JUNIOR),
    ("Senior", ChampionshipCategory.SENIOR),
]
DISCIPLINE_CLASSES: list[tuple[str, ChampionshipClass]] = [
    ("Einzel", ChampionshipClass.SINGLES),
    ("Doppel", ChampionshipClass.DOUBLES),
]


# =============================================================================
# JSON helpers
# =============================================================================

def _value(data: Any, name: str) -> Any:
    if not isinstance(data, dict) or name not in data:
        raise ParseError(f"Can't find field {name}")
    return data[name]


def _int(data: Any, name: str) -> int:
    """Integer field; DTFB sends some numbers as strings."""
    value = _value(data, name)
    if isinstance(value, bool):
        raise ParseError(f"not an int: {name}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ParseError(f"not an int: {name}: '{value}'") from None
    raise ParseError(f"not an int: {name}")


def _str(data: Any, name: str) -> str:
    value = _value(data, name)
    if not isinstance(value, str):
        raise ParseError(f"not a string: {name}")
    return value


def _list(data: Any, name: str) -> list:
    value = _value(data, name)
    if not isinstance(value, list):
        raise ParseError(f"Not an array: {name}")
    return value


def _match_first(text: str, table: list[tuple[str, Any]]) -> Optional[Any]:
    for marker, value in table:
        if marker in text:
            return value
    return None


# =============================================================================
# Parsers
# =============================================================================

def parse_ranking_page(html: str) -> list[tuple[int, int]]:
    """
    Parse a DTFB ranking page into (place, dtfb_id) pairs.

    Places follow the order of first appearance; repeated links to the same
    player are ignored.
    """
    soup = BeautifulSoup(html, "lxml")
    dtfb_ids: list[int] = []
    for link in soup.find_all("a", href=True):
        href = link["href"]
        parts = href.split(PLAYER_LINK_MARKER)
        if len(parts) != 2:
            continue
        try:
            dtfb_id = int(parts[1].split("&", 1)[0])
        except ValueError:
            logger.warning("failed to parse DTFB player id: %s", href)
            continue
        if dtfb_id not in dtfb_ids:
            dtfb_ids.append(dtfb_id)
    return [(place, dtfb_id) for place, dtfb_id in enumerate(dtfb_ids, start=1)]


def parse_player_details(dtfb_id: int, payload: Any) -> NationalProfile:
    """
    Parse the sportsmanager JSON for one player.

    Only national championship placements, the four national ranking
    categories and Bundesliga teams are kept.

    Raises:
        ParseError: on missing/mistyped fields or a mismatching player id
    """
    data = _value(payload, "data")
    spieler = _value(data, "spieler")
    spieler_id = _int(spieler, "spieler_id")
    licence = _int(spieler, "lizenznr")

    if spieler_id != dtfb_id:
        raise ParseError(f"DTFB player id doesn't match: {dtfb_id} vs {spieler_id}")

    teams = []
    for team in _list(data, "teams"):
        season = _int(team, "saisonbezeichnung")
        team_name = _str(team, "teamname")
        league = _str(team, "bezeichnung")
        if "undesliga" in league:
            teams.append(NationalTeam(year=season, name=team_name))

    championship_results = []
    for placement in _list(data, "turnier_platzierungen"):
        season = _int(placement, "saisonbezeichnung")
        tournament = _str(placement, "turnierbezeichnung")
        discipline = _str(placement, "disziplin")
        place = _int(placement, "platz")
        if tournament != NATIONAL_CHAMPIONSHIP:
            continue
        championship_class = _match_first(discipline, DISCIPLINE_CLASSES)
        category = _match_first(discipline, DISCIPLINE_CATEGORIES)
        if championship_class is not None and category is not None:
            championship_results.append(
                NationalChampionshipResult(
                    year=season,
                    place=place,
                    category=category,
                    championship_class=championship_class,
                )
            )

    national_rankings = []
    for ranking in _list(data, "ranglisten_platzierungen"):
        season = _int(ranking, "saisonbezeichnung")
        place = _int(ranking, "platz")
        category = RANKING_CATEGORIES.get(_str(ranking, "bezeichnung"))
        if category is not None:
            national_rankings.append(NationalRanking(year=season, place=place, category=category))

    return NationalProfile(
        dtfb_id=dtfb_id,
        itsf_id=licence,
        national_rankings=national_rankings,
        championship_results=championship_results,
        teams=teams,
    )


class DtfbExtractor(HttpPageExtractor):
    """NationalSource: dtfb.de ranking lists and player details."""

    source = "dtfb"

    def ranking_url(self, unit: NationalRankingUnit) -> str:
        return (
            f"{settings.dtfb_base_url}/wettbewerbe/turnierserie/rangliste"
            f"?task=rangliste&id={unit.ranking_id}"
        )

    def profile_url(self, dtfb_id: int) -> str:
        return (
            f"{settings.dtfb_base_url}/component/sportsmanager"
            f"?task=spieler_details&id={dtfb_id}&format=json"
        )

    async def fetch_ranking_page(self, unit: NationalRankingUnit, count: int) -> list[tuple[int, int]]:
        html = await self.get_text(self.ranking_url(unit))
        return parse_ranking_page(html)[:count]

    async def fetch_profile(self, dtfb_id: int) -> NationalProfile:
        url = self.profile_url(dtfb_id)
        payload = await self.get_json(url)
        try:
            return parse_player_details(dtfb_id, payload)
        except ParseError as exc:
            raise ParseError(f"Player[{url}]: {exc}") from exc

    async def fetch_image(self, dtfb_id: int) -> PlayerImage:
        raise NotFoundError("DTFB does not publish player photos")
