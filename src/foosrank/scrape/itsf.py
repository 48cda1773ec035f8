"""
ITSF extractor - the international source.

Reads ranking lists and player profiles from tablesoccer.org and player
photos from the fast4foos media server.

Ranking page structure:
- One div per placement, ``id="place<N>"``, whose ``onclick`` opens the
  player page with ``...&numlic=<licence>&...``

Profile page structure:
- div.nomdujoueur: "Firstname LASTNAME" followed by a span "(GER ...)"
- div.contenu_typeinfojoueur (exact class): the second one holds the birth year
- div.contenu_typeinfojoueur.even: the first one holds the category

Photos are plain JPEGs; a player without a photo answers 404.

Usage:
    async with ItsfExtractor() as itsf:
        placements = await itsf.fetch_ranking_page(unit, 100)
        player = await itsf.fetch_profile(placements[0][1])
"""

import logging
from typing import Optional

from bs4 import BeautifulSoup, Tag

from foosrank.config import settings
from foosrank.players.models import (
    Player,
    PlayerCategory,
    PlayerImage,
    RankingCategory,
    RankingClass,
)
from foosrank.players.names import split_itsf_name
from foosrank.scrape.base import HttpPageExtractor, ItsfRankingUnit, ParseError

logger = logging.getLogger(__name__)

# Query codes used by the ranking page
CATEGORY_CODES: dict[RankingCategory, str] = {
    RankingCategory.OPEN: "o",
    RankingCategory.WOMEN: "w",
    RankingCategory.JUNIOR: "j",
    RankingCategory.SENIOR: "s",
}
CLASS_CODES: dict[RankingClass, str] = {
    RankingClass.SINGLES: "s",
    RankingClass.DOUBLES: "d",
    RankingClass.COMBINED: "c",
}


def _divs_with_class(soup: BeautifulSoup, *classes: str) -> list[Tag]:
    """Divs whose class attribute is exactly ``classes`` (in order)."""
    wanted = list(classes)
    return [div for div in soup.find_all("div") if div.get("class") == wanted]


def _first_text(element: Tag) -> Optional[str]:
    return next(element.stripped_strings, None)


def parse_placement(div: Tag) -> Optional[tuple[int, int]]:
    """
    Extract (place, licence) from one ranking div.

    Returns None for divs that are not placements.
    """
    div_id = div.get("id") or ""
    onclick = div.get("onclick") or ""
    if not div_id.startswith("place") or "&numlic=" not in onclick:
        return None

    try:
        place = int(div_id[len("place"):])
        licence = int(onclick.split("&numlic=", 1)[1].split("&", 1)[0])
    except ValueError:
        logger.debug("Skipping malformed placement div id=%r onclick=%r", div_id, onclick)
        return None
    return place, licence


def parse_ranking_page(html: str) -> list[tuple[int, int]]:
    """Parse an ITSF ranking page into (place, licence) pairs in page order."""
    soup = BeautifulSoup(html, "lxml")
    placements = []
    for div in soup.find_all("div", id=True):
        placement = parse_placement(div)
        if placement is not None:
            placements.append(placement)
    return placements


def parse_profile(itsf_id: int, html: str) -> Player:
    """
    Parse an ITSF player page into a new Player (without rankings).

    Raises:
        ParseError: if any required element is missing or malformed
    """
    soup = BeautifulSoup(html, "lxml")

    name_divs = _divs_with_class(soup, "nomdujoueur")
    if not name_divs:
        raise ParseError("can't find div nomdujoueur")
    name_div = name_divs[0]
    name = _first_text(name_div)
    if not name:
        raise ParseError("can't find text in nomdujoueur div")
    first_name, last_name = split_itsf_name(name)

    span = name_div.find("span")
    country_text = _first_text(span) if span is not None else None
    if not country_text:
        raise ParseError("can't find country code")
    if not (country_text.startswith("(") and country_text.endswith(")")):
        raise ParseError(f"invalid country code ({country_text!r})")
    country_code = country_text[1:-1].split(" ")[0]
    if not country_code:
        raise ParseError(f"invalid country code ({country_text!r})")

    info_divs = _divs_with_class(soup, "contenu_typeinfojoueur")
    if len(info_divs) < 2:
        raise ParseError(f"invalid number of contenu_typeinfojoueur ({len(info_divs)})")

    even_divs = _divs_with_class(soup, "contenu_typeinfojoueur", "even")
    if not even_divs:
        raise ParseError("invalid number of contenu_typeinfojoueur even (0)")

    category_text = _first_text(even_divs[0])
    if category_text is None:
        raise ParseError("can't find category text")
    try:
        category = PlayerCategory.parse(category_text)
    except ValueError as exc:
        raise ParseError(str(exc)) from exc

    birth_year_text = _first_text(info_divs[1])
    if birth_year_text is None:
        raise ParseError("can't find birth year")
    # Unknown birth years are shown as free text
    try:
        birth_year = int(birth_year_text)
    except ValueError:
        birth_year = 0

    return Player(
        itsf_id=itsf_id,
        first_name=first_name,
        last_name=last_name,
        birth_year=birth_year,
        country_code=country_code,
        category=category,
    )


class ItsfExtractor(HttpPageExtractor):
    """InternationalSource: tablesoccer.org rankings, profiles and photos."""

    source = "itsf"

    def ranking_url(self, unit: ItsfRankingUnit, count: int) -> str:
        code = CATEGORY_CODES[unit.category] + CLASS_CODES[unit.ranking_class]
        return (
            f"{settings.itsf_base_url}/page/rankings?category={code}&system=1"
            f"&Ranking+Rules=Select+Category&tour={unit.year}&vues={count}"
        )

    def profile_url(self, itsf_id: int) -> str:
        return f"{settings.itsf_base_url}/page/player&numlic={itsf_id:08d}"

    def image_url(self, itsf_id: int) -> str:
        return f"{settings.itsf_image_base_url}/{itsf_id:08d}.jpg"

    async def fetch_ranking_page(self, unit: ItsfRankingUnit, count: int) -> list[tuple[int, int]]:
        html = await self.get_text(self.ranking_url(unit, count))
        return parse_ranking_page(html)

    async def fetch_profile(self, itsf_id: int) -> Player:
        url = self.profile_url(itsf_id)
        html = await self.get_text(url)
        try:
            return parse_profile(itsf_id, html)
        except ParseError as exc:
            raise ParseError(f"Player[{url}]: {exc}") from exc

    async def fetch_image(self, itsf_id: int) -> PlayerImage:
        data = await self.get_bytes(self.image_url(itsf_id))
        return PlayerImage(itsf_id=itsf_id, image_data=data, image_format="jpg")
