"""
Player records and the ranking entries attached to them.

A Player is keyed by its ITSF licence number (``itsf_id``). Every kind of
ranking entry has a semantic key; a player holds at most one entry per key,
which the player store enforces through ``matches()``:

- ItsfRanking: (year, category, class)
- NationalRanking: (year, category)
- NationalChampionshipResult: (year, category, class)
- NationalTeam: (year)

Players are persisted as one JSON document each, so every type here can
round-trip through ``to_dict()`` / ``from_dict()``. Documents written by
older versions may lack the newer list fields; those default to empty.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# =============================================================================
# Enumerations
# =============================================================================

class PlayerCategory(str, Enum):
    """Category printed on an ITSF player profile."""

    MEN = "MEN"
    WOMEN = "WOMEN"
    JUNIOR_MALE = "JUNIOR MALE"
    JUNIOR_FEMALE = "JUNIOR FEMALE"
    SENIOR_MALE = "SENIOR MALE"
    SENIOR_FEMALE = "SENIOR FEMALE"

    @classmethod
    def parse(cls, text: str) -> "PlayerCategory":
        """Parse the profile label, e.g. 'JUNIOR MALE'. Raises ValueError."""
        try:
            return cls(text.strip().upper())
        except ValueError:
            raise ValueError(f"invalid category: '{text}'") from None


class RankingCategory(str, Enum):
    """ITSF ranking category."""

    OPEN = "open"
    WOMEN = "women"
    JUNIOR = "junior"
    SENIOR = "senior"


class RankingClass(str, Enum):
    """ITSF ranking class."""

    SINGLES = "singles"
    DOUBLES = "doubles"
    COMBINED = "combined"


class ChampionshipCategory(str, Enum):
    """DTFB ranking / championship category."""

    MEN = "men"
    WOMEN = "women"
    JUNIOR = "junior"
    SENIOR = "senior"


class ChampionshipClass(str, Enum):
    """DTFB championship discipline."""

    SINGLES = "singles"
    DOUBLES = "doubles"


# =============================================================================
# Ranking Entries
# =============================================================================

@dataclass(frozen=True)
class ItsfRanking:
    """One placement in an ITSF ranking list."""

    year: int
    place: int
    category: RankingCategory
    ranking_class: RankingClass

    @property
    def key(self) -> tuple[int, RankingCategory, RankingClass]:
        return (self.year, self.category, self.ranking_class)

    def matches(self, other: "ItsfRanking") -> bool:
        return self.key == other.key

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "place": self.place,
            "category": self.category.value,
            "class": self.ranking_class.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ItsfRanking":
        return cls(
            year=int(data["year"]),
            place=int(data["place"]),
            category=RankingCategory(data["category"]),
            ranking_class=RankingClass(data["class"]),
        )


@dataclass(frozen=True)
class NationalRanking:
    """Final place in a DTFB national ranking season."""

    year: int
    place: int
    category: ChampionshipCategory

    @property
    def key(self) -> tuple[int, ChampionshipCategory]:
        return (self.year, self.category)

    def matches(self, other: "NationalRanking") -> bool:
        return self.key == other.key

    def to_dict(self) -> dict[str, Any]:
        return {"year": self.year, "place": self.place, "category": self.category.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NationalRanking":
        return cls(
            year=int(data["year"]),
            place=int(data["place"]),
            category=ChampionshipCategory(data["category"]),
        )


@dataclass(frozen=True)
class NationalChampionshipResult:
    """Placement at the German national championship."""

    year: int
    place: int
    category: ChampionshipCategory
    championship_class: ChampionshipClass

    @property
    def key(self) -> tuple[int, ChampionshipCategory, ChampionshipClass]:
        return (self.year, self.category, self.championship_class)

    def matches(self, other: "NationalChampionshipResult") -> bool:
        return self.key == other.key

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "place": self.place,
            "category": self.category.value,
            "class": self.championship_class.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NationalChampionshipResult":
        return cls(
            year=int(data["year"]),
            place=int(data["place"]),
            category=ChampionshipCategory(data["category"]),
            championship_class=ChampionshipClass(data["class"]),
        )


@dataclass(frozen=True)
class NationalTeam:
    """Bundesliga team a player was registered with for one season."""

    year: int
    name: str

    @property
    def key(self) -> int:
        return self.year

    def matches(self, other: "NationalTeam") -> bool:
        return self.key == other.key

    def to_dict(self) -> dict[str, Any]:
        return {"year": self.year, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NationalTeam":
        return cls(year=int(data["year"]), name=str(data["name"]))


# =============================================================================
# Player
# =============================================================================

@dataclass
class PlayerComment:
    timestamp: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerComment":
        return cls(timestamp=int(data["timestamp"]), text=str(data["text"]))


@dataclass
class Player:
    """
    Canonical player record.

    Created from an ITSF profile; the DTFB fields are filled in once a
    national profile with the same licence number has been linked.
    """

    itsf_id: int
    first_name: str
    last_name: str
    birth_year: int
    category: PlayerCategory
    country_code: Optional[str] = None

    itsf_rankings: list[ItsfRanking] = field(default_factory=list)

    dtfb_id: Optional[int] = None
    dtfb_national_rankings: list[NationalRanking] = field(default_factory=list)
    dtfb_championship_results: list[NationalChampionshipResult] = field(default_factory=list)
    dtfb_league_teams: list[NationalTeam] = field(default_factory=list)

    comments: list[PlayerComment] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "itsf_id": self.itsf_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "birth_year": self.birth_year,
            "country_code": self.country_code,
            "category": self.category.value,
            "itsf_rankings": [r.to_dict() for r in self.itsf_rankings],
            "dtfb_id": self.dtfb_id,
            "dtfb_national_rankings": [r.to_dict() for r in self.dtfb_national_rankings],
            "dtfb_championship_results": [r.to_dict() for r in self.dtfb_championship_results],
            "dtfb_league_teams": [t.to_dict() for t in self.dtfb_league_teams],
            "comments": [c.to_dict() for c in self.comments],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Player":
        return cls(
            itsf_id=int(data["itsf_id"]),
            first_name=data["first_name"],
            last_name=data["last_name"],
            birth_year=int(data["birth_year"]),
            country_code=data.get("country_code"),
            category=PlayerCategory(data["category"]),
            itsf_rankings=[ItsfRanking.from_dict(r) for r in data.get("itsf_rankings", [])],
            dtfb_id=data.get("dtfb_id"),
            dtfb_national_rankings=[
                NationalRanking.from_dict(r) for r in data.get("dtfb_national_rankings", [])
            ],
            dtfb_championship_results=[
                NationalChampionshipResult.from_dict(r)
                for r in data.get("dtfb_championship_results", [])
            ],
            dtfb_league_teams=[
                NationalTeam.from_dict(t) for t in data.get("dtfb_league_teams", [])
            ],
            comments=[PlayerComment.from_dict(c) for c in data.get("comments", [])],
        )

    def __repr__(self) -> str:
        return f"<Player(itsf_id={self.itsf_id}, name='{self.full_name}')>"


@dataclass
class PlayerImage:
    """Profile photo of a player, stored separately from the player record."""

    itsf_id: int
    image_data: bytes
    image_format: str = "jpg"

    def __repr__(self) -> str:
        return f"<PlayerImage(itsf_id={self.itsf_id}, bytes={len(self.image_data)})>"


@dataclass
class NationalProfile:
    """
    Player details published by the DTFB.

    ``itsf_id`` is the licence number the DTFB records for the player and
    is the only link between a national profile and a stored Player.
    """

    dtfb_id: int
    itsf_id: int
    national_rankings: list[NationalRanking] = field(default_factory=list)
    championship_results: list[NationalChampionshipResult] = field(default_factory=list)
    teams: list[NationalTeam] = field(default_factory=list)
