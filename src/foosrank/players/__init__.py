"""
Player records and the player store.

Key components:
- Player and its ranking entries (ITSF rankings, DTFB rankings,
  championship results, league teams)
- PlayerStore: the synchronized owner of all players, with keyed
  upserts and write-through persistence

Every ranking-style entry has a semantic key; the store keeps at most one
entry per key and replaces it when the same key is upserted again.
"""

from foosrank.players.models import (
    ChampionshipCategory,
    ChampionshipClass,
    ItsfRanking,
    NationalChampionshipResult,
    NationalProfile,
    NationalRanking,
    NationalTeam,
    Player,
    PlayerCategory,
    PlayerComment,
    PlayerImage,
    RankingCategory,
    RankingClass,
)
from foosrank.players.store import PlayerStore, StoreError, StoreLockError

__all__ = [
    "ChampionshipCategory",
    "ChampionshipClass",
    "ItsfRanking",
    "NationalChampionshipResult",
    "NationalProfile",
    "NationalRanking",
    "NationalTeam",
    "Player",
    "PlayerCategory",
    "PlayerComment",
    "PlayerImage",
    "PlayerStore",
    "RankingCategory",
    "RankingClass",
    "StoreError",
    "StoreLockError",
]
