"""Unit tests for the player store merge rules and persistence."""

import io
import json
import threading
import zipfile

import pytest
from sqlalchemy.exc import OperationalError

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
    PlayerImage,
    RankingCategory,
    RankingClass,
)
from foosrank.players.store import PlayerStore, StoreError, StoreLockError


def make_player(itsf_id: int, first_name: str = "Max", last_name: str = "Mustermann", **kwargs) -> Player:
    fields = {"birth_year": 1990, "category": PlayerCategory.MEN, "country_code": "GER"}
    fields.update(kwargs)
    return Player(itsf_id=itsf_id, first_name=first_name, last_name=last_name, **fields)


def _open_singles(year: int, place: int) -> ItsfRanking:
    return ItsfRanking(year, place, RankingCategory.OPEN, RankingClass.SINGLES)


class _FailingRepository:
    """Repository whose writes always fail."""

    def __init__(self, inner):
        self.inner = inner

    def put_player(self, itsf_id, document):
        raise OperationalError("UPDATE players", {}, Exception("disk I/O error"))

    def __getattr__(self, name):
        return getattr(self.inner, name)


def test_upsert_player_and_reload(store, repository):
    store.upsert_player(make_player(1001, "Anna", "Schmidt", country_code="AUT"))

    reloaded = PlayerStore.load(repository)
    player = reloaded.get_player(1001)
    assert player.full_name == "Anna Schmidt"
    assert player.country_code == "AUT"
    assert reloaded.get_player_ids() == [1001]


def test_upsert_ranking_replaces_same_key(store):
    store.upsert_player(make_player(1001))

    assert store.upsert_itsf_ranking(1001, _open_singles(2019, 5))
    assert store.upsert_itsf_ranking(1001, _open_singles(2019, 3))

    rankings = store.get_player(1001).itsf_rankings
    assert rankings == [_open_singles(2019, 3)]


def test_upsert_ranking_keeps_different_keys(store):
    store.upsert_player(make_player(1001))
    store.upsert_itsf_ranking(1001, _open_singles(2019, 5))
    store.upsert_itsf_ranking(1001, _open_singles(2020, 8))
    store.upsert_itsf_ranking(1001, ItsfRanking(2019, 2, RankingCategory.OPEN, RankingClass.DOUBLES))

    keys = sorted(r.key for r in store.get_player(1001).itsf_rankings)
    assert len(keys) == 3
    assert len(set(keys)) == 3


def test_upsert_ranking_is_idempotent(store, repository):
    store.upsert_player(make_player(1001))
    for _ in range(3):
        store.upsert_itsf_ranking(1001, _open_singles(2019, 5))

    assert store.get_player(1001).itsf_rankings == [_open_singles(2019, 5)]
    assert len(repository.get_player(1001)["itsf_rankings"]) == 1


def test_upsert_for_unknown_player_is_noop(store, repository):
    assert store.upsert_itsf_ranking(999, _open_singles(2019, 1)) is False
    assert not store.has_player(999)
    assert repository.get_player(999) is None


def test_national_entries_merge_by_key(store):
    store.upsert_player(make_player(1001))

    store.upsert_national_ranking(1001, NationalRanking(2019, 10, ChampionshipCategory.MEN))
    store.upsert_national_ranking(1001, NationalRanking(2019, 4, ChampionshipCategory.MEN))
    store.upsert_championship_result(
        1001,
        NationalChampionshipResult(2019, 2, ChampionshipCategory.MEN, ChampionshipClass.DOUBLES),
    )
    store.upsert_championship_result(
        1001,
        NationalChampionshipResult(2019, 1, ChampionshipCategory.MEN, ChampionshipClass.DOUBLES),
    )
    store.upsert_team(1001, 2019, "Kickers Hamburg")
    store.upsert_team(1001, 2019, "Kickerfreunde Berlin")

    player = store.get_player(1001)
    assert player.dtfb_national_rankings == [NationalRanking(2019, 4, ChampionshipCategory.MEN)]
    assert [r.place for r in player.dtfb_championship_results] == [1]
    assert player.dtfb_league_teams == [NationalTeam(2019, "Kickerfreunde Berlin")]


def test_missing_ids_keeps_order_and_removes_duplicates(store):
    store.upsert_player(make_player(2))
    assert store.missing_ids([5, 2, 3, 5, 1, 3]) == [5, 3, 1]


def test_link_national_profile_sets_dtfb_id_and_merges(store):
    store.upsert_player(make_player(1001))
    store.upsert_national_ranking(1001, NationalRanking(2018, 9, ChampionshipCategory.MEN))

    profile = NationalProfile(
        dtfb_id=77,
        itsf_id=1001,
        national_rankings=[
            NationalRanking(2018, 7, ChampionshipCategory.MEN),
            NationalRanking(2019, 3, ChampionshipCategory.MEN),
        ],
        teams=[NationalTeam(2019, "Kickers Hamburg")],
    )
    assert store.link_national_profile(profile)

    player = store.find_by_dtfb_id(77)
    assert player.itsf_id == 1001
    assert sorted((r.year, r.place) for r in player.dtfb_national_rankings) == [(2018, 7), (2019, 3)]
    assert store.dtfb_links([77, 78]) == {77: 1001}


def test_link_national_profile_for_unknown_licence(store):
    assert store.link_national_profile(NationalProfile(dtfb_id=77, itsf_id=4242)) is False
    assert store.find_by_dtfb_id(77) is None


def test_reads_return_copies(store):
    store.upsert_player(make_player(1001))

    player = store.get_player(1001)
    player.itsf_rankings.append(_open_singles(2019, 1))
    player.first_name = "Changed"

    stored = store.get_player(1001)
    assert stored.itsf_rankings == []
    assert stored.first_name == "Max"


def test_failed_write_leaves_store_unchanged(store, repository):
    store.upsert_player(make_player(1001))
    store.repository = _FailingRepository(repository)

    with pytest.raises(StoreError):
        store.upsert_itsf_ranking(1001, _open_singles(2019, 1))

    assert store.get_player(1001).itsf_rankings == []
    assert repository.get_player(1001)["itsf_rankings"] == []


def test_lock_timeout_raises_store_lock_error(repository):
    store = PlayerStore(repository, lock_timeout=0.01)
    held = threading.Event()
    release = threading.Event()

    def hold_lock():
        with store._locked():
            held.set()
            release.wait(1.0)

    thread = threading.Thread(target=hold_lock)
    thread.start()
    held.wait(1.0)
    try:
        with pytest.raises(StoreLockError):
            store.get_player_ids()
    finally:
        release.set()
        thread.join()


def test_add_comment_keeps_comments_sorted(store):
    store.upsert_player(make_player(1001))
    store.add_comment(1001, "second", timestamp=200)
    store.add_comment(1001, "first", timestamp=100)

    assert [c.text for c in store.get_player(1001).comments] == ["first", "second"]
    assert store.add_comment(999, "nobody") is False


def test_images_round_trip_through_repository(store):
    assert store.get_image(1001) is None
    store.set_image(PlayerImage(itsf_id=1001, image_data=b"\xff\xd8jpeg"))

    image = store.get_image(1001)
    assert image.image_data == b"\xff\xd8jpeg"
    assert image.image_format == "jpg"


def test_export_archive_contains_players_and_images(store):
    store.upsert_player(make_player(2, "Bea", "Bauer"))
    store.upsert_player(make_player(1, "Al", "Adler"))
    store.set_image(PlayerImage(itsf_id=1, image_data=b"photo"))

    with zipfile.ZipFile(io.BytesIO(store.export_archive())) as archive:
        names = sorted(archive.namelist())
        documents = json.loads(archive.read("players.json"))
        photo = archive.read("images/1.jpg")

    assert names == ["images/1.jpg", "players.json"]
    assert [doc["itsf_id"] for doc in documents] == [1, 2]
    assert photo == b"photo"
