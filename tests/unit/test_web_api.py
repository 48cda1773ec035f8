"""Unit tests for the HTTP API."""

import asyncio
import io
import threading
import time
import zipfile

import pytest
from fastapi.testclient import TestClient

from foosrank.players.models import (
    ItsfRanking,
    Player,
    PlayerCategory,
    PlayerImage,
    RankingCategory,
    RankingClass,
)
from foosrank.tasks.registry import JobDefinition, JobRegistry
from foosrank.tasks.supervisor import JobSupervisor
from foosrank.web.main import create_app


class _Recorder:
    """Job runners that record their params and block until released."""

    def __init__(self):
        self.release = threading.Event()
        self.params = []

    async def run(self, progress, params):
        self.params.append(params)
        progress.log("working")
        while not self.release.is_set():
            await asyncio.sleep(0.005)


@pytest.fixture
def recorder():
    recorder = _Recorder()
    yield recorder
    recorder.release.set()


@pytest.fixture
def client(store, recorder):
    registry = JobRegistry()
    registry.register(JobDefinition(kind="itsf_rankings", title="ITSF Rankings Download", runner=recorder.run))
    registry.register(JobDefinition(kind="dtfb_rankings", title="DTFB Rankings Download", runner=recorder.run))
    app = create_app(store=store, supervisor=JobSupervisor(registry))
    with TestClient(app) as test_client:
        yield test_client
        recorder.release.set()
        _wait_until_idle(test_client, "itsf_rankings")
        _wait_until_idle(test_client, "dtfb_rankings")


def _wait_until_idle(client, kind, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not client.get(f"/status/{kind}").json()["data"]["running"]:
            return
        time.sleep(0.01)
    raise AssertionError(f"{kind} still running")


def test_get_player(client, store):
    store.upsert_player(
        Player(
            itsf_id=1001,
            first_name="Anna",
            last_name="Schmidt",
            birth_year=1992,
            category=PlayerCategory.WOMEN,
        )
    )
    store.upsert_itsf_ranking(1001, ItsfRanking(2019, 4, RankingCategory.WOMEN, RankingClass.SINGLES))

    response = client.get("/player/1001")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["first_name"] == "Anna"
    assert data["country_code"] == ""
    assert data["image_url"] == "/image/1001.jpg"
    assert data["itsf_rankings"] == [
        {"year": 2019, "place": 4, "category": "women", "class": "singles"}
    ]


def test_get_unknown_player_is_404_with_error_envelope(client):
    response = client.get("/player/4242")
    assert response.status_code == 404
    assert response.json() == {"error": "No such player"}


def test_get_image(client, store):
    store.set_image(PlayerImage(itsf_id=7, image_data=b"\xff\xd8photo"))

    response = client.get("/image/7.jpg")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    assert response.content == b"\xff\xd8photo"

    assert client.get("/image/8.jpg").status_code == 404


def test_add_comment(client, store):
    store.upsert_player(
        Player(itsf_id=5, first_name="Max", last_name="Mustermann", birth_year=0, category=PlayerCategory.MEN)
    )

    response = client.post("/player/5/comment", json={"text": "  plays left defence  "})

    assert response.status_code == 200
    assert [c["text"] for c in response.json()["data"]["comments"]] == ["plays left defence"]
    assert client.post("/player/6/comment", json={"text": "x"}).status_code == 404
    assert client.post("/player/5/comment", json={"text": ""}).status_code == 422


@pytest.mark.parametrize(
    "path, message",
    [
        ("/download/2006/open/singles", "Invalid year"),
        ("/download/2019/mixed/singles", "Invalid category"),
        ("/download/2019/open/triples", "Invalid class"),
        ("/download_dtfb/12/2019/mixed", "Invalid category"),
    ],
)
def test_download_validation(client, recorder, path, message):
    response = client.get(path)
    assert response.status_code == 400
    assert response.json()["error"].startswith(message)
    assert recorder.params == []


def test_download_starts_job_and_rejects_duplicate(client, recorder):
    first = client.get("/download/2019/Open/Doubles")
    assert first.status_code == 200
    assert first.json() == {"data": "Started download"}

    second = client.get("/download_all")
    assert second.status_code == 400
    assert second.json() == {"error": "Ranking query still in progress"}

    status = client.get("/status/itsf_rankings").json()["data"]
    assert status["running"] is True
    assert status["title"] == "ITSF Rankings Download"

    recorder.release.set()
    _wait_until_idle(client, "itsf_rankings")

    params = recorder.params[0]
    assert params.years == [2019]
    assert params.categories == [RankingCategory.OPEN]
    assert params.classes == [RankingClass.DOUBLES]
    assert client.get("/download_all").status_code == 200


def test_dtfb_download_runs_independently_of_itsf(client, recorder):
    assert client.get("/download/2019/open/singles").status_code == 200
    assert client.get("/download_dtfb/321/2019/men").status_code == 200
    assert client.get("/status/dtfb_rankings").json()["data"]["running"] is True


def test_status_of_idle_and_unknown_jobs(client):
    idle = client.get("/status/dtfb_rankings")
    assert idle.json()["data"] == {
        "kind": "dtfb_rankings",
        "running": False,
        "title": None,
        "progress": [0, 0],
        "log": [],
    }
    assert client.get("/status/nope").status_code == 404


def test_backup_zip(client, store):
    store.upsert_player(
        Player(itsf_id=5, first_name="Max", last_name="Mustermann", birth_year=0, category=PlayerCategory.MEN)
    )

    response = client.get("/backup.zip")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert "players.json" in archive.namelist()
