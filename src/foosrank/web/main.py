"""
HTTP API for Foosrank.

JSON routes for player data and for starting and polling the ranking
download jobs. Every JSON response uses the envelope ``{"data": ...}`` on
success and ``{"error": "..."}`` on failure.

The player store and the job supervisor are created once per process in
the lifespan handler; tests pass prebuilt ones to ``create_app``.
"""

from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from foosrank.config import settings
from foosrank.db import PlayerRepository, get_engine, init_db, make_session_factory
from foosrank.logging_config import configure_logging
from foosrank.players.models import ChampionshipCategory, Player, RankingCategory, RankingClass
from foosrank.players.store import PlayerStore, StoreError
from foosrank.services.jobs import (
    DTFB_RANKINGS_JOB,
    ITSF_RANKINGS_JOB,
    DtfbDownloadParams,
    ItsfDownloadParams,
    build_job_registry,
)
from foosrank.tasks.runtime import AlreadyRunningError
from foosrank.tasks.supervisor import JobSupervisor

# ITSF ranking lists start in 2007
FIRST_RANKING_YEAR = 2007

IN_PROGRESS_MESSAGE = "Ranking query still in progress"


class CommentRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


def _ok(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse({"data": data}, status_code=status_code)


def _err(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _choices(enum_cls) -> str:
    return "[" + ", ".join(f"'{member.value}'" for member in enum_cls) + "]"


def _player_json(player: Player) -> dict[str, Any]:
    data = player.to_dict()
    data["country_code"] = player.country_code or ""
    data["image_url"] = f"/image/{player.itsf_id}.jpg"
    return data


def _start(request: Request, kind: str, params: Any) -> JSONResponse:
    supervisor: JobSupervisor = request.app.state.supervisor
    try:
        supervisor.start_job(kind, params)
    except AlreadyRunningError:
        return _err(IN_PROGRESS_MESSAGE)
    return _ok("Started download")


def create_app(
    store: Optional[PlayerStore] = None,
    supervisor: Optional[JobSupervisor] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Without arguments the store is loaded from ``settings.database_url``
    at startup and a supervisor with the standard job kinds is created.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.store is None:
            configure_logging()
            engine = get_engine()
            init_db(engine)
            app.state.store = PlayerStore.load(PlayerRepository(make_session_factory(engine)))
        if app.state.supervisor is None:
            app.state.supervisor = JobSupervisor(build_job_registry(app.state.store))
        yield

    app = FastAPI(title="Foosrank", lifespan=lifespan)
    app.state.store = store
    app.state.supervisor = supervisor

    @app.get("/player/{itsf_id}")
    async def get_player(request: Request, itsf_id: int):
        player = request.app.state.store.get_player(itsf_id)
        if player is None:
            return _err("No such player", status_code=404)
        return _ok(_player_json(player))

    @app.get("/image/{itsf_id}.jpg")
    async def get_player_image(request: Request, itsf_id: int):
        image = request.app.state.store.get_image(itsf_id)
        if image is None:
            return Response(status_code=404)
        return Response(content=image.image_data, media_type="image/jpeg")

    @app.post("/player/{itsf_id}/comment")
    async def add_player_comment(request: Request, itsf_id: int, comment: CommentRequest):
        store: PlayerStore = request.app.state.store
        if not store.add_comment(itsf_id, comment.text.strip()):
            return _err("No such player", status_code=404)
        return _ok(_player_json(store.get_player(itsf_id)))

    @app.get("/download/{year}/{category}/{ranking_class}")
    async def download_itsf(request: Request, year: int, category: str, ranking_class: str):
        if year < FIRST_RANKING_YEAR:
            return _err("Invalid year")
        try:
            parsed_category = RankingCategory(category.lower())
        except ValueError:
            return _err(f"Invalid category. Must be one of {_choices(RankingCategory)}.")
        try:
            parsed_class = RankingClass(ranking_class.lower())
        except ValueError:
            return _err(f"Invalid class. Must be one of {_choices(RankingClass)}.")

        params = ItsfDownloadParams(
            years=[year],
            categories=[parsed_category],
            classes=[parsed_class],
        )
        return _start(request, ITSF_RANKINGS_JOB, params)

    @app.get("/download_all")
    async def download_all_itsf(request: Request):
        return _start(request, ITSF_RANKINGS_JOB, ItsfDownloadParams.full())

    @app.get("/download_dtfb/{ranking_id}/{year}/{category}")
    async def download_dtfb(request: Request, ranking_id: int, year: int, category: str):
        if year < FIRST_RANKING_YEAR:
            return _err("Invalid year")
        try:
            parsed_category = ChampionshipCategory(category.lower())
        except ValueError:
            return _err(f"Invalid category. Must be one of {_choices(ChampionshipCategory)}.")

        params = DtfbDownloadParams.single(ranking_id, year, parsed_category)
        return _start(request, DTFB_RANKINGS_JOB, params)

    @app.get("/status/{kind}")
    async def job_status(request: Request, kind: str):
        supervisor: JobSupervisor = request.app.state.supervisor
        if kind not in supervisor.registry:
            return _err(f"Unknown job kind: {kind}", status_code=404)
        return _ok(supervisor.status(kind).to_dict())

    @app.get("/backup.zip")
    async def backup(request: Request):
        try:
            archive = request.app.state.store.export_archive()
        except StoreError as exc:
            return _err(str(exc), status_code=500)
        filename = f"foosrank-backup-{date.today().isoformat()}.zip"
        return Response(
            content=archive,
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app


app = create_app()


# Only for debugging
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("foosrank.web.main:app", host=settings.api_host, port=settings.api_port, reload=True)
