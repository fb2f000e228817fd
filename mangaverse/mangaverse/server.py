"""
HTTP surface of MangaVerse, served with FastAPI.

Endpoints are plain `def` handlers: every collaborator is synchronous, so
FastAPI runs them on its worker thread pool.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

from . import constants as c
from .catalog import ANIME, MANGA, CatalogProvider
from .logging import MangaVerseError, StreamUnavailableError, ValidationError, get_logger
from .models import NarrationRequest
from .services import Services, build_services

logger = get_logger(__name__)


class NarrationBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(default="anonymous", alias="userId")
    manga_id: str = Field(alias="mangaId")
    chapter_number: Union[str, int, float] = Field(alias="chapterNumber")
    voice_type: str = Field(default=c.DEFAULT_VOICE_TYPE, alias="voiceType")
    language: str = "en"
    speed: float = Field(default=1.0, gt=0)
    include_dialogue: bool = Field(default=True, alias="includeDialogue")
    include_narration: bool = Field(default=True, alias="includeNarration")


def _parse_providers(providers: Optional[str]) -> Optional[List[CatalogProvider]]:
    if not providers:
        return None
    try:
        return [CatalogProvider(p.strip().lower()) for p in providers.split(",") if p.strip()]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def create_app(services: Optional[Services] = None) -> FastAPI:
    services = services or build_services()
    config = services.config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        services.close()

    app = FastAPI(title="MangaVerse", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    uploads_dir = Path(config.narration.uploads_dir)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "cache": services.cache is not None,
            "tts": services.pipeline.tts is not None,
            "storage": services.pipeline.storage is not None,
        }

    @app.get("/anime/{anime_id}/episodes/{episode_id}/stream")
    def stream_episode(anime_id: str, episode_id: str):
        try:
            result = services.resolver.resolve(anime_id, episode_id)
        except StreamUnavailableError as e:
            logger.warning(f"No stream for {anime_id}/{episode_id}: {e}")
            return JSONResponse(status_code=404, content={"error": "No streaming sources found", "details": e.details})
        except Exception as e:
            logger.error(f"Stream resolution crashed for {anime_id}/{episode_id}: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to resolve stream", "details": {"animeId": anime_id, "episodeId": episode_id, "message": str(e)}},
            )
        return result.to_dict()

    @app.post("/manga/narration", status_code=status.HTTP_202_ACCEPTED)
    def request_narration(body: NarrationBody) -> Dict[str, str]:
        try:
            request = NarrationRequest.create(
                user_id=body.user_id,
                manga_id=body.manga_id,
                chapter_number=body.chapter_number,
                voice_type=body.voice_type,
                language=body.language,
                speed=body.speed,
                include_dialogue=body.include_dialogue,
                include_narration=body.include_narration,
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return services.queue.submit(request)

    @app.get("/manga/narration/{request_id}")
    def narration_status(request_id: str) -> Dict[str, Any]:
        record = services.status_store.get(request_id)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Unknown narration request {request_id}")
        return record.to_dict()

    def _search(query: str, media: str, page: int, providers: Optional[str]) -> Dict[str, Any]:
        try:
            results = services.catalog.search(query, media=media, page=page, providers=_parse_providers(providers))
        except MangaVerseError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return {"query": query, "page": page, "results": [r.to_dict() for r in results]}

    @app.get("/anime/search")
    def search_anime(
        query: str = Query(..., min_length=1),
        page: int = Query(1, ge=1),
        providers: Optional[str] = None,
    ) -> Dict[str, Any]:
        return _search(query, ANIME, page, providers)

    @app.get("/manga/search")
    def search_manga(
        query: str = Query(..., min_length=1),
        page: int = Query(1, ge=1),
        providers: Optional[str] = None,
    ) -> Dict[str, Any]:
        return _search(query, MANGA, page, providers)

    @app.get("/users/{user_id}/notifications")
    def user_notifications(user_id: str) -> Dict[str, Any]:
        return {"userId": user_id, "notifications": services.notifications.drain(user_id)}

    return app
