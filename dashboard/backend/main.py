"""FastAPI application for the FPL league tracker.

Single process serving the league API and the bundled front-end page.
The league service logs in lazily on the first /api/league call.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from dashboard.backend.league_service import LeagueService
from dashboard.backend.routers.league import router as league_router
from utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; img-src 'self' data:; "
    "style-src 'self' 'unsafe-inline'; script-src 'self' 'unsafe-inline'"
)

_public_dir = Path(__file__).parent.parent / "public"


def create_app(settings: Optional[Settings] = None,
               service: Optional[LeagueService] = None) -> FastAPI:
    settings = settings or get_settings()
    league_service = service or LeagueService.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Serving league %s", league_service.league_id)
        yield
        league_service.close()

    app = FastAPI(title="FPL League Tracker", version="1.0.0", lifespan=lifespan)
    app.state.league_service = league_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def content_security_policy(request: Request, call_next):
        response = await call_next(request)
        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        return response

    app.include_router(league_router)

    @app.get("/api/health")
    async def health():
        return {
            "ready": True,
            "authenticated": league_service.store.is_authenticated,
            "league_id": league_service.league_id,
        }

    # --- Static front-end ---
    if _public_dir.exists():
        app.mount("/static", StaticFiles(directory=str(_public_dir)), name="static")

        @app.get("/")
        async def index():
            return FileResponse(str(_public_dir / "index.html"))

    return app
