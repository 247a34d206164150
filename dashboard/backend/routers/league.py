"""League endpoint - per-manager gameweek history for the configured league."""

import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/api", tags=["league"])

logger = logging.getLogger(__name__)


@router.get("/league")
async def get_league(request: Request):
    service = request.app.state.league_service
    try:
        return await run_in_threadpool(service.get_league_data)
    except Exception as exc:
        logger.exception("An error occurred while fetching league data")
        return JSONResponse(
            status_code=500,
            content={"error": "An error occurred while fetching data", "details": str(exc)},
        )
