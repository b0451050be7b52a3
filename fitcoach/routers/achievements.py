"""Health badge evaluation from wearable data."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from fitcoach.dependencies import AchievementChecker
from fitcoach.models.achievements import HealthAchievementResponse
from fitcoach.models.base import ClientRequest, ErrorResponse

router = APIRouter(prefix="/achievements", tags=["achievements"])
logger = logging.getLogger("fitcoach.achievements")


@router.post(
    "/check-health",
    response_model=HealthAchievementResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def check_health_achievements(
    checker: AchievementChecker, body: ClientRequest | None = None
) -> Any:
    if body is None or not body.client_id:
        return JSONResponse(status_code=400, content={"error": "clientId is required"})

    try:
        report = await checker.check(body.client_id)
    except Exception as exc:
        logger.exception("Health achievement check failed for %s", body.client_id)
        return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error"})

    return report.to_response()
