"""Challenge progress verification from wearable data."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from fitcoach.dependencies import Reconciler
from fitcoach.models.base import ClientRequest, ErrorResponse
from fitcoach.models.challenges import VerifyProgressResponse

router = APIRouter(prefix="/challenges", tags=["challenges"])
logger = logging.getLogger("fitcoach.challenges")


@router.post(
    "/verify-progress",
    response_model=VerifyProgressResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def verify_progress(
    reconciler: Reconciler, body: ClientRequest | None = None
) -> Any:
    """Recompute verified progress for all of a client's active challenges.

    Individual challenge failures are logged and counted under ``failed``;
    they do not fail the request.
    """
    if body is None or not body.client_id:
        return JSONResponse(status_code=400, content={"error": "clientId is required"})

    try:
        report = await reconciler.reconcile(body.client_id)
    except Exception as exc:
        logger.exception("Challenge progress verification failed for %s", body.client_id)
        return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error"})

    if report.is_partial:
        logger.warning(
            "Client %s: %d challenge(s) could not be reconciled",
            body.client_id, len(report.failed),
        )
    return report.to_response()
