from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from obs_lab.models.schemas import StatusResponse
from obs_lab.services.dependencies import get_readiness
from obs_lab.state import ReadinessFlag


router = APIRouter(tags=["probes"])


@router.get("/healthz", response_model=StatusResponse)
async def healthz() -> StatusResponse:
    return StatusResponse(status="OK")


@router.get("/readyz", response_model=StatusResponse, responses={503: {"model": StatusResponse}})
async def readyz(readiness: ReadinessFlag = Depends(get_readiness)) -> JSONResponse:
    ready = readiness.ready
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": ReadinessFlag.label(ready)},
    )


@router.post("/toggle-ready", response_model=StatusResponse)
async def toggle_ready(readiness: ReadinessFlag = Depends(get_readiness)) -> StatusResponse:
    ready = readiness.toggle()
    structlog.get_logger("probes").info("readiness_toggled", ready=ready)
    return StatusResponse(status=ReadinessFlag.label(ready))
