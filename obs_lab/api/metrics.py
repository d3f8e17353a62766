from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from obs_lab.observability.metrics import MetricsRegistry
from obs_lab.services.dependencies import get_metrics


router = APIRouter(tags=["metrics"])


@router.get("/metrics", include_in_schema=False)
async def metrics(registry: MetricsRegistry = Depends(get_metrics)) -> Response:
    body, content_type = registry.render_exposition()
    return Response(content=body, media_type=content_type)
