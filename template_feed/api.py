"""
HTTP routes for template recommendations.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from template_feed.core.errors import TemplateFetchError
from template_feed.orchestrator import FetchOptions, TemplateOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/templates", tags=["templates"])


class TemplatesResponse(BaseModel):
    templates: List[Dict[str, Any]]
    count: int
    cached: bool
    generatedAt: str
    metrics: Dict[str, Any]


class CacheMutationResponse(BaseModel):
    deleted: int
    source: Optional[str] = None


def get_orchestrator(request: Request) -> TemplateOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Template fetcher not initialized")
    return orchestrator


@router.get("", response_model=TemplatesResponse)
async def list_templates(
    max_age_hours: float = Query(24.0, gt=0, description="Maximum cache age in hours"),
    force_refresh: bool = Query(False),
    source: Optional[str] = Query(None, description="Restrict to one source"),
    fallback_on_error: bool = Query(True),
    orchestrator: TemplateOrchestrator = Depends(get_orchestrator),
):
    if source and source not in orchestrator.source_names:
        raise HTTPException(status_code=400, detail=f"Unknown source: {source}")

    options = FetchOptions(
        max_age=max_age_hours * 3600,
        force_refresh=force_refresh,
        source=source,
        fallback_on_error=fallback_on_error,
    )
    try:
        result = await orchestrator.fetch(options)
    except TemplateFetchError as e:
        logger.error(f"[api] Template fetch failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "templates": [t.to_dict() for t in result.templates],
        "count": len(result.templates),
        "cached": result.cached,
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "metrics": result.metrics.to_dict(),
    }


@router.get("/status")
async def templates_status(orchestrator: TemplateOrchestrator = Depends(get_orchestrator)):
    return {
        "sources": orchestrator.source_names,
        "breakers": orchestrator.breaker_status(),
        "summary": orchestrator.metrics.summary(),
        "recent": orchestrator.get_metrics()[-10:],
    }


@router.post("/cache/invalidate", response_model=CacheMutationResponse)
async def invalidate_cache(
    source: Optional[str] = Query(None),
    orchestrator: TemplateOrchestrator = Depends(get_orchestrator),
):
    deleted = await orchestrator.invalidate_cache(source)
    return {"deleted": deleted, "source": source}


@router.post("/cache/cleanup", response_model=CacheMutationResponse)
async def cleanup_cache(orchestrator: TemplateOrchestrator = Depends(get_orchestrator)):
    deleted = await orchestrator.cleanup_cache()
    return {"deleted": deleted}
