"""
Main FastAPI application and routing layer.
"""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import List, Optional

import httpx
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pulse.config import HTTP_HEADERS, get_settings
from pulse.core.aggregator import AggregationOrchestrator
from pulse.errors import PersistenceError, ValidationError, WatchStoreError
from pulse.schemas import (
    AggregationResult,
    EngagementRecord,
    KeywordWatch,
    KeywordWatchCreate,
    Permissions,
    PersistedBatch,
    SearchRequest,
)
from pulse.services.persistence import PersistenceGateway, build_gateway
from pulse.services.watchlist import WatchList, build_watch_store
from pulse.utils import now_utc

settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


def redact_record(record: EngagementRecord) -> EngagementRecord:
    """Strip the fields that identify a post's author or origin."""
    return record.model_copy(update={"url": None, "author": "unknown"})


def redact_records(records: List[EngagementRecord], permissions: Permissions) -> List[EngagementRecord]:
    if permissions.can_export_data:
        return records
    return [redact_record(record) for record in records]


# Initialize FastAPI app
app = FastAPI(
    title="Pulse Social Listening API",
    version="0.1.0",
    description="Multi-source social listening: search, aggregate and monitor mentions",
)


@app.on_event("startup")
async def open_http_client():
    """Share one connection pool across all source clients."""
    app.state.http_client = httpx.AsyncClient(
        timeout=settings.SOURCE_TIMEOUT_SECONDS, headers=HTTP_HEADERS
    )


@app.on_event("shutdown")
async def close_http_client():
    client: Optional[httpx.AsyncClient] = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(WatchStoreError)
async def watch_store_error_handler(request: Request, exc: WatchStoreError):
    logger.error("Watch-list storage failure: %s", exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Dependencies

def get_permissions(x_capabilities: Optional[str] = Header(None)) -> Permissions:
    """Capabilities from the ``X-Capabilities`` header, else the configured defaults."""
    if x_capabilities is None:
        return Permissions.from_capabilities(settings.DEFAULT_CAPABILITIES)
    return Permissions.from_capabilities(x_capabilities.split(","))


@lru_cache()
def get_gateway() -> PersistenceGateway:
    return build_gateway(settings)


def get_orchestrator(
    request: Request,
    gateway: PersistenceGateway = Depends(get_gateway),
) -> AggregationOrchestrator:
    http_client = getattr(request.app.state, "http_client", None)
    return AggregationOrchestrator.from_settings(settings, http_client=http_client, gateway=gateway)


def get_watchlist() -> WatchList:
    return WatchList(build_watch_store(settings))


def require(permissions: Permissions, capability: str) -> None:
    if not getattr(permissions, capability):
        raise HTTPException(status_code=403, detail=f"Missing capability: {capability}")


async def run_search(
    search: SearchRequest,
    orchestrator: AggregationOrchestrator,
    permissions: Permissions,
) -> AggregationResult:
    result = await orchestrator.run(search)
    result.records = redact_records(result.records, permissions)
    return result


# Routes

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "as_of": now_utc().isoformat(),
        "service": "pulse-aggregator",
    }


@app.post("/search", response_model=AggregationResult)
async def search(
    search_request: SearchRequest,
    orchestrator: AggregationOrchestrator = Depends(get_orchestrator),
    permissions: Permissions = Depends(get_permissions),
):
    """
    Search every requested source and return the merged, scored mentions.

    Sources that fail or return nothing are filled with fallback records,
    flagged ``provenance='fallback'`` and reported in ``per_source_status``.
    """
    require(permissions, "can_search")
    return await run_search(search_request, orchestrator, permissions)


@app.get("/searches", response_model=List[PersistedBatch])
async def list_searches(
    term: str = Query(..., min_length=1, description="Substring of the searched term"),
    gateway: PersistenceGateway = Depends(get_gateway),
    permissions: Permissions = Depends(get_permissions),
):
    """Previously persisted batches whose term contains ``term``, newest first."""
    require(permissions, "can_search")
    try:
        batches = await gateway.query_by_term(term)
    except PersistenceError as e:
        logger.error("Error reading batches for '%s': %s", term, e)
        raise HTTPException(status_code=503, detail=str(e))
    return [
        batch.model_copy(update={"records": redact_records(batch.records, permissions)})
        for batch in batches
    ]


@app.get("/watchlist", response_model=List[KeywordWatch])
def list_watches(
    active_only: bool = Query(False, description="Only return active watches"),
    watchlist: WatchList = Depends(get_watchlist),
    permissions: Permissions = Depends(get_permissions),
):
    require(permissions, "can_search")
    return watchlist.active() if active_only else watchlist.all()


@app.post("/watchlist", response_model=KeywordWatch, status_code=201)
def add_watch(
    new: KeywordWatchCreate,
    watchlist: WatchList = Depends(get_watchlist),
    permissions: Permissions = Depends(get_permissions),
):
    require(permissions, "can_manage_keywords")
    return watchlist.add(new)


@app.delete("/watchlist/{watch_id}", status_code=204)
def remove_watch(
    watch_id: str,
    watchlist: WatchList = Depends(get_watchlist),
    permissions: Permissions = Depends(get_permissions),
):
    require(permissions, "can_manage_keywords")
    if not watchlist.remove(watch_id):
        raise HTTPException(status_code=404, detail="Watch not found")
    return Response(status_code=204)


@app.post("/watchlist/{watch_id}/toggle", response_model=KeywordWatch)
def toggle_watch(
    watch_id: str,
    watchlist: WatchList = Depends(get_watchlist),
    permissions: Permissions = Depends(get_permissions),
):
    require(permissions, "can_manage_keywords")
    watch = watchlist.toggle(watch_id)
    if watch is None:
        raise HTTPException(status_code=404, detail="Watch not found")
    return watch


@app.post("/watchlist/{watch_id}/search", response_model=AggregationResult)
async def search_watch(
    watch_id: str,
    watchlist: WatchList = Depends(get_watchlist),
    orchestrator: AggregationOrchestrator = Depends(get_orchestrator),
    permissions: Permissions = Depends(get_permissions),
):
    """Run a search with a watched keyword on its configured sources."""
    require(permissions, "can_search")
    loop = asyncio.get_running_loop()
    watch = await loop.run_in_executor(None, watchlist.get, watch_id)
    if watch is None:
        raise HTTPException(status_code=404, detail="Watch not found")
    return await run_search(
        SearchRequest(term=watch.keyword, sources=watch.sources),
        orchestrator,
        permissions,
    )


if __name__ == "__main__":
    # For development
    import uvicorn
    uvicorn.run("pulse.main:app", host="0.0.0.0", port=8000, reload=True)
