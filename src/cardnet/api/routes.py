"""API routes for the analysis view.

Provides:
- Network snapshot (graph, positions, clusters, suggestions)
- Layout and clustering commands
- Analysis runs and suggestion review
"""

import json
import logging
from collections import OrderedDict
from typing import Any, Literal

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from cardnet.engine import AnalysisEngine
from cardnet.errors import (
    AnalysisFailedError,
    RelationshipCreationError,
    StorageError,
    UnknownSuggestionError,
)
from cardnet.models import AnalysisMethod

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request / Response Models
# ============================================================================


class ThresholdRequest(BaseModel):
    """New cluster threshold."""

    value: float = Field(ge=0.0, le=1.0)


class FilteringRequest(BaseModel):
    """Enable or disable threshold filtering for clusters."""

    enabled: bool


class AnalysisRequest(BaseModel):
    """Analysis run options."""

    mode: Literal["incremental", "full"] = "incremental"


class PairRequest(BaseModel):
    """One unordered card pair."""

    source_card_id: str
    target_card_id: str

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source_card_id, self.target_card_id)


class AnalysisResponse(BaseModel):
    """Outcome of an analysis run."""

    generation: int
    mode: str
    stale: bool
    succeeded_methods: list[str]
    failed_methods: list[str]
    suggestions: list[dict[str, Any]]


class ApprovalResponse(BaseModel):
    """Outcome of an approval command."""

    succeeded: int
    failed: int
    failed_pairs: list[list[str]] = []
    errors: list[str] = []


class RejectionResponse(BaseModel):
    """Outcome of a rejection command."""

    removed: int


class UnloadResponse(BaseModel):
    """Outcome of unloading a board."""

    unloaded: bool


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    store_connected: bool
    boards_loaded: int


# ============================================================================
# Helpers
# ============================================================================


async def get_engine(request: Request, board_id: str) -> AnalysisEngine:
    """Get the board's engine from app state, loading the board on first use.

    Engines are kept in least-recently-used order; loading a board past the
    limit closes the oldest one.
    """
    engines: OrderedDict[str, AnalysisEngine] = request.app.state.engines
    engine = engines.get(board_id)
    if engine is not None:
        engines.move_to_end(board_id)
        return engine

    engine = AnalysisEngine(request.app.state.store)
    try:
        await engine.load(board_id)
    except StorageError as e:
        logger.error(f"Failed to load board {board_id}: {e}")
        await engine.close()
        raise HTTPException(status_code=502, detail=str(e))
    engines[board_id] = engine

    while len(engines) > request.app.state.max_loaded_boards:
        evicted_id, evicted = engines.popitem(last=False)
        logger.info(f"Unloading board {evicted_id}")
        await evicted.close()
    return engine


def parse_method(method: str) -> AnalysisMethod:
    try:
        return AnalysisMethod(method)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown analysis method: {method}")


# ============================================================================
# Health
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint."""
    try:
        await request.app.state.store.execute_query("RETURN 1 as n")
        store_connected = True
    except Exception:
        store_connected = False

    return HealthResponse(
        status="healthy" if store_connected else "degraded",
        store_connected=store_connected,
        boards_loaded=len(request.app.state.engines),
    )


# ============================================================================
# Network
# ============================================================================


@router.get("/boards/{board_id}/network")
async def get_network(request: Request, board_id: str, refresh: bool = False) -> dict:
    """Positioned, clustered graph of the board."""
    engine = await get_engine(request, board_id)
    if refresh:
        try:
            await engine.load(board_id)
        except StorageError as e:
            raise HTTPException(status_code=502, detail=str(e))
    return engine.snapshot()


@router.delete("/boards/{board_id}", response_model=UnloadResponse)
async def unload_board(request: Request, board_id: str) -> UnloadResponse:
    """Drop a loaded board and release its analysis providers."""
    engine = request.app.state.engines.pop(board_id, None)
    if engine is not None:
        await engine.close()
    return UnloadResponse(unloaded=engine is not None)


@router.put("/boards/{board_id}/config")
async def set_config(request: Request, board_id: str, body: dict[str, Any]) -> dict:
    """Replace the view configuration (viewMode, edgeFilter, nodeFilter)."""
    engine = await get_engine(request, board_id)
    try:
        engine.set_network_config(body)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json(include_url=False)))
    return engine.snapshot()


@router.post("/boards/{board_id}/layout/reset")
async def reset_layout(request: Request, board_id: str) -> dict:
    """Fresh organic layout."""
    engine = await get_engine(request, board_id)
    engine.reset_layout()
    return engine.snapshot()


@router.post("/boards/{board_id}/layout/auto")
async def auto_layout(request: Request, board_id: str) -> dict:
    """Cluster-anchored layout."""
    engine = await get_engine(request, board_id)
    engine.auto_layout()
    return engine.snapshot()


@router.put("/boards/{board_id}/clusters/threshold")
async def set_cluster_threshold(request: Request, board_id: str, body: ThresholdRequest) -> dict:
    engine = await get_engine(request, board_id)
    return engine.set_cluster_threshold(body.value).to_dict()


@router.put("/boards/{board_id}/clusters/filtering")
async def set_threshold_filtering(request: Request, board_id: str, body: FilteringRequest) -> dict:
    engine = await get_engine(request, board_id)
    return engine.toggle_threshold_filtering(body.enabled).to_dict()


# ============================================================================
# Analysis and suggestions
# ============================================================================


@router.post("/boards/{board_id}/analysis", response_model=AnalysisResponse)
async def run_analysis(request: Request, board_id: str, body: AnalysisRequest) -> AnalysisResponse:
    """Run the three analysis methods and refresh the candidate list."""
    engine = await get_engine(request, board_id)
    try:
        run = await engine.run_analysis(body.mode)
    except AnalysisFailedError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return AnalysisResponse(
        generation=run.generation,
        mode=run.mode,
        stale=run.stale,
        succeeded_methods=[m.value for m in run.succeeded_methods],
        failed_methods=run.failed_methods,
        suggestions=[s.to_dict() for s in engine.suggestions],
    )


@router.get("/boards/{board_id}/suggestions")
async def list_suggestions(request: Request, board_id: str) -> list[dict]:
    engine = await get_engine(request, board_id)
    return [s.to_dict() for s in engine.suggestions]


@router.post("/boards/{board_id}/suggestions/approve", response_model=ApprovalResponse)
async def approve_suggestion(request: Request, board_id: str, body: PairRequest) -> ApprovalResponse:
    """Approve one suggestion."""
    engine = await get_engine(request, board_id)
    try:
        await engine.approve_suggestion(body.pair)
    except UnknownSuggestionError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RelationshipCreationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ApprovalResponse(succeeded=1, failed=0)


@router.post("/boards/{board_id}/suggestions/approve-all", response_model=ApprovalResponse)
async def approve_all_suggestions(request: Request, board_id: str) -> ApprovalResponse:
    engine = await get_engine(request, board_id)
    report = await engine.approve_all_suggestions()
    return ApprovalResponse(**report.to_dict())


@router.post("/boards/{board_id}/suggestions/methods/{method}/approve", response_model=ApprovalResponse)
async def approve_method_suggestions(request: Request, board_id: str, method: str) -> ApprovalResponse:
    engine = await get_engine(request, board_id)
    report = await engine.approve_method_suggestions(parse_method(method))
    return ApprovalResponse(**report.to_dict())


@router.post("/boards/{board_id}/suggestions/reject", response_model=RejectionResponse)
async def reject_suggestion(request: Request, board_id: str, body: PairRequest) -> RejectionResponse:
    engine = await get_engine(request, board_id)
    return RejectionResponse(removed=int(engine.reject_suggestion(body.pair)))


@router.post("/boards/{board_id}/suggestions/methods/{method}/reject", response_model=RejectionResponse)
async def reject_method_suggestions(request: Request, board_id: str, method: str) -> RejectionResponse:
    engine = await get_engine(request, board_id)
    return RejectionResponse(removed=engine.reject_method_suggestions(parse_method(method)))
