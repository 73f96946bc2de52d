"""FastAPI application entrypoint for fusion service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..errors import FusionError, SnapshotError
from ..graph import merge_alias_tables
from ..orchestrator import Orchestrator
from ..report import graphs_to_dict, plans_to_list, resolution_to_dict
from ..snapshot import Snapshot, snapshot_from_dict


class SnapshotRequest(BaseModel):
    path: Optional[str] = None
    snapshot: Optional[Dict[str, Any]] = None


class GraphRequest(SnapshotRequest):
    tsconfig: Optional[str] = None
    aliases: Dict[str, List[str]] = Field(default_factory=dict)


class ConflictReportModel(BaseModel):
    criticalErrors: List[Dict[str, Any]]
    warnings: List[Dict[str, Any]]
    totalConflicts: int


class ResolveResponse(BaseModel):
    entities: Dict[str, List[Dict[str, Any]]]
    report: ConflictReportModel
    failures: List[Dict[str, Any]]
    summary: Dict[str, int]


class PlanResponse(ResolveResponse):
    plans: List[Dict[str, Any]]


class GraphResponse(BaseModel):
    graphs: Dict[str, Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _load(orchestrator: Orchestrator, payload: SnapshotRequest) -> Snapshot:
    if payload.snapshot is not None:
        return snapshot_from_dict(payload.snapshot)
    if payload.path:
        return orchestrator.load(Path(payload.path).expanduser())
    raise SnapshotError("Request must provide either 'snapshot' or 'path'")


async def _in_executor(func: Callable[[], Any]) -> Any:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:  # pragma: no cover - fallback path when not in async context
        return func()
    return await loop.run_in_executor(None, func)


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing fusion operations."""

    app = FastAPI(title="Fusion Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/resolve", response_model=ResolveResponse)
    async def resolve(
        payload: SnapshotRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        def _run_resolve() -> Dict[str, Any]:
            snapshot = _load(orchestrator, payload)
            return resolution_to_dict(orchestrator.resolve(snapshot.projects))

        return await _in_executor(_run_resolve)

    @app.post("/graph", response_model=GraphResponse)
    async def graph(
        payload: GraphRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        def _run_graph() -> Dict[str, Any]:
            snapshot = _load(orchestrator, payload)
            tsconfig = Path(payload.tsconfig).expanduser() if payload.tsconfig else None
            aliases = merge_alias_tables(orchestrator.aliases_for(snapshot, tsconfig), payload.aliases)
            return {"graphs": graphs_to_dict(orchestrator.build_graphs(snapshot.projects, aliases))}

        return await _in_executor(_run_graph)

    @app.post("/plan", response_model=PlanResponse)
    async def plan(
        payload: GraphRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        def _run_plan() -> Dict[str, Any]:
            snapshot = _load(orchestrator, payload)
            tsconfig = Path(payload.tsconfig).expanduser() if payload.tsconfig else None
            aliases = merge_alias_tables(orchestrator.aliases_for(snapshot, tsconfig), payload.aliases)
            run = orchestrator.run(snapshot.projects, aliases)
            result = resolution_to_dict(run.resolution)
            result["plans"] = plans_to_list(run.plans)
            return result

        return await _in_executor(_run_plan)

    @app.exception_handler(FusionError)
    async def fusion_error_handler(
        _: Any, exc: FusionError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000
) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
