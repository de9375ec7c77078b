"""REST API for open ports, stats and kill requests."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from portmonitor.service import FILTERS_BY_NAME, SORTS_BY_NAME, PortMonitorService

router = APIRouter(tags=["ports"])


class StatusOut(BaseModel):
    loading: bool
    last_updated: float | None
    count: int


def _service(request: Request) -> PortMonitorService:
    return request.app.state.service


@router.get("/ports")
async def list_ports(
    request: Request,
    search: str = "",
    filter_name: str = Query("all", alias="filter"),
    sort: str = "port",
):
    if filter_name not in FILTERS_BY_NAME or sort not in SORTS_BY_NAME:
        return JSONResponse(
            status_code=400,
            content={"detail": f"Unknown filter '{filter_name}' or sort '{sort}'"},
        )
    records = _service(request).filtered(
        search, FILTERS_BY_NAME[filter_name], SORTS_BY_NAME[sort]
    )
    return [r.to_dict() for r in records]


@router.get("/categories")
async def list_categories(request: Request, search: str = ""):
    groups = _service(request).grouped_by_category(search)
    return {
        category.value: [r.to_dict() for r in records]
        for category, records in groups.items()
    }


@router.get("/stats")
async def get_stats(request: Request):
    return asdict(_service(request).stats())


@router.get("/status", response_model=StatusOut)
async def get_status(request: Request):
    snapshot = _service(request).snapshot()
    return StatusOut(
        loading=snapshot.is_loading,
        last_updated=snapshot.last_updated,
        count=len(snapshot.records),
    )


@router.post("/refresh")
async def refresh(request: Request):
    refreshed = await run_in_threadpool(_service(request).refresh)
    return {"status": "refreshed" if refreshed else "in_progress"}


@router.post("/processes/{pid}/kill")
async def kill_process(pid: int, request: Request):
    if pid <= 0:
        return JSONResponse(
            status_code=400,
            content={"detail": "PID must be positive"},
        )
    await run_in_threadpool(_service(request).kill, pid)
    return {"status": "kill_requested", "pid": pid}
