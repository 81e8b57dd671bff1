"""Read-only status endpoints: registered mungers and the last cycle."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api", tags=["status"])


@router.get("/mungers")
async def list_mungers(request: Request):
    """Registered munger names (sorted) and active ones (in dispatch order)."""
    registry = request.app.state.registry
    return {
        "registered": sorted(m.name for m in registry.get_all_registered()),
        "active": [m.name for m in registry.get_active()],
    }


@router.get("/status")
async def last_cycle(request: Request):
    tracker = request.app.state.tracker
    report = tracker.last_report
    if report is None:
        return {"status": "not_run"}
    return {
        "status": "ok",
        "cycles": tracker.cycles,
        "report": report.model_dump(mode="json"),
    }
