import sys
from pathlib import Path

# Ensure the mungebot/ directory is on sys.path so submodule imports resolve.
_pkg_dir = str(Path(__file__).resolve().parent)
if _pkg_dir not in sys.path:
    sys.path.insert(0, _pkg_dir)

from fastapi import FastAPI

from routes.status import router as status_router
from services.munge_loop import CycleTracker
from services.mungers.base import MungerRegistry


def create_app(registry: MungerRegistry, tracker: CycleTracker) -> FastAPI:
    """Status app for a running munge loop."""
    app = FastAPI(title="mungebot status", version="0.1.0")
    app.state.registry = registry
    app.state.tracker = tracker

    app.include_router(status_router)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    return app
