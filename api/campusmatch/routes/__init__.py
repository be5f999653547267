from fastapi import APIRouter, FastAPI

from .matches import router as matches_router
from .recommendations import router as recommendations_router
from .swipes import router as swipes_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(recommendations_router, tags=["recommendations"])
    app.include_router(swipes_router, tags=["swipes"])
    app.include_router(matches_router, tags=["matches"])


__all__ = ["include_modular_routers", "APIRouter"]
