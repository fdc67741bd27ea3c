from fastapi import APIRouter, FastAPI

from .discover import router as discover_router
from .match import router as match_router
from .profile import router as profile_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(profile_router, tags=["users"])
    app.include_router(match_router, tags=["matches"])
    app.include_router(discover_router, tags=["discover"])


__all__ = ["include_modular_routers", "APIRouter"]
