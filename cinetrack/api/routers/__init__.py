from fastapi import APIRouter

from cinetrack.api.routers import auth, catalog, user

router = APIRouter()
router.include_router(user.router)
router.include_router(catalog.router)
router.include_router(auth.router)

__all__ = ["router"]
