"""
API v1 Router

Perfume, comment, user and notification endpoints. Write endpoints require
an authenticated identity; collection reads are public where noted.
"""

from fastapi import APIRouter
from . import comments, dashboard, notifications, perfumes, users

router = APIRouter()

router.include_router(perfumes.router, prefix="/perfumes", tags=["Perfumes"])
router.include_router(
    comments.router, prefix="/perfumes/{perfumeId}/comments", tags=["Comments"]
)
router.include_router(comments.router_global, prefix="/comments", tags=["Comments"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/perfumes",
            "/perfumes/{perfumeId}/comments",
            "/comments",
            "/users",
            "/notifications",
            "/dashboard",
        ],
    }
