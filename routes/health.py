"""
Health Check Routes

Plain-text liveness responses for load balancers and monitoring.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

API_HEALTH_MESSAGE = "Protein Grub Hub API is running..."


def create_router(serve_frontend: bool) -> APIRouter:
    """
    Build the health router.

    Args:
        serve_frontend: When True, "/" belongs to the frontend and is not
            registered here

    Returns:
        APIRouter with the health endpoints
    """
    router = APIRouter()

    @router.get("/api", response_class=PlainTextResponse)
    async def api_health():
        return API_HEALTH_MESSAGE

    if not serve_frontend:
        @router.get("/", response_class=PlainTextResponse)
        async def root_health():
            return "API OK"

    return router
