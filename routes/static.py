"""
Static Frontend and Fallback Routes

Registered after every API route. Serves the bundled frontend when enabled,
falling back to its entry document for client-side routes. Everything else
gets the JSON 404.
"""

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, JSONResponse

NOT_FOUND_BODY = {"ok": False, "message": "Not found"}
ENTRY_DOCUMENT = "index.html"

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content=NOT_FOUND_BODY)


def resolve_asset(dist_dir: Path, path: str) -> Path | None:
    """
    Map a request path to a file inside the dist directory.

    Args:
        dist_dir: Frontend build output directory
        path: Request path without the leading slash

    Returns:
        Path of an existing file inside dist_dir, or None
    """
    try:
        root = dist_dir.resolve()
        candidate = (root / path).resolve()
        if not candidate.is_relative_to(root) or not candidate.is_file():
            return None
    except (OSError, ValueError):
        # Embedded null bytes and overlong names
        return None
    return candidate


def create_router(serve_frontend: bool, dist_dir: Path) -> APIRouter:
    """
    Build the catch-all router.

    Args:
        serve_frontend: Whether to serve the bundled frontend
        dist_dir: Frontend build output directory

    Returns:
        APIRouter with a single catch-all route
    """
    router = APIRouter()

    @router.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def fallback(request: Request, full_path: str):
        if not serve_frontend or request.method not in ("GET", "HEAD"):
            return not_found()

        # Unknown API paths never resolve to the frontend
        if full_path == "api" or full_path.startswith("api/"):
            return not_found()

        asset = resolve_asset(dist_dir, full_path) if full_path else None
        if asset is not None:
            return FileResponse(asset)

        entry = dist_dir / ENTRY_DOCUMENT
        if not entry.is_file():
            return not_found()
        return FileResponse(entry)

    return router
