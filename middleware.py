"""
HTTP Middleware

Request logging, terminal error containment and request body parsing.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from utils import parse_json, parse_urlencoded

logger = logging.getLogger(__name__)
request_logger = logging.getLogger("requests")

ModelT = TypeVar("ModelT", bound=BaseModel)

INTERNAL_ERROR_BODY = {"message": "Something went wrong!"}


class MalformedBodyError(ValueError):
    """Raised when a JSON or form body cannot be decoded."""


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """
    Log method, path and timestamp of every request before handling it.

    Args:
        request: Incoming request (left untouched)
        call_next: Next middleware/route handler in the chain

    Returns:
        Response from the route handler
    """
    request_logger.info(
        f"{request.method} {request.url.path} - {datetime.now(timezone.utc).isoformat()}"
    )
    return await call_next(request)


async def error_containment_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """
    Turn any unhandled route failure into a uniform 500 response.

    The error detail is logged and never sent to the client.
    """
    try:
        return await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


async def parse_request_body(request: Request) -> None:
    """
    Parse a JSON or URL-encoded body into request.state.body.

    Attached only to routers that take a structured body; raw-body routers
    never see it. Other content types and empty bodies yield an empty dict.

    Raises:
        MalformedBodyError: If the body cannot be decoded. It is left to
            the error containment middleware like any other failure.
    """
    raw = await request.body()
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    try:
        if content_type == "application/json" or content_type.endswith("+json"):
            body: Any = parse_json(raw)
            # Top-level scalars are not accepted
            if not isinstance(body, (dict, list)):
                raise ValueError("JSON body must be an object or array")
        elif content_type == "application/x-www-form-urlencoded":
            body = parse_urlencoded(raw)
        else:
            body = {}
    except ValueError as e:
        raise MalformedBodyError(f"Malformed {content_type} body: {e}") from e

    request.state.body = body


def get_body(request: Request) -> Any:
    """
    Return the parsed body of a request.

    Raises:
        RuntimeError: If the route was registered without body parsing
    """
    body = getattr(request.state, "body", None)
    if body is None:
        raise RuntimeError(f"Request body was not parsed for {request.url.path}")
    return body


def body_as(model: type[ModelT]) -> Callable[[Request], Awaitable[ModelT]]:
    """
    Build a dependency that validates the parsed body against a model.

    Args:
        model: Pydantic model describing the expected body

    Returns:
        FastAPI dependency returning a model instance
    """

    async def dependency(request: Request) -> ModelT:
        try:
            return model.model_validate(get_body(request))
        except ValidationError as e:
            raise HTTPException(
                status_code=422,
                detail=e.errors(include_url=False, include_context=False),
            )

    return dependency
