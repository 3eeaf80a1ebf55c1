"""
Route Table

Ordered mapping from URL prefix to router. Entries that need the raw
request body are installed before body parsing is attached to the rest.
"""

import logging
from dataclasses import dataclass
from typing import Literal

from fastapi import APIRouter, Depends, FastAPI

from middleware import parse_request_body

logger = logging.getLogger(__name__)

BodyMode = Literal["raw", "parsed"]


class RouteRegistrationError(RuntimeError):
    """Raised when a route entry would break the registration order."""


@dataclass(frozen=True)
class RouteEntry:
    """One URL prefix owned by one router."""

    prefix: str
    router: APIRouter
    body_mode: BodyMode = "parsed"


class RouteTable:
    """
    Ordered route registrations for the API.

    Raw-body entries must all be added before the first parsed entry is
    installed; once body parsing is attached, further raw entries are
    rejected. Within each mode, insertion order is matching order.
    """

    def __init__(self):
        self._entries: list[RouteEntry] = []
        self._parser_attached = False

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return tuple(self._entries)

    @property
    def raw_prefixes(self) -> tuple[str, ...]:
        return tuple(e.prefix for e in self._entries if e.body_mode == "raw")

    def add_raw(self, prefix: str, router: APIRouter) -> "RouteTable":
        """Register a router that reads the unparsed request body."""
        if self._parser_attached:
            raise RouteRegistrationError(
                f"Raw-body route {prefix} registered after body parsing was attached"
            )
        self._entries.append(RouteEntry(prefix, router, "raw"))
        return self

    def add(self, prefix: str, router: APIRouter) -> "RouteTable":
        """Register a router that receives a parsed JSON/form body."""
        self._entries.append(RouteEntry(prefix, router, "parsed"))
        return self

    def install(self, app: FastAPI) -> None:
        """
        Include every router in the app.

        Raw entries go first, then body parsing is attached to each parsed
        entry. After this call no raw entry can be added and the table
        cannot be installed again.

        Args:
            app: FastAPI application to register routers on
        """
        if self._parser_attached:
            raise RouteRegistrationError("Route table is already installed")

        for entry in self._entries:
            if entry.body_mode == "raw":
                app.include_router(entry.router, prefix=entry.prefix)
                logger.debug(f"Mounted {entry.prefix} (raw body)")

        self._parser_attached = True

        for entry in self._entries:
            if entry.body_mode == "parsed":
                app.include_router(
                    entry.router,
                    prefix=entry.prefix,
                    dependencies=[Depends(parse_request_body)],
                )
                logger.debug(f"Mounted {entry.prefix}")
