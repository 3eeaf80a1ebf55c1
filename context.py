"""
Application Context

Shared collaborators built once at startup and handed to every router
factory that needs them.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from config import Settings

if TYPE_CHECKING:
    from routes.delivery_socket import DeliverySocketHandler


@dataclass(frozen=True)
class AppContext:
    """Settings, database handle and the delivery socket handler."""

    settings: Settings
    db: Any
    delivery: "DeliverySocketHandler"
