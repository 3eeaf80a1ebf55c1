"""
Configuration Module

Loads environment settings once at startup into a single immutable Settings
object. The same object feeds CORS, Socket.io and every route module.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Server Configuration
DEFAULT_PORT = 3000

# Origins allowed to make credentialed cross-origin requests
DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:4200",
    "http://localhost:4201",
    "http://localhost:52023",
    "https://proteinsgrubhub.vercel.app",
)

# Bundled frontend build output
DEFAULT_FRONTEND_DIST_DIR = Path(__file__).resolve().parent.parent / "frontend" / "dist" / "frontend"

# MongoDB
DEFAULT_MONGODB_URI = "mongodb://localhost:27017"
DEFAULT_MONGODB_DB = "protein_grub_hub"

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


class Settings(BaseModel):
    """Process-wide settings, read once and never mutated."""

    model_config = ConfigDict(frozen=True)

    port: int = DEFAULT_PORT
    allowed_origins: tuple[str, ...] = DEFAULT_ALLOWED_ORIGINS
    serve_frontend: bool = False
    frontend_dist_dir: Path = DEFAULT_FRONTEND_DIST_DIR
    mongodb_uri: str = DEFAULT_MONGODB_URI
    mongodb_db: str = DEFAULT_MONGODB_DB
    stripe_webhook_secret: Optional[str] = None
    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    razorpay_webhook_secret: Optional[str] = None
    log_level: str = "INFO"


def _parse_origins(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return DEFAULT_ALLOWED_ORIGINS
    return tuple(origin.strip() for origin in value.split(",") if origin.strip())


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Values from a local .env file are loaded first; real environment
    variables take precedence over it.

    Returns:
        Frozen Settings instance
    """
    load_dotenv()

    return Settings(
        port=int(os.environ.get("PORT") or DEFAULT_PORT),
        allowed_origins=_parse_origins(os.environ.get("CORS_ORIGINS")),
        # Only the exact string 'true' enables the frontend
        serve_frontend=os.environ.get("SERVE_FRONTEND") == "true",
        frontend_dist_dir=Path(os.environ.get("FRONTEND_DIST_DIR") or DEFAULT_FRONTEND_DIST_DIR),
        mongodb_uri=os.environ.get("MONGODB_URI", DEFAULT_MONGODB_URI),
        mongodb_db=os.environ.get("MONGODB_DB", DEFAULT_MONGODB_DB),
        stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET"),
        razorpay_key_id=os.environ.get("RAZORPAY_KEY_ID"),
        razorpay_key_secret=os.environ.get("RAZORPAY_KEY_SECRET"),
        razorpay_webhook_secret=os.environ.get("RAZORPAY_WEBHOOK_SECRET"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging with a single stream handler.

    Args:
        level: Log level name, falls back to INFO if unknown
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
