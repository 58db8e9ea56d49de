# residency_forms/settings.py
from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Local dev convenience: loads from .env if present.
# In deployment, env vars come from the runtime (no .env file).
load_dotenv()

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

DATE_FORMAT = "%m/%d/%Y"


def template_source() -> str:
    return (os.getenv("TEMPLATE_SOURCE") or "local").strip().lower()


def template_dir() -> Path:
    return Path(os.getenv("TEMPLATE_DIR") or "templates")


def template_s3_prefix() -> str:
    return os.getenv("TEMPLATE_S3_PREFIX", "templates/")


def placement_dir() -> Path:
    p = os.getenv("PLACEMENT_DIR")
    if p:
        return Path(p)
    return Path(__file__).parent / "placement" / "terms"


def font_dir() -> Path | None:
    p = os.getenv("FONT_DIR")
    return Path(p) if p else None


def default_term() -> str:
    return (os.getenv("DEFAULT_TERM") or "regular").strip()


def cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS")
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


def configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
