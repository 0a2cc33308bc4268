from __future__ import annotations

import os
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = _int_env("PORT", 4000)
        schema_path = os.getenv("FORM_SCHEMA_PATH", "").strip()
        self.form_schema_path = Path(schema_path) if schema_path else None
        self.default_page_limit = max(1, _int_env("DEFAULT_PAGE_LIMIT", 5))
        self.max_page_limit = max(
            self.default_page_limit, _int_env("MAX_PAGE_LIMIT", 100)
        )
        origins = os.getenv("CORS_ORIGINS", "*")
        self.cors_origins = [o.strip() for o in origins.split(",") if o.strip()] or ["*"]
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


ALLOWED_TYPES = {"text", "textarea", "number", "select", "multi-select", "date", "switch"}
OPTION_TYPES = {"select", "multi-select"}
KEY_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"
