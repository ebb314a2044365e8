"""Configuration management for the MathML accessibility service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[1]

# Load .env from the project root before reading the environment
_env_path = BASE_DIR / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


def _int_env(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on bad values."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """Application settings."""

    base_dir: Path = BASE_DIR
    log_file: Path = field(
        default_factory=lambda: Path(os.getenv("MATHML_LOG_FILE", str(BASE_DIR / "mathml_access.log")))
    )
    name: str = "mathml-access"
    version: str = "2.0.0"
    host: str = field(default_factory=lambda: os.getenv("MATHML_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _int_env("MATHML_PORT", 8000))
    log_level: str = field(default_factory=lambda: os.getenv("MATHML_LOG_LEVEL", "INFO"))
    cache_size: int = field(default_factory=lambda: _int_env("MATHML_CACHE_SIZE", 1000))
    no_image_threshold: int = field(default_factory=lambda: _int_env("MATHML_NO_IMAGE", 25))
    no_equation_text_threshold: int = field(
        default_factory=lambda: _int_env("MATHML_NO_EQUATION_TEXT", 12)
    )


settings = Settings()
