"""
Runtime configuration read from the environment (and a local .env file).

Every knob has a safe default so the validator runs with zero configuration:
no OCR, no LLM, the bundled forms registry.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_REGISTRY_PATH = Path(__file__).parent / "forms_registry.json"


@dataclass(frozen=True)
class Settings:
    forms_registry_path: Path = DEFAULT_REGISTRY_PATH
    ocr_enabled: bool = False
    ocr_language: str = "eng"
    ocr_resolution: int = 300
    openai_api_key: str | None = None
    openai_model: str = "gpt-5"
    max_upload_bytes: int = 10_485_760  # 10 MB


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Build Settings from os.environ after loading .env (if present)."""
    load_dotenv()

    registry_path = os.environ.get("FORMS_REGISTRY_PATH")
    return Settings(
        forms_registry_path=Path(registry_path) if registry_path else DEFAULT_REGISTRY_PATH,
        ocr_enabled=_env_flag("OCR_ENABLED"),
        ocr_language=os.environ.get("OCR_LANGUAGE", "eng"),
        ocr_resolution=int(os.environ.get("OCR_RESOLUTION", "300")),
        openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
        openai_model=os.environ.get("OPENAI_MODEL", "gpt-5"),
        max_upload_bytes=int(os.environ.get("MAX_UPLOAD_BYTES", "10485760")),
    )
