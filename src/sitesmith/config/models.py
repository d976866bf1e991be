"""
Pydantic models for validating sitesmith configuration files.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_SITE_FILES = ["index.html", "style.css", "script.js", "server.js", "package.json"]


class ConfigError(RuntimeError):
    """Raised when configuration files cannot be loaded or validated."""


class SitesmithConfig(BaseModel):
    """
    Top-level configuration.

    Attributes:
        workspace_dir: Directory that holds the current generated site.
        container: Blob container the sites are published to.
        public_base_url: Base URL serving the container (falls back to STATIC_SITE_URL).
        source_language: Language of the raw request given to the intent step.
        intent_llm: Model for intent detection (falls back to SITESMITH_DEFAULT_LLM).
        intent_max_tokens: Output token budget of the intent call.
        intent_temperature: Sampling temperature of the intent call.
        site_llm: Model for site generation (falls back to SITESMITH_DEFAULT_LLM).
        site_max_tokens: Output token budget of the generation call.
        site_temperature: Sampling temperature of the generation call.
        llm_timeout_seconds: Upper bound for every generation service call.
        storage_timeout_seconds: Connection/read timeout for storage calls.
        asset_max_age_seconds: Cache lifetime of non-index files.
        registry_retries: Extra attempts when the registry changes during a deploy.
        site_files: Files the generation prompt asks for, in output order.
    """
    workspace_dir: Path = Path("generated-site")
    container: str = "$web"
    public_base_url: Optional[str] = None
    source_language: str = "Tamil"
    intent_llm: Optional[str] = None
    intent_max_tokens: int = Field(default=300, gt=0)
    intent_temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    site_llm: Optional[str] = None
    site_max_tokens: int = Field(default=8000, gt=0)
    site_temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    llm_timeout_seconds: float = Field(default=120.0, gt=0)
    storage_timeout_seconds: float = Field(default=60.0, gt=0)
    asset_max_age_seconds: int = Field(default=3600, ge=0)
    registry_retries: int = Field(default=5, ge=0)
    site_files: List[str] = Field(default_factory=lambda: list(DEFAULT_SITE_FILES))

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }

    @field_validator("site_files")
    @classmethod
    def _require_site_files(cls, value: List[str]) -> List[str]:
        cleaned = [name.strip() for name in value if name and name.strip()]
        if not cleaned:
            raise ValueError("site_files must list at least one filename")
        if "index.html" not in cleaned:
            logger.warning("site_files does not include index.html; deployed sites will have no entry page")
        return cleaned

    @field_validator("public_base_url")
    @classmethod
    def _strip_base_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None


def load_config(path: Path | str | None = None) -> SitesmithConfig:
    """
    Load and validate a TOML config file into a SitesmithConfig instance.

    Args:
        path: Path to the TOML configuration file, or None for defaults.

    Returns:
        A validated SitesmithConfig object.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    if path is None:
        return SitesmithConfig()

    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("rb") as handle:
            raw_data: Dict[str, Any] = tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in configuration file: {exc}") from exc

    workspace_dir = raw_data.get("workspace_dir")
    if isinstance(workspace_dir, str) and not Path(workspace_dir).expanduser().is_absolute():
        # Relative workspace paths are relative to the config file.
        raw_data["workspace_dir"] = str(config_path.parent / workspace_dir)

    try:
        return SitesmithConfig.model_validate(raw_data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
