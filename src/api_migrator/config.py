"""Migration settings: YAML file, then API_MIGRATOR_* environment, then CLI overrides."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from api_migrator.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "API_MIGRATOR_"
DEFAULT_CACHE_DIR = Path(".migrator-cache")


class MigrationSettings(BaseModel):
    """Settings relevant to one migration run."""

    input: Optional[Path] = Field(None, description="Analysis JSON/YAML file or directory of them.")
    output: Optional[Path] = Field(None, description="Directory receiving .migrator/ artifacts.")
    max_chunk_size: int = Field(10, ge=1, description="Maximum endpoints per LLM chunk.")
    cache_dir: Path = Field(DEFAULT_CACHE_DIR, description="Content-addressed cache directory.")
    use_llm: bool = Field(True, description="LLM pipeline if true, deterministic mapper otherwise.")
    model: Optional[str] = Field(None, description="litellm model name.")
    timeout: Optional[float] = Field(None, gt=0, description="Per-call LLM timeout in seconds.")
    prompts_dir: Optional[Path] = Field(None, description="Override for the prompt templates directory.")


def _env_values() -> dict[str, Any]:
    values = {}
    for name in MigrationSettings.model_fields:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is not None and raw != "":
            values[name] = raw
    return values


def _file_values(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    # Accept both a flat mapping and one nested under "migrator:".
    section = data.get("migrator", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'migrator' section of {path} must be a mapping")
    return {key.replace("-", "_"): value for key, value in section.items()}


def load_settings(path: Path | None = None, **overrides: Any) -> MigrationSettings:
    """Build settings; overrides whose value is None are ignored."""
    values: dict[str, Any] = {}
    if path is not None:
        values.update(_file_values(Path(path)))
    values.update(_env_values())
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        settings = MigrationSettings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e
    logger.debug("Loaded settings: %s", settings.model_dump())
    return settings
