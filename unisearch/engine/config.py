"""Configuration management for unisearch."""

from pathlib import Path
from typing import List, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from .algorithms import algorithm_names, get_algorithm
from .history import STORAGE_KEY


class SearchConfig(BaseModel):
    """Search engine configuration."""

    algorithms: List[str] = Field(default_factory=algorithm_names)
    match_field: str = "title"
    max_suggestions: int = 10
    enable_operators: bool = True
    enable_3d: bool = False
    history_dir: Path = Path("~/.local/share/unisearch")
    storage_key: str = STORAGE_KEY
    log_level: str = "INFO"

    @field_validator("algorithms")
    @classmethod
    def validate_algorithms(cls, v: List[str]) -> List[str]:
        for name in v:
            get_algorithm(name)
        if not v:
            raise ValueError("at least one search algorithm must be enabled")
        return v

    @field_validator("max_suggestions")
    @classmethod
    def validate_max_suggestions(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_suggestions must be at least 1")
        return v

    @field_validator("history_dir")
    @classmethod
    def expand_history_dir(cls, v: Path) -> Path:
        return Path(v).expanduser()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "SearchConfig":
        """Load configuration from YAML file."""
        if config_path is None:
            candidates = [
                Path("unisearch.yaml"),
                Path.home() / ".config" / "unisearch" / "config.yaml",
                Path("/etc/unisearch/config.yaml"),
            ]
            for candidate in candidates:
                if candidate.exists():
                    config_path = candidate
                    break
            else:
                raise FileNotFoundError(
                    f"No config file found. Searched: {[str(c) for c in candidates]}"
                )

        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False)
