"""Configuration loader for the exam crawler pipeline."""

import json
import re
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = "JaLearn-Crawler/1.0 (Educational Research)"


class FetchSettings(BaseModel):
    """HTTP settings shared by robots, page and file requests."""

    timeout: float = Field(default=30.0, gt=0)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    robots_agent: str = Field(default="*")
    headers: dict[str, str] = Field(default_factory=dict)


class RetryPolicy(BaseModel):
    """Retry configuration for robots.txt transport failures."""

    max_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=2.0, ge=0)


class OutputConfig(BaseModel):
    """Output configuration."""

    storage_path: str = Field(default="./output/results.jsonl")
    files_dir: Optional[str] = Field(default=None)


class PipelineConfig(BaseModel):
    """Full configuration of one crawl run."""

    source_id: str = Field(default="")
    base_url: str
    crawl_pattern: Optional[str] = None
    link_selector: Optional[str] = None
    file_types: list[str] = Field(default_factory=lambda: ["pdf"])
    max_depth: int = Field(default=2, ge=0)
    crawl_delay: int = Field(default=1000, ge=0, description="Milliseconds between requests")
    max_pages: Optional[int] = Field(default=None, ge=1)
    max_files: Optional[int] = Field(default=None, ge=1)
    max_errors: int = Field(default=10, ge=0)
    image_text_threshold: int = Field(default=100, ge=0)
    pdf_backend: Literal["pypdf", "none"] = Field(
        default="pypdf", description="\"none\" keeps downloaded PDFs without text extraction"
    )
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    output_config: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("file_types")
    @classmethod
    def _normalize_file_types(cls, value: list[str]) -> list[str]:
        return [t.strip().lstrip(".").lower() for t in value if t.strip()]

    @field_validator("crawl_pattern")
    @classmethod
    def _check_crawl_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"Invalid crawl_pattern: {e}") from e
        return value or None

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PipelineConfig":
        """Load config from YAML file."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipelineConfig":
        """Load config from dictionary."""
        return cls(**data)


def load_config(path: str | Path) -> PipelineConfig:
    """Load configuration from file (YAML or JSON)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        content = f.read()

    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(content) or {}
    else:
        data = json.loads(content)

    return PipelineConfig.from_dict(data)
