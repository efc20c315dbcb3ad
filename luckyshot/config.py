from __future__ import annotations
import copy
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Dict, Any
import yaml

DEFAULT_RETRIEVAL: Dict[str, Any] = {
    "scan": {
        "pattern": "**/*",
        "chunk_size": 1000,
        "overlap_size": 100,
        "embed_metadata": False,
        "max_workers": 1,
    },
    "embeddings": {
        "model": "text-embedding-3-small",
        "requests_per_minute": 0,  # 0 disables throttling
    },
    "fusion": {
        "filter_similarity": 0.5,
        "count": 0,
        "bm25_scale": 0.3,
        "rag_scale": 0.7,
    },
}


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Allow extra fields from config files
    )

    openai_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")
    gemini_api_key: str = Field(default="")
    model_router_default: str = "gpt-4o-mini"  # chat model used by `ask`
    luckyshot_home: Path = Field(default_factory=Path.cwd)
    store_filename: str = ".luckyshot.file.vectors.v1"

    # Provider call logging
    log_provider_calls: bool = Field(
        False, description="Write one JSON file per embedding/completion call"
    )
    llm_log_dir: str = "llm_logs"

    # Retrieval configuration
    retrieval: Dict[str, Any] = Field(default_factory=lambda: copy.deepcopy(DEFAULT_RETRIEVAL))

    @field_validator("retrieval", mode="before")
    @classmethod
    def merge_retrieval_defaults(cls, v: Any) -> Dict[str, Any]:
        if v is None:
            return copy.deepcopy(DEFAULT_RETRIEVAL)
        if not isinstance(v, dict):
            raise ValueError("'retrieval' must be a mapping")
        return _merge(DEFAULT_RETRIEVAL, v)

    @property
    def store_path(self) -> Path:
        return Path(self.luckyshot_home) / self.store_filename


def _load_yaml(path: Path | None):
    if path and path.exists():
        with open(path, "r") as fh:
            return yaml.safe_load(fh) or {}
    return {}


@lru_cache
def get_settings(config_path: Path | None = None) -> Settings:
    file_vals = _load_yaml(config_path or Path(".luckyshot.yml"))
    return Settings(**file_vals)
