"""
Configuration utilities.
"""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from pyragent.exceptions import ConfigError
from pyragent.utils.logging import resolve_level


class Config(BaseModel):
    """Base configuration class."""

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from file (YAML or JSON)."""
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        elif path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
            return cls(**data)
        else:
            raise ConfigError(f"Unsupported config file format: {path.suffix}")


class ChunkingConfig(BaseModel):
    """Configuration for text chunking."""
    chunk_size: int = 1000
    chunk_overlap: int = 200

    @model_validator(mode="after")
    def _check_overlap(self) -> "ChunkingConfig":
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 < self.chunk_overlap < self.chunk_size:
            raise ValueError("chunk_overlap must satisfy 0 < chunk_overlap < chunk_size")
        return self


class EmbeddingConfig(BaseModel):
    """Configuration for the embedding provider."""
    provider: Literal["fake", "openai", "local"] = "fake"
    model: str | None = None
    dimension: int | None = Field(default=None, gt=0)
    api_key: str | None = None
    base_url: str | None = None
    batch_size: int = Field(default=100, gt=0)


class VectorStoreConfig(BaseModel):
    """Configuration for the vector index backend."""
    backend: Literal["memory", "chroma"] = "memory"
    collection_name: str = "pyragent"
    persist_directory: str | None = None


class RetrievalConfig(BaseModel):
    """Configuration for retrieval and context assembly."""
    top_k: int = Field(default=5, ge=1)
    max_context_chars: int = Field(default=6000, gt=0)


class CompletionConfig(BaseModel):
    """Configuration for the completion provider."""
    provider: Literal["openai", "anthropic"] = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    max_tokens: int = Field(default=1024, gt=0)
    api_key: str | None = None
    base_url: str | None = None


class AgentConfig(BaseModel):
    """Configuration for the agent orchestrator."""
    min_plan_steps: int = Field(default=3, ge=1)
    max_plan_steps: int = Field(default=5, ge=1)
    max_concurrency: int = Field(default=1, ge=1)
    deadline_seconds: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_steps(self) -> "AgentConfig":
        if self.min_plan_steps > self.max_plan_steps:
            raise ValueError("min_plan_steps must not exceed max_plan_steps")
        return self


class RAGConfig(Config):
    """Aggregated PyRAGent configuration."""
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    completion: CompletionConfig = Field(default_factory=CompletionConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        resolve_level(value)
        return value.strip().upper()


# Environment variable -> (section, field); section None means top level
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "PYRAGENT_CHUNK_SIZE": ("chunking", "chunk_size"),
    "PYRAGENT_CHUNK_OVERLAP": ("chunking", "chunk_overlap"),
    "PYRAGENT_TOP_K": ("retrieval", "top_k"),
    "PYRAGENT_MAX_CONTEXT_CHARS": ("retrieval", "max_context_chars"),
    "PYRAGENT_LOG_LEVEL": (None, "log_level"),
}


def _apply_env(data: dict, env: Mapping[str, str]) -> dict:
    for var, (section, key) in ENV_OVERRIDES.items():
        if var not in env:
            continue
        value = env[var]
        if section is None:
            data[key] = value
        else:
            data.setdefault(section, {})[key] = value
    return data


def load_config(
    path: str | Path = "pyragent.yaml",
    env: Mapping[str, str] | None = None,
) -> RAGConfig:
    """
    Load configuration from file, then apply environment overrides.

    Args:
        path: Path to config file (defaults are used if it does not exist)
        env: Environment mapping (defaults to ``os.environ``)

    Returns:
        RAGConfig instance

    Raises:
        ConfigError: If the file or an override is invalid
    """
    path = Path(path)
    env = os.environ if env is None else env

    try:
        base = RAGConfig.from_file(path) if path.exists() else RAGConfig()
        data = _apply_env(base.model_dump(), env)
        return RAGConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    except (OSError, TypeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read configuration file {path}: {e}") from e
