"""
config.py - Router configuration

Validated view of the ``router`` settings section.

Usage:
    config = load_router_config()                    # settings.yaml layers
    config = load_router_config(prefix_scheme="e5")  # with overrides
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from agent_router.config.settings import get_settings
from agent_router.embedding.engine import PrefixScheme


class ConfidenceConfig(BaseModel):
    """Maps raw similarity scores onto [0, 1] and a coarse label."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    floor: float = 0.0
    ceiling: float = 1.0
    high_threshold: float = Field(0.75, ge=0.0, le=1.0)
    medium_threshold: float = Field(0.5, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> ConfidenceConfig:
        if self.ceiling <= self.floor:
            raise ValueError("confidence.ceiling must be greater than confidence.floor")
        if self.medium_threshold > self.high_threshold:
            raise ValueError("confidence.medium_threshold must not exceed high_threshold")
        return self


class RouterConfig(BaseModel):
    """Model identity, chunking scheme and ranking parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid", protected_namespaces=())

    model_id: str = Field("Xenova/paraphrase-multilingual-MiniLM-L12-v2", min_length=1)
    dims: int = Field(384, gt=0)
    chunking_id: str = Field("agents:v1", min_length=1)
    prefix_scheme: PrefixScheme = PrefixScheme.NONE
    top_k: int = Field(5, ge=1)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)

    @property
    def effective_chunking_id(self) -> str:
        """Chunking id used in build ids; the prefix scheme changes stored vectors."""
        if self.prefix_scheme is PrefixScheme.NONE:
            return self.chunking_id
        return f"{self.chunking_id};prefix={self.prefix_scheme.value}"

    @property
    def search_depth(self) -> int:
        """Number of agents ranked per route() call."""
        return max(5, self.top_k)


def load_router_config(**overrides: Any) -> RouterConfig:
    """Build a RouterConfig from the ``router`` settings section plus overrides."""
    values: dict[str, Any] = dict(get_settings().get_section("router") or {})
    values.update({key: value for key, value in overrides.items() if value is not None})
    return RouterConfig.model_validate(values)


__all__ = ["ConfidenceConfig", "RouterConfig", "load_router_config"]
