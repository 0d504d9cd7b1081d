"""
models.py - Router data types

RouterState, the RouteDecision returned by route(), the RouterStatus events
emitted during initialize() and the InitializeReport it returns.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .config import ConfidenceConfig


class RouterState(StrEnum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class RankedMatch(BaseModel):
    """One ranked candidate: agent name and raw dot-product score."""

    model_config = ConfigDict(frozen=True)

    agent_name: str
    score: float


class RouteDecision(BaseModel):
    """
    Result of routing a query.

    Attributes:
        agent_name: Best matching agent
        description: That agent's catalog description
        confidence: Best score mapped onto [0, 1]
        confidence_label: "high", "medium" or "low"
        ranked_matches: Ranked candidates, best first
    """

    model_config = ConfigDict(frozen=True)

    agent_name: str
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    confidence_label: str
    ranked_matches: tuple[RankedMatch, ...]

    @property
    def score(self) -> float:
        return self.ranked_matches[0].score


class RouterStatus(BaseModel):
    """Progress event emitted while initializing."""

    model_config = ConfigDict(frozen=True)

    stage: str
    message: str
    progress: int = Field(..., ge=0, le=100)


class InitializeReport(BaseModel):
    """What a successful initialize() did."""

    model_config = ConfigDict(frozen=True)

    build_id: str
    fingerprint: str
    agent_count: int
    cache_hit: bool
    cache_written: bool
    embeddings_computed: int
    duration_ms: float


def score_to_confidence(score: float, config: ConfidenceConfig) -> tuple[float, str]:
    """Clamp-and-rescale a raw score into [0, 1] and label it."""
    scaled = (score - config.floor) / (config.ceiling - config.floor)
    confidence = min(1.0, max(0.0, scaled))
    if confidence >= config.high_threshold:
        label = "high"
    elif confidence >= config.medium_threshold:
        label = "medium"
    else:
        label = "low"
    return confidence, label


__all__ = [
    "InitializeReport",
    "RankedMatch",
    "RouteDecision",
    "RouterState",
    "RouterStatus",
    "score_to_confidence",
]
