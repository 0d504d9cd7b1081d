"""
agent_router.router - Semantic agent routing.
"""

from .config import ConfidenceConfig, RouterConfig, load_router_config
from .models import (
    InitializeReport,
    RankedMatch,
    RouteDecision,
    RouterState,
    RouterStatus,
    score_to_confidence,
)
from .router import AgentRouter

__all__ = [
    "AgentRouter",
    "ConfidenceConfig",
    "InitializeReport",
    "RankedMatch",
    "RouteDecision",
    "RouterConfig",
    "RouterState",
    "RouterStatus",
    "load_router_config",
    "score_to_confidence",
]
