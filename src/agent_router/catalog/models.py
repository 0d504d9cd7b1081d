"""
Catalog Models - Agent descriptors and the loaded catalog.

The catalog source returns either ``{"agents": [...], ...metadata}`` or a bare
list of agents. The raw document is kept verbatim for fingerprinting; the
agents are parsed into strict, immutable AgentDescriptor records.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_router.errors import CatalogLoadError


class AgentDescriptor(BaseModel):
    """A routable agent: unique name, description and skill tags."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Unique, stable agent identifier")
    description: str = Field("", description="What the agent does")
    skills: tuple[str, ...] = Field(default_factory=tuple, description="Ordered skill tags")

    @property
    def search_text(self) -> str:
        """Text embedded for this agent."""
        return f"{self.name}: {self.description} Skills: {', '.join(self.skills)}"


class AgentCatalog(BaseModel):
    """The full catalog as loaded from a source."""

    model_config = ConfigDict(frozen=True)

    document: Any
    agents: tuple[AgentDescriptor, ...]

    def __len__(self) -> int:
        return len(self.agents)

    @property
    def names(self) -> list[str]:
        return [agent.name for agent in self.agents]

    def get(self, name: str) -> AgentDescriptor | None:
        for agent in self.agents:
            if agent.name == name:
                return agent
        return None


def parse_catalog(document: Any, source: str | None = None) -> AgentCatalog:
    """Validate a catalog document and extract its agents.

    Raises:
        CatalogLoadError: unrecognized shape, invalid agent record or duplicate names.
    """
    if isinstance(document, dict):
        if "agents" not in document:
            raise CatalogLoadError("Catalog object has no 'agents' field", source=source)
        raw_agents = document["agents"]
    elif isinstance(document, list):
        raw_agents = document
    else:
        raise CatalogLoadError(
            f"Catalog must be an object or a list, got {type(document).__name__}",
            source=source,
        )

    if not isinstance(raw_agents, list):
        raise CatalogLoadError("Catalog 'agents' must be a list", source=source)

    agents: list[AgentDescriptor] = []
    seen: set[str] = set()
    for position, raw in enumerate(raw_agents):
        if not isinstance(raw, dict):
            raise CatalogLoadError(
                f"Agent #{position} must be an object", source=source, position=position
            )
        try:
            agent = AgentDescriptor.model_validate(raw)
        except ValidationError as e:
            raise CatalogLoadError(
                f"Agent #{position} is invalid: {e.errors(include_url=False)}",
                source=source,
                position=position,
            ) from e
        if agent.name in seen:
            raise CatalogLoadError(
                f"Duplicate agent name: {agent.name}", source=source, position=position
            )
        seen.add(agent.name)
        agents.append(agent)

    return AgentCatalog(document=document, agents=tuple(agents))


__all__ = ["AgentCatalog", "AgentDescriptor", "parse_catalog"]
