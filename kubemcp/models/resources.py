"""Shapes produced by the resource bridge for protocol transmission."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class ResourceSummary:
    """One row of a listing.  Built fresh per call, never cached."""

    name: str
    namespace: str
    kind: str
    status: str
    age: str = ""
    labels: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ClusterInfo:
    """Aggregated server version and object counts for one cluster."""

    version: str
    platform: str
    build_date: str
    node_count: int
    namespace_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "platform": self.platform,
            "buildDate": self.build_date,
            "nodeCount": self.node_count,
            "namespaceCount": self.namespace_count,
        }


@dataclass
class AccessReview:
    """Outcome of a self-subject access review."""

    allowed: bool
    reason: str
