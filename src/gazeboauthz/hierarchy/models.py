"""Hierarchy records and resolved chains.

Store records mirror how the source systems keep containment data:

- ``SiteRecord.container_ref`` is a tagged reference, ``"region:10"`` or
  ``"organization:1"``.
- ``ContainerRecord`` covers both Regions and Organizations. A Region has
  ``parent_id`` set to its Organization; an Organization has none.
- Program records each point at their single container by id.

Resolved output is a ``HierarchyChain``: ordered ``HierarchyNode`` items from
the anchor upward, plus a display path joined root-first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

PATH_SEPARATOR = " → "


@dataclass(frozen=True, order=True)
class EntityRef:
    """An ``(entityType, entityId)`` pair, without namespace."""

    entity_type: str
    entity_id: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.entity_type, self.entity_id)

    def to_payload(self, namespace: str | None = None) -> dict[str, str]:
        entity_type = f"{namespace}::{self.entity_type}" if namespace else self.entity_type
        return {"entityType": entity_type, "entityId": self.entity_id}

    def __str__(self) -> str:
        return f"{self.entity_type}:{self.entity_id}"


@dataclass(frozen=True)
class HierarchyNode:
    """One resolved node with its immediate containers."""

    type: str
    id: str
    name: Optional[str] = None
    parents: tuple[EntityRef, ...] = ()

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.type, self.id)


@dataclass(frozen=True)
class HierarchyChain:
    """Ordered ancestor chain, anchor first."""

    nodes: tuple[HierarchyNode, ...]
    path: str

    @property
    def anchor(self) -> HierarchyNode:
        return self.nodes[0]

    def __len__(self) -> int:
        return len(self.nodes)


# ── Organization hierarchy records ──────────────────────


@dataclass(frozen=True)
class SiteRecord:
    site_id: str
    name: str
    container_ref: str  # "organization:X" or "region:Y"
    timezone: str = "UTC"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SiteRecord":
        return cls(
            site_id=str(data["siteId"]),
            name=data.get("name", ""),
            container_ref=str(data["companyId"]),
            timezone=data.get("timezone", "UTC"),
        )


@dataclass(frozen=True)
class ContainerRecord:
    company_id: str
    name: str
    parent_id: Optional[str] = None  # None = Organization, set = Region

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContainerRecord":
        parent = data.get("parentId")
        return cls(
            company_id=str(data["companyId"]),
            name=data.get("name", ""),
            parent_id=None if parent is None else str(parent),
        )


# ── Program hierarchy records ───────────────────────────


@dataclass(frozen=True)
class ClientRecord:
    client_id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClientRecord":
        return cls(client_id=str(data["clientId"]), name=data.get("name", ""))


@dataclass(frozen=True)
class ProgramRecord:
    program_id: str
    name: str
    client_id: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgramRecord":
        return cls(
            program_id=str(data["programId"]),
            name=data.get("name", ""),
            client_id=str(data["clientId"]),
        )


@dataclass(frozen=True)
class CohortRecord:
    cohort_id: str
    name: str
    program_id: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CohortRecord":
        return cls(
            cohort_id=str(data["cohortId"]),
            name=data.get("name", ""),
            program_id=str(data["programId"]),
        )


@dataclass(frozen=True)
class CycleRecord:
    """Time period reference data, optionally scoped to a Cohort."""

    cycle_id: str
    name: str
    cohort_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CycleRecord":
        cohort = data.get("cohortId")
        return cls(
            cycle_id=str(data["cycleId"]),
            name=data.get("name", ""),
            cohort_id=None if cohort is None else str(cohort),
        )


@dataclass(frozen=True)
class ParticipationRecord:
    """Enrollment of a Site in a Cohort."""

    participation_id: str
    cohort_id: str
    site_id: str
    name: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParticipationRecord":
        known = ("participationId", "cohortId", "siteId", "name")
        return cls(
            participation_id=str(data["participationId"]),
            cohort_id=str(data["cohortId"]),
            site_id=str(data["siteId"]),
            name=data.get("name", ""),
            metadata={k: v for k, v in data.items() if k not in known},
        )


__all__ = [
    "PATH_SEPARATOR",
    "ClientRecord",
    "CohortRecord",
    "ContainerRecord",
    "CycleRecord",
    "EntityRef",
    "HierarchyChain",
    "HierarchyNode",
    "ParticipationRecord",
    "ProgramRecord",
    "SiteRecord",
]
