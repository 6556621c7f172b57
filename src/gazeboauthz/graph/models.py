"""Request and entity-graph models.

Provides:
- ``AuthorizationRequest`` / ``ResourceParents`` — validated caller input
  (camelCase on the wire, snake_case in Python).
- ``Entity`` and the closed attribute value types — one wire-level unit for
  the policy evaluator.
- ``EntityGraph`` — insertion-ordered entity set, unique by
  ``(entityType, entityId)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config import BatchConflictPolicy
from ..exceptions import AuthzError, EntityConflictError
from ..hierarchy.constants import PARENT_TYPE_MAP, EntityType
from ..hierarchy.models import EntityRef, HierarchyNode

logger = logging.getLogger(__name__)


# ── Request models ──────────────────────────────────────


class ResourceParents(BaseModel):
    """Named parent hints; a resource may declare parents from either hierarchy.

    Keys outside ``PARENT_TYPE_MAP`` are dropped at parse time.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    site: Optional[str] = None
    region: Optional[str] = None
    organization: Optional[str] = None
    participation: Optional[str] = None
    cohort: Optional[str] = None
    program: Optional[str] = None
    client: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def drop_unknown_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        unknown = sorted(k for k in data if k not in PARENT_TYPE_MAP)
        if unknown:
            logger.debug("Ignoring unknown resourceParents keys: %s", unknown)
        return {k: (None if v is None else str(v)) for k, v in data.items() if k in PARENT_TYPE_MAP}

    def edges(self) -> list[EntityRef]:
        """One parent reference per populated key."""
        edges = []
        for key, entity_type in PARENT_TYPE_MAP.items():
            value = getattr(self, key)
            if value:
                edges.append(EntityRef(entity_type, value))
        return edges


class AuthorizationRequest(BaseModel):
    """Can ``user_id`` perform ``action`` on ``(resource_type, resource_id)``?

    ``user_roles`` are claims from an already-authenticated caller. They
    become parent edges on the principal, never grants by themselves.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    user_roles: tuple[str, ...] = Field(default=(), alias="userRoles")
    action: str
    resource_type: str = Field(alias="resourceType")
    resource_id: str = Field(alias="resourceId")
    resource_created_by: Optional[str] = Field(default=None, alias="resourceCreatedBy")
    resource_parent_site: Optional[str] = Field(default=None, alias="resourceParentSite")
    resource_parents: Optional[ResourceParents] = Field(default=None, alias="resourceParents")

    @field_validator("user_roles", mode="before")
    @classmethod
    def none_roles_to_empty(cls, v: Any) -> Any:
        return () if v is None else v

    @property
    def principal(self) -> EntityRef:
        return EntityRef(EntityType.USER, self.user_id)

    @property
    def resource(self) -> EntityRef:
        return EntityRef(self.resource_type, self.resource_id)

    @property
    def parent_site(self) -> Optional[str]:
        """Site hint from ``resourceParentSite``, else ``resourceParents.site``."""
        if self.resource_parent_site:
            return self.resource_parent_site
        if self.resource_parents is not None:
            return self.resource_parents.site
        return None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ── Attribute values (closed union) ─────────────────────


@dataclass(frozen=True)
class StringValue:
    value: str

    def to_payload(self, namespace: str | None = None) -> dict[str, Any]:
        return {"string": self.value}


@dataclass(frozen=True)
class LongValue:
    value: int

    def to_payload(self, namespace: str | None = None) -> dict[str, Any]:
        return {"long": self.value}


@dataclass(frozen=True)
class BooleanValue:
    value: bool

    def to_payload(self, namespace: str | None = None) -> dict[str, Any]:
        return {"boolean": self.value}


@dataclass(frozen=True)
class EntityValue:
    """Reference to another entity, e.g. ``createdBy → User:u1``."""

    ref: EntityRef

    def to_payload(self, namespace: str | None = None) -> dict[str, Any]:
        return {"entityIdentifier": self.ref.to_payload(namespace)}


AttributeValue = Union[StringValue, LongValue, BooleanValue, EntityValue]


# ── Entities ────────────────────────────────────────────


@dataclass(frozen=True)
class Entity:
    """Identifier, typed attributes and parent edges."""

    ref: EntityRef
    attributes: dict[str, AttributeValue] = field(default_factory=dict, hash=False)
    parents: tuple[EntityRef, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return self.ref.key

    @classmethod
    def from_node(cls, node: HierarchyNode) -> "Entity":
        return cls(ref=node.ref, parents=node.parents)

    def conflicting_attributes(self, other: "Entity") -> list[str]:
        """Attribute names both entities set, to different values."""
        return sorted(
            name
            for name, value in other.attributes.items()
            if name in self.attributes and self.attributes[name] != value
        )

    def combined_with(self, other: "Entity") -> "Entity":
        """Union of both entities: own parents first, then the other's new ones.

        Attributes are unioned too; where both set a name, this entity's value is kept.
        """
        parents = self.parents + tuple(p for p in dict.fromkeys(other.parents) if p not in self.parents)
        attributes = dict(self.attributes)
        for name, value in other.attributes.items():
            attributes.setdefault(name, value)
        return Entity(self.ref, attributes, parents)

    def to_payload(self, namespace: str | None = None) -> dict[str, Any]:
        return {
            "identifier": self.ref.to_payload(namespace),
            "attributes": {name: value.to_payload(namespace) for name, value in self.attributes.items()},
            "parents": [parent.to_payload(namespace) for parent in self.parents],
        }


class EntityGraph:
    """Entities unique by ``(entityType, entityId)``, in first-insertion order.

    ``resolution_errors`` collects hierarchy failures the builder degraded
    past; they never reach the evaluator payload.
    """

    def __init__(self, entities: Iterable[Entity] = ()) -> None:
        self._entities: dict[tuple[str, str], Entity] = {}
        self.resolution_errors: list[AuthzError] = []
        for entity in entities:
            self.add(entity)

    def add(self, entity: Entity) -> bool:
        """Add unless the key is already present. Returns True if added."""
        if entity.key in self._entities:
            return False
        self._entities[entity.key] = entity
        return True

    def merge(
        self,
        other: "EntityGraph",
        *,
        policy: BatchConflictPolicy | str = BatchConflictPolicy.REJECT,
    ) -> int:
        """Merge ``other`` into this graph.

        An entity already present absorbs the incoming one: parent edges
        are unioned (existing order first) and new attribute names are
        added. One key may legitimately carry different parents per
        request, e.g. ``Region:10`` as a bare resource has none but as a
        chain node points at its Organization.

        Only an attribute set to two different values is a conflict:
        ``REJECT`` raises, ``FIRST_WINS`` keeps the existing value and
        logs a warning. Parents are unioned either way.

        Returns:
            Number of entities added under new keys.

        Raises:
            EntityConflictError: Conflict under the ``REJECT`` policy.
        """
        policy = BatchConflictPolicy(policy)
        added = 0
        for entity in other:
            existing = self._entities.get(entity.key)
            if existing is None:
                self._entities[entity.key] = entity
                added += 1
                continue
            conflicts = existing.conflicting_attributes(entity)
            if conflicts:
                if policy == BatchConflictPolicy.REJECT:
                    raise EntityConflictError(
                        f"Conflicting attribute values for entity {entity.ref}: {', '.join(conflicts)}",
                        entity_type=entity.ref.entity_type,
                        entity_id=entity.ref.entity_id,
                        attributes=conflicts,
                    )
                logger.warning(
                    "Conflicting attribute values for entity %s (%s); keeping the first",
                    entity.ref,
                    ", ".join(conflicts),
                )
            combined = existing.combined_with(entity)
            if combined != existing:
                self._entities[entity.key] = combined
        self.resolution_errors.extend(other.resolution_errors)
        return added

    def get(self, entity_type: str, entity_id: str) -> Optional[Entity]:
        return self._entities.get((entity_type, entity_id))

    def keys(self) -> list[tuple[str, str]]:
        return list(self._entities)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, EntityRef):
            key = key.key
        return key in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)

    def to_payload(self, namespace: str | None = None) -> dict[str, Any]:
        return {"entityList": [entity.to_payload(namespace) for entity in self._entities.values()]}

    def __repr__(self) -> str:
        return f"EntityGraph(entities={len(self._entities)})"


__all__ = [
    "AttributeValue",
    "AuthorizationRequest",
    "BooleanValue",
    "Entity",
    "EntityGraph",
    "EntityValue",
    "LongValue",
    "ResourceParents",
    "StringValue",
]
