"""Entity graph construction for single and batch authorization requests.

For one request the graph holds, in order:

1. the principal ``User`` with one ``Role`` parent per claimed role,
2. the resource with its ``createdBy`` attribute and parent edges,
3. every node of the resolved organization chain (Site → Region → Organization),
4. every node of the resolved program chain (Participation → Cohort → Program → Client),
5. one ``Role`` entity per known role.

Missing hierarchy records degrade the graph instead of failing it: the
principal, resource and role entities are always present, so direct and
creator grants still evaluate. Corrupt hierarchy data propagates.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from ..config import BatchConflictPolicy
from ..exceptions import HierarchyError, MalformedReferenceError
from ..hierarchy.constants import DEFAULT_ROLES, PARENT_TYPE_MAP, PROGRAM_ANCHOR_KEYS, EntityType
from ..hierarchy.models import EntityRef, HierarchyChain
from ..hierarchy.resolver import HierarchyResolver, StoreHierarchyResolver
from ..hierarchy.store import InMemoryHierarchyStore
from .models import AuthorizationRequest, Entity, EntityGraph, EntityValue, StringValue

logger = logging.getLogger(__name__)

CREATED_BY_ATTRIBUTE = "createdBy"
ROLE_NAME_ATTRIBUTE = "name"


@dataclass(frozen=True)
class DecisionRequest:
    """Principal/action/resource triple, taken from the request, never from the graph."""

    principal: EntityRef
    action: EntityRef
    resource: EntityRef

    @classmethod
    def from_request(cls, request: AuthorizationRequest) -> "DecisionRequest":
        return cls(
            principal=request.principal,
            action=EntityRef(EntityType.ACTION, request.action),
            resource=request.resource,
        )

    def to_payload(self, namespace: str | None = None) -> dict:
        action = self.action.to_payload(namespace)
        return {
            "principal": self.principal.to_payload(namespace),
            "action": {"actionType": action["entityType"], "actionId": action["entityId"]},
            "resource": self.resource.to_payload(namespace),
        }


@dataclass(frozen=True)
class BatchPayload:
    """Per-request decision triples plus one shared, merged graph."""

    requests: tuple[DecisionRequest, ...]
    graph: EntityGraph


class EntityGraphBuilder:
    """Builds entity graphs for the policy evaluator.

    Args:
        resolver: Hierarchy resolver. Defaults to one over the bundled fixture.
        roles: Closed set of known role names; one Role entity each.
        conflict_policy: How ``build_batch`` treats conflicting attribute values
            under one key.

    Example::

        builder = EntityGraphBuilder(roles=config.roles)
        graph = await builder.build(AuthorizationRequest(
            userId="u1", userRoles=["viewer"], action="View",
            resourceType="Project", resourceId="p1",
            resourceParentSite="portland-manufacturing",
        ))
        graph.to_payload("Gazebo")  # {"entityList": [...]}
    """

    def __init__(
        self,
        resolver: HierarchyResolver | None = None,
        *,
        roles: Sequence[str] = DEFAULT_ROLES,
        conflict_policy: BatchConflictPolicy | str = BatchConflictPolicy.REJECT,
    ) -> None:
        self._resolver = resolver or StoreHierarchyResolver(InMemoryHierarchyStore())
        self._roles = tuple(dict.fromkeys(roles))
        self._conflict_policy = BatchConflictPolicy(conflict_policy)

    @property
    def roles(self) -> tuple[str, ...]:
        return self._roles

    @property
    def resolver(self) -> HierarchyResolver:
        return self._resolver

    # ── Single request ──────────────────────────────────

    async def build(self, request: AuthorizationRequest) -> EntityGraph:
        """Build the deduplicated entity graph for one request.

        Raises:
            MalformedReferenceError: Stored hierarchy data is corrupt.
        """
        graph = EntityGraph()

        site_anchor = self._site_anchor(request)
        program_anchor = self._program_anchor(request)
        site_chain, program_chain = await asyncio.gather(
            self._resolve(graph, site_anchor, lambda a: self._resolver.resolve_site(a.entity_id)),
            self._resolve(graph, program_anchor, lambda a: self._resolver.resolve_program(a.entity_type, a.entity_id)),
        )

        graph.add(self._principal_entity(request))
        graph.add(self._resource_entity(request, (site_chain, program_chain)))

        for chain in (site_chain, program_chain):
            if chain is not None:
                for node in chain.nodes:
                    graph.add(Entity.from_node(node))

        for role in self._roles:
            graph.add(Entity(EntityRef(EntityType.ROLE, role), {ROLE_NAME_ATTRIBUTE: StringValue(role)}))

        logger.debug(
            "Built graph for %s %s on %s: %d entities",
            request.principal,
            request.action,
            request.resource,
            len(graph),
        )
        return graph

    @staticmethod
    def _principal_entity(request: AuthorizationRequest) -> Entity:
        parents = tuple(EntityRef(EntityType.ROLE, role) for role in dict.fromkeys(request.user_roles))
        return Entity(request.principal, parents=parents)

    @staticmethod
    def _resource_entity(
        request: AuthorizationRequest,
        chains: Iterable[Optional[HierarchyChain]],
    ) -> Entity:
        resource = request.resource
        parents: list[EntityRef] = []

        def append(ref: EntityRef) -> None:
            if ref != resource and ref not in parents:
                parents.append(ref)

        # The resource is itself a chain anchor: its stored parents come first.
        for chain in chains:
            if chain is not None and chain.anchor.ref == resource:
                for ref in chain.anchor.parents:
                    append(ref)

        if request.resource_parent_site and request.resource_type != EntityType.SITE:
            append(EntityRef(EntityType.SITE, request.resource_parent_site))

        if request.resource_parents is not None:
            for ref in request.resource_parents.edges():
                append(ref)

        attributes = {}
        if request.resource_created_by:
            attributes[CREATED_BY_ATTRIBUTE] = EntityValue(EntityRef(EntityType.USER, request.resource_created_by))

        return Entity(resource, attributes, tuple(parents))

    # ── Anchors & resolution ────────────────────────────

    @staticmethod
    def _site_anchor(request: AuthorizationRequest) -> Optional[EntityRef]:
        if request.resource_type == EntityType.SITE:
            return request.resource
        site_id = request.parent_site
        return EntityRef(EntityType.SITE, site_id) if site_id else None

    @staticmethod
    def _program_anchor(request: AuthorizationRequest) -> Optional[EntityRef]:
        if request.resource_type in EntityType.PROGRAM_HIERARCHY:
            return request.resource
        if request.resource_parents is None:
            return None
        for key in PROGRAM_ANCHOR_KEYS:
            value = getattr(request.resource_parents, key)
            if value:
                return EntityRef(PARENT_TYPE_MAP[key], value)
        return None

    @staticmethod
    async def _resolve(
        graph: EntityGraph,
        anchor: Optional[EntityRef],
        resolve: Callable[[EntityRef], Awaitable[HierarchyChain]],
    ) -> Optional[HierarchyChain]:
        """Resolve ``anchor``; missing data is recorded on the graph, corrupt data raises."""
        if anchor is None:
            return None
        try:
            return await resolve(anchor)
        except MalformedReferenceError:
            raise
        except HierarchyError as e:
            logger.warning(
                "Failed to resolve hierarchy for %s, continuing without it: [%s] %s",
                anchor,
                e.code,
                e.message,
            )
            graph.resolution_errors.append(e)
            return None

    # ── Batch ───────────────────────────────────────────

    async def build_batch(self, requests: Sequence[AuthorizationRequest]) -> BatchPayload:
        """Build one merged graph for many requests.

        Per-request graphs are built concurrently, then merged sequentially in
        request order; parent edges of a shared key are unioned.

        Raises:
            EntityConflictError: Two requests set one attribute to different values and
                the conflict policy is ``reject``.
            MalformedReferenceError: Stored hierarchy data is corrupt.
        """
        graphs = await asyncio.gather(*(self.build(request) for request in requests))

        merged = EntityGraph()
        for graph in graphs:
            merged.merge(graph, policy=self._conflict_policy)

        logger.debug("Built batch graph for %d requests: %d entities", len(requests), len(merged))
        return BatchPayload(
            requests=tuple(DecisionRequest.from_request(request) for request in requests),
            graph=merged,
        )


__all__ = [
    "BatchPayload",
    "DecisionRequest",
    "EntityGraphBuilder",
]
