"""Hierarchy resolution: walk containment records up to the System root.

Provides:
- ``HierarchyResolver``: the capability the graph builder depends on.
- ``StoreHierarchyResolver``: resolves against any ``HierarchyStore``.
- ``parse_container_ref()``: split a tagged ``"region:10"`` reference.
- ``create_resolver()``: resolver over the configured store.

Depth is fixed by the data model (Site → Region → Organization and
Participation → Cohort → Program → Client), so there is no recursion and
no cycle to guard against. Nothing is cached: membership can change between
requests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

from ..exceptions import MalformedReferenceError, NotFoundError
from .constants import DEFAULT_SYSTEM_ROOT_ID, ContainerKind, EntityType
from .models import PATH_SEPARATOR, ContainerRecord, EntityRef, HierarchyChain, HierarchyNode
from .store import HierarchyStore, create_hierarchy_store

if TYPE_CHECKING:
    from ..config import AuthzConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class HierarchyResolver(Protocol):
    """Resolve an anchor entity into its ordered ancestor chain."""

    async def resolve_site(self, site_id: str) -> HierarchyChain: ...

    async def resolve_program(self, entity_type: str, entity_id: str) -> HierarchyChain: ...

    async def aclose(self) -> None: ...


def parse_container_ref(container_ref: str) -> tuple[str, str]:
    """Split ``"organization:1"`` / ``"region:10"`` into ``(kind, id)``.

    Raises:
        MalformedReferenceError: Tag is not organization/region, or id is empty.
    """
    kind, sep, container_id = container_ref.partition(":")
    if not sep or kind not in ContainerKind.ALL or not container_id:
        raise MalformedReferenceError(
            f'Invalid container reference: {container_ref!r}. Expected "organization:X" or "region:Y"',
            container_ref=container_ref,
        )
    return kind, container_id


def _display(name: Optional[str], fallback: str) -> str:
    return name or fallback


class StoreHierarchyResolver:
    """Resolver backed by a ``HierarchyStore``.

    Args:
        store: Record source (fixture, Redis, or any protocol implementation).
        system_root_id: Id of the ``System`` entity that roots both hierarchies.
    """

    def __init__(self, store: HierarchyStore, *, system_root_id: str = DEFAULT_SYSTEM_ROOT_ID) -> None:
        self._store = store
        self._root = EntityRef(EntityType.SYSTEM, system_root_id)

    @property
    def store(self) -> HierarchyStore:
        return self._store

    @property
    def root(self) -> EntityRef:
        return self._root

    async def aclose(self) -> None:
        await self._store.aclose()

    # ── Organization hierarchy ──────────────────────────

    async def resolve_site(self, site_id: str) -> HierarchyChain:
        """Resolve a Site up to its Organization.

        Examples:
            Site in a Region:  Site:52 → Region:10 → Organization:1
            Site in an Org:    Site:53 → Organization:1

        Raises:
            NotFoundError: Site, Region or Organization record is missing.
            MalformedReferenceError: Container tag is invalid, a Region has no
                parent Organization, or an Organization has a parent.
        """
        site = await self._store.get_site(site_id)
        if site is None:
            raise NotFoundError(EntityType.SITE, site_id)

        kind, container_id = parse_container_ref(site.container_ref)

        if kind == ContainerKind.REGION:
            region = await self._require_container(EntityType.REGION, container_id)
            if region.parent_id is None:
                raise MalformedReferenceError(
                    f"Region {container_id} has no parent organization",
                    region_id=container_id,
                    site_id=site_id,
                )
            org = await self._require_container(EntityType.ORGANIZATION, region.parent_id)
            self._check_root(org)

            nodes = (
                HierarchyNode(
                    EntityType.SITE, site_id, site.name, (EntityRef(EntityType.REGION, container_id),)
                ),
                HierarchyNode(
                    EntityType.REGION, container_id, region.name, (EntityRef(EntityType.ORGANIZATION, org.company_id),)
                ),
                HierarchyNode(EntityType.ORGANIZATION, org.company_id, org.name, (self._root,)),
            )
            names = (
                _display(org.name, org.company_id),
                _display(region.name, container_id),
                _display(site.name, site_id),
            )
        else:
            org = await self._require_container(EntityType.ORGANIZATION, container_id)
            self._check_root(org)

            nodes = (
                HierarchyNode(
                    EntityType.SITE, site_id, site.name, (EntityRef(EntityType.ORGANIZATION, container_id),)
                ),
                HierarchyNode(EntityType.ORGANIZATION, container_id, org.name, (self._root,)),
            )
            names = (_display(org.name, container_id), _display(site.name, site_id))

        chain = HierarchyChain(nodes=nodes, path=PATH_SEPARATOR.join(names))
        logger.debug("Resolved site %s: %s", site_id, chain.path)
        return chain

    async def _require_container(self, entity_type: str, company_id: str) -> ContainerRecord:
        record = await self._store.get_container(company_id)
        if record is None:
            raise NotFoundError(entity_type, company_id)
        return record

    @staticmethod
    def _check_root(org: ContainerRecord) -> None:
        if not org.is_root:
            raise MalformedReferenceError(
                f"Organization {org.company_id} has a parent ({org.parent_id}); organizations must be roots",
                organization_id=org.company_id,
            )

    # ── Program hierarchy ───────────────────────────────

    async def resolve_program(self, entity_type: str, entity_id: str) -> HierarchyChain:
        """Resolve a program-side entity up to its Client.

        Chains:
            Participation → Cohort → Program → Client
            Cycle → Cohort → Program → Client   (or Cycle alone when unscoped)

        Raises:
            ValueError: ``entity_type`` is not part of the program hierarchy.
            NotFoundError: Any record on the way up is missing.
        """
        if entity_type not in EntityType.PROGRAM_HIERARCHY:
            raise ValueError(f"Not a program hierarchy type: {entity_type}")

        nodes: list[HierarchyNode] = []
        names: list[str] = []
        current: Optional[EntityRef] = EntityRef(entity_type, entity_id)

        while current is not None:
            name, parent = await self._program_step(current)
            nodes.append(HierarchyNode(current.entity_type, current.entity_id, name, (parent or self._root,)))
            names.append(_display(name, current.entity_id))
            current = parent

        chain = HierarchyChain(nodes=tuple(nodes), path=PATH_SEPARATOR.join(reversed(names)))
        logger.debug("Resolved %s %s: %s", entity_type, entity_id, chain.path)
        return chain

    async def _program_step(self, ref: EntityRef) -> tuple[str, Optional[EntityRef]]:
        """Return ``(name, parent)`` for one program node; parent None means the root."""
        entity_type, entity_id = ref.key

        if entity_type == EntityType.PARTICIPATION:
            participation = await self._store.get_participation(entity_id)
            if participation is None:
                raise NotFoundError(entity_type, entity_id)
            return participation.name, EntityRef(EntityType.COHORT, participation.cohort_id)

        if entity_type == EntityType.CYCLE:
            cycle = await self._store.get_cycle(entity_id)
            if cycle is None:
                raise NotFoundError(entity_type, entity_id)
            parent = EntityRef(EntityType.COHORT, cycle.cohort_id) if cycle.cohort_id else None
            return cycle.name, parent

        if entity_type == EntityType.COHORT:
            cohort = await self._store.get_cohort(entity_id)
            if cohort is None:
                raise NotFoundError(entity_type, entity_id)
            return cohort.name, EntityRef(EntityType.PROGRAM, cohort.program_id)

        if entity_type == EntityType.PROGRAM:
            program = await self._store.get_program(entity_id)
            if program is None:
                raise NotFoundError(entity_type, entity_id)
            return program.name, EntityRef(EntityType.CLIENT, program.client_id)

        client = await self._store.get_client(entity_id)
        if client is None:
            raise NotFoundError(entity_type, entity_id)
        return client.name, None


def create_resolver(config: "AuthzConfig") -> StoreHierarchyResolver:
    """Resolver over the store selected by configuration."""
    return StoreHierarchyResolver(create_hierarchy_store(config), system_root_id=config.system_root_id)


__all__ = [
    "HierarchyResolver",
    "StoreHierarchyResolver",
    "create_resolver",
    "parse_container_ref",
]
