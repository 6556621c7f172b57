"""Containment hierarchies and their resolution.

Defines:
- EntityType / ContainerKind / Roles: closed vocabularies
- HierarchyStore: injectable record lookup (fixture or Redis)
- HierarchyResolver: anchor id → ordered ancestor chain
"""

from .constants import (
    DEFAULT_ROLES,
    DEFAULT_SYSTEM_ROOT_ID,
    PARENT_TYPE_MAP,
    PROGRAM_ANCHOR_KEYS,
    ContainerKind,
    EntityType,
    Roles,
)
from .models import (
    ClientRecord,
    CohortRecord,
    ContainerRecord,
    CycleRecord,
    EntityRef,
    HierarchyChain,
    HierarchyNode,
    ParticipationRecord,
    ProgramRecord,
    SiteRecord,
)
from .resolver import (
    HierarchyResolver,
    StoreHierarchyResolver,
    create_resolver,
    parse_container_ref,
)
from .store import (
    HierarchyStore,
    InMemoryHierarchyStore,
    RedisHierarchyStore,
    create_hierarchy_store,
)

__all__ = [
    "DEFAULT_ROLES",
    "DEFAULT_SYSTEM_ROOT_ID",
    "PARENT_TYPE_MAP",
    "PROGRAM_ANCHOR_KEYS",
    "ClientRecord",
    "CohortRecord",
    "ContainerKind",
    "ContainerRecord",
    "CycleRecord",
    "EntityRef",
    "EntityType",
    "HierarchyChain",
    "HierarchyNode",
    "HierarchyResolver",
    "HierarchyStore",
    "InMemoryHierarchyStore",
    "ParticipationRecord",
    "ProgramRecord",
    "RedisHierarchyStore",
    "Roles",
    "SiteRecord",
    "StoreHierarchyResolver",
    "create_hierarchy_store",
    "create_resolver",
    "parse_container_ref",
]
