"""Hierarchy record lookup.

The resolver depends only on the ``HierarchyStore`` protocol: read-only,
lookup-by-id, ``None`` when a record is absent. Two implementations ship:

- ``InMemoryHierarchyStore`` — dict-backed, seeded from ``fixtures`` by default.
- ``RedisHierarchyStore`` — JSON records under ``{prefix}:{kind}:{id}`` in a
  shared Redis, read through ``redis.asyncio``.

``create_hierarchy_store(config)`` picks one from ``AuthzConfig.hierarchy_backend``.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, TypeVar, runtime_checkable

from redis.exceptions import RedisError

from ..exceptions import ConfigurationError, HierarchyError, MalformedReferenceError
from . import fixtures
from .models import (
    ClientRecord,
    CohortRecord,
    ContainerRecord,
    CycleRecord,
    ParticipationRecord,
    ProgramRecord,
    SiteRecord,
)

if TYPE_CHECKING:
    from ..config import AuthzConfig

logger = logging.getLogger(__name__)

_R = TypeVar("_R")


@runtime_checkable
class HierarchyStore(Protocol):
    """Read-only containment record lookup."""

    async def get_site(self, site_id: str) -> Optional[SiteRecord]: ...

    async def get_container(self, company_id: str) -> Optional[ContainerRecord]: ...

    async def get_client(self, client_id: str) -> Optional[ClientRecord]: ...

    async def get_program(self, program_id: str) -> Optional[ProgramRecord]: ...

    async def get_cohort(self, cohort_id: str) -> Optional[CohortRecord]: ...

    async def get_cycle(self, cycle_id: str) -> Optional[CycleRecord]: ...

    async def get_participation(self, participation_id: str) -> Optional[ParticipationRecord]: ...

    async def aclose(self) -> None: ...


def _parse(kind: str, record_id: str, data: dict[str, Any], factory: Callable[[dict[str, Any]], _R]) -> _R:
    try:
        return factory(data)
    except (KeyError, TypeError) as e:
        raise MalformedReferenceError(
            f"Invalid {kind} record {record_id!r}: {e}",
            kind=kind,
            record_id=record_id,
        ) from e


class InMemoryHierarchyStore:
    """Dict-backed store.

    Args:
        sites, companies, clients, programs, cohorts, cycles, participations:
            Raw records keyed by id. Any mapping left as None falls back to
            the bundled fixture data.
    """

    def __init__(
        self,
        *,
        sites: dict[str, dict[str, Any]] | None = None,
        companies: dict[str, dict[str, Any]] | None = None,
        clients: dict[str, dict[str, Any]] | None = None,
        programs: dict[str, dict[str, Any]] | None = None,
        cohorts: dict[str, dict[str, Any]] | None = None,
        cycles: dict[str, dict[str, Any]] | None = None,
        participations: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self._sites = fixtures.SITES if sites is None else sites
        self._companies = fixtures.COMPANIES if companies is None else companies
        self._clients = fixtures.CLIENTS if clients is None else clients
        self._programs = fixtures.PROGRAMS if programs is None else programs
        self._cohorts = fixtures.COHORTS if cohorts is None else cohorts
        self._cycles = fixtures.CYCLES if cycles is None else cycles
        self._participations = fixtures.PARTICIPATIONS if participations is None else participations

    @staticmethod
    def _lookup(
        table: dict[str, dict[str, Any]],
        kind: str,
        record_id: str,
        factory: Callable[[dict[str, Any]], _R],
    ) -> Optional[_R]:
        data = table.get(record_id)
        if data is None:
            return None
        return _parse(kind, record_id, data, factory)

    async def get_site(self, site_id: str) -> Optional[SiteRecord]:
        return self._lookup(self._sites, "site", site_id, SiteRecord.from_dict)

    async def get_container(self, company_id: str) -> Optional[ContainerRecord]:
        return self._lookup(self._companies, "company", company_id, ContainerRecord.from_dict)

    async def get_client(self, client_id: str) -> Optional[ClientRecord]:
        return self._lookup(self._clients, "client", client_id, ClientRecord.from_dict)

    async def get_program(self, program_id: str) -> Optional[ProgramRecord]:
        return self._lookup(self._programs, "program", program_id, ProgramRecord.from_dict)

    async def get_cohort(self, cohort_id: str) -> Optional[CohortRecord]:
        return self._lookup(self._cohorts, "cohort", cohort_id, CohortRecord.from_dict)

    async def get_cycle(self, cycle_id: str) -> Optional[CycleRecord]:
        return self._lookup(self._cycles, "cycle", cycle_id, CycleRecord.from_dict)

    async def get_participation(self, participation_id: str) -> Optional[ParticipationRecord]:
        return self._lookup(self._participations, "participation", participation_id, ParticipationRecord.from_dict)

    async def aclose(self) -> None:
        """Nothing to release."""


class RedisHierarchyStore:
    """Store reading JSON records from Redis.

    Key layout: ``{prefix}:{kind}:{id}`` where kind is one of
    ``site``, ``company``, ``client``, ``program``, ``cohort``, ``cycle``,
    ``participation``. Values are the same JSON objects as ``fixtures``.

    Args:
        redis_url: Redis URL; ignored when ``client`` is given.
        prefix: Key prefix.
        client: Pre-built ``redis.asyncio`` client (shared pool, tests).
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        prefix: str = "gazebo:hierarchy",
        client: Any = None,
    ) -> None:
        if client is None and not redis_url:
            raise ConfigurationError("RedisHierarchyStore requires redis_url or client")
        self._redis_url = redis_url
        self._prefix = prefix
        self._client = client
        self._owns_client = client is None

    def _key(self, kind: str, record_id: str) -> str:
        return f"{self._prefix}:{kind}:{record_id}"

    def _get_client(self) -> Any:
        if self._client is None:
            import redis.asyncio as aioredis

            self._client = aioredis.from_url(self._redis_url, decode_responses=True)
        return self._client

    async def _fetch(
        self,
        kind: str,
        record_id: str,
        factory: Callable[[dict[str, Any]], _R],
    ) -> Optional[_R]:
        key = self._key(kind, record_id)
        try:
            raw = await self._get_client().get(key)
        except RedisError as e:
            logger.warning("Hierarchy lookup failed for %s: %s", key, e)
            raise HierarchyError(
                f"Hierarchy backend unavailable: {e}",
                code="HIERARCHY_BACKEND_ERROR",
                key=key,
            ) from e

        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedReferenceError(f"Invalid JSON for {key}: {e}", key=key) from e
        return _parse(kind, record_id, data, factory)

    async def get_site(self, site_id: str) -> Optional[SiteRecord]:
        return await self._fetch("site", site_id, SiteRecord.from_dict)

    async def get_container(self, company_id: str) -> Optional[ContainerRecord]:
        return await self._fetch("company", company_id, ContainerRecord.from_dict)

    async def get_client(self, client_id: str) -> Optional[ClientRecord]:
        return await self._fetch("client", client_id, ClientRecord.from_dict)

    async def get_program(self, program_id: str) -> Optional[ProgramRecord]:
        return await self._fetch("program", program_id, ProgramRecord.from_dict)

    async def get_cohort(self, cohort_id: str) -> Optional[CohortRecord]:
        return await self._fetch("cohort", cohort_id, CohortRecord.from_dict)

    async def get_cycle(self, cycle_id: str) -> Optional[CycleRecord]:
        return await self._fetch("cycle", cycle_id, CycleRecord.from_dict)

    async def get_participation(self, participation_id: str) -> Optional[ParticipationRecord]:
        return await self._fetch("participation", participation_id, ParticipationRecord.from_dict)

    async def aclose(self) -> None:
        """Close the client if this store created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


def create_hierarchy_store(config: "AuthzConfig") -> HierarchyStore:
    """Build the store selected by ``config.hierarchy_backend``."""
    from ..config import HierarchyBackend

    backend = HierarchyBackend(config.hierarchy_backend)
    if backend == HierarchyBackend.REDIS:
        logger.info("Hierarchy backend: redis (prefix=%s)", config.redis_prefix)
        return RedisHierarchyStore(config.redis_url, prefix=config.redis_prefix)

    logger.info("Hierarchy backend: bundled fixture")
    return InMemoryHierarchyStore()


__all__ = [
    "HierarchyStore",
    "InMemoryHierarchyStore",
    "RedisHierarchyStore",
    "create_hierarchy_store",
]
