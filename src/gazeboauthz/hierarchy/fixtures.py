"""Bundled hierarchy data for the sandbox and the test suite.

Records use the same JSON shape the Redis backend stores, so the
in-memory store and the Redis store parse them through the same
``from_dict`` constructors.

Organization hierarchy:
    Cascade Energy (1)
    ├── West Region (10): portland-manufacturing, seattle-hq
    ├── East Region (11): boston-office
    └── cascade-corporate (directly under the organization)
    Energy Trust of Oregon (100)
    └── Industrial Programs (101)
    Goodwill Industries (200)
    └── Portland Metro (201): goodwill-happy-valley, goodwill-downtown

Program hierarchy:
    energy-trust → industrial-sem → cohort-2024 → part-001 (portland-manufacturing)
                                              → part-002 (boston-office)
                                              → fy2024-q1, fy2024-q2
    fy2024-annual (not scoped to a cohort)
"""

from __future__ import annotations

from typing import Any

COMPANIES: dict[str, dict[str, Any]] = {
    # Organizations (parentId = None)
    "1": {"companyId": 1, "name": "Cascade Energy", "parentId": None},
    "100": {"companyId": 100, "name": "Energy Trust of Oregon", "parentId": None},
    "200": {"companyId": 200, "name": "Goodwill Industries", "parentId": None},
    # Regions (parentId = organization id)
    "10": {"companyId": 10, "name": "West Region", "parentId": 1},
    "11": {"companyId": 11, "name": "East Region", "parentId": 1},
    "101": {"companyId": 101, "name": "Industrial Programs", "parentId": 100},
    "201": {"companyId": 201, "name": "Portland Metro", "parentId": 200},
}

SITES: dict[str, dict[str, Any]] = {
    "portland-manufacturing": {
        "siteId": "portland-manufacturing",
        "name": "Portland Manufacturing",
        "companyId": "region:10",
        "timezone": "America/Los_Angeles",
    },
    "seattle-hq": {
        "siteId": "seattle-hq",
        "name": "Seattle Headquarters",
        "companyId": "region:10",
        "timezone": "America/Los_Angeles",
    },
    "boston-office": {
        "siteId": "boston-office",
        "name": "Boston Office",
        "companyId": "region:11",
        "timezone": "America/New_York",
    },
    "cascade-corporate": {
        "siteId": "cascade-corporate",
        "name": "Cascade Corporate HQ",
        "companyId": "organization:1",
        "timezone": "America/Los_Angeles",
    },
    "goodwill-happy-valley": {
        "siteId": "goodwill-happy-valley",
        "name": "Goodwill Happy Valley",
        "companyId": "region:201",
        "timezone": "America/Los_Angeles",
    },
    "goodwill-downtown": {
        "siteId": "goodwill-downtown",
        "name": "Goodwill Downtown",
        "companyId": "region:201",
        "timezone": "America/Los_Angeles",
    },
}

CLIENTS: dict[str, dict[str, Any]] = {
    "energy-trust": {"clientId": "energy-trust", "name": "Energy Trust of Oregon"},
}

PROGRAMS: dict[str, dict[str, Any]] = {
    "industrial-sem": {"programId": "industrial-sem", "name": "Industrial SEM", "clientId": "energy-trust"},
}

COHORTS: dict[str, dict[str, Any]] = {
    "cohort-2024": {"cohortId": "cohort-2024", "name": "2024 Cohort", "programId": "industrial-sem"},
}

CYCLES: dict[str, dict[str, Any]] = {
    "fy2024-q1": {"cycleId": "fy2024-q1", "name": "FY2024 Q1", "cohortId": "cohort-2024"},
    "fy2024-q2": {"cycleId": "fy2024-q2", "name": "FY2024 Q2", "cohortId": "cohort-2024"},
    "fy2024-annual": {"cycleId": "fy2024-annual", "name": "FY2024 Annual", "cohortId": None},
}

PARTICIPATIONS: dict[str, dict[str, Any]] = {
    "part-001": {
        "participationId": "part-001",
        "name": "Portland Manufacturing 2024",
        "cohortId": "cohort-2024",
        "siteId": "portland-manufacturing",
        "implementer": "stillwater-energy",
    },
    "part-002": {
        "participationId": "part-002",
        "name": "Boston Office 2024",
        "cohortId": "cohort-2024",
        "siteId": "boston-office",
        "implementer": "stillwater-energy",
    },
}


__all__ = [
    "CLIENTS",
    "COHORTS",
    "COMPANIES",
    "CYCLES",
    "PARTICIPATIONS",
    "PROGRAMS",
    "SITES",
]
