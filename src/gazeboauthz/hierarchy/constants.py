"""Entity types, container tags and the known role set.

Provides:
- ``EntityType``: every entity kind that can appear in a graph.
- ``ContainerKind``: tags stored on a Site's container reference.
- ``Roles``: the closed set of role names.
- ``PARENT_TYPE_MAP``: ``resourceParents`` key → entity type.
"""

from __future__ import annotations


class EntityType:
    """Entity kinds, without the evaluator namespace.

    Resource types (Project, Model, Claim, ...) are open strings from the
    caller. Two parallel containment hierarchies share the ``System`` root::

        Organization → Region → Site → resources
        Client → Program → Cohort → Participation → Site (bridge)
                                  └─ Cycle
    """

    # ── Principal side ──────────────────────────────────
    USER = "User"
    ROLE = "Role"
    ACTION = "Action"

    # ── Root ────────────────────────────────────────────
    SYSTEM = "System"

    # ── Organization hierarchy ──────────────────────────
    ORGANIZATION = "Organization"
    REGION = "Region"
    SITE = "Site"

    # ── Program hierarchy ───────────────────────────────
    CLIENT = "Client"
    PROGRAM = "Program"
    COHORT = "Cohort"
    CYCLE = "Cycle"
    PARTICIPATION = "Participation"

    PROGRAM_HIERARCHY = frozenset({"Client", "Program", "Cohort", "Cycle", "Participation"})


class ContainerKind:
    """Tag stored alongside a Site's container id (``"region:10"``)."""

    ORGANIZATION = "organization"
    REGION = "region"

    ALL = frozenset({"organization", "region"})


class Roles:
    """Known role names.

    Roles are parents of the principal entity, not grants. Every graph
    carries one entity per known role so policies can test membership.
    """

    GLOBAL_ADMIN = "globalAdmin"
    ADMINISTRATOR = "administrator"
    COORDINATOR = "coordinator"
    FACILITATOR = "facilitator"
    CONTRIBUTOR = "contributor"
    CHAMPION = "champion"
    VIEWER = "viewer"


DEFAULT_ROLES: tuple[str, ...] = (
    Roles.GLOBAL_ADMIN,
    Roles.ADMINISTRATOR,
    Roles.COORDINATOR,
    Roles.FACILITATOR,
    Roles.CONTRIBUTOR,
    Roles.CHAMPION,
    Roles.VIEWER,
)

DEFAULT_SYSTEM_ROOT_ID = "gazebo"

# ── resourceParents key → entity type ───────────────────
# Keys outside this map are dropped, not rejected.

PARENT_TYPE_MAP: dict[str, str] = {
    "site": EntityType.SITE,
    "region": EntityType.REGION,
    "organization": EntityType.ORGANIZATION,
    "participation": EntityType.PARTICIPATION,
    "cohort": EntityType.COHORT,
    "program": EntityType.PROGRAM,
    "client": EntityType.CLIENT,
}

# Most specific first: the builder anchors program resolution on the first populated key.
PROGRAM_ANCHOR_KEYS: tuple[str, ...] = ("participation", "cohort", "program", "client")


__all__ = [
    "DEFAULT_ROLES",
    "DEFAULT_SYSTEM_ROOT_ID",
    "PARENT_TYPE_MAP",
    "PROGRAM_ANCHOR_KEYS",
    "ContainerKind",
    "EntityType",
    "Roles",
]
