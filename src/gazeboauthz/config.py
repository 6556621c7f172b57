"""Configuration contract for the authorization layer.

This module provides the Pydantic-validated ``AuthzConfig`` model. It
selects the hierarchy backend (bundled fixture or Redis), carries the
closed role set handed to the graph builder, and holds the policy
evaluator settings.

RULE: all settings come through this model. ``load_config_from_env()``
is the only place environment variables are read.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .hierarchy.constants import DEFAULT_ROLES, DEFAULT_SYSTEM_ROOT_ID

DEFAULT_NAMESPACE = "Gazebo"
DEFAULT_REDIS_PREFIX = "gazebo:hierarchy"


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class HierarchyBackend(str, Enum):
    """Where hierarchy records are read from.

    - FIXTURE: bundled in-memory data (sandbox, tests)
    - REDIS: JSON records in a shared Redis
    """

    FIXTURE = "fixture"
    REDIS = "redis"


class BatchConflictPolicy(str, Enum):
    """What to do when a batch merge sees one attribute set to two different values."""

    REJECT = "reject"
    FIRST_WINS = "first_wins"


class AuthzConfig(BaseModel):
    """Configuration for hierarchy resolution, graph building and evaluation."""

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    # Hierarchy data source
    hierarchy_backend: HierarchyBackend = Field(
        default=HierarchyBackend.FIXTURE,
        description="Hierarchy store implementation: fixture or redis",
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL, required for the redis backend",
    )
    redis_prefix: str = Field(
        default=DEFAULT_REDIS_PREFIX,
        description="Key prefix for hierarchy records in Redis",
    )

    # Entity graph
    entity_namespace: str = Field(
        default=DEFAULT_NAMESPACE,
        description="Namespace prefixed to entity types in the evaluator payload",
    )
    system_root_id: str = Field(
        default=DEFAULT_SYSTEM_ROOT_ID,
        description="Id of the System root that Organizations and Clients point to",
    )
    roles: tuple[str, ...] = Field(
        default=DEFAULT_ROLES,
        description="Closed set of known role names added to every graph",
    )
    batch_conflict_policy: BatchConflictPolicy = Field(
        default=BatchConflictPolicy.REJECT,
        description="Conflict handling when merging batch graphs",
    )

    # Policy evaluator
    policy_store_id: Optional[str] = Field(
        default=None,
        description="Verified Permissions policy store id",
    )
    aws_region: Optional[str] = Field(
        default=None,
        description="AWS region for the evaluator client",
    )

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate Redis URL format."""
        if v is None:
            return v
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with redis://, rediss://, or unix://")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("roles", mode="before")
    @classmethod
    def validate_roles(cls, v: str | list[str] | tuple[str, ...]) -> tuple[str, ...]:
        """Accept a comma-separated string or a sequence; drop blanks and duplicates."""
        raw = v.split(",") if isinstance(v, str) else list(v)
        roles = tuple(dict.fromkeys(r.strip() for r in raw if r and r.strip()))
        if not roles:
            raise ValueError("At least one role must be configured")
        return roles

    @model_validator(mode="after")
    def validate_backend(self) -> "AuthzConfig":
        if self.hierarchy_backend == HierarchyBackend.REDIS and not self.redis_url:
            raise ValueError("redis_url is required when hierarchy_backend is 'redis'")
        return self

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


def load_config_from_env() -> AuthzConfig:
    """Load configuration from environment variables.

    This is the ONLY place where os.getenv is allowed.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - HIERARCHY_BACKEND: fixture | redis
    - REDIS_URL: Redis connection URL
    - HIERARCHY_REDIS_PREFIX: Key prefix for hierarchy records
    - ENTITY_NAMESPACE: Entity type namespace (default: Gazebo)
    - SYSTEM_ROOT_ID: Id of the System root entity
    - KNOWN_ROLES: Comma-separated role names
    - BATCH_CONFLICT_POLICY: reject | first_wins
    - POLICY_STORE_ID: Verified Permissions policy store id
    - AWS_REGION: AWS region for the evaluator client

    Returns:
        AuthzConfig instance with values from environment or defaults.
    """
    import os

    kwargs: dict[str, object] = {
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_json": os.getenv("LOG_JSON", "false").lower() in ("true", "1", "yes"),
        "hierarchy_backend": os.getenv("HIERARCHY_BACKEND", HierarchyBackend.FIXTURE.value),
        "redis_url": os.getenv("REDIS_URL"),
        "redis_prefix": os.getenv("HIERARCHY_REDIS_PREFIX", DEFAULT_REDIS_PREFIX),
        "entity_namespace": os.getenv("ENTITY_NAMESPACE", DEFAULT_NAMESPACE),
        "system_root_id": os.getenv("SYSTEM_ROOT_ID", DEFAULT_SYSTEM_ROOT_ID),
        "batch_conflict_policy": os.getenv("BATCH_CONFLICT_POLICY", BatchConflictPolicy.REJECT.value),
        "policy_store_id": os.getenv("POLICY_STORE_ID"),
        "aws_region": os.getenv("AWS_REGION"),
    }
    roles = os.getenv("KNOWN_ROLES")
    if roles:
        kwargs["roles"] = roles

    return AuthzConfig(**kwargs)


__all__ = [
    "AuthzConfig",
    "BatchConflictPolicy",
    "HierarchyBackend",
    "LogLevel",
    "load_config_from_env",
]
