"""Exception hierarchy for gazeboauthz.

All errors inherit from AuthzError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for mapping codes back to exception classes

Usage:
    from gazeboauthz.exceptions import (
        AuthzError,
        HierarchyError,
        NotFoundError,
        MalformedReferenceError,
    )

Resolution errors split into two families:
    NotFoundError            — a referenced record is missing; the graph builder
                               degrades and continues without hierarchy nodes.
    MalformedReferenceError  — stored data is corrupt; always propagates.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "AuthzError",
    "ConfigurationError",
    "InvalidRequestError",
    "HierarchyError",
    "NotFoundError",
    "MalformedReferenceError",
    "EntityConflictError",
    "EvaluatorError",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
]


# ---- Exception Hierarchy ----------------------------------------------------


class AuthzError(Exception):
    """Base exception for the authorization layer.

    Attributes:
        code: Stable error code string (e.g. "NOT_FOUND").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(AuthzError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class InvalidRequestError(AuthzError):
    """Caller-supplied authorization request is incomplete or malformed."""

    code: str = "INVALID_REQUEST"


class HierarchyError(AuthzError):
    """Hierarchy resolution failure."""

    code: str = "HIERARCHY_ERROR"


class NotFoundError(HierarchyError):
    """A referenced site, container or program record does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str, **kwargs: Any) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}", entity_type=entity_type, entity_id=entity_id, **kwargs)


class MalformedReferenceError(HierarchyError):
    """Stored containment data is corrupt (bad tag, parentless region)."""

    code: str = "MALFORMED_REFERENCE"


class EntityConflictError(AuthzError):
    """Two different entities share one (entityType, entityId) during a merge."""

    code: str = "ENTITY_CONFLICT"


class EvaluatorError(AuthzError):
    """Policy evaluator call failed."""

    code: str = "EVALUATOR_ERROR"


# ---- Error Registry ---------------------------------------------------------

_E = TypeVar("_E", bound=type[AuthzError])


class ErrorRegistry:
    """Registry for mapping error codes to exception classes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[AuthzError]] = {}

    def register(self, code: str, error_cls: type[AuthzError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[AuthzError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[AuthzError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("POLICY_STORE_ERROR")
        class PolicyStoreError(AuthzError):
            code = "POLICY_STORE_ERROR"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors
error_registry.register("INTERNAL_ERROR", AuthzError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("INVALID_REQUEST", InvalidRequestError)
error_registry.register("HIERARCHY_ERROR", HierarchyError)
error_registry.register("NOT_FOUND", NotFoundError)
error_registry.register("MALFORMED_REFERENCE", MalformedReferenceError)
error_registry.register("ENTITY_CONFLICT", EntityConflictError)
error_registry.register("EVALUATOR_ERROR", EvaluatorError)
