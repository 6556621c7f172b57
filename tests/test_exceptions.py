"""Tests for the exception hierarchy and error registry."""

from __future__ import annotations

import pytest
from gazeboauthz.exceptions import (
    AuthzError,
    ConfigurationError,
    EntityConflictError,
    EvaluatorError,
    HierarchyError,
    InvalidRequestError,
    MalformedReferenceError,
    NotFoundError,
    error_registry,
    register_error,
)


class TestExceptionHierarchy:
    """Tests for AuthzError and subclasses."""

    def test_base_defaults(self) -> None:
        """Test default code and message on the base error."""
        err = AuthzError()
        assert err.code == "INTERNAL_ERROR"
        assert err.message == "An internal error occurred"
        assert err.details == {}

    def test_custom_message_code_and_details(self) -> None:
        """Test overriding message and code, with details kept."""
        err = HierarchyError("backend down", code="HIERARCHY_BACKEND_ERROR", key="k")
        assert str(err) == "backend down"
        assert err.code == "HIERARCHY_BACKEND_ERROR"
        assert err.details == {"key": "k"}

    @pytest.mark.parametrize(
        "cls, code",
        [
            (ConfigurationError, "CONFIGURATION_ERROR"),
            (InvalidRequestError, "INVALID_REQUEST"),
            (HierarchyError, "HIERARCHY_ERROR"),
            (MalformedReferenceError, "MALFORMED_REFERENCE"),
            (EntityConflictError, "ENTITY_CONFLICT"),
            (EvaluatorError, "EVALUATOR_ERROR"),
        ],
    )
    def test_class_codes(self, cls: type[AuthzError], code: str) -> None:
        """Test each class carries its stable code."""
        assert cls("x").code == code

    def test_not_found_fields(self) -> None:
        """Test NotFoundError records the missing entity."""
        err = NotFoundError("Site", "nowhere")
        assert err.entity_type == "Site"
        assert err.entity_id == "nowhere"
        assert err.code == "NOT_FOUND"
        assert err.message == "Site not found: nowhere"
        assert err.details == {"entity_type": "Site", "entity_id": "nowhere"}

    def test_resolution_errors_are_hierarchy_errors(self) -> None:
        """Test both resolution families share the HierarchyError base."""
        assert isinstance(NotFoundError("Region", "10"), HierarchyError)
        assert isinstance(MalformedReferenceError("bad"), HierarchyError)
        assert not isinstance(MalformedReferenceError("bad"), NotFoundError)


class TestErrorRegistry:
    """Tests for the error registry."""

    def test_base_errors_registered(self) -> None:
        """Test that built-in codes resolve to their classes."""
        assert error_registry.get("NOT_FOUND") is NotFoundError
        assert error_registry.get("MALFORMED_REFERENCE") is MalformedReferenceError
        assert error_registry.get("ENTITY_CONFLICT") is EntityConflictError
        assert error_registry.get("UNKNOWN_CODE") is None

    def test_register_custom_error(self) -> None:
        """Test the register_error decorator."""

        @register_error("POLICY_STORE_ERROR")
        class PolicyStoreError(AuthzError):
            code = "POLICY_STORE_ERROR"

        assert error_registry.get("POLICY_STORE_ERROR") is PolicyStoreError
        assert "POLICY_STORE_ERROR" in error_registry.all()
