"""Tests for the Authorizer entry point."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gazeboauthz import (
    AuthorizationRequest,
    Authorizer,
    AuthzConfig,
    EntityGraphBuilder,
    VerifiedPermissionsEvaluator,
    create_authorizer,
)
from gazeboauthz.evaluator import Decision
from gazeboauthz.exceptions import ConfigurationError, EntityConflictError, InvalidRequestError
from gazeboauthz.hierarchy import EntityRef, InMemoryHierarchyStore, RedisHierarchyStore, StoreHierarchyResolver

PAYLOAD = {
    "userId": "u1",
    "userRoles": ["viewer"],
    "action": "View",
    "resourceType": "Project",
    "resourceId": "p1",
    "resourceCreatedBy": "u1",
    "resourceParentSite": "portland-manufacturing",
}


def _evaluator(decision: str = "ALLOW") -> MagicMock:
    evaluator = MagicMock()
    evaluator.decide = AsyncMock(return_value=Decision(decision))
    evaluator.batch_decide = AsyncMock(side_effect=lambda requests, graph: [Decision(decision) for _ in requests])
    return evaluator


@pytest.fixture
def evaluator() -> MagicMock:
    return _evaluator()


@pytest.fixture
def authorizer(evaluator: MagicMock) -> Authorizer:
    return Authorizer(EntityGraphBuilder(), evaluator)


class TestParseRequest:
    """Tests for request validation."""

    def test_valid_payload(self) -> None:
        """Test a complete payload parses."""
        request = Authorizer.parse_request(PAYLOAD)
        assert request.user_id == "u1"
        assert request.parent_site == "portland-manufacturing"

    def test_passthrough(self) -> None:
        """Test an already-parsed request is returned as is."""
        request = AuthorizationRequest.model_validate(PAYLOAD)
        assert Authorizer.parse_request(request) is request

    def test_missing_fields_listed(self) -> None:
        """Test all missing required fields are reported."""
        with pytest.raises(InvalidRequestError) as exc_info:
            Authorizer.parse_request({"userId": "u1", "resourceType": ""})
        assert exc_info.value.code == "INVALID_REQUEST"
        assert exc_info.value.details["missing"] == ["action", "resourceType", "resourceId"]
        assert "action, resourceType, resourceId" in exc_info.value.message

    def test_snake_case_payload(self) -> None:
        """Test field names are accepted in place of wire names."""
        request = Authorizer.parse_request(
            {"user_id": "u1", "action": "View", "resource_type": "Project", "resource_id": "p1"}
        )
        assert request.resource == EntityRef("Project", "p1")
        assert request.user_roles == ()

    def test_mixed_spellings_still_checked(self) -> None:
        """Test a field missing under both spellings is reported by its wire name."""
        with pytest.raises(InvalidRequestError) as exc_info:
            Authorizer.parse_request({"user_id": "u1", "action": "View", "resourceType": "Project"})
        assert exc_info.value.details["missing"] == ["resourceId"]

    def test_wrong_shape(self) -> None:
        """Test pydantic errors are converted."""
        with pytest.raises(InvalidRequestError, match="userRoles"):
            Authorizer.parse_request({**PAYLOAD, "userRoles": 5})

    def test_not_a_mapping(self) -> None:
        """Test non-object payloads are rejected."""
        with pytest.raises(InvalidRequestError, match="must be an object"):
            Authorizer.parse_request(["userId"])


class TestAuthorize:
    """Tests for single-request authorization."""

    @pytest.mark.asyncio
    async def test_authorize(self, authorizer: Authorizer, evaluator: MagicMock) -> None:
        """Test the evaluator sees the request triple and the built graph."""
        result = await authorizer.authorize(PAYLOAD)

        assert result.allowed
        assert result.request.resource == EntityRef("Project", "p1")

        decision_request, graph = evaluator.decide.await_args.args
        assert decision_request.principal == EntityRef("User", "u1")
        assert decision_request.action == EntityRef("Action", "View")
        assert decision_request.resource == EntityRef("Project", "p1")
        assert ("Region", "10") in graph

    @pytest.mark.asyncio
    async def test_deny_passthrough(self) -> None:
        """Test a DENY decision is returned unchanged."""
        authorizer = Authorizer(EntityGraphBuilder(), _evaluator("DENY"))
        result = await authorizer.authorize(PAYLOAD)
        assert result.allowed is False
        assert result.decision.decision == "DENY"

    @pytest.mark.asyncio
    async def test_result_payload(self, authorizer: Authorizer) -> None:
        """Test the result payload carries decision and request."""
        payload = (await authorizer.authorize(PAYLOAD)).to_payload()
        assert payload["decision"] == "ALLOW"
        assert payload["allowed"] is True
        assert payload["request"]["resourceId"] == "p1"

    @pytest.mark.asyncio
    async def test_invalid_request_never_reaches_evaluator(
        self, authorizer: Authorizer, evaluator: MagicMock
    ) -> None:
        """Test validation failures stop before evaluation."""
        with pytest.raises(InvalidRequestError):
            await authorizer.authorize({"userId": "u1"})
        evaluator.decide.assert_not_awaited()


class TestAuthorizeBatch:
    """Tests for batch authorization."""

    @pytest.mark.asyncio
    async def test_empty_batch(self, authorizer: Authorizer) -> None:
        """Test an empty batch is rejected."""
        with pytest.raises(InvalidRequestError, match="at least one request"):
            await authorizer.authorize_batch([])

    @pytest.mark.asyncio
    async def test_results_aligned(self, authorizer: Authorizer, evaluator: MagicMock) -> None:
        """Test results follow request order over one shared graph."""
        results = await authorizer.authorize_batch([
            {**PAYLOAD, "resourceId": "p2", "resourceParentSite": "seattle-hq"},
            {**PAYLOAD, "resourceId": "p1", "resourceParentSite": "seattle-hq"},
        ])

        assert [r.request.resource_id for r in results] == ["p2", "p1"]
        evaluator.batch_decide.assert_awaited_once()
        requests, graph = evaluator.batch_decide.await_args.args
        assert [r.resource.entity_id for r in requests] == ["p2", "p1"]
        assert graph.keys().count(("Site", "seattle-hq")) == 1

    @pytest.mark.asyncio
    async def test_conflict_propagates(self, authorizer: Authorizer, evaluator: MagicMock) -> None:
        """Test two creators for one resource fail before evaluation."""
        with pytest.raises(EntityConflictError):
            await authorizer.authorize_batch([
                {**PAYLOAD, "resourceCreatedBy": "u1"},
                {**PAYLOAD, "resourceCreatedBy": "u2"},
            ])
        evaluator.batch_decide.assert_not_awaited()


class TestCreateAuthorizer:
    """Tests for create_authorizer factory."""

    def test_wiring(self) -> None:
        """Test builder and evaluator are configured from settings."""
        authorizer = create_authorizer(
            AuthzConfig(policy_store_id="ps-1", roles="viewer,champion", batch_conflict_policy="first_wins")
        )
        assert authorizer.builder.roles == ("viewer", "champion")
        assert isinstance(authorizer._evaluator, VerifiedPermissionsEvaluator)

    def test_requires_policy_store(self) -> None:
        """Test missing evaluator settings fail fast."""
        with pytest.raises(ConfigurationError):
            create_authorizer(AuthzConfig())


class TestClose:
    """Tests for releasing hierarchy store connections."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_redis_client(self) -> None:
        """Test leaving the context closes the client the store created."""
        client = MagicMock()
        client.get = AsyncMock(return_value=None)
        client.aclose = AsyncMock()
        store = RedisHierarchyStore("redis://localhost:6379/0")
        authorizer = Authorizer(EntityGraphBuilder(StoreHierarchyResolver(store)), _evaluator())

        with patch("redis.asyncio.from_url", return_value=client):
            async with authorizer as entered:
                assert entered is authorizer
                result = await authorizer.authorize(PAYLOAD)

        assert result.allowed
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_aclose_in_memory(self) -> None:
        """Test closing over the bundled fixture is a no-op."""
        authorizer = Authorizer(EntityGraphBuilder(StoreHierarchyResolver(InMemoryHierarchyStore())), _evaluator())
        await authorizer.aclose()
        result = await authorizer.authorize(PAYLOAD)
        assert result.allowed
