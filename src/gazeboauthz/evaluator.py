"""Policy evaluator boundary.

The evaluator stores and evaluates policies; this package only hands it a
principal/action/resource triple plus an entity graph. ``PolicyEvaluator``
is the seam, ``VerifiedPermissionsEvaluator`` the Amazon Verified
Permissions implementation over boto3.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Protocol, Sequence, runtime_checkable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import ConfigurationError, EvaluatorError
from .graph.builder import DecisionRequest
from .graph.models import EntityGraph

if TYPE_CHECKING:
    from .config import AuthzConfig

logger = logging.getLogger(__name__)

ALLOW = "ALLOW"
DENY = "DENY"

# BatchIsAuthorized accepts at most 30 requests per call.
MAX_BATCH_SIZE = 30


@dataclass(frozen=True)
class Decision:
    """Evaluator verdict, passed through unchanged to the caller."""

    decision: str
    determining_policies: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def allowed(self) -> bool:
        return self.decision == ALLOW

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "Decision":
        return cls(
            decision=response.get("decision", DENY),
            determining_policies=tuple(p["policyId"] for p in response.get("determiningPolicies") or ()),
            errors=tuple(e.get("errorDescription", "") for e in response.get("errors") or ()),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "decision": self.decision,
            "allowed": self.allowed,
            "determiningPolicies": [{"policyId": p} for p in self.determining_policies],
            "errors": list(self.errors),
        }


@runtime_checkable
class PolicyEvaluator(Protocol):
    """Decide(principal, action, resource, graph) and its batch form."""

    async def decide(self, request: DecisionRequest, graph: EntityGraph) -> Decision: ...

    async def batch_decide(self, requests: Sequence[DecisionRequest], graph: EntityGraph) -> list[Decision]: ...


@dataclass
class VerifiedPermissionsEvaluator:
    """Evaluator backed by an Amazon Verified Permissions policy store.

    boto3 is synchronous; calls run in a worker thread so the event loop
    stays free.

    Args:
        policy_store_id: Policy store to evaluate against.
        namespace: Entity type namespace (``"Gazebo"`` → ``Gazebo::Site``).
        client: Pre-built ``verifiedpermissions`` client; created lazily if None.
        region_name: Region for the lazily created client.
    """

    policy_store_id: str
    namespace: str = "Gazebo"
    client: Any = None
    region_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.policy_store_id:
            raise ConfigurationError("VerifiedPermissionsEvaluator requires a policy_store_id")

    def _get_client(self) -> Any:
        if self.client is None:
            self.client = boto3.client("verifiedpermissions", region_name=self.region_name)
        return self.client

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        client = self._get_client()
        try:
            return await asyncio.to_thread(getattr(client, operation), **kwargs)
        except (BotoCoreError, ClientError) as e:
            logger.error("%s failed for policy store %s: %s", operation, self.policy_store_id, e)
            raise EvaluatorError(f"{operation} failed: {e}", operation=operation) from e

    async def decide(self, request: DecisionRequest, graph: EntityGraph) -> Decision:
        response = await self._call(
            "is_authorized",
            policyStoreId=self.policy_store_id,
            entities=graph.to_payload(self.namespace),
            **request.to_payload(self.namespace),
        )
        decision = Decision.from_response(response)
        logger.debug(
            "Decision %s for %s %s on %s",
            decision.decision,
            request.principal,
            request.action.entity_id,
            request.resource,
        )
        return decision

    async def batch_decide(self, requests: Sequence[DecisionRequest], graph: EntityGraph) -> list[Decision]:
        """Evaluate many requests against one shared entity payload.

        Requests are sent in chunks of ``MAX_BATCH_SIZE``; every chunk carries
        the full entity payload. Results keep request order.
        """
        entities = graph.to_payload(self.namespace)
        decisions: list[Decision] = []
        for start in range(0, len(requests), MAX_BATCH_SIZE):
            chunk = requests[start : start + MAX_BATCH_SIZE]
            response = await self._call(
                "batch_is_authorized",
                policyStoreId=self.policy_store_id,
                entities=entities,
                requests=[r.to_payload(self.namespace) for r in chunk],
            )
            results = response.get("results") or []
            if len(results) != len(chunk):
                raise EvaluatorError(
                    f"batch_is_authorized returned {len(results)} results for {len(chunk)} requests",
                    operation="batch_is_authorized",
                )
            decisions.extend(Decision.from_response(r) for r in results)
        return decisions


def create_evaluator(config: "AuthzConfig") -> VerifiedPermissionsEvaluator:
    """Verified Permissions evaluator from configuration."""
    if not config.policy_store_id:
        raise ConfigurationError("POLICY_STORE_ID is not configured")
    return VerifiedPermissionsEvaluator(
        policy_store_id=config.policy_store_id,
        namespace=config.entity_namespace,
        region_name=config.aws_region,
    )


__all__ = [
    "ALLOW",
    "DENY",
    "MAX_BATCH_SIZE",
    "Decision",
    "PolicyEvaluator",
    "VerifiedPermissionsEvaluator",
    "create_evaluator",
]
