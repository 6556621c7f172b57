"""Authorization entry point.

``Authorizer`` glues the pieces together for a caller that holds raw
request payloads: validate, build the entity graph, ask the evaluator,
hand back the decision next to the request it answers. It carries no
transport; an HTTP or gRPC gateway wraps it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Sequence, Union

from pydantic import ValidationError

from .evaluator import Decision, PolicyEvaluator, create_evaluator
from .exceptions import InvalidRequestError
from .graph.builder import DecisionRequest, EntityGraphBuilder
from .graph.models import AuthorizationRequest
from .hierarchy.resolver import create_resolver
from .logging import get_request_logger

if TYPE_CHECKING:
    from .config import AuthzConfig

logger = logging.getLogger(__name__)

# Wire name → field name; either spelling satisfies the check.
REQUIRED_FIELDS: dict[str, str] = {
    "userId": "user_id",
    "action": "action",
    "resourceType": "resource_type",
    "resourceId": "resource_id",
}

RequestLike = Union[AuthorizationRequest, Mapping[str, Any]]


@dataclass(frozen=True)
class AuthorizationResult:
    """Evaluator decision paired with the request it answers."""

    decision: Decision
    request: AuthorizationRequest

    @property
    def allowed(self) -> bool:
        return self.decision.allowed

    def to_payload(self) -> dict[str, Any]:
        payload = self.decision.to_payload()
        payload["request"] = self.request.to_payload()
        return payload


class Authorizer:
    """Validate requests, build graphs and evaluate them.

    Args:
        builder: Entity graph builder.
        evaluator: Policy evaluator.
    """

    def __init__(self, builder: EntityGraphBuilder, evaluator: PolicyEvaluator) -> None:
        self._builder = builder
        self._evaluator = evaluator

    @property
    def builder(self) -> EntityGraphBuilder:
        return self._builder

    async def aclose(self) -> None:
        """Release the hierarchy store's connections."""
        await self._builder.resolver.aclose()

    async def __aenter__(self) -> "Authorizer":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @staticmethod
    def parse_request(payload: RequestLike) -> AuthorizationRequest:
        """Validate a raw request payload.

        Raises:
            InvalidRequestError: Required fields are missing or a field has
                the wrong shape.
        """
        if isinstance(payload, AuthorizationRequest):
            return payload
        if not isinstance(payload, Mapping):
            raise InvalidRequestError(f"Request must be an object, got {type(payload).__name__}")

        missing = [
            alias for alias, name in REQUIRED_FIELDS.items() if not (payload.get(alias) or payload.get(name))
        ]
        if missing:
            raise InvalidRequestError(
                f"Missing required fields: {', '.join(missing)}",
                missing=missing,
            )

        try:
            return AuthorizationRequest.model_validate(dict(payload))
        except ValidationError as e:
            fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            raise InvalidRequestError(
                f"Invalid authorization request: {', '.join(fields)}",
                fields=fields,
            ) from e

    async def authorize(self, request: RequestLike) -> AuthorizationResult:
        """Decide a single request.

        Raises:
            InvalidRequestError: The request does not validate.
            MalformedReferenceError: Stored hierarchy data is corrupt.
            EvaluatorError: The evaluator call failed.
        """
        parsed = self.parse_request(request)
        log = get_request_logger(__name__, user_id=parsed.user_id)

        graph = await self._builder.build(parsed)
        decision = await self._evaluator.decide(DecisionRequest.from_request(parsed), graph)

        log.info(
            "%s %s on %s (%d entities)",
            decision.decision,
            parsed.action,
            parsed.resource,
            len(graph),
        )
        return AuthorizationResult(decision=decision, request=parsed)

    async def authorize_batch(self, requests: Sequence[RequestLike]) -> list[AuthorizationResult]:
        """Decide many requests against one merged entity graph.

        Results are positionally aligned with ``requests``.

        Raises:
            InvalidRequestError: The batch is empty or any request does not validate.
            EntityConflictError: Requests set one attribute to different values.
        """
        if not requests:
            raise InvalidRequestError("Batch must contain at least one request")

        parsed = [self.parse_request(request) for request in requests]
        batch = await self._builder.build_batch(parsed)
        decisions = await self._evaluator.batch_decide(batch.requests, batch.graph)

        logger.info(
            "Batch of %d decided: %d allowed (%d entities)",
            len(parsed),
            sum(1 for d in decisions if d.allowed),
            len(batch.graph),
        )
        return [AuthorizationResult(decision=d, request=r) for d, r in zip(decisions, parsed)]


def create_authorizer(config: "AuthzConfig") -> Authorizer:
    """Authorizer wired from configuration: resolver, builder and evaluator."""
    builder = EntityGraphBuilder(
        create_resolver(config),
        roles=config.roles,
        conflict_policy=config.batch_conflict_policy,
    )
    return Authorizer(builder, create_evaluator(config))


__all__ = [
    "REQUIRED_FIELDS",
    "AuthorizationResult",
    "Authorizer",
    "create_authorizer",
]
