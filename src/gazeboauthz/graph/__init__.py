"""Entity graph construction.

Defines:
- AuthorizationRequest: validated caller input
- Entity / EntityGraph: the evaluator payload, unique by (entityType, entityId)
- EntityGraphBuilder: request → graph, and many requests → one merged graph
"""

from .builder import BatchPayload, DecisionRequest, EntityGraphBuilder
from .models import (
    AttributeValue,
    AuthorizationRequest,
    BooleanValue,
    Entity,
    EntityGraph,
    EntityValue,
    LongValue,
    ResourceParents,
    StringValue,
)

__all__ = [
    "AttributeValue",
    "AuthorizationRequest",
    "BatchPayload",
    "BooleanValue",
    "DecisionRequest",
    "Entity",
    "EntityGraph",
    "EntityGraphBuilder",
    "EntityValue",
    "LongValue",
    "ResourceParents",
    "StringValue",
]
