from .config import AuthzConfig, BatchConflictPolicy, HierarchyBackend, LogLevel, load_config_from_env
from .exceptions import (
    AuthzError,
    ConfigurationError,
    EntityConflictError,
    EvaluatorError,
    HierarchyError,
    InvalidRequestError,
    MalformedReferenceError,
    NotFoundError,
)
from .hierarchy import (
    EntityRef,
    EntityType,
    HierarchyChain,
    HierarchyNode,
    HierarchyResolver,
    HierarchyStore,
    InMemoryHierarchyStore,
    RedisHierarchyStore,
    Roles,
    StoreHierarchyResolver,
    create_resolver,
)
from .graph import (
    AuthorizationRequest,
    BatchPayload,
    DecisionRequest,
    Entity,
    EntityGraph,
    EntityGraphBuilder,
    ResourceParents,
)
from .evaluator import Decision, PolicyEvaluator, VerifiedPermissionsEvaluator, create_evaluator
from .authorizer import AuthorizationResult, Authorizer, create_authorizer
from .logging import (
    safe_preview,
    AuthzFormatter,
    AuthzLoggerAdapter,
    setup_logging,
    get_request_logger,
)

__all__ = [
    'AuthzConfig',
    'BatchConflictPolicy',
    'HierarchyBackend',
    'LogLevel',
    'load_config_from_env',
    'AuthzError',
    'ConfigurationError',
    'EntityConflictError',
    'EvaluatorError',
    'HierarchyError',
    'InvalidRequestError',
    'MalformedReferenceError',
    'NotFoundError',
    'EntityRef',
    'EntityType',
    'HierarchyChain',
    'HierarchyNode',
    'HierarchyResolver',
    'HierarchyStore',
    'InMemoryHierarchyStore',
    'RedisHierarchyStore',
    'Roles',
    'StoreHierarchyResolver',
    'create_resolver',
    'AuthorizationRequest',
    'BatchPayload',
    'DecisionRequest',
    'Entity',
    'EntityGraph',
    'EntityGraphBuilder',
    'ResourceParents',
    'Decision',
    'PolicyEvaluator',
    'VerifiedPermissionsEvaluator',
    'create_evaluator',
    'AuthorizationResult',
    'Authorizer',
    'create_authorizer',
    'safe_preview',
    'AuthzFormatter',
    'AuthzLoggerAdapter',
    'setup_logging',
    'get_request_logger',
]
