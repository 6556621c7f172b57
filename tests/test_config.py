"""Tests for AuthzConfig."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from gazeboauthz import AuthzConfig, BatchConflictPolicy, HierarchyBackend, LogLevel, load_config_from_env
from gazeboauthz.hierarchy.constants import DEFAULT_ROLES


class TestAuthzConfig:
    """Tests for AuthzConfig model."""

    def test_create_default_config(self) -> None:
        """Test creating an AuthzConfig with defaults."""
        config = AuthzConfig()
        assert config.log_level == LogLevel.INFO
        assert config.log_json is False
        assert config.hierarchy_backend == HierarchyBackend.FIXTURE
        assert config.redis_url is None
        assert config.redis_prefix == "gazebo:hierarchy"
        assert config.entity_namespace == "Gazebo"
        assert config.system_root_id == "gazebo"
        assert config.roles == DEFAULT_ROLES
        assert config.batch_conflict_policy == BatchConflictPolicy.REJECT
        assert config.policy_store_id is None
        assert config.aws_region is None

    def test_create_custom_config(self) -> None:
        """Test creating an AuthzConfig with custom values."""
        config = AuthzConfig(
            log_level=LogLevel.DEBUG,
            hierarchy_backend=HierarchyBackend.REDIS,
            redis_url="redis://localhost:6379/0",
            redis_prefix="test:h",
            entity_namespace="Test",
            batch_conflict_policy=BatchConflictPolicy.FIRST_WINS,
            policy_store_id="ps-123",
            aws_region="us-west-2",
        )
        assert config.log_level == LogLevel.DEBUG
        assert config.hierarchy_backend == HierarchyBackend.REDIS
        assert config.redis_url == "redis://localhost:6379/0"
        assert config.redis_prefix == "test:h"
        assert config.entity_namespace == "Test"
        assert config.batch_conflict_policy == BatchConflictPolicy.FIRST_WINS
        assert config.policy_store_id == "ps-123"
        assert config.aws_region == "us-west-2"

    def test_log_level_from_string(self) -> None:
        """Test creating config with log level as lowercase string."""
        config = AuthzConfig(log_level="debug")
        assert config.log_level == LogLevel.DEBUG

    def test_log_level_invalid(self) -> None:
        """Test creating config with invalid log level."""
        with pytest.raises(ValueError, match="Invalid log level"):
            AuthzConfig(log_level="INVALID")

    def test_redis_url_validation_valid(self) -> None:
        """Test valid Redis URL formats."""
        for url in ["redis://localhost:6379/0", "rediss://localhost:6379/0", "unix:///tmp/redis.sock"]:
            config = AuthzConfig(redis_url=url)
            assert config.redis_url == url

    def test_redis_url_validation_invalid(self) -> None:
        """Test invalid Redis URL formats."""
        for url in ["http://localhost:6379", "localhost:6379"]:
            with pytest.raises(ValueError, match="Redis URL must start with"):
                AuthzConfig(redis_url=url)

    def test_redis_backend_requires_url(self) -> None:
        """Test that the redis backend cannot be selected without a URL."""
        with pytest.raises(ValueError, match="redis_url is required"):
            AuthzConfig(hierarchy_backend="redis")

    def test_invalid_backend(self) -> None:
        """Test that unknown backends are rejected."""
        with pytest.raises(ValueError):
            AuthzConfig(hierarchy_backend="postgres")

    def test_roles_from_comma_string(self) -> None:
        """Test roles parsed from a comma-separated string."""
        config = AuthzConfig(roles="viewer, champion,,viewer")
        assert config.roles == ("viewer", "champion")

    def test_roles_empty_rejected(self) -> None:
        """Test that an empty role set is rejected."""
        with pytest.raises(ValueError, match="At least one role"):
            AuthzConfig(roles=[])

    def test_extra_fields_forbidden(self) -> None:
        """Test that unknown fields are rejected."""
        with pytest.raises(ValueError):
            AuthzConfig(unknown_field="x")


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env function."""

    def test_load_defaults(self) -> None:
        """Test loading config with no environment variables."""
        with patch.dict(os.environ, {}, clear=True):
            config = load_config_from_env()
        assert config.log_level == LogLevel.INFO
        assert config.hierarchy_backend == HierarchyBackend.FIXTURE
        assert config.roles == DEFAULT_ROLES
        assert config.policy_store_id is None

    def test_load_from_env(self) -> None:
        """Test loading config from environment variables."""
        env = {
            "LOG_LEVEL": "WARNING",
            "LOG_JSON": "true",
            "HIERARCHY_BACKEND": "redis",
            "REDIS_URL": "redis://cache:6379/2",
            "HIERARCHY_REDIS_PREFIX": "h",
            "ENTITY_NAMESPACE": "Sandbox",
            "SYSTEM_ROOT_ID": "sandbox",
            "KNOWN_ROLES": "viewer,administrator",
            "BATCH_CONFLICT_POLICY": "first_wins",
            "POLICY_STORE_ID": "ps-abc",
            "AWS_REGION": "us-east-1",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config_from_env()
        assert config.log_level == LogLevel.WARNING
        assert config.log_json is True
        assert config.hierarchy_backend == HierarchyBackend.REDIS
        assert config.redis_url == "redis://cache:6379/2"
        assert config.redis_prefix == "h"
        assert config.entity_namespace == "Sandbox"
        assert config.system_root_id == "sandbox"
        assert config.roles == ("viewer", "administrator")
        assert config.batch_conflict_policy == BatchConflictPolicy.FIRST_WINS
        assert config.policy_store_id == "ps-abc"
        assert config.aws_region == "us-east-1"

    def test_log_json_false_values(self) -> None:
        """Test that LOG_JSON only enables on truthy strings."""
        with patch.dict(os.environ, {"LOG_JSON": "no"}, clear=True):
            assert load_config_from_env().log_json is False
