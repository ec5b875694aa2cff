"""Tests for deployment file loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from apprunner_mock import ACCESS_ROLE_ARN, CONNECTION_ARN, IMAGE_URI

from apprunner_deploy.models import CodeSource, ImageSource
from apprunner_deploy.spec_loader import (
    MAX_DEPLOYMENT_FILE_SIZE_BYTES,
    DeploymentFileError,
    load_deployment_file,
)


def _write(path: Path, data: object) -> Path:
    path.write_text(yaml.dump(data))
    return path


class TestLoadDeploymentFile:
    """Tests for load_deployment_file."""

    def test_flat_image_file(self, tmp_path: Path) -> None:
        """Test a flat file keyed by input names."""
        path = _write(
            tmp_path / "deploy.yaml",
            {
                "service": "my-api",
                "image": IMAGE_URI,
                "access-role-arn": ACCESS_ROLE_ARN,
                "region": "eu-west-1",
                "port": 8080,
                "cpu": 0.5,
                "tags": {"team": "platform"},
                "environment": {"LOG_LEVEL": "info"},
                "wait-for-service-stability": True,
            },
        )

        config = load_deployment_file(path, environ={})

        assert config.service_name == "my-api"
        assert isinstance(config.source, ImageSource)
        assert config.region == "eu-west-1"
        assert config.port == 8080
        assert config.cpu == 0.5
        assert config.tags == {"team": "platform"}
        assert config.environment == {"LOG_LEVEL": "info"}
        assert config.wait_for_service is True

    def test_wrapped_code_file(self, tmp_path: Path) -> None:
        """Test a file wrapped in apiVersion/kind/spec."""
        path = _write(
            tmp_path / "deploy.yaml",
            {
                "apiVersion": "apprunner-deploy/v1",
                "kind": "Service",
                "spec": {
                    "service": "my-api",
                    "repo": "https://github.com/example/my-api",
                    "branch": "refs/heads/release",
                    "source-connection-arn": CONNECTION_ARN,
                    "runtime": "NODEJS_18",
                    "build-command": "npm ci",
                    "start-command": "node server.js",
                    "copy-env-vars": ["API_URL", "UNSET"],
                },
            },
        )

        config = load_deployment_file(path, environ={"API_URL": "https://api.example.com"})

        assert isinstance(config.source, CodeSource)
        assert config.source.branch == "release"
        assert config.environment == {"API_URL": "https://api.example.com"}

    def test_overrides_win(self, tmp_path: Path) -> None:
        """Test that overrides replace file values."""
        path = _write(
            tmp_path / "deploy.yaml",
            {"service": "my-api", "image": IMAGE_URI, "access-role-arn": ACCESS_ROLE_ARN},
        )

        config = load_deployment_file(path, environ={}, overrides={"service": "other-api"})

        assert config.service_name == "other-api"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file is reported."""
        with pytest.raises(DeploymentFileError, match="not found"):
            load_deployment_file(tmp_path / "absent.yaml")

    def test_oversized_file(self, tmp_path: Path) -> None:
        """Test that files over the size limit are rejected before parsing."""
        path = tmp_path / "big.yaml"
        path.write_text("#" * (MAX_DEPLOYMENT_FILE_SIZE_BYTES + 1))

        with pytest.raises(DeploymentFileError, match="maximum size"):
            load_deployment_file(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test that malformed YAML is reported."""
        path = tmp_path / "bad.yaml"
        path.write_text("service: [unclosed\n")

        with pytest.raises(DeploymentFileError, match="Invalid YAML"):
            load_deployment_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """Test that a top-level list is rejected."""
        path = _write(tmp_path / "list.yaml", ["service", "my-api"])

        with pytest.raises(DeploymentFileError, match="YAML mapping"):
            load_deployment_file(path)

    def test_spec_must_be_mapping(self, tmp_path: Path) -> None:
        """Test that a wrapper with a scalar spec is rejected."""
        path = _write(tmp_path / "deploy.yaml", {"apiVersion": "v1", "spec": "my-api"})

        with pytest.raises(DeploymentFileError, match="Spec section"):
            load_deployment_file(path)

    def test_validation_failure(self, tmp_path: Path) -> None:
        """Test that configuration errors name the file."""
        path = _write(tmp_path / "deploy.yaml", {"service": "my-api", "image": IMAGE_URI})

        with pytest.raises(DeploymentFileError) as exc_info:
            load_deployment_file(path, environ={})

        assert str(path) in str(exc_info.value)
        assert "accessRoleArn" in str(exc_info.value)
