"""Deployment file loading with validation.

A deployment file is a YAML mapping keyed by the same names as the action
inputs, for example:

    service: my-api
    image: public.ecr.aws/nginx/nginx:latest
    access-role-arn: arn:aws:iam::123456789012:role/apprunner-ecr
    port: 8080
    tags: {team: platform}
    environment: {LOG_LEVEL: info}
    wait-for-service-stability: true

SECURITY: File size is checked before reading.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .config import Config, ConfigurationError

logger = logging.getLogger(__name__)

MAX_DEPLOYMENT_FILE_SIZE_BYTES = 256 * 1024


class DeploymentFileError(Exception):
    """Raised when a deployment file cannot be loaded or fails validation."""

    pass


def load_deployment_file(
    path: Path,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Config:
    """Load and validate a deployment description from YAML.

    Args:
        path: YAML file, flat or wrapped in apiVersion/kind/spec.
        environ: Source for copy-env-vars values (default: os.environ).
        overrides: Values that replace those read from the file.

    Returns:
        Validated Config.

    Raises:
        DeploymentFileError: If the file cannot be read or fails validation.
    """
    if not path.exists():
        raise DeploymentFileError(f"Deployment file not found: {path}")

    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise DeploymentFileError(f"Failed to stat deployment file {path}: {e}") from e

    if file_size > MAX_DEPLOYMENT_FILE_SIZE_BYTES:
        raise DeploymentFileError(
            f"Deployment file exceeds maximum size of {MAX_DEPLOYMENT_FILE_SIZE_BYTES} bytes: {path}"
        )

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeploymentFileError(f"Failed to read deployment file {path}: {e}") from e

    try:
        raw_data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise DeploymentFileError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw_data, dict):
        raise DeploymentFileError(f"Deployment file must contain a YAML mapping: {path}")

    # Kubernetes-style wrapper: apiVersion, kind, metadata, spec
    if "apiVersion" in raw_data and "spec" in raw_data:
        data = raw_data.get("spec")
        if not isinstance(data, dict):
            raise DeploymentFileError(f"Spec section must be a mapping: {path}")
    else:
        data = raw_data

    try:
        config = Config.from_mapping({**data, **(overrides or {})}, environ)
    except ConfigurationError as e:
        raise DeploymentFileError(f"Validation failed for {path}:\n{e}") from e

    logger.info("Loaded deployment for service '%s' from %s", config.service_name, path)
    return config
