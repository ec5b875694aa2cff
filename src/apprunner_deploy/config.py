"""Configuration management with validation.

The deployment description is validated once at load time so the reconciler
never has to second-guess its inputs. Inputs arrive either as GitHub Actions
inputs (INPUT_<NAME> environment variables) or as a mapping loaded from a
deployment file; both paths share the same parsing helpers.
"""

from __future__ import annotations

import json
import math
import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError

from .models import CodeSource, ImageSource, SourceConfig


class DeployAction(str, Enum):
    """Supported action modes."""

    CREATE_OR_UPDATE = "create_or_update"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Configuration constants with documented bounds
DEFAULT_REGION = "us-east-1"
DEFAULT_PORT = 80
DEFAULT_CPU = 1.0
DEFAULT_MEMORY = 2.0

DEFAULT_WAIT_TIMEOUT_SECONDS = 600
MIN_WAIT_TIMEOUT_SECONDS = 10
MAX_WAIT_TIMEOUT_SECONDS = 3600

# Deleting a CREATE_FAILED service before recreating it
DELETE_WAIT_TIMEOUT_SECONDS = 900

# Describe cadence while waiting for a terminal status
POLL_INTERVAL_SECONDS = 1.0

# Upper bound for a single App Runner API round trip
API_CALL_TIMEOUT_SECONDS = 60

MAX_SERVICE_NAME_LENGTH = 40
MAX_TAGS = 50

# Input validation patterns
VALID_SERVICE_NAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9\-_]*$"

InputLookup = Callable[[str], Any]


@dataclass(frozen=True)
class Config:
    """Desired state of one App Runner service.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing mid-deployment.
    """

    # Required fields
    service_name: str
    source: SourceConfig

    region: str = DEFAULT_REGION
    action: DeployAction = DeployAction.CREATE_OR_UPDATE

    # Instance shape
    port: int = DEFAULT_PORT
    cpu: float = DEFAULT_CPU
    memory: float = DEFAULT_MEMORY

    # Runtime environment
    environment: dict[str, str] = field(default_factory=dict)
    environment_secrets: dict[str, str] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)

    auto_scaling_config_arn: str | None = None
    instance_role_arn: str | None = None

    # Stabilization
    wait_for_service: bool = False
    wait_timeout_seconds: int = DEFAULT_WAIT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        errors: list[str] = []

        if not self.service_name:
            errors.append("service name is required")
        elif len(self.service_name) > MAX_SERVICE_NAME_LENGTH:
            errors.append(
                f"service name exceeds maximum length of {MAX_SERVICE_NAME_LENGTH}: "
                f"{self.service_name}"
            )
        elif not re.match(VALID_SERVICE_NAME_PATTERN, self.service_name):
            errors.append(
                f"service name must match pattern {VALID_SERVICE_NAME_PATTERN}: {self.service_name}"
            )

        if not isinstance(self.source, CodeSource | ImageSource):
            errors.append("exactly one of a code repository or an image source is required")

        if not self.region:
            errors.append("region is required")

        if not (1 <= self.port <= 65535):
            errors.append(f"port must be between 1 and 65535: {self.port}")

        if not math.isfinite(self.cpu) or self.cpu <= 0:
            errors.append(f"cpu must be positive: {self.cpu}")

        if not math.isfinite(self.memory) or self.memory <= 0:
            errors.append(f"memory must be positive: {self.memory}")

        if not (MIN_WAIT_TIMEOUT_SECONDS <= self.wait_timeout_seconds <= MAX_WAIT_TIMEOUT_SECONDS):
            errors.append(
                f"wait timeout must be between {MIN_WAIT_TIMEOUT_SECONDS} "
                f"and {MAX_WAIT_TIMEOUT_SECONDS} seconds: {self.wait_timeout_seconds}"
            )

        if len(self.tags) > MAX_TAGS:
            errors.append(f"at most {MAX_TAGS} tags are allowed, got {len(self.tags)}")
        if any(not key for key in self.tags):
            errors.append("tag keys cannot be empty")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @property
    def is_image_based(self) -> bool:
        """True when deploying a container image rather than source code."""
        return isinstance(self.source, ImageSource)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Load configuration from GitHub Actions inputs.

        The runner exposes each input as INPUT_<NAME>, upper-cased with hyphens
        preserved (e.g. INPUT_SOURCE-CONNECTION-ARN).

        Inputs:
            action: Only create_or_update is supported (default).
            service: App Runner service name (required).
            image / access-role-arn: Container image source.
            repo / branch / source-connection-arn / runtime /
            build-command / start-command: Source code source.
            region, port, cpu, memory: Placement and instance shape.
            copy-env-vars / copy-secret-env-vars: Newline-separated variable
                names copied from the runner environment.
            tags: JSON object of resource tags.
            auto-scaling-config-arn, instance-role-arn: Optional ARNs.
            wait-for-service-stability: Block until the service is stable.
            wait-for-service-stability-seconds: Wait budget; implies waiting.
        """
        env = os.environ if environ is None else environ

        def lookup(name: str) -> str | None:
            value = env.get(f"INPUT_{name.replace(' ', '_').upper()}")
            if value is None:
                return None
            value = value.strip()
            return value or None

        return cls._from_inputs(lookup, env)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> Config:
        """Load configuration from a mapping keyed by action input names.

        Besides the action inputs, a mapping may declare environment and
        environment-secrets directly as nested mappings.
        """
        env = os.environ if environ is None else environ

        def lookup(name: str) -> Any:
            value = data.get(name)
            if isinstance(value, str):
                value = value.strip()
                return value or None
            return value

        config = cls._from_inputs(lookup, env)
        extra_env = _get_str_mapping(lookup, "environment")
        extra_secrets = _get_str_mapping(lookup, "environment-secrets")
        if not extra_env and not extra_secrets:
            return config

        return cls(
            **{
                **_as_kwargs(config),
                "environment": {**config.environment, **extra_env},
                "environment_secrets": {**config.environment_secrets, **extra_secrets},
            }
        )

    @classmethod
    def _from_inputs(cls, lookup: InputLookup, env: Mapping[str, str]) -> Config:
        def get_int(key: str, default: int | None) -> int | None:
            value = lookup(key)
            if value is None:
                return default
            if isinstance(value, bool):
                raise ConfigurationError(f"{key} must be an integer: {value}")
            try:
                return int(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        def get_float(key: str, default: float) -> float:
            value = lookup(key)
            if value is None:
                return default
            if isinstance(value, bool):
                raise ConfigurationError(f"{key} must be a number: {value}")
            try:
                number = float(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"{key} must be a number: {value}") from e
            if not math.isfinite(number):
                raise ConfigurationError(f"{key} must be a finite number: {value}")
            return number

        def get_bool(key: str, default: bool) -> bool:
            value = lookup(key)
            if value is None:
                return default
            if isinstance(value, bool):
                return value
            return str(value).lower() in ("true", "1", "yes")

        def get_action(value: Any) -> DeployAction:
            if not value:
                return DeployAction.CREATE_OR_UPDATE
            try:
                return DeployAction(str(value).lower())
            except ValueError as e:
                raise ConfigurationError(f"Unsupported action: {value}") from e

        service_name = lookup("service")
        if not service_name:
            raise ConfigurationError("Input required and not supplied: service")

        wait_timeout = get_int("wait-for-service-stability-seconds", None)

        return cls(
            service_name=str(service_name),
            source=_get_source(lookup),
            region=str(lookup("region") or DEFAULT_REGION),
            action=get_action(lookup("action")),
            port=get_int("port", DEFAULT_PORT),
            cpu=get_float("cpu", DEFAULT_CPU),
            memory=get_float("memory", DEFAULT_MEMORY),
            environment=_copy_env_vars(lookup("copy-env-vars"), env),
            environment_secrets=_copy_env_vars(lookup("copy-secret-env-vars"), env),
            tags=_get_tags(lookup("tags")),
            auto_scaling_config_arn=_optional_str(lookup("auto-scaling-config-arn")),
            instance_role_arn=_optional_str(lookup("instance-role-arn")),
            wait_for_service=get_bool("wait-for-service-stability", False) or wait_timeout is not None,
            wait_timeout_seconds=(
                wait_timeout if wait_timeout is not None else DEFAULT_WAIT_TIMEOUT_SECONDS
            ),
        )


def _optional_str(value: Any) -> str | None:
    return str(value) if value else None


def _as_kwargs(config: Config) -> dict[str, Any]:
    return {name: getattr(config, name) for name in Config.__dataclass_fields__}


def _get_source(lookup: InputLookup) -> SourceConfig:
    """Build the source description; an image input switches to image mode."""
    image = lookup("image")
    try:
        if image:
            if lookup("repo"):
                raise ConfigurationError(
                    "Either docker image registry or code repository expected, not both"
                )
            return ImageSource.model_validate(
                {"image": image, "accessRoleArn": lookup("access-role-arn") or ""}
            )

        return CodeSource.model_validate(
            {
                "repo": lookup("repo") or "",
                "branch": lookup("branch") or "",
                "sourceConnectionArn": lookup("source-connection-arn") or "",
                "runtime": lookup("runtime") or "",
                "buildCommand": lookup("build-command") or "",
                "startCommand": lookup("start-command") or "",
            }
        )
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        raise ConfigurationError("Invalid source configuration:\n" + "\n".join(errors)) from e


def _copy_env_vars(names: Any, env: Mapping[str, str]) -> dict[str, str]:
    """Copy the named variables from the environment, skipping unset ones."""
    if not names:
        return {}
    if isinstance(names, str):
        names = names.splitlines()
    result: dict[str, str] = {}
    for name in names:
        name = str(name).strip()
        if name and name in env:
            result[name] = env[name]
    return result


def _get_tags(raw: Any) -> dict[str, str]:
    if not raw:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"tags must be a JSON object: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"tags must be a JSON object, got {type(raw).__name__}")
    return {str(key): str(value) for key, value in raw.items()}


def _get_str_mapping(lookup: InputLookup, key: str) -> dict[str, str]:
    value = lookup(key)
    if not value:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"{key} must be a mapping, got {type(value).__name__}")
    return {str(k): str(v) for k, v in value.items()}
