"""Request payload construction for the App Runner API.

Translates a validated Config into the keyword arguments boto3 expects for
CreateService, UpdateService and TagResource.
"""

from __future__ import annotations

from typing import Any

from .config import Config
from .models import CodeSource, ImageSource


class CommandBuilder:
    """Builds App Runner request payloads from a Config."""

    def build_create_request(self, config: Config) -> dict[str, Any]:
        """Build CreateService arguments."""
        request: dict[str, Any] = {
            "ServiceName": config.service_name,
            "InstanceConfiguration": self._instance_configuration(config),
            "SourceConfiguration": self._source_configuration(config, is_create=True),
        }
        if config.auto_scaling_config_arn:
            request["AutoScalingConfigurationArn"] = config.auto_scaling_config_arn
        if config.tags:
            request["Tags"] = self.build_tags(config)
        return request

    def build_update_request(self, service_arn: str, config: Config) -> dict[str, Any]:
        """Build UpdateService arguments.

        UpdateService does not accept tags; they are synced with TagResource.
        """
        request: dict[str, Any] = {
            "ServiceArn": service_arn,
            "InstanceConfiguration": self._instance_configuration(config),
            "SourceConfiguration": self._source_configuration(config, is_create=False),
        }
        if config.auto_scaling_config_arn:
            request["AutoScalingConfigurationArn"] = config.auto_scaling_config_arn
        return request

    def build_tags(self, config: Config) -> list[dict[str, str]]:
        """Render tags as the Key/Value list the API expects."""
        return [{"Key": key, "Value": value} for key, value in config.tags.items()]

    def _instance_configuration(self, config: Config) -> dict[str, str]:
        instance: dict[str, str] = {
            "Cpu": f"{config.cpu:g} vCPU",
            "Memory": f"{config.memory:g} GB",
        }
        if config.instance_role_arn:
            instance["InstanceRoleArn"] = config.instance_role_arn
        return instance

    def _runtime_values(self, config: Config) -> dict[str, Any]:
        values: dict[str, Any] = {"Port": str(config.port)}
        if config.environment:
            values["RuntimeEnvironmentVariables"] = dict(config.environment)
        if config.environment_secrets:
            values["RuntimeEnvironmentSecrets"] = dict(config.environment_secrets)
        return values

    def _source_configuration(self, config: Config, is_create: bool) -> dict[str, Any]:
        match config.source:
            case ImageSource() as image:
                return {
                    "AuthenticationConfiguration": {"AccessRoleArn": image.access_role_arn},
                    "ImageRepository": {
                        "ImageIdentifier": image.image_uri,
                        "ImageRepositoryType": image.repository_type,
                        "ImageConfiguration": self._runtime_values(config),
                    },
                }

            case CodeSource() as code:
                source: dict[str, Any] = {
                    "AuthenticationConfiguration": {"ConnectionArn": code.connection_arn},
                    "CodeRepository": {
                        "RepositoryUrl": code.repo_url,
                        "SourceCodeVersion": {"Type": "BRANCH", "Value": code.branch},
                        "CodeConfiguration": {
                            "ConfigurationSource": "API",
                            "CodeConfigurationValues": {
                                "Runtime": code.runtime,
                                "BuildCommand": code.build_command,
                                "StartCommand": code.start_command,
                                **self._runtime_values(config),
                            },
                        },
                    },
                }
                if is_create:
                    source["AutoDeploymentsEnabled"] = True
                return source

            case _:
                raise ValueError(f"Unsupported source: {type(config.source).__name__}")
