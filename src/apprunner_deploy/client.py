"""Async wrapper over the boto3 App Runner client.

boto3 calls block, so each one runs in the default executor and is bounded by
an API-call timeout. Only the waiting is abandoned on timeout; a request that
already reached App Runner is not cancelled.

Responses are parsed into the pydantic models in models.py and every botocore
failure is surfaced as RemoteCallError naming the failed operation.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import API_CALL_TIMEOUT_SECONDS
from .errors import RemoteCallError
from .models import OperationSummary, ServiceListPage, ServiceRecord

logger = logging.getLogger(__name__)

RESOURCE_NOT_FOUND = "ResourceNotFoundException"


class AppRunnerClient:
    """The remote operations the reconciler needs, nothing more.

    The wrapped client is used read-only and may be shared by every
    component of a run.
    """

    def __init__(self, client: Any, api_timeout_seconds: float = API_CALL_TIMEOUT_SECONDS) -> None:
        """Initialize with a boto3 (or compatible) App Runner client.

        Args:
            client: Object exposing the boto3 apprunner method names.
            api_timeout_seconds: Upper bound for one API round trip.
        """
        self._client = client
        self._api_timeout_seconds = api_timeout_seconds

    @classmethod
    def for_region(cls, region: str) -> AppRunnerClient:
        """Create a client using boto3's default credential chain."""
        return cls(boto3.client("apprunner", region_name=region))

    async def list_services(self, next_token: str | None = None) -> ServiceListPage:
        """Fetch one page of service summaries."""
        kwargs: dict[str, Any] = {}
        if next_token:
            kwargs["NextToken"] = next_token
        response = await self._call("list_services", **kwargs)
        return ServiceListPage.model_validate(response)

    async def create_service(self, request: dict[str, Any]) -> ServiceRecord | None:
        """Submit CreateService and return the service descriptor, if any."""
        response = await self._call("create_service", **request)
        return _parse_service(response)

    async def update_service(
        self, request: dict[str, Any]
    ) -> tuple[ServiceRecord | None, str | None]:
        """Submit UpdateService.

        Returns:
            The service descriptor and the id of the asynchronous operation
            the update started.
        """
        response = await self._call("update_service", **request)
        return _parse_service(response), response.get("OperationId") or None

    async def delete_service(self, service_arn: str) -> None:
        """Submit DeleteService."""
        await self._call("delete_service", ServiceArn=service_arn)

    async def describe_service(self, service_arn: str) -> ServiceRecord | None:
        """Describe a service; None when App Runner no longer knows it."""
        try:
            response = await self._call("describe_service", ServiceArn=service_arn)
        except RemoteCallError as e:
            if e.error_code == RESOURCE_NOT_FOUND:
                return None
            raise
        return _parse_service(response)

    async def tag_resource(self, resource_arn: str, tags: list[dict[str, str]]) -> None:
        """Attach tags to a resource."""
        await self._call("tag_resource", ResourceArn=resource_arn, Tags=tags)

    async def list_operations(self, service_arn: str) -> list[OperationSummary]:
        """Fetch the most recent operations recorded for a service."""
        response = await self._call("list_operations", ServiceArn=service_arn)
        return [
            OperationSummary.model_validate(entry)
            for entry in response.get("OperationSummaryList") or []
        ]

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        """Execute one API call in the executor with a timeout.

        Raises:
            RemoteCallError: If the call fails or exceeds the API timeout.
        """
        method = getattr(self._client, operation)
        loop = asyncio.get_running_loop()

        logger.debug("App Runner call", extra={"operation": operation})

        try:
            response = await asyncio.wait_for(
                loop.run_in_executor(None, functools.partial(method, **kwargs)),
                timeout=self._api_timeout_seconds,
            )
        except TimeoutError as e:
            logger.error(
                f"{operation} timed out",
                extra={"operation": operation, "timeout_seconds": self._api_timeout_seconds},
            )
            raise RemoteCallError(
                operation, f"timed out after {self._api_timeout_seconds} seconds"
            ) from e
        except ClientError as e:
            error = e.response.get("Error", {})
            raise RemoteCallError(
                operation, error.get("Message") or str(e), error.get("Code")
            ) from e
        except BotoCoreError as e:
            raise RemoteCallError(operation, str(e)) from e

        return response or {}


def _parse_service(response: dict[str, Any]) -> ServiceRecord | None:
    service = response.get("Service")
    if not service:
        return None
    return ServiceRecord.model_validate(service)
