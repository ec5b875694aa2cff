"""Wait for an App Runner service to leave OPERATION_IN_PROGRESS."""

from __future__ import annotations

import logging

from .client import AppRunnerClient
from .config import POLL_INTERVAL_SECONDS
from .errors import EmptyResponseError
from .models import ServiceStatus
from .polling import poll_until

logger = logging.getLogger(__name__)


class StabilityWaiter:
    """Polls DescribeService until the status is terminal."""

    def __init__(
        self,
        client: AppRunnerClient,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._client = client
        self._poll_interval_seconds = poll_interval_seconds

    async def wait(self, service_arn: str, timeout_seconds: float) -> str:
        """Block until the service status is anything but in-progress.

        Returns:
            The terminal status (RUNNING, DELETED, CREATE_FAILED, ...).

        Raises:
            EmptyResponseError: If the service cannot be described.
            StabilizationTimeoutError: If the timeout elapses first.
        """
        logger.info(
            "Waiting for service to reach stable state",
            extra={"service_arn": service_arn, "timeout_seconds": timeout_seconds},
        )

        status = await poll_until(
            lambda: self._describe_status(service_arn),
            lambda current: current != ServiceStatus.OPERATION_IN_PROGRESS,
            timeout_seconds=timeout_seconds,
            poll_interval_seconds=self._poll_interval_seconds,
            description=f"Service {service_arn}",
        )

        logger.info(
            "Service reached stable state",
            extra={"service_arn": service_arn, "status": status},
        )
        return status

    async def _describe_status(self, service_arn: str) -> str:
        service = await self._client.describe_service(service_arn)
        if service is None:
            raise EmptyResponseError(f"App Runner could not describe service {service_arn}")
        # A missing status means App Runner has not settled yet
        return service.status or ServiceStatus.OPERATION_IN_PROGRESS.value
