"""Confirm that the operation started by an update actually succeeded.

A service that settles back into RUNNING after an update may have rolled the
update back. The operation history is the only place that tells the two apart.
"""

from __future__ import annotations

import logging

from .client import AppRunnerClient
from .errors import OperationNotSucceededError
from .models import OperationStatus

logger = logging.getLogger(__name__)


class OperationVerifier:
    """Checks one operation id against the service's operation history."""

    def __init__(self, client: AppRunnerClient) -> None:
        self._client = client

    async def verify(self, service_arn: str, operation_id: str) -> None:
        """Raise unless the operation succeeded or is no longer listed.

        Raises:
            OperationNotSucceededError: If the operation ended in any other status.
        """
        operations = await self._client.list_operations(service_arn)

        for operation in operations:
            if operation.id != operation_id:
                continue
            if operation.status != OperationStatus.SUCCEEDED:
                logger.error(
                    "Update operation did not succeed",
                    extra={
                        "service_arn": service_arn,
                        "operation_id": operation_id,
                        "status": operation.status,
                    },
                )
                raise OperationNotSucceededError(operation_id, operation.status)
            logger.info(
                "Update operation succeeded",
                extra={"service_arn": service_arn, "operation_id": operation_id},
            )
            return

        # Older operations age out of the history
        logger.info(
            "Update operation not found in history, assuming success",
            extra={"service_arn": service_arn, "operation_id": operation_id},
        )
