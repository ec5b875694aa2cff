"""Create, update or recreate the service so it matches the desired Config.

The choice between the three is made once, by resolve_plan, from the result of
the service lookup:

    existing?  status          plan
    ---------  --------------  ---------------------
    no         -               CREATE
    yes        CREATE_FAILED   DELETE_THEN_RECREATE
    yes        anything else   UPDATE_IN_PLACE

Exactly one mutating call is issued per plan, plus TagResource before an update
when tags are declared and the delete that precedes a recreation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .client import AppRunnerClient
from .commands import CommandBuilder
from .config import DELETE_WAIT_TIMEOUT_SECONDS, Config
from .errors import DeleteRecreateError, EmptyResponseError
from .locator import ExistingService
from .models import ServiceRecord, ServiceStatus
from .waiter import StabilityWaiter

logger = logging.getLogger(__name__)


class MutationPlan(str, Enum):
    """What the mutator will do with the service."""

    CREATE = "create"
    UPDATE_IN_PLACE = "update"
    DELETE_THEN_RECREATE = "recreate"


@dataclass(frozen=True)
class ServiceInfo:
    """Identifiers of the service after mutation.

    url is empty for services only reachable from a private network.
    operation_id is only set when the mutation was an update.
    """

    id: str
    arn: str
    url: str = ""
    operation_id: str | None = None


def resolve_plan(existing: ExistingService | None) -> MutationPlan:
    """Pick the mutation for the current remote state."""
    if existing is None:
        return MutationPlan.CREATE
    if existing.status == ServiceStatus.CREATE_FAILED:
        return MutationPlan.DELETE_THEN_RECREATE
    return MutationPlan.UPDATE_IN_PLACE


class Mutator:
    """Submits the create, update or delete-then-create for one service."""

    def __init__(
        self,
        client: AppRunnerClient,
        waiter: StabilityWaiter,
        builder: CommandBuilder | None = None,
        delete_timeout_seconds: float = DELETE_WAIT_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._waiter = waiter
        self._builder = builder or CommandBuilder()
        self._delete_timeout_seconds = delete_timeout_seconds

    async def mutate(self, config: Config, existing: ExistingService | None) -> ServiceInfo:
        """Bring the remote service in line with config.

        Raises:
            EmptyResponseError: If the response lacks the service, its id or arn.
            DeleteRecreateError: If a failed service did not end up DELETED.
            RemoteCallError: If any API call fails.
        """
        plan = resolve_plan(existing)
        logger.info(
            "Mutation planned",
            extra={"service_name": config.service_name, "plan": plan.value},
        )

        if plan == MutationPlan.CREATE:
            return await self._create(config)
        if existing is None:
            raise ValueError(f"Mutation plan {plan.value} requires an existing service")

        match plan:
            case MutationPlan.DELETE_THEN_RECREATE:
                await self._delete(existing.arn)
                return await self._create(config)

            case MutationPlan.UPDATE_IN_PLACE:
                return await self._update(config, existing.arn)

        raise ValueError(f"Unsupported mutation plan: {plan}")

    async def _create(self, config: Config) -> ServiceInfo:
        logger.info("Creating service", extra={"service_name": config.service_name})
        service = await self._client.create_service(self._builder.build_create_request(config))
        return _to_service_info(config.service_name, service, operation_id=None)

    async def _update(self, config: Config, service_arn: str) -> ServiceInfo:
        if config.tags:
            logger.info(
                "Syncing service tags",
                extra={"service_arn": service_arn, "tag_count": len(config.tags)},
            )
            await self._client.tag_resource(service_arn, self._builder.build_tags(config))

        logger.info(
            "Updating existing service",
            extra={"service_name": config.service_name, "service_arn": service_arn},
        )
        service, operation_id = await self._client.update_service(
            self._builder.build_update_request(service_arn, config)
        )
        if operation_id:
            logger.info("Update operation started", extra={"operation_id": operation_id})
        return _to_service_info(config.service_name, service, operation_id=operation_id)

    async def _delete(self, service_arn: str) -> None:
        logger.warning(
            "Service is in CREATE_FAILED state, deleting before recreation",
            extra={"service_arn": service_arn},
        )
        await self._client.delete_service(service_arn)

        status = await self._waiter.wait(service_arn, self._delete_timeout_seconds)
        if status != ServiceStatus.DELETED:
            raise DeleteRecreateError(service_arn, status)

        logger.info("Failed service deleted", extra={"service_arn": service_arn})


def _to_service_info(
    service_name: str, service: ServiceRecord | None, operation_id: str | None
) -> ServiceInfo:
    if service is None:
        raise EmptyResponseError(
            f"Failed to create or update service {service_name} - "
            "App Runner returned an empty response"
        )
    if not service.service_id:
        raise EmptyResponseError(f"App Runner returned an empty ServiceId for {service_name}")
    if not service.service_arn:
        raise EmptyResponseError(f"App Runner returned an empty ServiceArn for {service_name}")

    info = ServiceInfo(
        id=service.service_id,
        arn=service.service_arn,
        url=service.service_url or "",
        operation_id=operation_id,
    )
    logger.info(
        "Service mutation submitted",
        extra={"service_id": info.id, "service_arn": info.arn, "service_url": info.url},
    )
    return info
