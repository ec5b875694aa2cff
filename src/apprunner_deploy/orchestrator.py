"""Single-run reconciliation of one App Runner service.

A run walks a small state machine:

    INIT -> LOCATED -> MUTATED -> [STABLE] -> [VERIFIED] -> DONE
    (any step) -> FAILED

STABLE is only entered when the config asks to wait for the service.
VERIFIED is only entered after STABLE and only for updates, since only an update
yields an operation id worth checking.

Identifiers are published as soon as the mutation returns them, so a failure
while waiting still leaves service-id, service-arn and service-url set. The
first error aborts the run and is reported exactly once through the sink.

There is no locking: at most one run per service name may be in flight, which
the caller has to guarantee.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .client import AppRunnerClient
from .config import POLL_INTERVAL_SECONDS, Config
from .errors import DeploymentError
from .locator import ServiceLocator
from .mutator import MutationPlan, Mutator, ServiceInfo, resolve_plan
from .outputs import OutputSink
from .verifier import OperationVerifier
from .waiter import StabilityWaiter

logger = logging.getLogger(__name__)

OUTPUT_SERVICE_ID = "service-id"
OUTPUT_SERVICE_ARN = "service-arn"
OUTPUT_SERVICE_URL = "service-url"


class RunState(str, Enum):
    """Reconciliation run states."""

    INIT = "init"
    LOCATED = "located"
    MUTATED = "mutated"
    STABLE = "stable"
    VERIFIED = "verified"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    """Result of a single reconciliation run."""

    service_name: str
    state: RunState = RunState.INIT
    plan: MutationPlan | None = None
    service: ServiceInfo | None = None
    final_status: str | None = None
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    error: Exception | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate duration in seconds."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def success(self) -> bool:
        """Check if the run reached DONE."""
        return self.error is None and self.state == RunState.DONE


class Orchestrator:
    """Composes locate, mutate, wait and verify into one run."""

    def __init__(
        self,
        client: AppRunnerClient,
        sink: OutputSink,
        *,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        locator: ServiceLocator | None = None,
        mutator: Mutator | None = None,
        waiter: StabilityWaiter | None = None,
        verifier: OperationVerifier | None = None,
    ) -> None:
        """Initialize with the client shared by every component.

        Args:
            client: App Runner client, used read-only.
            sink: Receives outputs and the failure message.
            poll_interval_seconds: Describe cadence while waiting.
        """
        self._sink = sink
        self._locator = locator or ServiceLocator(client)
        self._waiter = waiter or StabilityWaiter(client, poll_interval_seconds)
        self._mutator = mutator or Mutator(client, self._waiter)
        self._verifier = verifier or OperationVerifier(client)

    async def run(self, config: Config) -> ReconcileResult:
        """Reconcile the service described by config.

        Never raises for reconciliation failures; they are reported through the
        sink and recorded on the result.
        """
        result = ReconcileResult(service_name=config.service_name)

        logger.info(
            "Starting reconciliation",
            extra={
                "service_name": config.service_name,
                "region": config.region,
                "source_type": config.source.source_type,
                "wait_for_service": config.wait_for_service,
            },
        )

        try:
            existing = await self._locator.locate(config.service_name)
            result.plan = resolve_plan(existing)
            result.state = RunState.LOCATED

            service = await self._mutator.mutate(config, existing)
            result.service = service
            result.state = RunState.MUTATED
            self._publish(service)

            if config.wait_for_service:
                result.final_status = await self._waiter.wait(
                    service.arn, config.wait_timeout_seconds
                )
                result.state = RunState.STABLE

                if service.operation_id:
                    await self._verifier.verify(service.arn, service.operation_id)
                    result.state = RunState.VERIFIED
            else:
                logger.info(
                    "Service mutation started, not waiting for completion",
                    extra={"service_id": service.id},
                )

            result.state = RunState.DONE

        except DeploymentError as e:
            logger.error(
                "Reconciliation failed",
                extra={
                    "service_name": config.service_name,
                    "failed_after": result.state.value,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            self._fail(result, e)
        except Exception as e:
            logger.exception("Unexpected error during reconciliation")
            self._fail(result, e)

        result.end_time = datetime.now(UTC)
        self._log_result(result)
        return result

    def _publish(self, service: ServiceInfo) -> None:
        self._sink.set_output(OUTPUT_SERVICE_ID, service.id)
        self._sink.set_output(OUTPUT_SERVICE_ARN, service.arn)
        self._sink.set_output(OUTPUT_SERVICE_URL, service.url)

    def _fail(self, result: ReconcileResult, error: Exception) -> None:
        result.error = error
        result.state = RunState.FAILED
        self._sink.fail(failure_message(error))

    def _log_result(self, result: ReconcileResult) -> None:
        """Log run result with structured data."""
        extra: dict[str, Any] = {
            "service_name": result.service_name,
            "state": result.state.value,
            "duration_seconds": result.duration_seconds,
        }
        if result.plan is not None:
            extra["plan"] = result.plan.value
        if result.service is not None:
            extra["service_arn"] = result.service.arn
        if result.final_status is not None:
            extra["final_status"] = result.final_status

        if result.error is not None:
            extra["error"] = str(result.error)
            logger.error("Reconciliation result", extra=extra)
        else:
            logger.info("Reconciliation result", extra=extra)


def failure_message(error: BaseException) -> str:
    """Render an exception as the single string the failure channel accepts."""
    message = str(error)
    if message:
        return message
    return repr(error) if error.args else type(error).__name__
