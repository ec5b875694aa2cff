"""Error taxonomy for service reconciliation.

Every error raised by the reconciliation core derives from DeploymentError so
the orchestrator can turn the first failure into a single report. None of these
are retried: the only repetition in a run is pagination and the stabilization
poll loop, neither of which is an error retry.
"""

from __future__ import annotations


class DeploymentError(Exception):
    """Base class for reconciliation failures."""

    pass


class RemoteCallError(DeploymentError):
    """Raised when an App Runner API call fails or times out."""

    def __init__(self, operation: str, message: str, error_code: str | None = None) -> None:
        self.operation = operation
        self.error_code = error_code
        prefix = f"{operation} failed"
        if error_code:
            prefix = f"{prefix} ({error_code})"
        super().__init__(f"{prefix}: {message}")


class EmptyResponseError(DeploymentError):
    """Raised when a successful response lacks a required field."""

    pass


class StabilizationTimeoutError(DeploymentError):
    """Raised when a service stays in progress past its wait budget."""

    def __init__(self, message: str, elapsed_seconds: float) -> None:
        self.elapsed_seconds = elapsed_seconds
        super().__init__(message)


class OperationNotSucceededError(DeploymentError):
    """Raised when the operation triggered by an update did not succeed."""

    def __init__(self, operation_id: str, status: str) -> None:
        self.operation_id = operation_id
        self.status = status
        super().__init__(f"Operation {operation_id} did not succeed: status is {status}")


class DeleteRecreateError(DeploymentError):
    """Raised when a failed service could not be deleted before recreation."""

    def __init__(self, service_arn: str, status: str) -> None:
        self.service_arn = service_arn
        self.status = status
        super().__init__(
            f"Failed to delete service {service_arn} before recreating it: "
            f"expected status DELETED, got {status}"
        )
