"""Tests for waiting on service stability."""

from __future__ import annotations

import pytest
from apprunner_mock import FakeAppRunnerApi, client_error, describe_response, service_dict

from apprunner_deploy.client import AppRunnerClient
from apprunner_deploy.errors import EmptyResponseError, StabilizationTimeoutError
from apprunner_deploy.waiter import StabilityWaiter

SERVICE_ARN = service_dict()["ServiceArn"]


class TestStabilityWaiter:
    """Tests for StabilityWaiter."""

    @pytest.mark.asyncio
    async def test_already_running(self, api: FakeAppRunnerApi, client: AppRunnerClient) -> None:
        """Test that a stable service costs a single describe."""
        api.script("describe_service", describe_response("RUNNING"))

        status = await StabilityWaiter(client, 0.01).wait(SERVICE_ARN, 5)

        assert status == "RUNNING"
        assert api.operations == ["describe_service"]
        assert api.calls[0].kwargs == {"ServiceArn": SERVICE_ARN}

    @pytest.mark.asyncio
    async def test_waits_through_in_progress(
        self, api: FakeAppRunnerApi, client: AppRunnerClient
    ) -> None:
        """Test polling until the status leaves OPERATION_IN_PROGRESS."""
        api.script(
            "describe_service",
            describe_response("OPERATION_IN_PROGRESS"),
            describe_response("OPERATION_IN_PROGRESS"),
            describe_response("RUNNING"),
        )

        status = await StabilityWaiter(client, 0.01).wait(SERVICE_ARN, 5)

        assert status == "RUNNING"
        assert len(api.calls) == 3

    @pytest.mark.asyncio
    async def test_failed_status_is_terminal(
        self, api: FakeAppRunnerApi, client: AppRunnerClient
    ) -> None:
        """Test that failure statuses end the wait and are returned."""
        api.script("describe_service", describe_response("CREATE_FAILED"))

        assert await StabilityWaiter(client, 0.01).wait(SERVICE_ARN, 5) == "CREATE_FAILED"

    @pytest.mark.asyncio
    async def test_missing_status_keeps_waiting(
        self, api: FakeAppRunnerApi, client: AppRunnerClient
    ) -> None:
        """Test that a descriptor without status counts as in progress."""
        unsettled = service_dict()
        del unsettled["Status"]
        api.script("describe_service", {"Service": unsettled}, describe_response("RUNNING"))

        assert await StabilityWaiter(client, 0.01).wait(SERVICE_ARN, 5) == "RUNNING"
        assert len(api.calls) == 2

    @pytest.mark.asyncio
    async def test_timeout(self, api: FakeAppRunnerApi, client: AppRunnerClient) -> None:
        """Test that a service stuck in progress times out."""
        api.always("describe_service", describe_response("OPERATION_IN_PROGRESS"))

        with pytest.raises(StabilizationTimeoutError, match=SERVICE_ARN):
            await StabilityWaiter(client, 0.05).wait(SERVICE_ARN, 0.3)

    @pytest.mark.asyncio
    async def test_absent_service_is_fatal(
        self, api: FakeAppRunnerApi, client: AppRunnerClient
    ) -> None:
        """Test that a service that cannot be described fails the wait."""
        api.script(
            "describe_service",
            client_error("ResourceNotFoundException", "gone", "DescribeService"),
        )

        with pytest.raises(EmptyResponseError):
            await StabilityWaiter(client, 0.01).wait(SERVICE_ARN, 5)
