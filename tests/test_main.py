"""Tests for the GitHub Action entry point."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from apprunner_mock import (
    ACCESS_ROLE_ARN,
    IMAGE_URI,
    FakeAppRunnerApi,
    client_error,
    list_page,
    service_dict,
)

from apprunner_deploy.client import AppRunnerClient
from apprunner_deploy.main import JsonFormatter, main


@pytest.fixture
def action_env(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    client: AppRunnerClient,
    restore_root_logging: None,
) -> Path:
    """Action inputs for an image deployment; returns the output file."""
    output_file = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output_file))
    monkeypatch.setenv("INPUT_SERVICE", "my-api")
    monkeypatch.setenv("INPUT_IMAGE", IMAGE_URI)
    monkeypatch.setenv("INPUT_ACCESS-ROLE-ARN", ACCESS_ROLE_ARN)
    monkeypatch.setattr(AppRunnerClient, "for_region", staticmethod(lambda region: client))
    return output_file


class TestMain:
    """Tests for main()."""

    @pytest.mark.asyncio
    async def test_success_writes_outputs(
        self, api: FakeAppRunnerApi, action_env: Path
    ) -> None:
        """Test that a successful run writes the three outputs and exits 0."""
        api.script("list_services", list_page())
        api.script("create_service", {"Service": service_dict()})

        exit_code = await main()

        assert exit_code == 0
        assert action_env.read_text().splitlines() == [
            "service-id=svc-0123456789",
            f"service-arn={service_dict()['ServiceArn']}",
            "service-url=abc123.us-east-1.awsapprunner.com",
        ]

    @pytest.mark.asyncio
    async def test_failure_exits_non_zero(
        self, api: FakeAppRunnerApi, action_env: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test that a failed run emits one error annotation."""
        api.script("list_services", client_error("AccessDeniedException", "no", "ListServices"))

        exit_code = await main()

        assert exit_code == 1
        out = capsys.readouterr().out
        errors = [line for line in out.splitlines() if line.startswith("::error")]
        assert errors == ["::error::list_services failed (AccessDeniedException): no"]

    @pytest.mark.asyncio
    async def test_invalid_inputs(
        self,
        api: FakeAppRunnerApi,
        action_env: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test that configuration errors fail the step without calling App Runner."""
        monkeypatch.setenv("INPUT_REPO", "https://github.com/example/my-api")

        exit_code = await main()

        assert exit_code == 1
        assert api.calls == []
        assert (
            "::error::Either docker image registry or code repository expected, not both"
            in capsys.readouterr().out
        )


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_extra_fields(self) -> None:
        """Test that extra fields are merged into the JSON record."""
        record = logging.LogRecord(
            "apprunner_deploy.locator", logging.INFO, __file__, 1, "Found", None, None
        )
        record.service_arn = "arn:x"

        data = json.loads(JsonFormatter().format(record))

        assert data["message"] == "Found"
        assert data["level"] == "INFO"
        assert data["logger"] == "apprunner_deploy.locator"
        assert data["service_arn"] == "arn:x"
        assert data["timestamp"].endswith("Z")

    def test_context_fields_lead(self) -> None:
        """Test that service identifiers come right after the level."""
        record = logging.LogRecord(
            "apprunner_deploy.client", logging.DEBUG, __file__, 1, "App Runner call", None, None
        )
        record.created = 0.0
        record.elapsed = 1.5
        record.operation = "describe_service"
        record.service_name = "my-api"

        data = json.loads(JsonFormatter().format(record))

        assert list(data)[:6] == [
            "timestamp",
            "level",
            "service_name",
            "operation",
            "message",
            "logger",
        ]
        assert data["elapsed"] == 1.5
        assert data["timestamp"] == "1970-01-01T00:00:00.000Z"
