"""GitHub Action entry point for the App Runner deployer.

Reads the action inputs, reconciles the service once and reports service-id,
service-arn and service-url as step outputs. Any failure, including invalid
inputs, ends up as a single ::error:: annotation and a non-zero exit code.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from datetime import UTC, datetime

from .client import AppRunnerClient
from .config import Config, ConfigurationError
from .orchestrator import Orchestrator
from .outputs import GitHubActionsOutput

# LogRecord attributes that are not user-supplied extra fields
_RESERVED_RECORD_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


# Extra fields that identify the service or call, emitted ahead of the rest
_CONTEXT_KEYS = ("service_name", "service_arn", "operation", "operation_id")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, service identifiers first."""

    def format(self, record: logging.LogRecord) -> str:
        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS
        }

        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
        }
        for key in _CONTEXT_KEYS:
            if key in extra:
                log_data[key] = extra.pop(key)
        log_data["message"] = record.getMessage()
        log_data["logger"] = record.name
        log_data.update(extra)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging() -> None:
    """Configure structured logging; RUNNER_DEBUG=1 enables debug output."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if os.environ.get("RUNNER_DEBUG") == "1" else logging.INFO)

    # Reduce noise from the AWS SDK
    for noisy in ("boto3", "botocore", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


async def main() -> int:
    """Run one reconciliation from the action inputs.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    setup_logging()
    logger = logging.getLogger(__name__)
    sink = GitHubActionsOutput()

    try:
        config = Config.from_env()
    except ConfigurationError as e:
        logger.error("Configuration error", extra={"error": str(e)})
        sink.fail(str(e))
        return sink.exit_code

    client = AppRunnerClient.for_region(config.region)
    result = await Orchestrator(client, sink).run(config)

    if result.success:
        logger.info("App Runner step - DONE!")
    return sink.exit_code


def run() -> None:
    """Entry point for the action container."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
