"""Find an existing App Runner service by name."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .client import AppRunnerClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExistingService:
    """A service found in the account, as of the listing call."""

    arn: str
    status: str


class ServiceLocator:
    """Pages through ListServices looking for an exact name match."""

    def __init__(self, client: AppRunnerClient) -> None:
        self._client = client

    async def locate(self, service_name: str) -> ExistingService | None:
        """Return the named service, or None once every page has been read.

        Stops at the first match without fetching further pages. Listing
        errors propagate unchanged.
        """
        next_token: str | None = None
        pages = 0

        while True:
            page = await self._client.list_services(next_token)
            pages += 1

            for summary in page.services:
                if summary.service_name == service_name:
                    logger.info(
                        "Found existing service",
                        extra={
                            "service_name": service_name,
                            "service_arn": summary.service_arn,
                            "status": summary.status,
                            "pages_read": pages,
                        },
                    )
                    return ExistingService(arn=summary.service_arn, status=summary.status)

            next_token = page.next_token
            if not next_token:
                break

        logger.info(
            "No existing service found",
            extra={"service_name": service_name, "pages_read": pages},
        )
        return None
