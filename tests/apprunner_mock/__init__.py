"""App Runner API mock for testing the reconciler without AWS.

Usage:
    from apprunner_mock import FakeAppRunnerApi, list_page, service_dict

    api = FakeAppRunnerApi()
    api.script("list_services", list_page())
    api.script("create_service", {"Service": service_dict()})

    result = await Orchestrator(AppRunnerClient(api), sink).run(config)
    assert api.operations == ["list_services", "create_service"]
"""

from .api import (
    ACCESS_ROLE_ARN,
    CONNECTION_ARN,
    IMAGE_URI,
    FakeAppRunnerApi,
    RecordedCall,
    UnexpectedCallError,
    client_error,
    describe_response,
    list_page,
    operations_response,
    service_dict,
    summary_dict,
)

__all__ = [
    "ACCESS_ROLE_ARN",
    "CONNECTION_ARN",
    "IMAGE_URI",
    "FakeAppRunnerApi",
    "RecordedCall",
    "UnexpectedCallError",
    "client_error",
    "describe_response",
    "list_page",
    "operations_response",
    "service_dict",
    "summary_dict",
]
