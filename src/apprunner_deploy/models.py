"""Pydantic models for deployment sources and App Runner API responses.

These models provide:
1. Validation of the source description at the boundary
2. Tolerant parsing of boto3 response dictionaries (PascalCase aliases)
3. Status enumerations the reconciler switches on
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# Status Enumerations
# =============================================================================


class ServiceStatus(str, Enum):
    """Known App Runner service statuses.

    Remote values outside this set are kept as plain strings and treated as
    terminal by the reconciler.
    """

    CREATE_FAILED = "CREATE_FAILED"
    RUNNING = "RUNNING"
    DELETED = "DELETED"
    DELETE_FAILED = "DELETE_FAILED"
    PAUSED = "PAUSED"
    OPERATION_IN_PROGRESS = "OPERATION_IN_PROGRESS"


class OperationStatus(str, Enum):
    """Known App Runner operation statuses."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    FAILED = "FAILED"
    SUCCEEDED = "SUCCEEDED"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"
    ROLLBACK_SUCCEEDED = "ROLLBACK_SUCCEEDED"


# https://docs.aws.amazon.com/apprunner/latest/api/API_CodeConfigurationValues.html
SUPPORTED_RUNTIMES = frozenset(
    {
        "PYTHON_3",
        "PYTHON_311",
        "NODEJS_12",
        "NODEJS_14",
        "NODEJS_16",
        "NODEJS_18",
        "CORRETTO_8",
        "CORRETTO_11",
        "GO_1",
        "DOTNET_6",
        "PHP_81",
        "RUBY_31",
    }
)

DEFAULT_BRANCH = "main"
PUBLIC_ECR_PREFIX = "public.ecr"

# =============================================================================
# Source Descriptions
# =============================================================================


class CodeSource(BaseModel):
    """Deploy from a source code repository through an App Runner connection."""

    model_config = {"extra": "ignore", "populate_by_name": True, "frozen": True}

    source_type: Literal["code"] = "code"
    repo_url: Annotated[str, Field(min_length=1, alias="repo")]
    branch: str = DEFAULT_BRANCH
    connection_arn: Annotated[str, Field(min_length=1, alias="sourceConnectionArn")]
    runtime: str
    build_command: Annotated[str, Field(min_length=1, alias="buildCommand")]
    start_command: Annotated[str, Field(min_length=1, alias="startCommand")]

    @field_validator("branch")
    @classmethod
    def strip_ref_prefix(cls, v: str) -> str:
        # refs/heads/feature -> feature
        if not v:
            return DEFAULT_BRANCH
        if v.startswith("refs/"):
            parts = v.split("/")
            if len(parts) < 3 or not parts[2]:
                raise ValueError(f"branch ref is malformed: {v}")
            return parts[2]
        return v

    @field_validator("runtime")
    @classmethod
    def validate_runtime(cls, v: str) -> str:
        runtime = v.strip().upper()
        if runtime not in SUPPORTED_RUNTIMES:
            raise ValueError(
                f"runtime ({v}) does not belong to the supported range: {sorted(SUPPORTED_RUNTIMES)}"
            )
        return runtime


class ImageSource(BaseModel):
    """Deploy a container image from ECR or ECR Public."""

    model_config = {"extra": "ignore", "populate_by_name": True, "frozen": True}

    source_type: Literal["image"] = "image"
    image_uri: Annotated[str, Field(min_length=1, alias="image")]
    access_role_arn: Annotated[str, Field(min_length=1, alias="accessRoleArn")]

    @property
    def repository_type(self) -> str:
        """ECR repository type derived from the image URI."""
        return "ECR_PUBLIC" if self.image_uri.startswith(PUBLIC_ECR_PREFIX) else "ECR"


SourceConfig = CodeSource | ImageSource

# =============================================================================
# API Responses
# =============================================================================


class ServiceSummary(BaseModel):
    """One entry of a ListServices page."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    service_name: str = Field(alias="ServiceName")
    service_id: str | None = Field(None, alias="ServiceId")
    service_arn: str = Field(alias="ServiceArn")
    service_url: str | None = Field(None, alias="ServiceUrl")
    status: str = Field(alias="Status")


class ServiceListPage(BaseModel):
    """A single ListServices response."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    services: list[ServiceSummary] = Field(default_factory=list, alias="ServiceSummaryList")
    next_token: str | None = Field(None, alias="NextToken")


class ServiceRecord(BaseModel):
    """The Service object returned by create, update and describe.

    Identifier fields are optional here so that an incomplete success envelope
    can be reported as an EmptyResponseError instead of a parsing failure.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    service_name: str | None = Field(None, alias="ServiceName")
    service_id: str | None = Field(None, alias="ServiceId")
    service_arn: str | None = Field(None, alias="ServiceArn")
    service_url: str | None = Field(None, alias="ServiceUrl")
    status: str | None = Field(None, alias="Status")


class OperationSummary(BaseModel):
    """One entry of a ListOperations response."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str = Field(alias="Id")
    type: str | None = Field(None, alias="Type")
    status: str = Field(alias="Status")
    target_arn: str | None = Field(None, alias="TargetArn")
