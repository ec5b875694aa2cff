"""Pytest configuration and fixtures."""

import logging
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests to path for apprunner_mock imports
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from apprunner_mock import ACCESS_ROLE_ARN, CONNECTION_ARN, IMAGE_URI, FakeAppRunnerApi  # noqa: E402

from apprunner_deploy.client import AppRunnerClient  # noqa: E402
from apprunner_deploy.config import Config  # noqa: E402
from apprunner_deploy.models import CodeSource, ImageSource  # noqa: E402


@pytest.fixture
def api() -> FakeAppRunnerApi:
    """Scripted App Runner API."""
    return FakeAppRunnerApi()


@pytest.fixture
def client(api: FakeAppRunnerApi) -> AppRunnerClient:
    """AppRunnerClient backed by the scripted API."""
    return AppRunnerClient(api, api_timeout_seconds=5)


@pytest.fixture
def image_source() -> ImageSource:
    return ImageSource(image_uri=IMAGE_URI, access_role_arn=ACCESS_ROLE_ARN)


@pytest.fixture
def code_source() -> CodeSource:
    return CodeSource(
        repo_url="https://github.com/example/my-api",
        branch="main",
        connection_arn=CONNECTION_ARN,
        runtime="PYTHON_3",
        build_command="pip install -r requirements.txt",
        start_command="python app.py",
    )


@pytest.fixture
def image_config(image_source: ImageSource) -> Config:
    """Image-based config that does not wait."""
    return Config(service_name="my-api", source=image_source)


@pytest.fixture
def code_config(code_source: CodeSource) -> Config:
    """Code-based config that does not wait."""
    return Config(service_name="my-api", source=code_source)


@pytest.fixture
def restore_root_logging() -> Generator[None, None, None]:
    """Undo handlers and level changes made by logging setup under test."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for handler in [h for h in root.handlers if h not in before]:
        root.removeHandler(handler)
    root.setLevel(level)
