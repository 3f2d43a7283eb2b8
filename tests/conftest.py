"""
FILE: tests/conftest.py
Shared fixtures: path-based markers and the in-process stub platform.
"""

from pathlib import Path

import pytest

from src.infrastructure.observability import correlation_id_var
from tests.shared.stub_platform import StubPlatform


def _has_marker(item: pytest.Item, name: str) -> bool:
    return item.get_closest_marker(name) is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if (
            _has_marker(item, "unit")
            or _has_marker(item, "integration")
            or _has_marker(item, "e2e")
        ):
            continue

        path = Path(str(item.fspath)).as_posix().lower()
        if "/tests/integration/" in path or "_integration.py" in path:
            item.add_marker(pytest.mark.integration)
            continue
        if "/tests/e2e/" in path:
            item.add_marker(pytest.mark.e2e)
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def isolated_platform_env(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch):
    """Offline tests never see a developer's live platform credentials."""
    if request.node.get_closest_marker("integration") is None:
        for name in (
            "PLATFORM_API_URL",
            "PLATFORM_ACCESS_TOKEN",
            "PLATFORM_TIMEOUT_SECONDS",
            "PLATFORM_APPLICATION_NAME",
        ):
            monkeypatch.delenv(name, raising=False)
    token = correlation_id_var.set("")
    yield
    correlation_id_var.reset(token)


@pytest.fixture
def stub_platform() -> StubPlatform:
    return StubPlatform()


@pytest.fixture
def api_factory(stub_platform: StubPlatform):
    with stub_platform.api_factory() as factory:
        yield factory
