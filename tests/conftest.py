"""Shared fixtures for docraster tests."""

import pytest

from docraster.config.profile_manager import reset_profile
from docraster.models.page_spec import PhysicalPageSpec
from docraster.pipeline.orchestration import PipelineSettings
from docraster.pipeline.readiness import ReadinessPolicy

from fake_host import FakeRenderHost


@pytest.fixture
def a4():
    """Contract A4 page spec: 794x1123 px, 210x297 mm, 2x, 0.95."""
    return PhysicalPageSpec()


@pytest.fixture
def settings(a4):
    """Pipeline settings that never wait."""
    return PipelineSettings(
        page=a4,
        readiness=ReadinessPolicy(settle_delay_ms=0, poll_interval_ms=0, max_wait_ms=0),
    )


@pytest.fixture
def make_host():
    """Factory for FakeRenderHost instances."""
    def _make(content_height_px: int, **kwargs) -> FakeRenderHost:
        return FakeRenderHost(content_height_px, **kwargs)
    return _make


@pytest.fixture(autouse=True)
def _isolate_profile(monkeypatch):
    """Keep environment overrides and the global profile out of tests."""
    for name in (
        "DOCRASTER_MAX_PAGES",
        "DOCRASTER_LOAD_TIMEOUT_MS",
        "DOCRASTER_SETTLE_DELAY_MS",
        "DOCRASTER_MAX_WAIT_MS",
        "DOCRASTER_HEADLESS",
        "DOCRASTER_BROWSER_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_profile()
    yield
    reset_profile()
