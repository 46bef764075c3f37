"""Unit tests for the Playwright render host and scoped ownership."""

from unittest.mock import MagicMock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from docraster.pipeline.errors import RenderUnavailable
from docraster.pipeline.readiness import ReadinessPolicy
from docraster.pipeline.render_host import (
    HostOwnership,
    PlaywrightRenderHost,
    acquire_render_host,
    scoped_host,
)

NO_WAIT = ReadinessPolicy(load_timeout_ms=50, settle_delay_ms=0, poll_interval_ms=0, max_wait_ms=0)


def _mock_page(height=1500):
    page = MagicMock()
    page.evaluate.return_value = height
    page.viewport_size = {"width": 794, "height": 1123}
    return page


def _mock_driver(launch_error=None):
    """Playwright driver whose objects record close order in driver.closed."""
    driver = MagicMock()
    closed = []
    driver.closed = closed
    driver.stop.side_effect = lambda: closed.append("driver")

    page = _mock_page()
    page.close.side_effect = lambda: closed.append("page")
    context = MagicMock()
    context.new_page.return_value = page
    context.close.side_effect = lambda: closed.append("context")
    browser = MagicMock()
    browser.new_context.return_value = context
    browser.close.side_effect = lambda: closed.append("browser")

    if launch_error is not None:
        driver.chromium.launch.side_effect = launch_error
    else:
        driver.chromium.launch.return_value = browser
    driver.page = page
    driver.browser = browser
    return driver


def _patched_playwright(driver):
    starter = MagicMock()
    starter.start.return_value = driver
    return patch("docraster.pipeline.render_host.sync_playwright", return_value=starter)


class TestAcquire:
    """Test creating and releasing owned hosts."""

    def test_acquire_configures_isolated_context(self):
        driver = _mock_driver()
        with _patched_playwright(driver):
            host = PlaywrightRenderHost.acquire(794, viewport_height_px=1123, supersample=2)

        driver.chromium.launch.assert_called_once_with(headless=True, executable_path=None)
        driver.browser.new_context.assert_called_once_with(
            viewport={"width": 794, "height": 1123},
            device_scale_factor=2,
        )
        assert host.viewport_width_px == 794
        assert host.supersample == 2
        assert not host.released
        host.release()

    def test_release_closes_in_reverse_order(self):
        driver = _mock_driver()
        with _patched_playwright(driver):
            host = PlaywrightRenderHost.acquire(794)
        host.release()

        assert driver.closed == ["page", "context", "browser", "driver"]
        assert host.released

    def test_release_twice_is_noop(self):
        driver = _mock_driver()
        with _patched_playwright(driver):
            host = PlaywrightRenderHost.acquire(794)
        host.release()
        host.release()

        assert driver.closed.count("driver") == 1

    def test_launch_failure_raises_and_cleans_up(self):
        """Scenario D: nothing is left running after RenderUnavailable."""
        driver = _mock_driver(launch_error=PlaywrightError("Executable doesn't exist"))
        with _patched_playwright(driver):
            with pytest.raises(RenderUnavailable, match="Executable doesn't exist"):
                PlaywrightRenderHost.acquire(794)

        assert driver.closed == ["driver"]

    def test_acquire_render_host_releases_on_error(self):
        driver = _mock_driver()
        with _patched_playwright(driver):
            with pytest.raises(ValueError):
                with acquire_render_host(794) as host:
                    raise ValueError("boom")

        assert host.released
        assert driver.closed == ["page", "context", "browser", "driver"]


class TestLoadAndMeasure:
    """Test loading HTML with fallback on timeouts."""

    def test_load_waits_for_stable_height(self):
        page = _mock_page(height=2000)
        host = PlaywrightRenderHost(page, 794, 2)

        result = host.load("<p>hej</p>", NO_WAIT)

        page.set_content.assert_called_once_with("<p>hej</p>", wait_until="load", timeout=50)
        page.wait_for_function.assert_called_once()
        assert result.height == 2000

    def test_load_timeout_falls_back(self):
        """A missing load event is an expected path, not an error."""
        page = _mock_page(height=900)
        page.set_content.side_effect = PlaywrightTimeoutError("Timeout 50ms exceeded")
        page.wait_for_function.side_effect = PlaywrightTimeoutError("Timeout 50ms exceeded")
        host = PlaywrightRenderHost(page, 794, 2)

        result = host.load("<img src='https://slow.example/logo.png'>", NO_WAIT)

        assert result.height == 900

    def test_load_error_raises_render_unavailable(self):
        page = _mock_page()
        page.set_content.side_effect = PlaywrightError("Target page, context or browser has been closed")
        host = PlaywrightRenderHost(page, 794, 2)

        with pytest.raises(RenderUnavailable, match="Failed to load"):
            host.load("<p/>", NO_WAIT)

    def test_measure_height_rounds_and_clamps(self):
        page = _mock_page(height=None)
        host = PlaywrightRenderHost(page, 794, 2)
        assert host.measure_height() == 0

    def test_released_host_is_unavailable(self):
        host = PlaywrightRenderHost(_mock_page(), 794, 2)
        host.release()
        with pytest.raises(RenderUnavailable, match="released"):
            host.measure_height()

    def test_screenshot_clips_full_content(self):
        page = _mock_page()
        page.screenshot.return_value = b"png"
        host = PlaywrightRenderHost(page, 794, 2)

        assert host.screenshot(794, 1500) == b"png"
        kwargs = page.screenshot.call_args.kwargs
        assert kwargs["clip"] == {"x": 0, "y": 0, "width": 794, "height": 1500}
        assert kwargs["full_page"] is True

    def test_screenshot_band_offset(self):
        page = _mock_page()
        page.screenshot.return_value = b"png"
        host = PlaywrightRenderHost(page, 794, 2)

        host.screenshot(794, 904, 4096)
        assert page.screenshot.call_args.kwargs["clip"] == {"x": 0, "y": 4096, "width": 794, "height": 904}


class TestFromPage:
    """Test wrapping a page owned by the caller."""

    def test_matching_device_scale(self):
        host = PlaywrightRenderHost.from_page(_mock_page(height=2), supersample=2)
        assert host.supersample == 2

    def test_device_scale_mismatch_rejected(self):
        """A 1x page cannot be captured as a 2x surface."""
        with pytest.raises(RenderUnavailable, match="does not match supersample 2"):
            PlaywrightRenderHost.from_page(_mock_page(height=1), supersample=2)

    @pytest.mark.parametrize("ratio", [1.5, 0.5, None])
    def test_fractional_device_scale_rejected(self, ratio):
        with pytest.raises(RenderUnavailable, match="whole-number"):
            PlaywrightRenderHost.from_page(_mock_page(height=ratio))

    def test_from_page_reads_geometry(self):
        page = _mock_page(height=2)
        host = PlaywrightRenderHost.from_page(page)
        assert host.viewport_width_px == 794
        assert host.supersample == 2

    def test_release_of_wrapped_page_closes_nothing(self):
        page = _mock_page(height=2)
        host = PlaywrightRenderHost.from_page(page)
        host.release()
        page.close.assert_not_called()

    def test_inaccessible_page(self):
        page = _mock_page()
        page.evaluate.side_effect = PlaywrightError("closed")
        with pytest.raises(RenderUnavailable, match="Cannot access"):
            PlaywrightRenderHost.from_page(page)


class TestScopedHost:
    """Test owned vs borrowed release semantics."""

    def test_owned_released_once(self, make_host):
        host = make_host(10)
        with scoped_host(host, HostOwnership.OWNED):
            pass
        assert host.released
        assert host.close_calls == 1

    def test_owned_released_on_exception(self, make_host):
        host = make_host(10)
        with pytest.raises(KeyboardInterrupt):
            with scoped_host(host, HostOwnership.OWNED):
                raise KeyboardInterrupt()
        assert host.close_calls == 1

    def test_borrowed_never_released(self, make_host):
        host = make_host(10)
        with pytest.raises(RuntimeError):
            with scoped_host(host, HostOwnership.BORROWED):
                raise RuntimeError("boom")
        assert not host.released
        assert host.close_calls == 0
