"""Off-screen render host backed by headless Chromium (Playwright).

A render host is an isolated document context with a fixed viewport width.
It is created once per invocation (or borrowed from the caller), loaded with
HTML, measured, captured and then released exactly once when owned.

Setup (one-time):
    python -m playwright install chromium
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .errors import RenderUnavailable
from .readiness import ReadinessPolicy, ReadinessResult, wait_until_stable

logger = logging.getLogger(__name__)

# Layout height of the whole document, not of the viewport
MEASURE_HEIGHT_JS = """() => {
    const body = document.body ? document.body.scrollHeight : 0;
    const root = document.documentElement
        ? document.documentElement.getBoundingClientRect().height
        : 0;
    return Math.ceil(Math.max(body, root));
}"""

FONTS_LOADED_JS = "() => !document.fonts || document.fonts.status === 'loaded'"


class HostOwnership(Enum):
    """Who is responsible for releasing a render host."""

    OWNED = "owned"
    BORROWED = "borrowed"


class RenderHost(ABC):
    """Abstract render host.

    Implementations must make release() safe to call on every exit path and
    must fail with RenderUnavailable once released.
    """

    def __init__(self, viewport_width_px: int, supersample: int):
        self.viewport_width_px = viewport_width_px
        self.supersample = supersample
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def _ensure_alive(self) -> None:
        if self._released:
            raise RenderUnavailable("Render host has already been released")

    @abstractmethod
    def load(self, html: str, policy: Optional[ReadinessPolicy] = None) -> ReadinessResult:
        """Load HTML and wait until its content is stable."""
        pass

    @abstractmethod
    def measure_height(self) -> int:
        """Return the rendered content height in CSS pixels."""
        pass

    @abstractmethod
    def screenshot(self, width_px: int, height_px: int, y_px: int = 0) -> bytes:
        """Capture the width_px x height_px region starting y_px down the page as PNG bytes.

        The image is produced at the host's device scale factor, so its
        pixel size is (width_px * supersample, height_px * supersample).
        """
        pass

    def release(self) -> None:
        """Remove every resource created for this host."""
        if self._released:
            logger.warning(f"{type(self).__name__} released twice, ignoring")
            return
        self._released = True
        self._close_resources()

    @abstractmethod
    def _close_resources(self) -> None:
        pass


class PlaywrightRenderHost(RenderHost):
    """Render host backed by a headless Chromium page.

    Owned hosts are created with acquire() and close their page, browser
    context, browser and Playwright driver on release. Hosts wrapping a
    caller's page with from_page() close nothing.
    """

    def __init__(
        self,
        page: Any,
        viewport_width_px: int,
        supersample: int,
        resources: Optional[List[Any]] = None,
    ):
        super().__init__(viewport_width_px, supersample)
        self.page = page
        # Closed in reverse creation order
        self._resources = list(resources or [])

    @classmethod
    def acquire(
        cls,
        width_px: int,
        viewport_height_px: int = 1123,
        supersample: int = 2,
        headless: bool = True,
        executable_path: Optional[str] = None,
    ) -> 'PlaywrightRenderHost':
        """Start an isolated headless browser page at a fixed viewport width.

        Args:
            width_px: Viewport width in CSS pixels
            viewport_height_px: Initial viewport height (content may be taller)
            supersample: Device scale factor for captures
            headless: Run Chromium without a visible window
            executable_path: Optional Chromium binary

        Returns:
            PlaywrightRenderHost owning its browser resources

        Raises:
            RenderUnavailable: If Playwright or Chromium cannot be started
        """
        resources: List[Any] = []
        try:
            driver = sync_playwright().start()
            resources.append(_Stoppable(driver))
            browser = driver.chromium.launch(headless=headless, executable_path=executable_path)
            resources.append(browser)
            context = browser.new_context(
                viewport={"width": width_px, "height": viewport_height_px},
                device_scale_factor=supersample,
            )
            resources.append(context)
            page = context.new_page()
            resources.append(page)
        except Exception as e:
            _close_all(resources)
            raise RenderUnavailable(
                f"Failed to start render host: {str(e)}. "
                "Is Chromium installed? Run: python -m playwright install chromium"
            ) from e

        logger.debug(f"Acquired render host {width_px}x{viewport_height_px} px @ {supersample}x")
        return cls(page, width_px, supersample, resources)

    @classmethod
    def from_page(cls, page: Any, supersample: Optional[int] = None) -> 'PlaywrightRenderHost':
        """Wrap a live page owned by the caller (e.g. an open preview).

        Args:
            page: playwright.sync_api.Page
            supersample: Expected device scale factor (read from the page if None)

        Raises:
            RenderUnavailable: If the page cannot be accessed, or its
                devicePixelRatio is fractional or differs from supersample
        """
        try:
            viewport = page.viewport_size
            ratio = page.evaluate("() => window.devicePixelRatio")
        except Exception as e:
            raise RenderUnavailable(f"Cannot access render page: {str(e)}") from e
        if not viewport:
            raise RenderUnavailable("Render page has no fixed viewport")
        if not isinstance(ratio, (int, float)) or ratio < 1 or ratio != int(ratio):
            raise RenderUnavailable(
                f"Render page devicePixelRatio {ratio!r} is not a whole-number scale"
            )
        if supersample is not None and int(ratio) != supersample:
            raise RenderUnavailable(
                f"Render page devicePixelRatio {ratio} does not match supersample {supersample}"
            )
        return cls(page, int(viewport["width"]), int(ratio))

    def load(self, html: str, policy: Optional[ReadinessPolicy] = None) -> ReadinessResult:
        """Load HTML, then wait for load event, fonts and a stable layout height.

        A timeout on the load event or on fonts falls through to the
        stable-height check instead of failing.
        """
        self._ensure_alive()
        policy = policy or ReadinessPolicy()
        try:
            self.page.set_content(html, wait_until="load", timeout=policy.load_timeout_ms)
        except PlaywrightTimeoutError:
            logger.info(f"Load event not seen within {policy.load_timeout_ms} ms, using fallback")
        except PlaywrightError as e:
            raise RenderUnavailable(f"Failed to load document: {str(e)}") from e

        try:
            self.page.wait_for_function(FONTS_LOADED_JS, timeout=policy.load_timeout_ms)
        except PlaywrightTimeoutError:
            logger.info(f"Fonts still loading after {policy.load_timeout_ms} ms, continuing")
        except PlaywrightError as e:
            raise RenderUnavailable(f"Render page became inaccessible: {str(e)}") from e

        return wait_until_stable(
            self.measure_height,
            policy,
            sleep=lambda seconds: self.page.wait_for_timeout(seconds * 1000.0),
        )

    def measure_height(self) -> int:
        self._ensure_alive()
        try:
            height = self.page.evaluate(MEASURE_HEIGHT_JS)
        except PlaywrightError as e:
            raise RenderUnavailable(f"Failed to measure content height: {str(e)}") from e
        return max(0, int(height or 0))

    def screenshot(self, width_px: int, height_px: int, y_px: int = 0) -> bytes:
        self._ensure_alive()
        return self.page.screenshot(
            clip={"x": 0, "y": y_px, "width": width_px, "height": height_px},
            full_page=True,
            type="png",
            animations="disabled",
        )

    def _close_resources(self) -> None:
        _close_all(self._resources)
        self._resources = []
        logger.debug("Released render host")


class _Stoppable:
    """Adapter giving the Playwright driver a close() method."""

    def __init__(self, driver: Any):
        self.driver = driver

    def close(self) -> None:
        self.driver.stop()


def _close_all(resources: List[Any]) -> None:
    """Close resources in reverse order, continuing past failures."""
    for resource in reversed(resources):
        try:
            resource.close()
        except Exception as e:
            logger.warning(f"Failed to close {type(resource).__name__}: {e}")


@contextmanager
def scoped_host(host: RenderHost, ownership: HostOwnership) -> Iterator[RenderHost]:
    """Scope a host so that owned hosts are released on every exit path.

    Borrowed hosts are never released here; their owner does that.
    """
    try:
        yield host
    finally:
        if ownership is HostOwnership.OWNED:
            host.release()


@contextmanager
def acquire_render_host(
    width_px: int,
    viewport_height_px: int = 1123,
    supersample: int = 2,
    headless: bool = True,
    executable_path: Optional[str] = None,
) -> Iterator[PlaywrightRenderHost]:
    """Acquire an owned Playwright host and release it when the block exits."""
    host = PlaywrightRenderHost.acquire(
        width_px,
        viewport_height_px=viewport_height_px,
        supersample=supersample,
        headless=headless,
        executable_path=executable_path,
    )
    with scoped_host(host, HostOwnership.OWNED):
        yield host
