"""SERP Engine - Browser Controller

Playwright/Chromium lifecycle for the search engine.

Handles come in two modes (headless, headed) behind one interface, and two
ownerships:
- engine-owned: launched for one request and fully closed afterwards
- caller-owned: injected (e.g. the service's shared browser), never closed
  by the engine; only the contexts the engine opened on it are closed

Every request gets its own BrowserContext seeded from the saved session
state, so requests sharing a process never share cookies beyond what the
state file intentionally carries. A handle's lock keeps navigations on it
strictly one at a time.

Hardening applied at launch/context level:
- --disable-blink-features=AutomationControlled, no --enable-automation
- no sandbox / no GPU (container friendly)
- device descriptor, locale, timezone and colour scheme from the host fingerprint
- init script masking navigator.webdriver and other automation tells
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import ConfigLoader, LaunchConfig
from .exceptions import BrowserLaunchError, NavigationError, NavigationTimeoutError
from .session_store import HostFingerprint

logger = logging.getLogger(__name__)

STEALTH_INIT_SCRIPT = """
// navigator.webdriver is the first thing bot checks look at
Object.defineProperty(navigator, 'webdriver', { get: () => undefined, configurable: true });

// Real Chrome exposes window.chrome
if (!window.chrome) {
  window.chrome = { runtime: {}, loadTimes: function() {}, csi: function() {}, app: {} };
}

// Headless Chromium reports zero plugins
Object.defineProperty(navigator, 'plugins', {
  get: () => [
    { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer', description: 'Portable Document Format' },
    { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai', description: '' },
    { name: 'Native Client', filename: 'internal-nacl-plugin', description: '' }
  ],
  configurable: true
});

// Keep navigator.languages consistent with the context locale
Object.defineProperty(navigator, 'languages', {
  get: () => [navigator.language, navigator.language.split('-')[0]],
  configurable: true
});

// Notifications permission query leaks automation when it disagrees with Notification.permission
if (window.navigator.permissions && window.navigator.permissions.query) {
  const originalQuery = window.navigator.permissions.query.bind(window.navigator.permissions);
  window.navigator.permissions.query = (parameters) => (
    parameters && parameters.name === 'notifications'
      ? Promise.resolve({ state: Notification.permission })
      : originalQuery(parameters)
  );
}
"""


class BrowserMode(str, Enum):
    """Browser execution mode."""

    HEADLESS = "headless"
    HEADED = "headed"

    @property
    def headless(self) -> bool:
        return self is BrowserMode.HEADLESS


@dataclass
class BrowserHandle:
    """
    A running browser plus its mode and ownership.

    ``lock`` must be held for the whole of a navigation-and-extract on this
    handle; BrowserSession users get that from the escalation machine.
    """

    mode: BrowserMode
    browser: Browser
    owned: bool
    playwright: Playwright | None = None
    devices: dict[str, dict[str, Any]] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def headless(self) -> bool:
        return self.mode.headless

    def borrowed(self) -> "BrowserHandle":
        """Caller-owned view of this handle (same browser, same lock)."""
        return replace(self, owned=False)


class BrowserSession:
    """
    One isolated context + page on a handle.

    Exposes the same operations whatever the handle's mode.
    """

    def __init__(self, handle: BrowserHandle, context: BrowserContext, page: Page) -> None:
        self.handle = handle
        self.context = context
        self.page = page
        self._closed = False

    @property
    def mode(self) -> BrowserMode:
        return self.handle.mode

    @property
    def url(self) -> str:
        return self.page.url

    async def navigate(self, url: str, timeout_ms: int) -> None:
        """
        Load ``url`` until DOMContentLoaded.

        Raises:
            NavigationTimeoutError: Page did not load in time
            NavigationError: Network-level failure
        """
        try:
            await self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(
                f"Navigation timed out: {e}",
                url=url,
                timeout_ms=timeout_ms,
                mode=self.mode.value,
            ) from e
        except PlaywrightError as e:
            raise NavigationError(f"Navigation failed: {e}", url=url, mode=self.mode.value) from e

    async def wait_for_any(self, selectors: list[str], timeout_ms: int | None) -> bool:
        """
        Wait until any of ``selectors`` is attached to the DOM.

        The wait survives page navigations, which is what lets a human finish
        a challenge and land on the results page while we wait.

        Args:
            selectors: CSS selectors (matched as one selector list)
            timeout_ms: Ceiling; None or 0 waits indefinitely

        Returns:
            True if a selector appeared, False on timeout
        """
        try:
            await self.page.wait_for_selector(
                ", ".join(selectors),
                state="attached",
                timeout=timeout_ms or 0,
            )
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            raise NavigationError(
                f"Page failed while waiting for results: {e}",
                url=self.page.url,
                mode=self.mode.value,
            ) from e

    async def wait_for_network_idle(self, timeout_ms: int) -> bool:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.debug(f"Network did not go idle within {timeout_ms}ms, continuing")
            return False

    async def content(self) -> str:
        return await self.page.content()

    async def screenshot(self, path: str) -> None:
        await self.page.screenshot(path=path, full_page=True)

    async def storage_state(self) -> dict[str, Any]:
        return await self.context.storage_state()

    async def close(self) -> None:
        """Close the context (and its page). Errors are logged, not raised."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.context.close()
        except Exception as e:
            logger.warning(f"Error closing browser context: {e}")


class BrowserController:
    """
    Acquires and releases browsers, opens isolated sessions on them.

    Usage:
        controller = BrowserController()
        handle = await controller.acquire(BrowserMode.HEADLESS)
        session = await controller.open_session(handle, state, fingerprint)
        ...
        await session.close()
        await controller.release(handle)
    """

    def __init__(
        self,
        launch_config: LaunchConfig | None = None,
        channel: str | None = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        if launch_config is None:
            launch_config = ConfigLoader.from_default_file().launch
        self.launch_config = launch_config
        self.channel = channel or launch_config.channel
        self._playwright_factory = playwright_factory

    async def acquire(self, mode: BrowserMode, existing: BrowserHandle | None = None) -> BrowserHandle:
        """
        Get a browser for ``mode``.

        Args:
            mode: Headless or headed
            existing: Caller-owned handle to reuse (stays caller-owned)

        Raises:
            BrowserLaunchError: Chromium could not be started
        """
        if existing is not None:
            logger.debug(f"Reusing caller-owned {existing.mode.value} browser")
            return existing.borrowed() if existing.owned else existing

        logger.info(f"Launching {mode.value} browser")
        try:
            playwright = await self._playwright_factory().start()
        except Exception as e:
            raise BrowserLaunchError(f"Could not start Playwright: {e}", headless=mode.headless) from e

        launch_kwargs: dict[str, Any] = {
            "headless": mode.headless,
            "args": list(self.launch_config.args),
            "ignore_default_args": list(self.launch_config.ignore_default_args),
        }
        if self.channel:
            launch_kwargs["channel"] = self.channel

        try:
            browser = await playwright.chromium.launch(**launch_kwargs)
        except Exception as e:
            try:
                await playwright.stop()
            except Exception as stop_error:
                logger.warning(f"Error stopping Playwright after failed launch: {stop_error}")
            raise BrowserLaunchError(f"Could not launch Chromium: {e}", headless=mode.headless) from e

        logger.debug(f"{mode.value} browser launched")
        return BrowserHandle(
            mode=mode,
            browser=browser,
            owned=True,
            playwright=playwright,
            devices=dict(getattr(playwright, "devices", {}) or {}),
        )

    def context_options(
        self,
        handle: BrowserHandle,
        storage_state: dict[str, Any] | None,
        fingerprint: HostFingerprint | None,
    ) -> dict[str, Any]:
        """Keyword arguments for Browser.new_context()."""
        options: dict[str, Any] = {}

        if fingerprint is not None:
            descriptor = handle.devices.get(fingerprint.device_name)
            if descriptor:
                options.update({k: v for k, v in descriptor.items() if k != "default_browser_type"})
            else:
                logger.debug(f"Unknown device descriptor {fingerprint.device_name!r}, using browser defaults")
            options.update(
                {
                    "locale": fingerprint.locale,
                    "timezone_id": fingerprint.timezone_id,
                    "color_scheme": fingerprint.color_scheme,
                    "reduced_motion": fingerprint.reduced_motion,
                    "forced_colors": fingerprint.forced_colors,
                }
            )

        if storage_state is not None:
            options["storage_state"] = storage_state

        return options

    async def open_session(
        self,
        handle: BrowserHandle,
        storage_state: dict[str, Any] | None = None,
        fingerprint: HostFingerprint | None = None,
    ) -> BrowserSession:
        """
        Open an isolated context seeded from ``storage_state``.

        Raises:
            BrowserLaunchError: The context could not be created
        """
        options = self.context_options(handle, storage_state, fingerprint)
        try:
            context = await handle.browser.new_context(**options)
            await context.add_init_script(STEALTH_INIT_SCRIPT)
            page = await context.new_page()
        except Exception as e:
            raise BrowserLaunchError(f"Could not open browser context: {e}", headless=handle.headless) from e

        logger.debug(
            f"Opened {handle.mode.value} context "
            f"(seeded={storage_state is not None}, device={fingerprint.device_name if fingerprint else None})"
        )
        return BrowserSession(handle, context, page)

    async def release(self, handle: BrowserHandle) -> None:
        """
        Release a handle.

        Engine-owned: browser and Playwright driver are closed.
        Caller-owned: left running.
        """
        if not handle.owned:
            logger.debug(f"Leaving caller-owned {handle.mode.value} browser running")
            return

        try:
            await handle.browser.close()
        except Exception as e:
            logger.warning(f"Error closing {handle.mode.value} browser: {e}")

        if handle.playwright is not None:
            try:
                await handle.playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")

        logger.info(f"{handle.mode.value} browser closed")


class SharedBrowser:
    """
    Process-wide headless browser for long-lived service mode.

    Constructed once, passed explicitly to the engine, closed exactly once.

    Usage:
        shared = SharedBrowser(BrowserController())
        await shared.start()
        engine = SearchEngine(shared_browser=shared)
        ...
        await shared.close()
    """

    def __init__(self, controller: BrowserController | None = None) -> None:
        self.controller = controller or BrowserController()
        self._owned_handle: BrowserHandle | None = None
        self._closed = False
        self._lifecycle_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._owned_handle is not None and not self._closed

    @property
    def handle(self) -> BrowserHandle:
        """Caller-owned view for request handlers; the engine will never close it."""
        if self._owned_handle is None or self._closed:
            raise BrowserLaunchError("Shared browser is not running", headless=True)
        return self._owned_handle.borrowed()

    async def start(self) -> BrowserHandle:
        async with self._lifecycle_lock:
            if self._closed:
                raise BrowserLaunchError("Shared browser was already closed", headless=True)
            if self._owned_handle is None:
                logger.info("Initializing shared browser instance...")
                self._owned_handle = await self.controller.acquire(BrowserMode.HEADLESS)
                logger.info("Shared browser instance ready")
        return self.handle

    async def close(self) -> None:
        """Close the shared browser. Safe to call more than once; never raises."""
        async with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True
            handle, self._owned_handle = self._owned_handle, None

        if handle is None:
            return

        logger.info("Closing shared browser instance...")
        try:
            await self.controller.release(handle)
            logger.info("Shared browser instance closed")
        except Exception as e:
            logger.error(f"Error closing shared browser instance: {e}")

    async def __aenter__(self) -> "SharedBrowser":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


__all__ = [
    "STEALTH_INIT_SCRIPT",
    "BrowserController",
    "BrowserHandle",
    "BrowserMode",
    "BrowserSession",
    "SharedBrowser",
]
