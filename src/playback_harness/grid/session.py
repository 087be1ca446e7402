"""Lifecycle of the single remote browser session used by a suite."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from ..constants import (
    HARNESS_READY_SELECTOR,
    PAGE_READY_TIMEOUT_SECONDS,
    RETRY_DEFAULT_MAX_ATTEMPTS,
    RETRY_INTERVAL_SECONDS,
    SAUCE_JOB_URL_TEMPLATE,
    SCRIPT_TIMEOUT_SECONDS,
)
from ..exceptions import NavigationError, PageNotReadyError, SessionAcquisitionError
from ..runtime import RunContext
from ..utils import retry
from .capabilities import BrowserCapabilities, GridSettings
from .driver import DriverFactory, create_driver


async def run_blocking(func: Callable[..., Any], *args: Any) -> Any:
    """Run a blocking WebDriver call in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: func(*args))


@dataclass
class RemoteSession:
    """One live connection to the automation grid.

    Attributes:
        driver: Selenium driver bound to the session
        session_id: Opaque identifier assigned by the grid
        capabilities: Capabilities echoed back by the grid
        script_timeout: Bound in seconds applied to every injected probe
        alive: False once the session has been quit
        stalled: True once a probe outlived its timeout and its command may still
            be running, after which only ``quit`` may touch the session
    """

    driver: Any
    session_id: str
    capabilities: dict[str, Any] = field(default_factory=dict)
    script_timeout: float = SCRIPT_TIMEOUT_SECONDS
    alive: bool = True
    stalled: bool = False

    async def execute_async_script(self, script: str, *args: Any) -> Any:
        return await run_blocking(self.driver.execute_async_script, script, *args)

    async def execute_script(self, script: str, *args: Any) -> Any:
        return await run_blocking(self.driver.execute_script, script, *args)

    async def page_source(self) -> str:
        return await run_blocking(lambda: self.driver.page_source)


class RemoteSessionManager:
    """Acquires, navigates and releases exactly one remote session.

    Acquisition and navigation are retried with a fixed interval. Release is
    idempotent so it can sit in a ``finally`` block or an ``async with``:

    ```python
    async with RemoteSessionManager(grid, session_name="suite") as manager:
        session = await manager.acquire(browser)
        await manager.navigate_and_wait_ready(page_url)
    ```
    """

    def __init__(
        self,
        grid: GridSettings,
        session_name: str,
        run_context: Optional[RunContext] = None,
        driver_factory: DriverFactory = create_driver,
        script_timeout: float = SCRIPT_TIMEOUT_SECONDS,
        ready_selector: str = HARNESS_READY_SELECTOR,
        ready_timeout: float = PAGE_READY_TIMEOUT_SECONDS,
        ready_poll_interval: float = 0.5,
        max_attempts: int = RETRY_DEFAULT_MAX_ATTEMPTS,
        retry_interval: float = RETRY_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize session manager.

        Args:
            grid: Grid endpoint and credentials
            session_name: Name shown on the grid dashboard
            run_context: Context whose observers receive status updates
            driver_factory: Callable creating a driver (browser, grid, name)
            script_timeout: Script timeout set on the session, in seconds
            ready_selector: CSS selector proving the harness page initialized
            ready_timeout: Seconds to wait for the readiness marker
            ready_poll_interval: Seconds between readiness checks
            max_attempts: Attempts for acquisition and navigation
            retry_interval: Fixed delay between attempts, in seconds
            sleep: Awaitable sleep used between attempts
        """
        self.grid = grid
        self.session_name = session_name
        self.run_context = run_context or RunContext()
        self.driver_factory = driver_factory
        self.script_timeout = script_timeout
        self.ready_selector = ready_selector
        self.ready_timeout = ready_timeout
        self.ready_poll_interval = ready_poll_interval
        self.max_attempts = max_attempts
        self.retry_interval = retry_interval
        self._sleep = sleep
        self.session: Optional[RemoteSession] = None

    async def __aenter__(self) -> "RemoteSessionManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.release()

    async def acquire(self, capabilities: BrowserCapabilities) -> RemoteSession:
        """Request a session from the grid, retrying failed attempts.

        Args:
            capabilities: Target browser descriptor

        Returns:
            The open RemoteSession

        Raises:
            SessionAcquisitionError: If every attempt failed
        """
        if self.session is not None and self.session.alive:
            return self.session

        start = time.perf_counter()

        async def attempt() -> RemoteSession:
            await self.run_context.notify_status("Retrieving web driver session...")
            driver = await run_blocking(
                self.driver_factory, capabilities, self.grid, self.session_name
            )
            try:
                await run_blocking(driver.set_script_timeout, self.script_timeout)
                session_id = getattr(driver, "session_id", None)
                if not session_id:
                    raise SessionAcquisitionError("Grid did not return a session id")
            except Exception:
                await self._quit_driver(driver)
                raise
            return RemoteSession(
                driver=driver,
                session_id=str(session_id),
                capabilities=dict(getattr(driver, "capabilities", None) or {}),
                script_timeout=self.script_timeout,
            )

        try:
            session = await retry(
                attempt,
                max_attempts=self.max_attempts,
                interval_seconds=self.retry_interval,
                on_retry=self._status_on_retry("Session acquisition"),
                sleep=self._sleep,
            )
        except Exception as exc:
            raise SessionAcquisitionError(f"failed setting up session: {exc}") from exc

        self.session = session
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        await self.run_context.notify_status(f"Retrieved session in {elapsed_ms}ms")
        if self.grid.is_sauce:
            job_url = SAUCE_JOB_URL_TEMPLATE.format(session_id=session.session_id)
            await self.run_context.notify_status(f"Job URL: {job_url}")
        else:
            await self.run_context.notify_status(f"WebDriver SessionID: {session.session_id}")
        return session

    async def navigate_and_wait_ready(self, url: str) -> None:
        """Open the harness page and wait until its script has initialized.

        Navigation succeeding does not mean the harness globals exist, so each
        attempt also waits for the readiness marker. On a readiness timeout
        the page source is reported before the attempt fails.

        Args:
            url: Harness page URL

        Raises:
            NavigationError: If the last attempt could not open the page
            PageNotReadyError: If the last attempt never saw the marker
        """
        session = self._require_session()

        async def attempt() -> None:
            try:
                await run_blocking(session.driver.get, url)
            except Exception as exc:
                raise NavigationError(f"failed to open test page: {url}: {exc}") from exc

            try:
                await run_blocking(self._wait_for_marker, session.driver)
            except TimeoutException as exc:
                source = await self._capture_page_source(session)
                await self.run_context.notify_status(
                    f"Failed to load test page, source of other page below.\n{source}",
                    "warning",
                )
                raise PageNotReadyError(
                    f"Harness marker '{self.ready_selector}' not found within "
                    f"{self.ready_timeout}s",
                    page_source=source,
                ) from exc
            except Exception as exc:
                raise PageNotReadyError(
                    f"Harness marker '{self.ready_selector}' check failed: {exc}"
                ) from exc

        await retry(
            attempt,
            max_attempts=self.max_attempts,
            interval_seconds=self.retry_interval,
            on_retry=self._status_on_retry("Loading test page"),
            sleep=self._sleep,
        )

    async def fetch_remote_log(self) -> Optional[str]:
        """Read the harness page's running text log."""
        session = self._require_session()
        try:
            log = await session.execute_script("return logString")
        except Exception as exc:
            await self.run_context.notify_status(f"Could not read remote log: {exc}", "warning")
            return None
        return None if log is None else str(log)

    async def release(self) -> None:
        """Quit the session if one is open. Safe to call more than once."""
        session = self.session
        if session is None or not session.alive:
            return

        if session.stalled:
            await self.run_context.notify_status(
                "Quitting a session whose last probe never returned", "warning"
            )
        await self.run_context.notify_status("Quitting browser...")
        try:
            await self._quit_driver(session.driver)
        finally:
            session.alive = False
            self.session = None
        await self.run_context.notify_status("Browser quit.")

    def _require_session(self) -> RemoteSession:
        if self.session is None or not self.session.alive:
            raise SessionAcquisitionError("No remote session has been acquired")
        return self.session

    def _wait_for_marker(self, driver: Any) -> None:
        WebDriverWait(
            driver,
            self.ready_timeout,
            poll_frequency=self.ready_poll_interval,
        ).until(
            EC.presence_of_element_located((By.CSS_SELECTOR, self.ready_selector)),
            "Failed to load test page, source of other page below.",
        )

    async def _capture_page_source(self, session: RemoteSession) -> str:
        try:
            return await session.page_source()
        except Exception as exc:
            return f"<page source unavailable: {exc}>"

    async def _quit_driver(self, driver: Any) -> None:
        try:
            await run_blocking(driver.quit)
        except Exception as exc:
            await self.run_context.notify_status(
                f"Discarding half-open session failed: {exc}", "warning"
            )

    def _status_on_retry(self, label: str) -> Callable[[int, Exception, float], Awaitable[None]]:
        async def on_retry(attempt: int, exc: Exception, delay: float) -> None:
            await self.run_context.notify_status(
                f"{label} attempt {attempt}/{self.max_attempts} failed: {exc}. "
                f"Retrying in {delay:g}s",
                "warning",
            )

        return on_retry
