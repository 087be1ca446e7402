"""Selenium driver construction for local browsers and remote grids."""

from __future__ import annotations

from typing import Any, Callable

from selenium import webdriver
from selenium.webdriver.common.options import ArgOptions

from ..exceptions import ConfigurationError
from .capabilities import BrowserCapabilities, GridSettings, build_capability_map

DriverFactory = Callable[[BrowserCapabilities, GridSettings, str], Any]

_OPTIONS_BY_BROWSER: dict[str, Callable[[], ArgOptions]] = {
    "chrome": webdriver.ChromeOptions,
    "firefox": webdriver.FirefoxOptions,
    "MicrosoftEdge": webdriver.EdgeOptions,
    "edge": webdriver.EdgeOptions,
    "safari": webdriver.SafariOptions,
}

_LOCAL_DRIVERS: dict[str, Callable[..., Any]] = {
    "chrome": webdriver.Chrome,
    "firefox": webdriver.Firefox,
    "MicrosoftEdge": webdriver.Edge,
    "edge": webdriver.Edge,
    "safari": webdriver.Safari,
}


def build_options(
    browser: BrowserCapabilities,
    grid: GridSettings,
    session_name: str,
) -> ArgOptions:
    """Translate the browser descriptor into a Selenium options object."""
    options_cls = _OPTIONS_BY_BROWSER.get(browser.name, ArgOptions)
    options = options_cls()

    for arg in browser.args:
        options.add_argument(arg)

    for key, value in build_capability_map(browser, grid, session_name).items():
        options.set_capability(key, value)

    return options


def create_driver(
    browser: BrowserCapabilities,
    grid: GridSettings,
    session_name: str,
) -> Any:
    """Start a browser session and return the Selenium driver.

    A remote grid URL selects ``webdriver.Remote``; otherwise a local browser
    is launched through Selenium Manager.

    Args:
        browser: Target browser descriptor
        grid: Grid endpoint and credentials
        session_name: Name shown on the grid dashboard

    Returns:
        Connected Selenium WebDriver

    Raises:
        ConfigurationError: If a local run asks for an unsupported browser
    """
    options = build_options(browser, grid, session_name)

    if grid.is_remote:
        return webdriver.Remote(command_executor=grid.url, options=options)

    driver_cls = _LOCAL_DRIVERS.get(browser.name)
    if driver_cls is None:
        raise ConfigurationError(
            f"Browser '{browser.name}' cannot be launched locally. "
            f"Supported: {', '.join(sorted(_LOCAL_DRIVERS))}"
        )
    return driver_cls(options=options)
