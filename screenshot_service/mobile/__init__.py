"""
Store screenshot capture over Appium.

The app's tab bar is driven by tapping computed coordinates (or clicking an
element when one is exposed), with fixed or stable-frame settle waits between
steps. Everything talks to the Appium server over plain WebDriver HTTP.
"""

from .appium_http_client import AppiumHTTPClient, AppiumHTTPError, WebDriverElementRef
from .driver import AppiumUiDriver, Locator
from .flows import run_tab_screenshots
from .sequencer import (
    CapturedArtifact,
    Destination,
    ScreenshotSequencer,
    SequencerError,
    compute_tap_point,
)

__all__ = [
    "AppiumHTTPClient",
    "AppiumHTTPError",
    "WebDriverElementRef",
    "AppiumUiDriver",
    "Locator",
    "run_tab_screenshots",
    "CapturedArtifact",
    "Destination",
    "ScreenshotSequencer",
    "SequencerError",
    "compute_tap_point",
]
