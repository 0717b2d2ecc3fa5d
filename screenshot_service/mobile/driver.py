from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .appium_http_client import AppiumHTTPClient, WebDriverElementRef


@dataclass(frozen=True)
class Locator:
    using: str
    value: str

    def __str__(self) -> str:
        return f"{self.using}:{self.value}"


def parse_locator(raw: Any, *, context: str) -> Locator:
    """
    Accept either {"using": ..., "value": ...} or a bare string, which is
    treated as an accessibility id (the identifier XCUITest exposes).
    """
    if isinstance(raw, str):
        if not raw.strip():
            raise ValueError(f"{context}: locator string must be non-empty")
        return Locator(using="accessibility id", value=raw.strip())
    if not isinstance(raw, dict):
        raise ValueError(f"{context}: locator must be an object or a string")
    using = raw.get("using")
    value = raw.get("value")
    if not isinstance(using, str) or not using.strip():
        raise ValueError(f"{context}: 'using' must be a non-empty string")
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{context}: 'value' must be a non-empty string")
    return Locator(using=using.strip(), value=value.strip())


class AppiumUiDriver:
    """
    The small driver surface the screenshot sequencer talks to, backed by an
    Appium session.

    Any object with the same methods (launch, frame, tap, element_exists,
    element_label, click, screenshot_png, page_source) can stand in for it.
    """

    def __init__(self, client: AppiumHTTPClient, *, app_id: Optional[str] = None) -> None:
        self.client = client
        self.app_id = app_id

    def launch(self) -> None:
        # Session creation already launched the app; only re-activate when asked to.
        if self.app_id:
            self.client.activate_app(app_id=self.app_id)

    def frame(self) -> tuple[float, float]:
        rect = self.client.get_window_rect()
        return rect["width"], rect["height"]

    def tap(self, x: float, y: float) -> None:
        self.client.tap(x=round(x), y=round(y))

    def _first(self, locator: Locator) -> Optional[WebDriverElementRef]:
        elements = self.client.find_elements(using=locator.using, value=locator.value)
        return elements[0] if elements else None

    def element_exists(self, locator: Locator) -> bool:
        return self._first(locator) is not None

    def element_label(self, locator: Locator) -> Optional[str]:
        element = self._first(locator)
        if element is None:
            return None
        label = self.client.get_element_attribute(element, name="label")
        if label:
            return label
        text = self.client.get_element_text(element).strip()
        return text or None

    def click(self, locator: Locator) -> bool:
        element = self._first(locator)
        if element is None:
            return False
        self.client.click(element)
        return True

    def screenshot_png(self) -> bytes:
        return self.client.get_screenshot_png_bytes()

    def page_source(self) -> str:
        return self.client.get_page_source()
