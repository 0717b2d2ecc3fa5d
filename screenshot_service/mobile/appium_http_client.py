from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Optional

import requests

_W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"
_RECT_KEYS = ("x", "y", "width", "height")


class AppiumHTTPError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        response_json: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response_json = response_json


@dataclass(frozen=True)
class WebDriverElementRef:
    element_id: str


def _unwrap(payload: dict[str, Any]) -> Any:
    return payload.get("value", payload)


def _element_id(element_obj: Any) -> str:
    # W3C key first, then the legacy JSONWire one.
    if isinstance(element_obj, dict):
        for key in (_W3C_ELEMENT_KEY, "ELEMENT"):
            if element_obj.get(key):
                return str(element_obj[key])
    raise ValueError(f"Could not extract element id from {element_obj!r}")


def build_tap_actions(*, x: int, y: int, hold_ms: int = 80) -> dict[str, Any]:
    """
    W3C pointer-action payload for a single touch tap at viewport coordinates.
    """
    return {
        "actions": [
            {
                "type": "pointer",
                "id": "finger1",
                "parameters": {"pointerType": "touch"},
                "actions": [
                    {"type": "pointerMove", "duration": 0, "origin": "viewport", "x": x, "y": y},
                    {"type": "pointerDown", "button": 0},
                    {"type": "pause", "duration": hold_ms},
                    {"type": "pointerUp", "button": 0},
                ],
            }
        ]
    }


class AppiumHTTPClient:
    """
    Appium client over the handful of WebDriver HTTP endpoints a screenshot
    run needs: session lifecycle, source, screenshot, window rect, element
    lookup and click, pointer-action tap and activate_app.
    """

    def __init__(self, server_url: str, *, timeout_s: float = 30.0) -> None:
        if not server_url:
            raise ValueError("server_url is required")
        self.server_url = server_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session_id: Optional[str] = None
        self._session = requests.Session()

    def _request(self, method: str, path: str, *, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = f"{self.server_url}{path}"
        try:
            response = self._session.request(method, url, json=json, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise AppiumHTTPError(f"Failed to call Appium server: {e}", method=method, url=url) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            value = _unwrap(payload) if isinstance(payload, dict) else None
            details = (value.get("error") or value.get("message")) if isinstance(value, dict) else None
            raise AppiumHTTPError(
                f"Appium HTTP {response.status_code} for {method} {path}" + (f": {details}" if details else ""),
                method=method,
                url=url,
                status_code=response.status_code,
                response_json=payload,
            )
        if not isinstance(payload, dict):
            raise AppiumHTTPError(
                f"Appium returned non-JSON response for {method} {path}",
                method=method,
                url=url,
                status_code=response.status_code,
            )
        return payload

    def _session_call(self, method: str, suffix: str, *, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        if not self.session_id:
            raise RuntimeError("No active Appium session. Call create_session() first.")
        return self._request(method, f"/session/{self.session_id}{suffix}", json=json)

    def _session_value(self, method: str, suffix: str, expected: type, *, json: Optional[dict[str, Any]] = None) -> Any:
        response = self._session_call(method, suffix, json=json)
        value = _unwrap(response)
        if not isinstance(value, expected):
            raise AppiumHTTPError(
                f"Unexpected {suffix} response shape (expected {expected.__name__})",
                method=method,
                url=f"{self.server_url}/session/{self.session_id}{suffix}",
                response_json=response,
            )
        return value

    def create_session(self, session_payload: dict[str, Any]) -> str:
        """
        Create an Appium session, which launches the app under test.

        `session_payload` is a WebDriver new-session body, most commonly
        {"capabilities": {"alwaysMatch": {...}, "firstMatch": [{}]}}.
        """
        if not isinstance(session_payload, dict) or not session_payload:
            raise ValueError("session_payload must be a non-empty dict")

        response = self._request("POST", "/session", json=session_payload)
        value = _unwrap(response)
        session_id = (value.get("sessionId") if isinstance(value, dict) else None) or response.get("sessionId")
        if not session_id:
            raise AppiumHTTPError(
                "Appium did not return a sessionId in the create_session response",
                method="POST",
                url=f"{self.server_url}/session",
                response_json=response,
            )
        self.session_id = str(session_id)
        return self.session_id

    def delete_session(self) -> None:
        if not self.session_id:
            return
        try:
            self._session_call("DELETE", "")
        finally:
            self.session_id = None

    def get_page_source(self) -> str:
        return self._session_value("GET", "/source", str)

    def get_screenshot_png_bytes(self) -> bytes:
        encoded = self._session_value("GET", "/screenshot", str)
        try:
            return base64.b64decode(encoded, validate=True)
        except ValueError as e:
            raise AppiumHTTPError(
                f"Failed to decode screenshot base64: {e}",
                method="GET",
                url=f"{self.server_url}/session/{self.session_id}/screenshot",
            ) from e

    def get_window_rect(self) -> dict[str, float]:
        rect = self._session_value("GET", "/window/rect", dict)
        missing = [k for k in _RECT_KEYS if k not in rect]
        if missing:
            raise AppiumHTTPError(
                f"/window/rect missing keys {missing}",
                method="GET",
                url=f"{self.server_url}/session/{self.session_id}/window/rect",
                response_json={"value": rect},
            )
        return {k: float(rect[k]) for k in _RECT_KEYS}

    def find_elements(self, *, using: str, value: str) -> list[WebDriverElementRef]:
        if not using or not value:
            raise ValueError("'using' and 'value' are required to find elements")
        items = self._session_value("POST", "/elements", list, json={"using": using, "value": value})
        return [WebDriverElementRef(element_id=_element_id(item)) for item in items]

    def get_element_text(self, element: WebDriverElementRef) -> str:
        return self._session_value("GET", f"/element/{element.element_id}/text", str)

    def get_element_attribute(self, element: WebDriverElementRef, *, name: str) -> Optional[str]:
        """
        Read one element attribute (iOS `label`, Android `content-desc`).
        None when the driver reports it as null.
        """
        if not name:
            raise ValueError("attribute name is required")
        value = _unwrap(self._session_call("GET", f"/element/{element.element_id}/attribute/{name}"))
        return None if value is None else str(value)

    def click(self, element: WebDriverElementRef) -> None:
        self._session_call("POST", f"/element/{element.element_id}/click", json={})

    def tap(self, *, x: int, y: int) -> None:
        """
        Tap absolute viewport coordinates using W3C pointer actions, then
        release the input state so the next action starts clean.
        """
        self._session_call("POST", "/actions", json=build_tap_actions(x=int(x), y=int(y)))
        self._session_call("DELETE", "/actions")

    def activate_app(self, *, app_id: str) -> None:
        if not app_id:
            raise ValueError("app_id is required")
        # XCUITest reads bundleId, UiAutomator2 reads appId.
        self._session_call("POST", "/appium/device/activate_app", json={"appId": app_id, "bundleId": app_id})
