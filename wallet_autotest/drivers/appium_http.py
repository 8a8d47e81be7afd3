from __future__ import annotations

import base64
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from wallet_autotest.utils.logger import request_logger

W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"


class AppiumHTTPError(RuntimeError):
    def __init__(
        self,
        *,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        response_json: Optional[Dict[str, Any]] = None,
        response_text: Optional[str] = None,
        connection_error: bool = False
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response_json = response_json
        self.response_text = response_text
        self.connection_error = connection_error

    @property
    def w3c_error(self) -> Optional[str]:
        """W3C error code such as ``no such element`` or ``invalid session id``."""
        if not isinstance(self.response_json, dict):
            return None
        value = _extract_webdriver_value(self.response_json)
        if isinstance(value, dict):
            return value.get("error")
        return None


@dataclass(frozen=True)
class WebDriverElementRef:
    element_id: str

    def to_w3c(self) -> Dict[str, str]:
        return {W3C_ELEMENT_KEY: self.element_id, "ELEMENT": self.element_id}


def _extract_webdriver_value(payload: Dict[str, Any]) -> Any:
    # W3C wraps results in {"value": ...}
    if "value" in payload:
        return payload["value"]
    return payload


def _extract_element_id(element_obj: Any) -> str:
    if not isinstance(element_obj, dict):
        raise ValueError(f"Unexpected element payload type: {type(element_obj)}")
    if element_obj.get(W3C_ELEMENT_KEY):
        return str(element_obj[W3C_ELEMENT_KEY])
    # legacy JSONWire key
    if element_obj.get("ELEMENT"):
        return str(element_obj["ELEMENT"])
    raise ValueError(f"Could not extract element id from payload keys: {list(element_obj.keys())}")


class AppiumHTTPClient:
    """
    Minimal W3C WebDriver client for an Appium server or a cloud grid hub.

    Every call goes through ``_request`` which logs it via the ``api`` logger
    and raises ``AppiumHTTPError`` for transport failures, HTTP errors and
    non-JSON bodies.
    """

    def __init__(self, server_url: str, *, timeout_s: float = 30.0, session: Optional[requests.Session] = None) -> None:
        if not server_url:
            raise ValueError("server_url is required")
        self.server_url = server_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session_id: Optional[str] = None
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.server_url}{path}"
        request_id = request_logger.log_request(method, url, json)
        started = time.perf_counter()
        try:
            response = self._session.request(method, url, json=json, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise AppiumHTTPError(
                message=f"Failed to call Appium server: {e}",
                method=method,
                url=url,
                connection_error=True,
            ) from e
        request_logger.log_response(
            request_id, response.status_code, method, url,
            duration_ms=(time.perf_counter() - started) * 1000
        )

        response_text = None
        response_json: Optional[Dict[str, Any]] = None
        try:
            response_json = response.json()
        except ValueError:
            response_text = response.text

        if response.status_code >= 400:
            details = None
            if isinstance(response_json, dict):
                value = _extract_webdriver_value(response_json)
                if isinstance(value, dict):
                    details = value.get("error") or value.get("message")
            raise AppiumHTTPError(
                message=f"Appium HTTP {response.status_code} for {method} {path}"
                + (f": {details}" if details else ""),
                method=method,
                url=url,
                status_code=response.status_code,
                response_json=response_json,
                response_text=response_text,
            )

        if not isinstance(response_json, dict):
            raise AppiumHTTPError(
                message=f"Appium returned non-JSON response for {method} {path}",
                method=method,
                url=url,
                status_code=response.status_code,
                response_text=response_text,
            )
        return response_json

    # ---- Session ----
    def create_session(self, session_payload: Dict[str, Any]) -> str:
        """
        Create a session from a W3C payload:
          {"capabilities": {"alwaysMatch": {...}, "firstMatch": [{}]}}
        """
        if not isinstance(session_payload, dict) or not session_payload:
            raise ValueError("session_payload must be a non-empty dict")

        response = self._request("POST", "/session", json=session_payload)
        value = _extract_webdriver_value(response)
        session_id = value.get("sessionId") if isinstance(value, dict) else None
        session_id = session_id or response.get("sessionId")
        if not session_id:
            raise AppiumHTTPError(
                message="Appium did not return a sessionId in the create_session response",
                method="POST",
                url=f"{self.server_url}/session",
                response_json=response,
            )
        self.session_id = str(session_id)
        return self.session_id

    def delete_session(self) -> None:
        if not self.session_id:
            return
        session_id = self.session_id
        try:
            self._request("DELETE", f"/session/{session_id}")
        finally:
            self.session_id = None

    def get_screenshot_png_bytes(self) -> bytes:
        value = self._session_get("/screenshot", str, "base64 string")
        try:
            return base64.b64decode(value)
        except ValueError as e:
            raise AppiumHTTPError(
                message=f"Failed to decode screenshot base64: {e}",
                method="GET",
                url=f"{self.server_url}/session/{self.session_id}/screenshot",
            ) from e

    # ---- Elements ----
    def find_elements(self, *, using: str, value: str) -> List[WebDriverElementRef]:
        self._require_session()
        if not using or not value:
            raise ValueError("'using' and 'value' are required to find elements")
        response = self._request(
            "POST",
            f"/session/{self.session_id}/elements",
            json={"using": using, "value": value},
        )
        payload = _extract_webdriver_value(response)
        if not isinstance(payload, list):
            raise AppiumHTTPError(
                message="Unexpected /elements response shape (expected list)",
                method="POST",
                url=f"{self.server_url}/session/{self.session_id}/elements",
                response_json=response,
            )
        try:
            return [WebDriverElementRef(element_id=_extract_element_id(item)) for item in payload]
        except ValueError as e:
            raise AppiumHTTPError(
                message=f"Malformed element in /elements response: {e}",
                method="POST",
                url=f"{self.server_url}/session/{self.session_id}/elements",
                response_json=response,
            ) from e

    def get_element_text(self, element: WebDriverElementRef) -> str:
        return self._session_get(f"/element/{element.element_id}/text", str, "string")

    def is_displayed(self, element: WebDriverElementRef) -> bool:
        return bool(self._session_get(f"/element/{element.element_id}/displayed", bool, "boolean"))

    def is_enabled(self, element: WebDriverElementRef) -> bool:
        return bool(self._session_get(f"/element/{element.element_id}/enabled", bool, "boolean"))

    def click(self, element: WebDriverElementRef) -> None:
        self._require_session()
        self._request("POST", f"/session/{self.session_id}/element/{element.element_id}/click", json={})

    def clear(self, element: WebDriverElementRef) -> None:
        self._require_session()
        self._request("POST", f"/session/{self.session_id}/element/{element.element_id}/clear", json={})

    def send_keys(self, element: WebDriverElementRef, *, text: str) -> None:
        self._require_session()
        if text is None:
            raise ValueError("text must not be None")
        # servers differ on `text` vs `value` (list of chars); send both
        self._request(
            "POST",
            f"/session/{self.session_id}/element/{element.element_id}/value",
            json={"text": text, "value": list(text)},
        )

    def execute_script(self, script: str, args: Optional[List[Any]] = None) -> Any:
        """``execute/sync``: with UiAutomator2 this runs ``mobile:`` commands."""
        self._require_session()
        response = self._request(
            "POST",
            f"/session/{self.session_id}/execute/sync",
            json={"script": script, "args": args or []},
        )
        return _extract_webdriver_value(response)

    # ---- internals ----
    def _session_get(self, path: str, expected_type: type, type_name: str) -> Any:
        self._require_session()
        response = self._request("GET", f"/session/{self.session_id}{path}")
        value = _extract_webdriver_value(response)
        if not isinstance(value, expected_type):
            raise AppiumHTTPError(
                message=f"Unexpected {path} response shape (expected {type_name})",
                method="GET",
                url=f"{self.server_url}/session/{self.session_id}{path}",
                response_json=response,
            )
        return value

    def _require_session(self) -> None:
        if not self.session_id:
            raise RuntimeError("No active Appium session. Call create_session() first.")
