"""Low-level HTTP client for the host application's admin API.

Handles authentication headers, timeouts and error mapping.
"""
from __future__ import annotations
from typing import Optional, Dict

import requests

from .exceptions import StoreAPIError

REQUEST_TIMEOUT = 5


class StoreAPIClient:
    """HTTP client for the host admin API.

    Usage:
        client = StoreAPIClient("http://anything:3001/api/admin", api_key="...")
        response = client.get("/users", params={"username": "setpar_u1"})
    """

    def __init__(self, base_url: str, api_key: str = "", timeout: float = REQUEST_TIMEOUT):
        """Initialize the client.

        Args:
            base_url: Admin API root (no trailing slash needed)
            api_key: Bearer credential for the admin API
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def get(self, path: str, params: Optional[Dict] = None) -> requests.Response:
        """Execute GET request.

        Raises:
            StoreAPIError: On HTTP or transport error
        """
        return self._request("GET", path, params=params)

    def post(self, path: str, json: Optional[Dict] = None) -> requests.Response:
        """Execute POST request.

        Raises:
            StoreAPIError: On HTTP or transport error
        """
        return self._request("POST", path, json=json)

    def patch(self, path: str, json: Optional[Dict] = None) -> requests.Response:
        """Execute PATCH request.

        Raises:
            StoreAPIError: On HTTP or transport error
        """
        return self._request("PATCH", path, json=json)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": "sso-bridge/1.0"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise StoreAPIError(0, str(exc), url) from exc
        self._handle_error(resp, url)
        return resp

    def _handle_error(self, resp: requests.Response, url: str) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            StoreAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise StoreAPIError(resp.status_code, resp.text, url)


def json_object(resp: requests.Response) -> Dict:
    """Decode a response body that must be a JSON object.

    Raises:
        StoreAPIError: Body is not JSON or not an object
    """
    try:
        body = resp.json()
    except ValueError as exc:
        raise StoreAPIError(resp.status_code, "Malformed response: body is not JSON", resp.url) from exc
    if not isinstance(body, dict):
        raise StoreAPIError(resp.status_code, f"Malformed response: expected object, got {type(body).__name__}", resp.url)
    return body
