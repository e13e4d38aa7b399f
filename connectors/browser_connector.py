"""
browser_connector.py
--------------------
Client for the local content browser JSON API (subs_server.daemon).
"""

from __future__ import annotations

from typing import Any

import httpx

from content_tree.models import TreeNode
from settings_store.models import Settings


class BrowserAPIError(RuntimeError):
    """The browser API answered with an error status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class BrowserSession:
    """
    Session against a running browser daemon.

    Args:
        base_URL (str): Base URL including scheme and port, e.g. "http://127.0.0.1:8585".
        client (httpx.Client | None): Optional client; tests pass a FastAPI TestClient.
    """
    def __init__(self, base_URL: str, client: httpx.Client | None = None, timeout: float = 5.0):
        self.base_URL = base_URL.rstrip("/")
        self._client = client or httpx.Client(base_url=self.base_URL, timeout=timeout)

    def request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Make a request and return the decoded JSON body.
        Error statuses raise BrowserAPIError carrying the API's error message.
        """
        response = self._client.request(method, f"/{endpoint.lstrip('/')}", **kwargs)
        if response.is_error:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise BrowserAPIError(response.status_code, message)
        return response.json()

    def get_tree(self) -> TreeNode | None:
        data = self.request("GET", "/api/tree")
        tree = data.get("tree")
        return TreeNode.model_validate(tree) if tree else None

    def get_settings(self) -> tuple[bool, Settings]:
        data = self.request("GET", "/api/settings")
        return bool(data.get("exists")), Settings.model_validate(data.get("settings") or {})

    def save_settings(self, payload: dict[str, Any]) -> Settings:
        data = self.request("POST", "/api/settings", json=payload)
        return Settings.model_validate(data["settings"])

    def select(self, path: str, node_type: str | None = None) -> dict[str, Any]:
        return self.request("POST", "/api/select", json={"path": path, "type": node_type})

    def status(self) -> dict[str, Any]:
        return self.request("GET", "/status")

    def shutdown(self) -> dict[str, Any]:
        return self.request("POST", "/shutdown")

    def close(self) -> None:
        self._client.close()
