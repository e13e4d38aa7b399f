"""
subgen_connector.py
-------------------
Dispatches batch subtitle-generation requests to a Subgen server.

The request is fire-and-forget: Subgen may keep the connection open for the
whole batch, so a read timeout after the request was sent counts as
dispatched.
"""

from __future__ import annotations

import logging

import httpx

from settings_store.models import DEFAULT_LANGUAGE, Settings

logger = logging.getLogger(__name__)

CONTAINER_CONTENT_ROOT = "/content"
DEFAULT_TIMEOUT = httpx.Timeout(5.0, read=2.0)


class SubgenNotConfiguredError(ValueError):
    """Settings lack the Subgen host or port."""


class SubgenDispatchError(RuntimeError):
    """The batch request could not be delivered."""


def container_directory(rel_path: str | None) -> str:
    """Path of a content entry as mounted inside the Subgen container."""
    return f"{CONTAINER_CONTENT_ROOT}/{rel_path or ''}".rstrip("/")


class SubgenConnector:
    """
    Client for a Subgen server.

    Args:
        host (str): Hostname or IP of the Subgen server, without scheme.
        port (str | int): Port of the Subgen server.
        client (httpx.Client | None): Optional preconfigured client (tests
            pass one with a MockTransport).
    """
    def __init__(self, host: str, port: str | int, client: httpx.Client | None = None, timeout: httpx.Timeout = DEFAULT_TIMEOUT):
        self.host = host
        self.port = str(port)
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.Client | None = None) -> SubgenConnector:
        if not settings.is_configured:
            raise SubgenNotConfiguredError("Subgen server host and port must be configured first")
        return cls(settings.server_host, settings.server_port, client=client)

    @property
    def base_URL(self) -> str:
        return f"http://{self.host}:{self.port}"

    def batch_url(self, rel_path: str | None, language: str | None = None) -> httpx.URL:
        params = {
            "directory": container_directory(rel_path),
            "forceLanguage": language or DEFAULT_LANGUAGE,
        }
        return httpx.URL(f"{self.base_URL}/batch", params=params)

    def request_batch(self, rel_path: str | None, language: str | None = None) -> httpx.Response | None:
        """
        POST a batch request for ``rel_path``.

        Returns the response if Subgen answered quickly, None if the request
        was sent but the answer timed out. Raises SubgenDispatchError on
        connection errors and error status codes.
        """
        url = self.batch_url(rel_path, language)
        logger.info("Dispatching Subgen batch: %s", url)
        try:
            response = self._client.post(url)
            response.raise_for_status()
        except httpx.ReadTimeout:
            logger.info("Subgen accepted the request, not waiting for the batch to finish")
            return None
        except httpx.HTTPError as exc:
            logger.error("Subgen batch request failed: %s", exc)
            raise SubgenDispatchError(f"Subgen request to {url} failed: {exc}") from exc
        logger.debug("Subgen answered %s", response.status_code)
        return response

    def close(self) -> None:
        self._client.close()
