"""
Base client for the remote generative service.

This module is UI-agnostic: it returns plain dict payloads / bytes and
normalizes every transport or HTTP failure into ``RemoteError``. Clients
subclass it to add the model-specific calls.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp
from yarl import URL

from enhancer.core.credentials import CredentialProvider
from enhancer.core.http_client import HttpClient, MEDIA_HEADERS
from enhancer.errors import RemoteError

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Shared request plumbing.

    Sessions are obtained lazily from the HttpClient so the client can be
    constructed before the event loop is running.
    """

    BASE_URL: str = ""
    API_KEY_HEADER = "x-goog-api-key"

    def __init__(
        self,
        http: HttpClient,
        credentials: CredentialProvider,
        *,
        base_url: Optional[str] = None,
    ):
        self._http = http
        self._credentials = credentials
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    # ------------------------------------------------------------------
    # Session / Request helpers
    # ------------------------------------------------------------------

    def _auth_headers(self) -> Dict[str, str]:
        key = self._credentials.get_credential()
        if not key:
            raise RemoteError("No API key selected", status=401)
        return {self.API_KEY_HEADER: key}

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.info(f"API Request: {method} {url}")

        headers = self._auth_headers()
        session = await self._http.get_async_session()
        try:
            async with session.request(
                method,
                url,
                json=payload,
                headers=headers,
                proxy=self._http.config.http_proxy,
            ) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    raise RemoteError(_describe_error(resp.status, body), status=resp.status)
        except RemoteError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteError(f"Request to {path} failed: {str(e) or type(e).__name__}") from e

        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError as e:
            raise RemoteError(f"Unreadable response from {path}") from e
        if not isinstance(data, dict):
            raise RemoteError(f"Unexpected response shape from {path}")
        return data

    async def _download_bytes(self, uri: str) -> bytes:
        """Plain binary GET, credential appended as the ``key`` query parameter."""
        key = self._credentials.get_credential()
        if not key:
            raise RemoteError("No API key selected", status=401)
        url = URL(uri).update_query(key=key)
        logger.info(f"Downloading result: {URL(uri).with_query(None)}")

        session = await self._http.get_async_session()
        try:
            async with session.get(
                url,
                headers=MEDIA_HEADERS,
                proxy=self._http.config.http_proxy,
            ) as resp:
                if resp.status >= 400:
                    raise RemoteError(
                        f"Failed to download video: {resp.reason or resp.status}",
                        status=resp.status,
                    )
                data = await resp.read()
        except RemoteError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteError(f"Failed to download video: {str(e) or type(e).__name__}") from e

        logger.info(f"  └─ {len(data)} bytes")
        return data

    async def close(self) -> None:
        await self._http.close_async_session()


def _describe_error(status: int, body: str) -> str:
    """Turn a Google-style ``{"error": {...}}`` body into a readable message."""
    message = None
    try:
        data = json.loads(body)
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            message = error.get("message")
    except (json.JSONDecodeError, AttributeError):
        pass
    if not message:
        message = body.strip()[:300] or "no response body"
    return f"Remote service error {status}: {message}"
