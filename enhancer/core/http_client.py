"""
Centralized HTTP client configuration.

Provides async (aiohttp) session management for the remote service with:
- JSON API and binary media header sets
- Connect/read timeouts and per-host connection limits
- Optional HTTP or SOCKS proxy
"""

from __future__ import annotations

import logging
import socket
from typing import Dict, Optional

import aiohttp
from aiohttp import ClientTimeout, TCPConnector
from aiohttp_socks import ProxyConnector

from enhancer import __version__

logger = logging.getLogger(__name__)


USER_AGENT = f"ai-media-enhancer/{__version__} aiohttp/{aiohttp.__version__}"

# Headers for JSON API requests
API_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json",
}

# Headers for generated media downloads
MEDIA_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Accept-Encoding": "identity;q=1, *;q=0",
}


class HttpClientConfig:
    """Central HTTP client configuration."""

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        max_connections_per_host: int = 4,
        max_total_connections: int = 20,
        connect_timeout: int = 30,
        read_timeout: int = 300,
    ):
        self.proxy_url = proxy_url
        self.max_connections_per_host = max_connections_per_host
        self.max_total_connections = max_total_connections
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

    @property
    def uses_socks(self) -> bool:
        return bool(self.proxy_url) and self.proxy_url.startswith("socks")

    @property
    def http_proxy(self) -> Optional[str]:
        """Proxy to pass per request (SOCKS proxies live on the connector instead)."""
        if self.proxy_url and not self.uses_socks:
            return self.proxy_url
        return None


class HttpClient:
    """
    Centralized HTTP client factory.

    Creates and configures aiohttp sessions with shared configuration for
    headers, timeouts and proxies. Sessions must be created on the running
    event loop.
    """

    def __init__(self, config: Optional[HttpClientConfig] = None):
        self.config = config or HttpClientConfig()
        self._async_session: Optional[aiohttp.ClientSession] = None

    def _create_connector(self) -> aiohttp.BaseConnector:
        if self.config.uses_socks:
            logger.info(f"Async session using SOCKS proxy: {self.config.proxy_url}")
            return ProxyConnector.from_url(
                self.config.proxy_url,
                limit=self.config.max_total_connections,
                limit_per_host=self.config.max_connections_per_host,
                rdns=False,
                family=socket.AF_INET,
            )
        if self.config.http_proxy:
            logger.info(f"Async session using HTTP proxy: {self.config.http_proxy}")
        return TCPConnector(
            limit=self.config.max_total_connections,
            limit_per_host=self.config.max_connections_per_host,
            ttl_dns_cache=300,
            family=socket.AF_INET,
        )

    async def create_async_session(
        self,
        headers: Optional[Dict[str, str]] = None,
        total_timeout: Optional[int] = None,
    ) -> aiohttp.ClientSession:
        """
        Create a configured aiohttp.ClientSession for async HTTP.

        Args:
            headers: Optional headers to use (defaults to API_HEADERS)
            total_timeout: Total request timeout (None for no limit)

        Returns:
            Configured aiohttp.ClientSession
        """
        timeout = ClientTimeout(
            total=total_timeout,
            connect=self.config.connect_timeout,
            sock_read=self.config.read_timeout,
        )
        session = aiohttp.ClientSession(
            connector=self._create_connector(),
            timeout=timeout,
            headers=headers or API_HEADERS,
            raise_for_status=False,
        )
        self._async_session = session
        return session

    async def get_async_session(self) -> aiohttp.ClientSession:
        """Get the open session or create a new one."""
        if self._async_session is None or self._async_session.closed:
            return await self.create_async_session()
        return self._async_session

    async def close_async_session(self) -> None:
        if self._async_session is not None:
            await self._async_session.close()
            self._async_session = None


def create_http_client_from_settings(settings) -> HttpClient:
    """
    Create HttpClient configured from application settings.

    Args:
        settings: enhancer.config.Settings instance

    Returns:
        Configured HttpClient instance
    """
    config = HttpClientConfig(
        proxy_url=settings.proxy_url or None,
        max_connections_per_host=int(settings.max_connections_per_host),
        connect_timeout=int(settings.connect_timeout),
        read_timeout=int(settings.read_timeout),
    )
    return HttpClient(config)

