"""Amadeus API client with OAuth2 token handling."""

import asyncio
import logging
import time
from typing import Any

import httpx

from travel_gateway.config import Settings, settings

logger = logging.getLogger(__name__)

BASE_URLS = {
    "test": "https://test.api.amadeus.com",
    "production": "https://api.amadeus.com",
}

TOKEN_PATH = "/v1/security/oauth2/token"

# Refresh tokens this many seconds before the provider expires them
TOKEN_EXPIRY_MARGIN = 60.0


class AuthenticationError(Exception):
    """Raised when credentials are missing or the token request fails."""


class AmadeusClient:
    """
    Async client for the Amadeus self-service APIs.

    Requests are single-shot: a non-2xx response raises
    httpx.HTTPStatusError and connection problems raise httpx errors.
    Retrying is left to the caller (see CachedExecutor).
    """

    DEFAULT_TIMEOUT = httpx.Timeout(
        connect=10.0,
        read=30.0,
        write=10.0,
        pool=10.0,
    )

    def __init__(
        self,
        api_key: str | None,
        api_secret: str | None,
        hostname: str = "test",
        timeout: httpx.Timeout | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Amadeus API key (OAuth client id)
            api_secret: Amadeus API secret (OAuth client secret)
            hostname: 'test' or 'production'
            timeout: Request timeout configuration
            transport: Custom httpx transport (used by tests)
        """
        if hostname not in BASE_URLS:
            raise ValueError(
                f"Unknown Amadeus hostname: {hostname!r} (expected 'test' or 'production')"
            )
        self._api_key = api_key
        self._api_secret = api_secret
        self._hostname = hostname
        self._base_url = BASE_URLS[hostname]
        self._timeout = timeout or self.DEFAULT_TIMEOUT
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._access_token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "AmadeusClient":
        config = config or settings
        return cls(
            api_key=config.amadeus_api_key,
            api_secret=config.amadeus_api_secret,
            hostname=config.amadeus_hostname,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key and self._api_secret)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def _token_valid(self) -> bool:
        return self._access_token is not None and time.monotonic() < self._token_expires_at

    async def _get_access_token(self) -> str:
        """Return a valid bearer token, requesting a new one if needed."""
        if self._token_valid():
            return self._access_token

        async with self._token_lock:
            if self._token_valid():
                return self._access_token

            if not self.has_credentials:
                raise AuthenticationError(
                    "Amadeus credentials not configured. "
                    "Set AMADEUS_API_KEY and AMADEUS_API_SECRET environment variables."
                )

            client = await self._get_client()
            response = await client.post(
                TOKEN_PATH,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._api_key,
                    "client_secret": self._api_secret,
                },
            )
            response.raise_for_status()

            payload = response.json()
            try:
                token = payload["access_token"]
            except (KeyError, TypeError):
                raise AuthenticationError("Token response did not include an access_token")
            expires_in = float(payload.get("expires_in", 1799))

            self._access_token = token
            self._token_expires_at = time.monotonic() + max(
                0.0, expires_in - TOKEN_EXPIRY_MARGIN
            )
            logger.info(f"Amadeus access token obtained, expires in {expires_in:.0f}s")
            return token

    async def request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> Any:
        """
        Make an authenticated request and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path (e.g., '/v2/shopping/flight-offers')
            **kwargs: Additional arguments for httpx (params, json, ...)

        Returns:
            Decoded JSON body, or an empty dict for empty responses

        Raises:
            httpx.HTTPStatusError: For non-2xx responses
            AuthenticationError: When no token can be obtained
        """
        token = await self._get_access_token()
        client = await self._get_client()

        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {token}"

        logger.debug(f"{method} {path}")
        response = await client.request(method, path, headers=headers, **kwargs)

        if response.status_code == 401:
            # Force a fresh token on the next attempt
            self._access_token = None
        response.raise_for_status()

        if not response.content:
            return {}
        return response.json()

    async def get(self, path: str, **kwargs: Any) -> Any:
        """Make a GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        """Make a POST request."""
        return await self.request("POST", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        """Make a DELETE request."""
        return await self.request("DELETE", path, **kwargs)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.info("HTTP client closed")

    async def __aenter__(self) -> "AmadeusClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
