"""
Provider sessions for the Alpaca trading API

A session issues exactly one request per fetch and turns every failure into
the gateway's error taxonomy. Two transports are available:

- ``sdk``: alpaca-py's TradingClient, run in the default executor so the
  event loop never blocks on the SDK's synchronous HTTP calls
- ``rest``: the REST endpoints called directly over aiohttp
"""
from __future__ import annotations

import asyncio
import functools
import json
import logging
from typing import Any, Callable, Protocol

import aiohttp
from alpaca.common.exceptions import APIError
from alpaca.trading.client import TradingClient
from requests.exceptions import RequestException

from alpaca_gateway.account.models import Credentials
from alpaca_gateway.utils.error_handling import (
    ConfigurationInvalid, GatewayError, ProviderError, ProviderRejected, ProviderUnavailable
)

logger = logging.getLogger(__name__)

ACCOUNT_PATH = "/v2/account"
POSITIONS_PATH = "/v2/positions"


class ProviderSession(Protocol):
    """One configured connection to the provider for one credential set"""

    async def fetch_account(self) -> Any: ...

    async def fetch_positions(self) -> Any: ...

    async def close(self) -> None: ...


def _provider_message(body: str, fallback: str) -> str:
    """Pull the ``message`` out of an Alpaca error body, else return it raw"""
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        return body.strip() or fallback
    if isinstance(parsed, dict) and parsed.get('message'):
        return str(parsed['message'])
    return body.strip() or fallback


class AlpacaSdkSession:
    """Session backed by alpaca-py's TradingClient (raw JSON mode)"""

    def __init__(self, credentials: Credentials, timeout: float = 10.0,
                 client: TradingClient | None = None) -> None:
        self._credentials = credentials
        self._client = client or self._build_client(credentials, timeout)

    @staticmethod
    def _build_client(credentials: Credentials, timeout: float) -> TradingClient:
        client = TradingClient(
            api_key=credentials.key,
            secret_key=credentials.secret,
            paper=credentials.is_paper,
            raw_data=True,
            url_override=credentials.endpoint
        )
        # RESTClient resends 429/504 responses on its own, with blocking sleeps;
        # one fetch must be exactly one request
        client._retry = 0
        client._retry_codes = []
        # requests has no default timeout, and a hung call would pin an executor thread
        client._session.request = functools.partial(client._session.request, timeout=timeout)
        return client

    async def fetch_account(self) -> Any:
        return await self._call(self._client.get_account, "account")

    async def fetch_positions(self) -> Any:
        return await self._call(self._client.get_all_positions, "positions")

    async def close(self) -> None:
        # TradingClient keeps a requests.Session that is released on GC
        self._client = None

    async def _call(self, func: Callable[[], Any], what: str) -> Any:
        if self._client is None:
            raise ProviderError("Session is closed", operation=what)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, func)
        except APIError as e:
            raise self._rejected(e, what) from e
        except RequestException as e:
            raise ProviderUnavailable(
                f"Transport failure fetching {what}: {type(e).__name__}",
                operation=what
            ) from e
        except GatewayError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Unexpected provider failure fetching {what}: "
                f"{self._credentials.redact(str(e)) or type(e).__name__}",
                operation=what
            ) from e

    def _rejected(self, error: APIError, what: str) -> ProviderRejected:
        status_code = getattr(error, 'status_code', None)
        message = _provider_message(str(error), "API error")
        return ProviderRejected(status_code, self._credentials.redact(message), operation=what)


class AlpacaRestSession:
    """Session calling the Alpaca REST API directly over aiohttp"""

    def __init__(self, credentials: Credentials, timeout: float = 10.0,
                 http_session: aiohttp.ClientSession | None = None) -> None:
        self._credentials = credentials
        self._timeout = timeout
        self._http = http_session

    def _http_session(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(
                headers={
                    'APCA-API-KEY-ID': self._credentials.key,
                    'APCA-API-SECRET-KEY': self._credentials.secret,
                    'Accept': 'application/json'
                },
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._http

    async def fetch_account(self) -> Any:
        return await self._get_json(ACCOUNT_PATH, "account")

    async def fetch_positions(self) -> Any:
        return await self._get_json(POSITIONS_PATH, "positions")

    async def close(self) -> None:
        if self._http is not None and not self._http.closed:
            await self._http.close()
        self._http = None

    async def _get_json(self, path: str, what: str) -> Any:
        url = f"{self._credentials.endpoint}{path}"
        try:
            async with self._http_session().get(url) as response:
                if response.status >= 400:
                    body = await response.text()
                    message = _provider_message(body, response.reason or "API error")
                    raise ProviderRejected(
                        response.status, self._credentials.redact(message), operation=what
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise ProviderError(
                        f"Malformed {what} response: body is not JSON", operation=what
                    ) from e
        except GatewayError:
            raise
        except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable(
                f"Transport failure fetching {what}: {type(e).__name__}",
                operation=what
            ) from e
        except aiohttp.ClientError as e:
            raise ProviderError(
                f"Unexpected HTTP client failure fetching {what}: {type(e).__name__}",
                operation=what
            ) from e


TRANSPORTS = ('sdk', 'rest')


def create_session(transport: str, credentials: Credentials, timeout: float) -> ProviderSession:
    """Build a session for the named transport"""
    match transport:
        case 'sdk':
            session = AlpacaSdkSession(credentials, timeout=timeout)
        case 'rest':
            session = AlpacaRestSession(credentials, timeout=timeout)
        case _:
            raise ConfigurationInvalid(
                f"Unknown transport '{transport}', expected one of {', '.join(TRANSPORTS)}",
                setting='transport'
            )
    logger.debug(f"Created {transport} session for {credentials.environment.value} environment")
    return session
