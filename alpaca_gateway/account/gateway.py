"""
Account Gateway for Alpaca Trading

Read-only, typed view over a remote trading account: account snapshot,
cash, buying power and open positions.
"""
from __future__ import annotations

import asyncio
import logging
from time import monotonic
from decimal import Decimal
from typing import Any, Awaitable, Callable, TypeVar

from alpaca_gateway.account.models import (
    AccountSnapshot, Credentials, Environment, Position, positions_from_payload
)
from alpaca_gateway.account.session import TRANSPORTS, ProviderSession, create_session
from alpaca_gateway.utils.error_handling import (
    ConfigurationInvalid, GatewayError, OperationCancelled, ProviderError,
    ProviderUnavailable, log_gateway_error
)
from alpaca_gateway.utils.logger import register_secrets

T = TypeVar('T')

SessionFactory = Callable[[Credentials], ProviderSession]


class AccountGateway:
    """
    Uniform read-only access to a brokerage account.

    The provider session is created on first use and retired whenever a
    request fails with ProviderUnavailable, so the next attempt reconnects;
    a retired session is closed once its last in-flight request finishes.
    Retries (``max_retries``) and the snapshot cache (``cache_ttl``) are both
    off by default: every public call then costs exactly one round trip.
    """

    def __init__(self, credentials: Credentials, environment: Environment | None = None, *,
                 transport: str = 'sdk', timeout: float = 10.0, cache_ttl: float = 0.0,
                 max_retries: int = 0, backoff_base: float = 0.5, backoff_cap: float = 8.0,
                 session_factory: SessionFactory | None = None) -> None:
        if not isinstance(credentials, Credentials):
            raise ConfigurationInvalid("Credentials are required")
        if environment is not None and environment is not credentials.environment:
            raise ConfigurationInvalid(
                f"Endpoint {credentials.endpoint} does not match the "
                f"{environment.value} environment",
                setting='environment'
            )
        if session_factory is None and transport not in TRANSPORTS:
            raise ConfigurationInvalid(
                f"Unknown transport '{transport}', expected one of {', '.join(TRANSPORTS)}",
                setting='transport'
            )
        if timeout <= 0:
            raise ConfigurationInvalid("Timeout must be positive", setting='timeout')
        if cache_ttl < 0 or max_retries < 0 or backoff_base < 0 or backoff_cap < 0:
            raise ConfigurationInvalid("Cache and retry settings must not be negative")

        self._credentials = credentials
        self._transport = transport
        self._timeout = timeout
        self._cache_ttl = cache_ttl
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._backoff_cap = backoff_cap
        self._session_factory = session_factory or (
            lambda creds: create_session(transport, creds, timeout)
        )
        self._session: ProviderSession | None = None
        # Requests in flight per session, and sessions retired while still in use
        self._in_flight: dict[ProviderSession, int] = {}
        self._retired: set[ProviderSession] = set()
        self._cache: dict[str, tuple[float, Any]] = {}
        self.logger = logging.getLogger(__name__)

        register_secrets([credentials.key, credentials.secret])

        if credentials.is_paper:
            self.logger.info(f"Account gateway configured for PAPER trading ({transport})")
        else:
            self.logger.warning(f"Account gateway configured for LIVE trading ({transport})")

    @classmethod
    def from_config(cls, config: Any = None, **overrides: Any) -> AccountGateway:
        """Build a gateway from Config (environment variables / .env)"""
        if config is None:
            from config import Config
            config = Config

        options = {
            'transport': config.ALPACA_TRANSPORT,
            'timeout': config.gateway_timeout(),
            'cache_ttl': config.gateway_cache_ttl(),
            'max_retries': config.gateway_max_retries(),
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return cls(config.load_credentials(), **options)

    @property
    def environment(self) -> Environment:
        return self._credentials.environment

    async def __aenter__(self) -> AccountGateway:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the provider session, if one was created"""
        session, self._session = self._session, None
        retired, self._retired = self._retired, set()
        if session is not None:
            await session.close()
        for stale in retired:
            await self._close_quietly(stale)

    def invalidate_cache(self) -> None:
        self._cache.clear()

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt + 1``"""
        return min(self._backoff_cap, self._backoff_base * 2 ** attempt)

    async def get_account(self) -> AccountSnapshot:
        """Fetch the full account record"""
        return await self._cached('account', self._load_account)

    async def get_cash(self) -> Decimal:
        """Cash balance, projected from a single account fetch"""
        return (await self.get_account()).cash

    async def get_buying_power(self) -> Decimal:
        """Buying power, projected from a single account fetch"""
        return (await self.get_account()).buying_power

    async def get_positions(self) -> tuple[Position, ...]:
        """Fetch current holdings, an empty tuple when nothing is held"""
        return await self._cached('positions', self._load_positions)

    async def _load_account(self) -> AccountSnapshot:
        payload = await self._request('account', lambda session: session.fetch_account())
        snapshot = AccountSnapshot.from_payload(payload)
        self.logger.info("Account information retrieved successfully")
        return snapshot

    async def _load_positions(self) -> tuple[Position, ...]:
        payload = await self._request('positions', lambda session: session.fetch_positions())
        positions = positions_from_payload(payload)
        self.logger.info(f"Retrieved {len(positions)} positions")
        return positions

    async def _cached(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        if self._cache_ttl > 0:
            entry = self._cache.get(key)
            if entry is not None and monotonic() - entry[0] < self._cache_ttl:
                return entry[1]

        try:
            value = await loader()
        except GatewayError as e:
            log_gateway_error(self.logger, e)
            raise

        if self._cache_ttl > 0:
            self._cache[key] = (monotonic(), value)
        return value

    def _ensure_session(self) -> ProviderSession:
        # No await between check and assignment, so concurrent first calls share one session
        if self._session is None:
            self._session = self._session_factory(self._credentials)
        return self._session

    def _retire(self, session: ProviderSession) -> None:
        """Stop handing out ``session``; it is closed when its last request finishes"""
        if self._session is session:
            self._session = None
        self._retired.add(session)

    async def _release(self, session: ProviderSession) -> None:
        remaining = self._in_flight.get(session, 1) - 1
        if remaining > 0:
            self._in_flight[session] = remaining
            return
        self._in_flight.pop(session, None)
        if session in self._retired:
            self._retired.discard(session)
            await self._close_quietly(session)

    async def _close_quietly(self, session: ProviderSession) -> None:
        try:
            await session.close()
        except Exception as e:
            self.logger.debug(f"Ignoring error while closing stale session: {type(e).__name__}")

    async def _request(self, operation: str,
                       call: Callable[[ProviderSession], Awaitable[Any]]) -> Any:
        attempt = 0
        while True:
            session = self._ensure_session()
            self._in_flight[session] = self._in_flight.get(session, 0) + 1
            try:
                return await asyncio.wait_for(call(session), timeout=self._timeout)
            except asyncio.CancelledError as e:
                raise OperationCancelled(
                    f"Request for {operation} was cancelled", operation=operation
                ) from e
            except TimeoutError as e:
                failure = ProviderUnavailable(
                    f"Provider did not answer {operation} request within {self._timeout}s",
                    operation=operation
                )
                failure.__cause__ = e
                self._retire(session)
            except ProviderUnavailable as e:
                failure = e
                self._retire(session)
            except GatewayError:
                raise
            except Exception as e:
                raise ProviderError(
                    f"Unexpected failure during {operation} request: {type(e).__name__}",
                    operation=operation
                ) from e
            finally:
                await self._release(session)

            if attempt >= self._max_retries:
                raise failure

            delay = self.backoff_delay(attempt)
            attempt += 1
            self.logger.warning(
                f"{operation} request unavailable, retry {attempt}/{self._max_retries} in {delay:.2f}s"
            )
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError as e:
                raise OperationCancelled(
                    f"Request for {operation} was cancelled", operation=operation
                ) from e

    def __repr__(self) -> str:
        return (f"AccountGateway(environment={self.environment.value}, "
                f"transport={self._transport}, credentials={self._credentials!r})")
