from __future__ import annotations

import asyncio

import pytest

from alpaca_gateway.account.models import Credentials

API_KEY = "PKTESTKEY1234567890"
API_SECRET = "supersecretvalue0987654321"

ACCOUNT_PAYLOAD = {
    "id": "8f2d0a4e-0000-4000-8000-000000000001",
    "account_number": "PA3XYZ123",
    "status": "ACTIVE",
    "currency": "USD",
    "cash": "12345.67",
    "buying_power": "24691.34",
    "equity": "15000.10",
    "last_equity": "14900.00",
    "portfolio_value": "15000.10",
    "long_market_value": "2654.43",
    "short_market_value": "0",
    "daytrading_buying_power": "0",
    "pattern_day_trader": False,
    "trading_blocked": False,
    "account_blocked": False,
}

POSITIONS_PAYLOAD = [
    {
        "symbol": "AAPL",
        "qty": "10",
        "side": "long",
        "asset_class": "us_equity",
        "avg_entry_price": "180.25",
        "current_price": "190.10",
        "market_value": "1901.00",
        "cost_basis": "1802.50",
        "unrealized_pl": "98.50",
        "unrealized_plpc": "0.0546463245492372",
    },
    {
        "symbol": "BTCUSD",
        "qty": "0.012",
        "side": "long",
        "asset_class": "crypto",
        "market_value": "753.43",
        "unrealized_pl": "-12.07",
    },
]


class FakeSession:
    """In-memory provider session; ``errors`` are raised in order before answering"""

    def __init__(self, account=None, positions=None, errors=None, delay: float = 0.0):
        self.account = dict(ACCOUNT_PAYLOAD) if account is None else account
        self.positions = list(POSITIONS_PAYLOAD) if positions is None else positions
        self.errors = list(errors or [])
        self.delay = delay
        self.calls = 0
        self.closed = False

    async def _answer(self, payload):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)
        return payload

    async def fetch_account(self):
        return await self._answer(self.account)

    async def fetch_positions(self):
        return await self._answer(self.positions)

    async def close(self):
        self.closed = True


class FakeSessionFactory:
    """Counts sessions built; every session shares the same error queue"""

    def __init__(self, **session_kwargs):
        self.session_kwargs = session_kwargs
        self.errors = list(session_kwargs.pop("errors", []) or [])
        self.sessions: list[FakeSession] = []

    @property
    def created(self) -> int:
        return len(self.sessions)

    @property
    def calls(self) -> int:
        return sum(s.calls for s in self.sessions)

    def __call__(self, credentials):
        session = FakeSession(errors=None, **self.session_kwargs)
        session.errors = self.errors
        self.sessions.append(session)
        return session


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(API_KEY, API_SECRET, "paper")


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()
