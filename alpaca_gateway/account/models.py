"""
Account value objects

Plain immutable values owned by the gateway, built from the provider's raw
JSON so that no SDK type crosses the public contract.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping
from urllib.parse import urlparse

from alpaca_gateway.utils.error_handling import ConfigurationInvalid, ProviderError
from alpaca_gateway.utils.validators import (
    require_settings, to_decimal, validate_base_url
)

PAPER_BASE_URL = "https://paper-api.alpaca.markets"
LIVE_BASE_URL = "https://api.alpaca.markets"
LIVE_HOST = "api.alpaca.markets"


class Environment(Enum):
    """Trading environment selected by the credential endpoint"""
    PAPER = "paper"
    LIVE = "live"

    @property
    def base_url(self) -> str:
        return LIVE_BASE_URL if self is Environment.LIVE else PAPER_BASE_URL

    @classmethod
    def from_endpoint(cls, endpoint: str) -> Environment:
        """LIVE when the endpoint points at the live trading host, else PAPER"""
        return cls.LIVE if urlparse(endpoint.strip()).hostname == LIVE_HOST else cls.PAPER


def _mask(value: str) -> str:
    return f"{value[:4]}***" if len(value) > 8 else "***"


@dataclass(frozen=True, repr=False)
class Credentials:
    """API key pair plus the base URL selecting paper or live trading"""
    key: str
    secret: str
    endpoint: str = PAPER_BASE_URL

    def __post_init__(self) -> None:
        require_settings(key=self.key, secret=self.secret, endpoint=self.endpoint)

        endpoint = self.endpoint.strip()
        selector = endpoint.lower()
        if selector in ('paper', 'live'):
            endpoint = Environment(selector).base_url
        elif not validate_base_url(endpoint):
            raise ConfigurationInvalid(
                "Endpoint must be an http(s) URL or one of 'paper'/'live'",
                setting='endpoint'
            )

        object.__setattr__(self, 'key', self.key.strip())
        object.__setattr__(self, 'secret', self.secret.strip())
        object.__setattr__(self, 'endpoint', endpoint.rstrip('/'))

    @property
    def environment(self) -> Environment:
        return Environment.from_endpoint(self.endpoint)

    @property
    def is_paper(self) -> bool:
        return self.environment is Environment.PAPER

    def redact(self, text: str) -> str:
        """Remove key and secret from text bound for logs or error messages"""
        for value in (self.secret, self.key):
            text = text.replace(value, '***')
        return text

    def __repr__(self) -> str:
        return f"Credentials(key={_mask(self.key)!r}, endpoint={self.endpoint!r})"


def _require_mapping(payload: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ProviderError(
            f"Unexpected {what} payload type: {type(payload).__name__}",
            payload_type=type(payload).__name__
        )
    return payload


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """Point-in-time account state read from one provider response"""
    cash: Decimal
    buying_power: Decimal
    account_id: str | None = None
    account_number: str | None = None
    status: str | None = None
    currency: str | None = None
    equity: Decimal | None = None
    last_equity: Decimal | None = None
    portfolio_value: Decimal | None = None
    long_market_value: Decimal | None = None
    short_market_value: Decimal | None = None
    daytrading_buying_power: Decimal | None = None
    pattern_day_trader: bool | None = None
    trading_blocked: bool | None = None
    account_blocked: bool | None = None
    fetched_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_payload(cls, payload: Any) -> AccountSnapshot:
        """Normalize a raw ``/v2/account`` response"""
        data = _require_mapping(payload, "account")

        def optional(name: str) -> Decimal | None:
            return to_decimal(data.get(name), name, required=False)

        return cls(
            cash=to_decimal(data.get('cash'), 'cash'),
            buying_power=to_decimal(data.get('buying_power'), 'buying_power'),
            account_id=_optional_str(data.get('id')),
            account_number=_optional_str(data.get('account_number')),
            status=_optional_str(data.get('status')),
            currency=_optional_str(data.get('currency')),
            equity=optional('equity'),
            last_equity=optional('last_equity'),
            portfolio_value=optional('portfolio_value'),
            long_market_value=optional('long_market_value'),
            short_market_value=optional('short_market_value'),
            daytrading_buying_power=optional('daytrading_buying_power'),
            pattern_day_trader=data.get('pattern_day_trader'),
            trading_blocked=data.get('trading_blocked'),
            account_blocked=data.get('account_blocked'),
        )

    @property
    def equity_change(self) -> Decimal | None:
        if self.equity is None or self.last_equity is None:
            return None
        return self.equity - self.last_equity

    @property
    def cash_percentage(self) -> Decimal | None:
        if not self.portfolio_value:
            return None
        return self.cash / self.portfolio_value * 100


@dataclass(frozen=True, slots=True)
class Position:
    """One held instrument at snapshot time"""
    symbol: str
    quantity: Decimal
    market_value: Decimal
    unrealized_pnl: Decimal
    side: str | None = None
    asset_class: str | None = None
    avg_entry_price: Decimal | None = None
    current_price: Decimal | None = None
    cost_basis: Decimal | None = None
    unrealized_pnl_percent: Decimal | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> Position:
        """Normalize one entry of a raw ``/v2/positions`` response"""
        data = _require_mapping(payload, "position")
        symbol = data.get('symbol')
        if not symbol:
            raise ProviderError("Provider response missing required field 'symbol'", field='symbol')

        def optional(name: str) -> Decimal | None:
            return to_decimal(data.get(name), name, required=False)

        return cls(
            symbol=str(symbol),
            quantity=to_decimal(data.get('qty'), 'qty'),
            market_value=to_decimal(data.get('market_value'), 'market_value'),
            unrealized_pnl=to_decimal(data.get('unrealized_pl'), 'unrealized_pl'),
            side=_optional_str(data.get('side')),
            asset_class=_optional_str(data.get('asset_class')),
            avg_entry_price=optional('avg_entry_price'),
            current_price=optional('current_price'),
            cost_basis=optional('cost_basis'),
            unrealized_pnl_percent=optional('unrealized_plpc'),
        )

    @property
    def display_symbol(self) -> str:
        """
        Crypto pairs come back as BTCUSD from the positions endpoint,
        render them as BTC/USD
        """
        if self.asset_class == 'crypto' and '/' not in self.symbol:
            for quote in ('USDT', 'USDC', 'USD', 'BTC'):
                if self.symbol.endswith(quote) and len(self.symbol) > len(quote):
                    return f"{self.symbol[:-len(quote)]}/{quote}"
        return self.symbol


def positions_from_payload(payload: Any) -> tuple[Position, ...]:
    """Normalize a raw ``/v2/positions`` response, empty list gives ()"""
    if payload is None:
        raise ProviderError("Provider returned no positions payload")
    if not isinstance(payload, list):
        raise ProviderError(
            f"Unexpected positions payload type: {type(payload).__name__}",
            payload_type=type(payload).__name__
        )
    return tuple(Position.from_payload(item) for item in payload)
