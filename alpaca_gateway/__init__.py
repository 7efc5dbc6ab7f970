"""
Alpaca Account Gateway

Fetches and normalizes brokerage account state (cash, buying power,
positions) from the Alpaca trading API for any presentation layer.
"""

from .account import AccountGateway, AccountSnapshot, Credentials, Environment, Position
from .utils.error_handling import (
    ConfigurationInvalid, ErrorSeverity, GatewayError, OperationCancelled,
    ProviderError, ProviderRejected, ProviderUnavailable
)

__version__ = "0.1.0"

__all__ = [
    'AccountGateway', 'AccountSnapshot', 'Credentials', 'Environment', 'Position',
    'GatewayError', 'ConfigurationInvalid', 'ProviderUnavailable', 'ProviderRejected',
    'ProviderError', 'OperationCancelled', 'ErrorSeverity'
]
