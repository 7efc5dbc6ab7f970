"""
Account Module for the Alpaca Account Gateway

Read-only Alpaca account access: credentials, value objects, provider
sessions and the gateway that ties them together.
"""

from .models import AccountSnapshot, Credentials, Environment, Position
from .session import AlpacaRestSession, AlpacaSdkSession, create_session
from .gateway import AccountGateway

__all__ = [
    'AccountGateway', 'AccountSnapshot', 'Credentials', 'Environment', 'Position',
    'AlpacaRestSession', 'AlpacaSdkSession', 'create_session'
]
