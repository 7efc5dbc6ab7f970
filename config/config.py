import os
from typing import Optional
from dotenv import load_dotenv

from alpaca_gateway.account.models import Credentials, PAPER_BASE_URL
from alpaca_gateway.utils.error_handling import ConfigurationInvalid
from alpaca_gateway.utils.validators import require_settings

load_dotenv()

class Config:
    ALPACA_API_KEY: Optional[str] = os.getenv('ALPACA_API_KEY')
    ALPACA_SECRET_KEY: Optional[str] = os.getenv('ALPACA_SECRET_KEY')
    # Base URL, or the selector 'paper' / 'live'
    ALPACA_BASE_URL: str = os.getenv('ALPACA_BASE_URL', PAPER_BASE_URL)
    ALPACA_TRANSPORT: str = os.getenv('ALPACA_TRANSPORT', 'sdk')

    GATEWAY_TIMEOUT: str = os.getenv('GATEWAY_TIMEOUT', '10')
    GATEWAY_CACHE_TTL: str = os.getenv('GATEWAY_CACHE_TTL', '0')
    GATEWAY_MAX_RETRIES: str = os.getenv('GATEWAY_MAX_RETRIES', '0')

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE: Optional[str] = os.getenv('LOG_FILE')
    
    @classmethod
    def validate_alpaca_config(cls) -> bool:
        return bool(cls.ALPACA_API_KEY and cls.ALPACA_SECRET_KEY)
    
    @classmethod
    def load_credentials(cls) -> Credentials:
        """Build Credentials, naming (never echoing) any missing variable"""
        require_settings(
            ALPACA_API_KEY=cls.ALPACA_API_KEY,
            ALPACA_SECRET_KEY=cls.ALPACA_SECRET_KEY,
            ALPACA_BASE_URL=cls.ALPACA_BASE_URL
        )
        return Credentials(cls.ALPACA_API_KEY, cls.ALPACA_SECRET_KEY, cls.ALPACA_BASE_URL)
    
    @classmethod
    def gateway_timeout(cls) -> float:
        return cls._number('GATEWAY_TIMEOUT', float)
    
    @classmethod
    def gateway_cache_ttl(cls) -> float:
        return cls._number('GATEWAY_CACHE_TTL', float)
    
    @classmethod
    def gateway_max_retries(cls) -> int:
        return cls._number('GATEWAY_MAX_RETRIES', int)
    
    @classmethod
    def _number(cls, name: str, kind: type):
        raw = getattr(cls, name)
        try:
            return kind(str(raw).strip())
        except (TypeError, ValueError) as e:
            raise ConfigurationInvalid(
                f"{name} must be a {kind.__name__}, got {raw!r}", setting=name
            ) from e
