from .logger import setup_logger, register_secrets, SecretRedactingFilter
from .validators import validate_api_key, validate_base_url, to_decimal

__all__ = [
    'setup_logger', 'register_secrets', 'SecretRedactingFilter',
    'validate_api_key', 'validate_base_url', 'to_decimal'
]
