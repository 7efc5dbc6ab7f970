from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from urllib.parse import urlparse

from .error_handling import ConfigurationInvalid, ProviderError


def validate_api_key(api_key: str, min_length: int = 1) -> bool:
    if not isinstance(api_key, str):
        return False

    return len(api_key.strip()) >= min_length


def validate_base_url(url: str) -> bool:
    if not isinstance(url, str):
        return False

    parsed = urlparse(url.strip())
    return parsed.scheme in ('https', 'http') and bool(parsed.netloc)


def require_settings(**settings: Optional[str]) -> None:
    """Raise ConfigurationInvalid naming every missing or blank setting"""
    missing = [name for name, value in settings.items() if not validate_api_key(value)]
    if missing:
        raise ConfigurationInvalid(
            f"Missing required configuration: {', '.join(missing)}",
            missing=missing
        )


def to_decimal(value: Any, field: str, required: bool = True) -> Optional[Decimal]:
    """Parse a provider numeric field without passing through float"""
    if value is None or value == '':
        if required:
            raise ProviderError(f"Provider response missing required field '{field}'", field=field)
        return None

    if isinstance(value, bool):
        raise ProviderError(f"Provider field '{field}' is not numeric", field=field)
    if isinstance(value, float):
        # Shortest repr, so 0.1 becomes Decimal('0.1') and not the binary expansion
        value = repr(value)

    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ProviderError(f"Provider field '{field}' is not numeric", field=field) from e

    if not result.is_finite():
        raise ProviderError(f"Provider field '{field}' is not finite", field=field)

    return result
