"""
Typed error taxonomy for the account gateway

Every failure leaving the gateway is one of the classes below, so callers
can decide how to present it (banner, retry button, exit code) without
inspecting provider SDK exceptions.
"""
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Error severity levels for better categorization"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class GatewayError(Exception):
    """Base exception for account gateway errors"""

    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    retryable: bool = False

    def __init__(self, message: str, severity: ErrorSeverity | None = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        if severity is not None:
            self.severity = severity
        self.context = context
        self.timestamp = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/storage"""
        return {
            'error_type': type(self).__name__,
            'message': self.message,
            'severity': self.severity.value,
            'retryable': self.retryable,
            'timestamp': self.timestamp.isoformat(),
            'context': self.context,
        }


class ConfigurationInvalid(GatewayError):
    """Missing or malformed credentials/settings, fatal at startup"""
    severity = ErrorSeverity.CRITICAL


class ProviderUnavailable(GatewayError):
    """Network or transport fault (DNS, TLS, timeout, connection reset)"""
    severity = ErrorSeverity.MEDIUM
    retryable = True


class ProviderRejected(GatewayError):
    """Structured error response from the provider API"""
    severity = ErrorSeverity.HIGH

    def __init__(self, status_code: int | None, provider_message: str, **context: Any) -> None:
        self.status_code = status_code
        self.provider_message = provider_message
        label = f"HTTP {status_code}" if status_code is not None else "API error"
        super().__init__(f"Provider rejected request ({label}): {provider_message}",
                         status_code=status_code, **context)


class ProviderError(GatewayError):
    """Unexpected or unclassified provider fault (malformed response, nulls)"""
    severity = ErrorSeverity.HIGH


class OperationCancelled(GatewayError):
    """The caller abandoned the request before the provider answered"""
    severity = ErrorSeverity.LOW


def log_gateway_error(logger: logging.Logger, error: GatewayError) -> None:
    """Log error with appropriate level based on severity"""
    log_message = f"{type(error).__name__}: {error.message}"
    if error.context:
        log_message += f" | Context: {error.context}"

    match error.severity:
        case ErrorSeverity.LOW:
            logger.info(log_message)
        case ErrorSeverity.MEDIUM:
            logger.warning(log_message)
        case ErrorSeverity.HIGH:
            logger.error(log_message)
        case ErrorSeverity.CRITICAL:
            logger.critical(log_message)
