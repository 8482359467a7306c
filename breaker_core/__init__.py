"""
Breaker Core Library
====================
Exponential-backoff retry executor with fatal-error escape and
cooperative cancellation.

Usage:
    from breaker_core import Breaker, FatalError, get_logger

    breaker = Breaker.default(get_logger())

    def send():
        response = client.post(...)
        if response.status_code == 401:
            raise FatalError.wrap(AuthError(response.text))
        response.raise_for_status()
        return response

    breaker.do(send)
"""

__version__ = "0.1.0"

# Breaker
from breaker_core.breaker import Breaker, do, with_breaker

# Variant
from breaker_core.exp_backoff import exp_backoff_retry

# Exceptions
from breaker_core.exceptions import (
    BreakerError,
    FatalError,
    MaxRetriesError,
    ExhaustedRetriesError,
    is_kind,
    unwrap,
)

# Cancellation
from breaker_core.cancellation import (
    CancelToken,
    OperationCancelled,
    DeadlineExceeded,
    background,
)

# Config
from breaker_core.config import (
    BreakerConfig,
    DEFAULT_BACKOFF,
    DEFAULT_FACTOR,
    DEFAULT_MAX_TRIES,
)

# Logging
from breaker_core.log import (
    Logger,
    NopLogger,
    get_logger,
    configure_logging,
    format_delay,
)

__all__ = [
    # Breaker
    "Breaker",
    "do",
    "with_breaker",
    # Variant
    "exp_backoff_retry",
    # Exceptions
    "BreakerError",
    "FatalError",
    "MaxRetriesError",
    "ExhaustedRetriesError",
    "is_kind",
    "unwrap",
    # Cancellation
    "CancelToken",
    "OperationCancelled",
    "DeadlineExceeded",
    "background",
    # Config
    "BreakerConfig",
    "DEFAULT_BACKOFF",
    "DEFAULT_FACTOR",
    "DEFAULT_MAX_TRIES",
    # Logging
    "Logger",
    "NopLogger",
    "get_logger",
    "configure_logging",
    "format_delay",
]
