"""
Provider Fallback Module

Single responsibility: run an ordered list of provider strategies until one succeeds.
Every provider failure is logged; the chain only fails once all of them have.
"""

from typing import Callable, List, Sequence, Tuple, TypeVar

import structlog

# Configure structured logger
logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ProviderError(Exception):
    """Raised by a provider that cannot satisfy a request"""
    pass


class ProviderUnavailable(ProviderError):
    """Provider is not configured (missing API key, etc.)"""
    pass


class AllProvidersFailed(ProviderError):
    """Every provider in a fallback chain failed"""

    def __init__(self, message: str, errors: List[Tuple[str, Exception]]):
        super().__init__(message)
        self.errors = errors

    @property
    def last_error(self) -> Exception:
        return self.errors[-1][1]


def run_with_fallback(
    operation: str,
    strategies: Sequence[Tuple[str, Callable[[], T]]],
    failure_message: str = None
) -> Tuple[str, T]:
    """Try each (name, callable) in order and return (name, result) of the first success.

    Any exception from a strategy moves on to the next one. When all of them
    fail, AllProvidersFailed carries every (name, error) pair in attempt order.
    An "{error}" placeholder in failure_message is filled with the last error.
    """

    if not strategies:
        raise ProviderError(f"No providers configured for {operation}")

    errors: List[Tuple[str, Exception]] = []

    for index, (name, strategy) in enumerate(strategies):
        logger.debug("Trying provider",
                     operation=operation,
                     provider=name,
                     attempt=index + 1,
                     total=len(strategies))
        try:
            result = strategy()
        except Exception as e:
            errors.append((name, e))
            if index + 1 < len(strategies):
                logger.warning("Provider failed, falling back",
                               operation=operation,
                               provider=name,
                               next_provider=strategies[index + 1][0],
                               error=str(e))
            else:
                logger.error("Provider failed, no fallback left",
                             operation=operation,
                             provider=name,
                             error=str(e))
            continue

        if errors:
            logger.info("Fallback provider succeeded",
                        operation=operation,
                        provider=name,
                        failed_providers=[n for n, _ in errors])
        return name, result

    last_error = errors[-1][1]
    if failure_message:
        message = failure_message.replace("{error}", str(last_error))
    else:
        message = f"{operation} failed via all methods: {last_error}"
    raise AllProvidersFailed(message, errors)
