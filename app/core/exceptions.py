"""
Error types raised by the price sync, publishing and stock check paths.

Two families:
- RetryableError: the upstream (Rainforest, Keepa, Amazon, Shopify) may recover,
  so Celery retries the task
- NonRetryableError: bad input or missing rows; the task fails straight away

Task decorators pass these to autoretry_for / dont_autoretry_for.
"""


class CommandCenterException(Exception):
    """Root of every error the command center raises on purpose."""
    pass


# ---------------------------------------------------------------------------
# Retried by Celery
# ---------------------------------------------------------------------------
class RetryableError(CommandCenterException):
    """Transient failure talking to a price source or the store."""
    pass


class ExternalAPIError(RetryableError):
    """A price source or Shopify answered with an unusable response."""
    def __init__(self, service: str, message: str, status_code: int = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} API error: {message}")


class RateLimitError(RetryableError):
    """
    The upstream kept answering 429 after the client's own backoff.

    ``retry_after`` is the countdown in seconds handed to Celery.
    """
    def __init__(self, service: str, retry_after: int = 60):
        self.service = service
        self.retry_after = retry_after
        super().__init__(f"{service} rate limited. Retry after {retry_after}s")


# ---------------------------------------------------------------------------
# Never retried
# ---------------------------------------------------------------------------
class NonRetryableError(CommandCenterException):
    """Failure that another attempt with the same input cannot fix."""
    pass


class ValidationError(NonRetryableError):
    """Pricing input (cost, list price, rule bounds) is out of range."""
    pass


class ProductNotFoundError(NonRetryableError):
    """No row in the products table for the given id or ASIN."""
    pass


class InvalidAsinError(NonRetryableError):
    """ASIN is empty or too short after normalization."""
    pass


class PriceUnavailableError(NonRetryableError):
    """No price source returned a usable price."""
    pass


class AuthenticationError(NonRetryableError):
    """A price source rejected the configured API key."""
    pass


class WebhookVerificationError(NonRetryableError):
    """Webhook HMAC signature did not match."""
    pass
