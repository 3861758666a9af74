"""Domain services and third-party gateways."""

from .errors import ConfigurationError, PaymentRequired, ServiceError, UpstreamError

__all__ = ["ConfigurationError", "PaymentRequired", "ServiceError", "UpstreamError"]
