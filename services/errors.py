"""Exceptions raised by service-layer code and mapped to HTTP errors in ``app``."""

from werkzeug.exceptions import HTTPException


class ServiceError(Exception):
    """Base class for service failures."""


class ConfigurationError(ServiceError):
    """A required credential or setting is missing."""


class UpstreamError(ServiceError):
    """A third-party API returned a failure."""


class PaymentRequired(HTTPException):
    code = 402
    description = "Subscription required."
