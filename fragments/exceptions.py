"""Custom exception classes for the Fragments service."""


class FragmentsError(Exception):
    """
    Base exception class for all fragment-related errors.
    """
    pass


class ValidationError(FragmentsError):
    """
    Raised when a fragment field is missing or invalid, or a payload is not a byte buffer.
    """
    pass


class UnsupportedMediaTypeError(ValidationError):
    """
    Raised when a request carries a Content-Type the service does not store.
    """
    pass


class InvalidArgumentError(FragmentsError):
    """
    Raised when a store operation is called without an id or record.
    """
    pass


class FragmentNotFoundError(FragmentsError):
    """
    Raised when a requested fragment does not exist for the current owner.
    """
    pass


class UnauthorizedError(FragmentsError):
    """
    Raised when a request has missing or invalid credentials.
    """
    pass


class PayloadTooLargeError(FragmentsError):
    """
    Raised when a request body exceeds the configured size limit.
    """
    pass


class ConfigurationError(FragmentsError):
    """
    Raised when the service is started with missing or invalid settings.
    """
    pass
