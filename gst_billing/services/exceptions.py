class ServiceError(Exception):
    """Base exception for service layer failures."""

    http_status = 500

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ValidationError(ServiceError):
    """Raised when a bill operation receives an invalid quantity, price or rate."""

    http_status = 422


class EmptyBillError(ServiceError):
    """Raised when an invoice is requested for a bill without lines."""

    http_status = 400


class MissingReceiverError(ServiceError):
    """Raised when an invoice is requested without a named receiver."""

    http_status = 400


class NotFoundError(ServiceError):
    """Raised when an item, receiver or invoice id is unknown to the store."""

    http_status = 404


class PersistenceError(ServiceError):
    """Raised when the document store rejects or fails a read or write."""

    http_status = 502

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code
