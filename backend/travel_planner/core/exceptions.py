"""
Application exception hierarchy.

Route handlers and services raise these; the handlers registered in
``travel_planner.main`` turn them into the ``{"success": false, "message": ...}``
envelope with the status code carried by the exception.
"""

from typing import Iterable


class TravelPlannerError(Exception):
    """Base exception for the travel planner API"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailedError(TravelPlannerError):
    """Raised when request input fails a business rule"""

    status_code = 400


class NotFoundError(TravelPlannerError):
    """Raised when a requested row does not exist (or is not owned by the caller)"""

    status_code = 404


class ConflictError(TravelPlannerError):
    """Raised when a write violates a uniqueness constraint"""

    status_code = 409


class VendorNotConfiguredError(TravelPlannerError):
    """Raised when a vendor client is missing required settings"""

    status_code = 500

    def __init__(self, vendor: str, missing: Iterable[str]):
        self.vendor = vendor
        self.missing = list(missing)
        super().__init__(f"Missing {vendor} configuration: {', '.join(self.missing)}")


class VendorError(TravelPlannerError):
    """Raised when a vendor API answers but reports a failure"""

    status_code = 400

    def __init__(self, vendor: str, message: str, code: str | int | None = None):
        self.vendor = vendor
        self.code = code
        super().__init__(message)


class VendorUnavailableError(TravelPlannerError):
    """Raised when a vendor API cannot be reached (transport error, timeout)"""

    status_code = 502

    def __init__(self, vendor: str, message: str):
        self.vendor = vendor
        super().__init__(message)


class PayloadTooLargeError(TravelPlannerError):
    """Raised when an uploaded body exceeds its size limit"""

    status_code = 413
