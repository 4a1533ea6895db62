"""
Billing export failures.

Raised by billing export sources. The estimation engine never catches
these; they reach the caller unchanged.
"""


class BillingExportError(Exception):
    """Base class for billing export failures."""
    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class CreateQueryJobError(BillingExportError):
    """Raised when the usage query cannot be submitted."""
    def __init__(self, reason: str, location: str, message: str):
        super().__init__(
            f"Billing export create query job failed. "
            f"Reason: {reason}, Location: {location}, Message: {message}",
            reason,
        )
        self.location = location
        self.detail = message


class QueryResultsError(BillingExportError):
    """Raised when the results of a submitted query cannot be read."""
    def __init__(self, reason: str, domain: str, message: str):
        super().__init__(
            f"Billing export get query results failed. "
            f"Reason: {reason}, Domain: {domain}, Message: {message}",
            reason,
        )
        self.domain = domain
        self.detail = message
