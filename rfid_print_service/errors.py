"""
Service Errors
==============

Exception hierarchy shared by the workflow, the allocator and the HTTP layer.
Each error carries the HTTP status it maps to.
"""


class LabelServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # PrintJob the error ended, when raised inside the workflow
        self.job = None


class ValidationError(LabelServiceError):
    """Required field missing or malformed."""

    status_code = 400


class NotFoundError(LabelServiceError):
    """Referenced counter, label class, destination or record is absent."""

    status_code = 404


class TransmissionError(LabelServiceError):
    """Socket or USB write to the printer failed or timed out."""

    status_code = 500


class PersistenceError(LabelServiceError):
    """Storage write failed."""

    status_code = 500
