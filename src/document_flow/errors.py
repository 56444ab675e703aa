"""
Exception hierarchy for the document flow package.

Everything raised on purpose inherits from DocumentFlowError so callers
at the session or API level can catch it uniformly.
"""

FETCH_FAILED_MESSAGE = "Failed to fetch document flow data. Please try again later."


class DocumentFlowError(Exception):
    """Base exception for document flow errors."""


class FetchError(DocumentFlowError):
    """The relationship API could not deliver a relation set."""

    def __init__(self, message: str = FETCH_FAILED_MESSAGE, *, object_id: str | None = None):
        self.object_id = object_id
        super().__init__(message)


class UnmappedTypeError(DocumentFlowError):
    """A type code has no entry in the routing table."""

    def __init__(self, type_code: str):
        self.type_code = type_code
        super().__init__(f"No routing key found for object type: {type_code}")
