"""
Error taxonomy for the hierarchy service.

ConnectionFailure is fatal at startup. DataUnavailable and MalformedHierarchy are
per-request and get turned into a uniform 500 payload by the handlers in main.py.
"""
from typing import List, Optional


class HierarchyError(Exception):
    """Base class for errors raised by the hierarchy pipeline."""


class ConnectionFailure(HierarchyError):
    """Neo4j is unreachable or rejected our credentials at startup."""


class DataUnavailable(HierarchyError):
    """The records for a request could not be fetched or were malformed."""


class MalformedHierarchy(HierarchyError):
    """The parent references do not describe a forest."""

    def __init__(self, message: str, names: Optional[List[str]] = None):
        super().__init__(message)
        self.names = list(names or [])
