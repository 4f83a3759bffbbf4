"""
Domain errors.

Lookups by id signal absence with None (or False for deletes). These
exceptions cover the remaining failure kinds so the caller can tell
"not found" apart from "invalid input".
"""

from typing import Any, Dict, List, Optional


class ProductivityError(Exception):
    """Base class for all domain errors"""


class NotFoundError(ProductivityError):
    """
    Raised when a state transition targets an entity that does not exist,
    or one that is in the wrong state for it (e.g. stopping a stopped timer).
    """

    def __init__(self, entity: str, entity_id: Any, reason: Optional[str] = None):
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
        message = f"{entity} {entity_id} not found"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ValidationError(ProductivityError):
    """
    Raised for constraint violations: missing or too long fields,
    unknown enum names, end before start, missing parent rows.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        self.errors = errors or []
        super().__init__(message)
