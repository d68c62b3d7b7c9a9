"""
Domain Exceptions

Storage failures live next to the storage interface
(see contigos.services.storage.interface). Everything raised by the
input layer is defined here.
"""

from typing import Optional


class ContigosError(Exception):
    """Base exception for all Contigos errors."""
    pass


class ValidationError(ContigosError):
    """
    Input was rejected before it reached storage or the engine.

    The message is meant to be shown to the user as-is.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}
