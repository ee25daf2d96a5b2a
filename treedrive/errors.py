# Filename: treedrive/errors.py
"""Error kinds raised by the tree engine.

The HTTP layer maps each kind to a status code; the engine itself never
raises HTTPException.
"""
from typing import Optional


class TreeError(Exception):
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class NotFound(TreeError):
    """Referenced node does not exist for this owner."""


class InvalidTarget(TreeError):
    """Target or parent is missing or is not a folder."""


class CyclicMove(TreeError):
    """A folder would end up inside its own subtree."""


class NameCollision(TreeError):
    """A sibling with the same name already exists."""


class InvalidName(TreeError):
    """Empty name, a dot name, or a name containing a separator."""


class IOFailure(TreeError):
    """An underlying filesystem operation failed."""


class TooLarge(TreeError):
    """Content exceeds the configured size cap."""


class BrokenChain(TreeError):
    """An ancestor reference could not be resolved. Indicates corrupted data."""
