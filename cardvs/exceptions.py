"""
Custom exceptions for CardVS.
"""

class CardVSError(Exception):
    """Base exception for all CardVS errors."""
    pass

class NotFoundError(CardVSError):
    """Raised when a node id or object hash is absent."""
    pass

class InvalidOperationError(CardVSError):
    """Raised when a structural edit or state transition is not allowed."""
    pass

class MalformedInputError(CardVSError):
    """Raised when an incoming object batch cannot be parsed."""
    pass

class ObjectError(CardVSError):
    """Raised when object operations fail."""
    pass

class RepositoryError(CardVSError):
    """Raised when repository operations fail."""
    pass

class ConfigError(CardVSError):
    """Raised when configuration keys are malformed."""
    pass
