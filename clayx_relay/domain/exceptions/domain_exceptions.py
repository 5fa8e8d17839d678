"""
Domain Exceptions - Custom exceptions for relay errors.
"""
from typing import Any, Dict, Optional


class DomainException(Exception):
    """
    Base exception for all domain-related errors.

    All domain exceptions should inherit from this class to allow
    for consistent error handling across REST and socket adapters.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            'error': self.code,
            'message': self.message,
            'details': self.details
        }


class EntityNotFoundException(DomainException):
    """Raised when a device or command reference does not resolve."""

    def __init__(
        self,
        entity_type: str,
        entity_id: Optional[Any] = None,
        message: Optional[str] = None
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        msg = message or f"{entity_type} not found"
        if entity_id is not None and message is None:
            msg = f"{entity_type} '{entity_id}' not found"
        super().__init__(
            message=msg,
            code='NOT_FOUND',
            details={
                'entity_type': entity_type,
                'entity_id': str(entity_id) if entity_id is not None else None,
            }
        )


class AuthorizationException(DomainException):
    """Raised when the caller does not own the referenced device."""

    def __init__(
        self,
        message: str = "Not authorized to access this device",
        resource: Optional[str] = None
    ):
        details = {}
        if resource:
            details['resource'] = resource
        super().__init__(
            message=message,
            code='FORBIDDEN',
            details=details
        )


class InvalidCommandException(DomainException):
    """Raised when a command type or value is malformed."""

    def __init__(
        self,
        message: str = "Invalid command",
        field: Optional[str] = None
    ):
        self.field = field
        super().__init__(
            message=message,
            code='INVALID_STATE',
            details={'field': field} if field else {}
        )


class ChannelUnavailableException(DomainException):
    """
    Raised when a push is attempted over a channel that is gone.

    Never surfaced to callers; delivery falls back to polling.
    """

    def __init__(self, device_id: str, reason: Optional[str] = None):
        self.device_id = device_id
        super().__init__(
            message=reason or f"No live channel for device '{device_id}'",
            code='CHANNEL_UNAVAILABLE',
            details={'device_id': device_id}
        )


class PersistenceException(DomainException):
    """Raised when the storage collaborator fails."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(
            message=message,
            code='PERSISTENCE_ERROR',
        )
