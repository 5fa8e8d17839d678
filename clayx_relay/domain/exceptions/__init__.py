"""
Domain exceptions.
"""
from .domain_exceptions import (
    DomainException,
    EntityNotFoundException,
    AuthorizationException,
    InvalidCommandException,
    ChannelUnavailableException,
    PersistenceException,
)

__all__ = [
    "DomainException",
    "EntityNotFoundException",
    "AuthorizationException",
    "InvalidCommandException",
    "ChannelUnavailableException",
    "PersistenceException",
]
