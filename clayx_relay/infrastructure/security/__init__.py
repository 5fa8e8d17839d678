"""
Security infrastructure.
"""
from .jwt_handler import JWTHandler, TokenPayload

__all__ = ["JWTHandler", "TokenPayload"]
