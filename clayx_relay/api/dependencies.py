"""
FastAPI dependency injection providers.

Relay services are process-wide singletons stored on `app.state` at
startup; handlers get them through these providers so tests can swap them.
"""
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..application.services import (
    CommandStore,
    DeviceService,
    PresenceTracker,
    RelayServices,
    TelemetryService,
)
from ..config import get_settings
from ..infrastructure.security import JWTHandler

settings = get_settings()

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


# Singleton instances
_jwt_handler: Optional[JWTHandler] = None


def get_jwt_handler() -> JWTHandler:
    """Get JWT handler instance."""
    global _jwt_handler
    if _jwt_handler is None:
        _jwt_handler = JWTHandler(
            secret_key=settings.jwt.secret_key,
            algorithm=settings.jwt.algorithm,
            issuer=settings.jwt.issuer,
            audience=settings.jwt.audience,
        )
    return _jwt_handler


def get_relay_services(connection: HTTPConnection) -> RelayServices:
    """Get the relay services of the running application."""
    services = getattr(connection.app.state, "services", None)
    if services is None:
        raise RuntimeError("Relay services are not initialized")
    return services


def get_command_store(services: RelayServices = Depends(get_relay_services)) -> CommandStore:
    return services.commands


def get_device_service(services: RelayServices = Depends(get_relay_services)) -> DeviceService:
    return services.devices


def get_telemetry_service(services: RelayServices = Depends(get_relay_services)) -> TelemetryService:
    return services.telemetry


def get_presence_tracker(services: RelayServices = Depends(get_relay_services)) -> PresenceTracker:
    return services.presence


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    jwt_handler: JWTHandler = Depends(get_jwt_handler),
) -> UUID:
    """
    Get the authenticated caller.

    Raises:
        HTTPException: 401 if the bearer token is missing or invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = jwt_handler.get_user_id(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_id
