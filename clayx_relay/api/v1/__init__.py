"""
API routers.
"""
from fastapi import APIRouter

from . import commands, devices, sensor, socket

api_router = APIRouter()
api_router.include_router(commands.router)
api_router.include_router(devices.router)
api_router.include_router(sensor.router)

socket_router = socket.router

__all__ = ["api_router", "socket_router"]
