"""
Channel handles for persistent connections.
"""
from .websocket_channel import WebSocketChannel

__all__ = ["WebSocketChannel"]
