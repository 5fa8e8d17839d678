"""
HTTP and WebSocket adapters.
"""
