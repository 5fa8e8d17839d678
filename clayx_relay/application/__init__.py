"""
Application layer: relay services and the ports they depend on.
"""
