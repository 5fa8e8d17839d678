"""
Infrastructure layer: persistence, security, messaging and channels.
"""
