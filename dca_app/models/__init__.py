"""
Domain models for bot configuration and the purchase attempt history.
"""
