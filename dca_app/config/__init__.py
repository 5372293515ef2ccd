"""
Configuration management module.

Handles engine defaults, YAML overrides, and validation of both engine
parameters and user-owned bot settings.
"""
