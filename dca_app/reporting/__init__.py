"""
Purchase history reporting and export.
"""
from .export import CSV_HEADER, attempts_to_csv, attempts_to_json

__all__ = ["CSV_HEADER", "attempts_to_csv", "attempts_to_json"]
