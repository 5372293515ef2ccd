"""
Utility functions module.

Time Semantics:
- All engine timestamps are timezone-aware UTC datetimes
- Purchase attempts are stamped when the tick starts, not when it finishes
- Stored timestamps are ISO8601 strings so that lexical order is time order
"""
