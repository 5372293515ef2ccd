"""
DCA App - Recurring Purchase Scheduling Engine

Automates fixed-amount asset purchases on a timer (dollar-cost averaging).
Translates a user interval into a trigger schedule, runs one purchase per
tick against an exchange, and records every attempt in an append-only history.
"""

__version__ = "0.1.0"
__author__ = "DCA Team"
