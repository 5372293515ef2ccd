"""
Purchase execution module.

Runs one purchase tick: load settings, check balance, submit a market buy,
and record the outcome. Nothing raised inside a tick reaches the scheduler.
"""
from .executor import PurchaseExecutor

__all__ = ["PurchaseExecutor"]
