"""
Schedule module.

Translates purchase intervals into clock-aligned trigger schedules and owns
the Stopped/Running state machine that drives purchase ticks.
"""
