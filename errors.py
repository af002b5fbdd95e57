from __future__ import annotations


class PlannerError(Exception):
    """Base class for errors raised by the study planner."""


class InvalidSubjectError(PlannerError, ValueError):
    """A subject violates a precondition of the allocator (e.g. difficulty out of range)."""


class InvalidConfigurationError(PlannerError, ValueError):
    """A run parameter such as the daily capacity or horizon is unusable."""
