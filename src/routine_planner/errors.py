from __future__ import annotations

"""Exception types surfaced by the planner core and its storage adapters."""


class PlannerError(Exception):
    pass


class InvalidDate(PlannerError):
    """Caller passed a date that cannot be parsed."""


class StorageUnavailable(PlannerError):
    """A store call failed; the operation was aborted."""


class DataInconsistency(PlannerError):
    """A stored record violates an invariant (handled locally, never surfaced by synthesis)."""


class ValidationError(PlannerError):
    pass


__all__ = [
    "DataInconsistency",
    "InvalidDate",
    "PlannerError",
    "StorageUnavailable",
    "ValidationError",
]
