"""Errors raised by the scheduling services.

Scheduling conflicts are not errors: they are returned alongside a
successful write. Everything here aborts the current request.
"""


class SchedulingError(Exception):
    """Base class for failures the caller can act on."""


class NotFoundError(SchedulingError):
    """A task, resource, assignment or order id did not resolve."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidInputError(SchedulingError):
    """Request values violate a scheduling invariant."""


class ConcurrencyConflictError(SchedulingError):
    """A row changed underneath this request. Re-fetch and retry."""

    retryable = True
