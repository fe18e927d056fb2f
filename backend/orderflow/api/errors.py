"""Translation of scheduling errors into HTTP responses."""

import logging

from fastapi import HTTPException, status

from orderflow.services.exceptions import (
    ConcurrencyConflictError,
    InvalidInputError,
    NotFoundError,
    SchedulingError,
)

logger = logging.getLogger(__name__)


def to_http_exception(exc: SchedulingError) -> HTTPException:
    """Map a SchedulingError to the status code the API reports for it."""
    if isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConcurrencyConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, InvalidInputError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        code = status.HTTP_400_BAD_REQUEST
    logger.warning("Request rejected (%d): %s", code, exc)
    return HTTPException(status_code=code, detail=str(exc))
