"""Identity stamped on audit fields by mutating operations."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    user_id: int
    user_name: str
