from __future__ import annotations

from typing import Dict, List, Mapping, Optional


class BlogError(Exception):
    pass


class ValidationError(BlogError):
    """Malformed, missing or out-of-range input.

    ``errors`` maps a field name to the messages raised for it, the same
    shape the management forms render next to each input.
    """

    def __init__(self, errors: Mapping[str, List[str]], message: Optional[str] = None) -> None:
        self.errors: Dict[str, List[str]] = {k: list(v) for k, v in errors.items()}
        if message is None:
            first = next(iter(self.errors.values()), [])
            message = first[0] if first else "Invalid input"
        self.message = message
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class ReferentialIntegrityError(ValidationError):
    """A category or author reference does not exist at write time."""


class NotFound(BlogError):
    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found")
