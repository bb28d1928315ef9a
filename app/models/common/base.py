"""Base entity class for rows read back from sync tables."""

from dataclasses import asdict, dataclass, fields
from typing import Any


@dataclass
class BaseEntity:
    """Base class for all entities."""

    @classmethod
    def from_row(cls, row: tuple) -> "BaseEntity":
        """Build from a row whose columns are in field order."""
        return cls(*row[: len(fields(cls))])

    def to_dict(self) -> dict[str, Any]:
        """Convert entity to dictionary."""
        return asdict(self)
