from dataclasses import dataclass

ASC = "ASC"
DESC = "DESC"

DIRECTIONS = (ASC, DESC)


@dataclass(frozen=True)
class OrderBy:
    """A field to sort on and the direction to sort in."""
    field: str
    direction: str = ASC
