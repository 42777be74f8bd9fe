from typing import Annotated

from pydantic import StringConstraints
from pydantic_core import PydanticCustomError


# Required text: whitespace-only counts as missing
RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Optional free text, trimmed
TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]


def reject_null(value):
    """PATCH fields backed by NOT NULL columns may be left out, but not sent as null."""
    if value is None:
        raise PydanticCustomError("null_not_allowed", "Field cannot be null")
    return value
