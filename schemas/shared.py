import enum
from datetime import date, datetime
from typing import Any

from markupsafe import escape
from pydantic import BaseModel
from pydantic_core import PydanticCustomError

# largest value an INTEGER primary key column holds
MAX_ID = 2**31 - 1


class SortDirection(str, enum.Enum):
    asc = "asc"
    desc = "desc"


class SortControl(BaseModel):
    sort_field: str
    sort_direction: SortDirection = SortDirection.asc


def as_list(value: Any) -> list:
    """Absent -> [], scalar -> [scalar], list/tuple/set -> list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def sanitize_text(value: Any) -> str:
    """Trim surrounding whitespace and escape HTML markup."""
    if value is None:
        return ""
    return str(escape(str(value).strip()))


def required_text(value: Any, message: str, min_length: int = 1) -> str:
    text = "" if value is None else str(value).strip()
    if len(text) < min_length:
        raise PydanticCustomError("required", message)
    return sanitize_text(text)


def optional_date(value: Any, message: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise PydanticCustomError("invalid_date", message)


def in_id_range(text: str) -> bool:
    return text.isdigit() and 1 <= int(text) <= MAX_ID


def reference_id(value: Any, required_message: str, invalid_message: str) -> int:
    text = "" if value is None else str(value).strip()
    if not text:
        raise PydanticCustomError("required", required_message)
    if not in_id_range(text):
        raise PydanticCustomError("invalid_reference", invalid_message)
    return int(text)
