from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_core import PydanticCustomError

from .shared import optional_date, required_text


def _name(value: Any, label: str) -> str:
    text = required_text(value, f"{label} must be specified.")
    if not text.isascii() or not text.isalnum():
        raise PydanticCustomError(
            "alphanumeric", f"{label} has non-alphanumeric characters."
        )
    return text


class AuthorForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    first_name: str = ""
    family_name: str = ""
    date_of_birth: date | None = None
    date_of_death: date | None = None

    @field_validator("first_name", mode="before")
    @classmethod
    def check_first_name(cls, value):
        return _name(value, "First name")

    @field_validator("family_name", mode="before")
    @classmethod
    def check_family_name(cls, value):
        return _name(value, "Family name")

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def check_date_of_birth(cls, value):
        return optional_date(value, "Invalid date of birth")

    @field_validator("date_of_death", mode="before")
    @classmethod
    def check_date_of_death(cls, value):
        return optional_date(value, "Invalid date of death")
