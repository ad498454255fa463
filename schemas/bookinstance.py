from datetime import date

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_core import PydanticCustomError

from models import BookStatus
from .shared import optional_date, reference_id, required_text


class BookInstanceForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    book: int = 0
    imprint: str = ""
    status: BookStatus = BookStatus.maintenance
    due_back: date | None = None

    @field_validator("book", mode="before")
    @classmethod
    def check_book(cls, value):
        if value == 0:
            value = None
        return reference_id(value, "Book must be specified", "Book does not exist.")

    @field_validator("imprint", mode="before")
    @classmethod
    def check_imprint(cls, value):
        return required_text(value, "Imprint must be specified")

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, value):
        if isinstance(value, BookStatus):
            return value
        text = "" if value is None else str(value).strip()
        if not text:
            return BookStatus.maintenance
        try:
            return BookStatus(text)
        except ValueError:
            raise PydanticCustomError("invalid_status", "Invalid status")

    @field_validator("due_back", mode="before")
    @classmethod
    def check_due_back(cls, value):
        return optional_date(value, "Invalid date")
