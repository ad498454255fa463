from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from .shared import as_list, in_id_range, reference_id, required_text


class BookForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    title: str = ""
    author: int = 0
    summary: str = ""
    isbn: str = ""
    genre: list[int] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, value):
        return required_text(value, "Title must not be empty.")

    @field_validator("author", mode="before")
    @classmethod
    def check_author(cls, value):
        if value == 0:
            value = None
        return reference_id(value, "Author must not be empty.", "Author does not exist.")

    @field_validator("summary", mode="before")
    @classmethod
    def check_summary(cls, value):
        return required_text(value, "Summary must not be empty.")

    @field_validator("isbn", mode="before")
    @classmethod
    def check_isbn(cls, value):
        return required_text(value, "ISBN must not be empty.")

    @field_validator("genre", mode="before")
    @classmethod
    def check_genre(cls, value):
        ids = []
        for item in as_list(value):
            text = str(item).strip()
            if not text:
                continue
            if not in_id_range(text):
                raise PydanticCustomError("invalid_reference", "Genre does not exist.")
            ids.append(int(text))
        # keep submission order, drop repeats
        return list(dict.fromkeys(ids))
