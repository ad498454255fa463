from pydantic import BaseModel, ConfigDict, field_validator

from .shared import required_text


class GenreForm(BaseModel):
    model_config = ConfigDict(frozen=True, validate_default=True)

    name: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, value):
        return required_text(
            value, "Genre name must contain at least 3 characters", min_length=3
        )
