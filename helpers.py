import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TypeVar

from fastapi import HTTPException, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ValidationError

from schemas.shared import as_list, sanitize_text

logger = logging.getLogger(__name__)

T = TypeVar("T")
FormT = TypeVar("FormT", bound=BaseModel)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def get_or_404(obj: T | None, detail: str) -> T:
    """Strict policy for detail and update views: a missing record is a 404."""
    if obj is None:
        raise NotFoundError(detail)
    return obj


def redirect_if_missing(obj: Any, list_url: str) -> RedirectResponse | None:
    """Lenient policy for delete views: a missing record sends you back to the list."""
    if obj is None:
        logger.debug("record already gone, redirecting to %s", list_url)
        return redirect(list_url)
    return None


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


def render(request: Request, template: str, **context) -> Any:
    return templates.TemplateResponse(request, template, context)


def validate_form(
    schema: type[FormT], data: Mapping[str, Any]
) -> tuple[FormT | None, list[dict]]:
    """Run the form schema and return either the model or the per-field errors."""
    try:
        return schema.model_validate(dict(data)), []
    except ValidationError as exc:
        errors = [
            {"field": str(err["loc"][0]) if err["loc"] else "", "msg": err["msg"]}
            for err in exc.errors()
        ]
        logger.warning(
            "%s rejected: %s", schema.__name__, ", ".join(e["field"] for e in errors)
        )
        return None, errors


def echo_values(data: Mapping[str, Any], *list_fields: str) -> dict:
    """Sanitised copy of a submission for re-displaying the form."""
    values: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, list):
            values[key] = [sanitize_text(v) for v in value]
        else:
            values[key] = sanitize_text(value)
    for key in list_fields:
        values[key] = as_list(values.get(key))
    return values
