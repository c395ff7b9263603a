from __future__ import annotations

from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from techblog.core.errors import ValidationError


M = TypeVar("M", bound=BaseModel)

# Human messages keyed by (field, pydantic error type); "*" matches any type
FIELD_MESSAGES: Dict[tuple, str] = {
    ("name", "missing"): "Category name is required.",
    ("name", "string_too_short"): "Category name is required.",
    ("name", "string_too_long"): "The category name may not be greater than 255 characters.",
    ("title", "missing"): "Article title is required.",
    ("title", "string_too_short"): "Article title is required.",
    ("title", "string_too_long"): "The title may not be greater than 255 characters.",
    ("excerpt", "string_too_long"): "The excerpt may not be greater than 500 characters.",
    ("content", "missing"): "Article content is required.",
    ("content", "string_too_short"): "Article content is required.",
    ("category_id", "missing"): "Please select a category.",
    ("category_id", "*"): "The selected category is invalid.",
    ("status", "missing"): "Status is required.",
    ("status", "*"): "Status must be either draft or published.",
    ("featured_image", "value_error"): "The featured image URL may not be greater than 255 characters.",
    ("featured_image", "*"): "The featured image must be a valid URL.",
}


def _message_for(field: str, err: Mapping[str, Any]) -> str:
    err_type = err.get("type", "")
    msg = FIELD_MESSAGES.get((field, err_type)) or FIELD_MESSAGES.get((field, "*"))
    return msg or str(err.get("msg", "Invalid value"))


def to_validation_error(exc: PydanticValidationError) -> ValidationError:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("__root__",)
        field = str(loc[0])
        errors.setdefault(field, []).append(_message_for(field, err))
    return ValidationError(errors)


def validate_fields(schema: Type[M], fields: Mapping[str, Any] | BaseModel) -> M:
    """Validate raw write fields against ``schema`` before any mutation."""
    if isinstance(fields, schema):
        return fields
    if isinstance(fields, BaseModel):
        fields = fields.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(dict(fields))
    except PydanticValidationError as exc:
        raise to_validation_error(exc) from None
