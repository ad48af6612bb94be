"""
Payload validation that reports failures as data instead of raising.

``validate(ProductCreate, payload)`` returns a ``ValidationResult`` holding
either the parsed model or a ``{field: [messages]}`` map ready to be sent
back in a 422 body.
"""
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)

PAYLOAD_FIELD = "payload"
NOT_AN_OBJECT = "The payload must be a JSON object."

_REQUIRED = {"missing", "required"}
_STRING = {"string_type", "string_unicode"}
_TOO_LONG = {"string_too_long"}
_NUMBER = {
    "decimal_parsing",
    "decimal_type",
    "decimal_max_digits",
    "decimal_max_places",
    "decimal_whole_digits",
    "finite_number",
    "float_parsing",
    "float_type",
}
_INTEGER = {"int_parsing", "int_type", "int_from_float", "int_parsing_size"}


@dataclass(frozen=True)
class ValidationResult(Generic[M]):
    value: M | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _message(error: dict) -> str:
    kind = error["type"]
    name = str(error["loc"][0]) if error["loc"] else PAYLOAD_FIELD
    # An explicit null for a typed field reads as "not supplied".
    if kind in _REQUIRED or (error["loc"] and error.get("input", ...) is None):
        return f"The {name} field is required."
    if kind in _STRING:
        return f"The {name} field must be a string."
    if kind in _TOO_LONG:
        limit = (error.get("ctx") or {}).get("max_length")
        return f"The {name} field must not be greater than {limit} characters."
    if kind in _NUMBER:
        return f"The {name} field must be a number."
    if kind in _INTEGER:
        return f"The {name} field must be an integer."
    if kind in {"model_type", "dict_type", "model_attributes_type"}:
        return NOT_AN_OBJECT
    return error["msg"]


def errors_from(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by top-level field, keeping report order."""
    grouped: dict[str, list[str]] = {}
    for error in exc.errors():
        name = str(error["loc"][0]) if error["loc"] else PAYLOAD_FIELD
        message = _message(error)
        messages = grouped.setdefault(name, [])
        if message not in messages:
            messages.append(message)
    return grouped


def validate(model: type[M], payload: Any) -> ValidationResult[M]:
    try:
        return ValidationResult(value=model.model_validate(payload))
    except ValidationError as exc:
        return ValidationResult(errors=errors_from(exc))
