"""
Shared validators for service payloads.

Turns raw mappings into validated pydantic models and update payloads into
column/value dicts, raising the domain ValidationError family instead of
pydantic's own exception.
"""

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from shared.utils.exceptions import NoUpdatableFieldsError, ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def format_validation_errors(exc: PydanticValidationError) -> str:
    """One line per error: "items.0.quantity: Input should be greater than or equal to 1"."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ())) or "payload"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


def validate_payload(schema: type[SchemaT], payload: Mapping[str, Any] | SchemaT) -> SchemaT:
    """
    Validate a raw mapping against a pydantic schema.

    Raises:
        ValidationError: With a readable summary of every problem.
    """
    if isinstance(payload, schema):
        return payload
    if not isinstance(payload, Mapping):
        raise ValidationError("Payload must be an object", schema=schema.__name__)
    try:
        return schema.model_validate(dict(payload))
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e), schema=schema.__name__) from e


def updatable_fields(
    schema: type[BaseModel],
    payload: Mapping[str, Any] | BaseModel,
    entity: str,
    required: Iterable[str] = (),
) -> dict[str, Any]:
    """
    Extract the recognized, explicitly provided fields of an update.

    Unknown keys are ignored. Fields listed in ``required`` map to NOT NULL
    columns and may not be set to None.

    Raises:
        NoUpdatableFieldsError: No recognized field was provided.
        ValidationError: A value is invalid, or a required field is null.
    """
    model = validate_payload(schema, payload)
    values = model.model_dump(exclude_unset=True)
    if not values:
        raise NoUpdatableFieldsError(entity)

    for name in required:
        if name in values and values[name] is None:
            raise ValidationError(f"{name}: cannot be null", entity=entity)
    return values


def sanitize_text(value: str | None, max_length: int) -> str | None:
    """Strip surrounding whitespace; empty strings become None."""
    if value is None:
        return None
    value = value.strip()[:max_length]
    return value or None
