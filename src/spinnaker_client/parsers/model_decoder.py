"""
Decoding of untyped documents into API models.
"""
from typing import Any, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..models.errors import DecodeError


M = TypeVar("M", bound=BaseModel)


def error_location(path: str, loc: Sequence[Union[str, int]]) -> str:
    """Render a validation location as ``key.nested[index].key``."""
    location = path
    for part in loc:
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location = f"{location}.{part}" if location else str(part)
    return location


def decode_error(error: ValidationError, path: str = "") -> DecodeError:
    """Turn a validation failure into a DecodeError naming the first bad field."""
    details = error.errors(include_url=False)
    first = details[0]
    location = error_location(path, first["loc"])

    message = f"{location or error.title}: {first['msg']}"
    if len(details) > 1:
        message += f" (and {len(details) - 1} more)"
    return DecodeError(message, field=location or None)


def decode_model(model_class: Type[M], document: Any, path: str = "") -> M:
    """
    Validate a document into a model.

    Raises:
        DecodeError: If the document does not fit the model
    """
    try:
        return model_class.model_validate(document)
    except ValidationError as e:
        raise decode_error(e, path) from e


def decode_value(adapter: TypeAdapter, value: Any, path: str = "") -> Any:
    """Validate a value against a TypeAdapter, raising DecodeError on failure."""
    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        raise decode_error(e, path) from e
