"""Validation rules shared by the request schemas.

Rules raise ``PydanticCustomError`` whose type is the rule name exposed to API
clients (``uuid``, ``ascii``, ``_empty``...). ``errors_to_map`` turns a list of
pydantic errors into the nested field-level error map returned by the API.
"""

import re
from typing import Any, Dict, Iterable, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from ..core import armor
from ..exceptions import CustomValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

REQUIRED = "_required"
EMPTY = "_empty"

# Pydantic built-in error types renamed to the rule names clients know.
_ERROR_TYPE_ALIASES = {
    "missing": REQUIRED,
    "list_type": "array",
    "string_type": "string",
    "string_too_long": "maxLength",
    "literal_error": "inList",
    "enum": "inList",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
    "int_parsing": "integer",
    "datetime_parsing": "dateTime",
    "datetime_type": "dateTime",
    "uuid_parsing": "uuid",
    "uuid_type": "uuid",
}

_UUID_PATTERN = re.compile(r"^[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}$", re.IGNORECASE)


def errors_to_map(
    errors: Iterable[dict],
    strip_prefix: Sequence[str] = (),
    required_messages: Optional[Dict[str, str]] = None,
) -> dict:
    """Build ``{field: {rule: message}}`` from pydantic error dicts.

    Nested locations become nested dicts; list positions stay integer keys.
    Errors raised by model-level validators are reported under ``_entity``.
    *required_messages* replaces pydantic's generic text for missing fields,
    keyed by field name.
    """
    result: dict = {}
    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] in strip_prefix:
            loc = loc[1:]
        if not loc:
            loc = ["_entity"]
        rule = _ERROR_TYPE_ALIASES.get(err["type"], err["type"])
        message = err["msg"]
        if rule == REQUIRED and required_messages and loc[-1] in required_messages:
            message = required_messages[loc[-1]]

        node = result
        for part in loc[:-1]:
            node = node.setdefault(part, {})
        node.setdefault(loc[-1], {})[rule] = message
    return result


def validate_data(schema: Type[ModelT], data: Any, message: str) -> ModelT:
    """Validate *data* against *schema*, raising CustomValidationError with the error map."""
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        required_messages = getattr(schema, "required_messages", None)
        raise CustomValidationError(message, errors_to_map(e.errors(), required_messages=required_messages)) from e


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def is_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(_UUID_PATTERN.match(value))


def not_empty(value: Any, message: str) -> Any:
    if value is None or (isinstance(value, (str, list, dict)) and len(value) == 0):
        raise PydanticCustomError(EMPTY, message)
    return value


def uuid_rule(value: Any, message: str) -> Any:
    if not is_uuid(value):
        raise PydanticCustomError("uuid", message)
    return value.lower()


def ascii_rule(value: str, message: str) -> str:
    if not value.isascii():
        raise PydanticCustomError("ascii", message)
    return value


def alpha_numeric(value: str, message: str) -> str:
    if not (value.isascii() and value.isalnum()):
        raise PydanticCustomError("alphaNumeric", message)
    return value


def utf8_extended(value: str, message: str) -> str:
    """Any valid UTF-8 text, including 4-byte characters; lone surrogates are refused."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise PydanticCustomError("utf8Extended", message)
    return value


def max_length(value: str, length: int, message: str) -> str:
    if len(value) > length:
        raise PydanticCustomError("maxLength", message)
    return value


def in_list(value: Any, allowed: Sequence[Any], message: str) -> Any:
    if value not in allowed:
        raise PydanticCustomError("inList", message)
    return value


def armored_message(value: str, message: str) -> str:
    if not armor.is_parsable_message(value):
        raise PydanticCustomError("isParsableArmoredMessage", message)
    return value


def armored_public_key(value: str, message: str) -> str:
    if not armor.is_parsable_public_key(value):
        raise PydanticCustomError("isParsableArmoredKey", message)
    return value
