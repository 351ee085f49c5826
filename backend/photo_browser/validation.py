"""
Photo Browser API — Request Validation Helpers
================================================

What:  Runs Pydantic schemas against raw request data and reports failures as
       a complete, ordered list of `FieldViolation`s.
How:   `validate()` never raises; it returns a `ValidationResult` holding
       either the typed value or the violations. `query_validator()` wraps it
       as a FastAPI dependency that raises `ValidationError` for the central
       handler. JSON bodies are validated by FastAPI itself and their
       `RequestValidationError` is flattened with `violations_from_errors()`,
       so every endpoint reports failures in the same shape.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, List, Mapping, Optional, Type, TypeVar, cast

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from photo_browser.exceptions import FieldViolation, ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Leading `loc` entries FastAPI adds to say where a value came from
_SOURCE_PREFIXES = {"body", "query", "path", "header", "cookie"}
_VALUE_ERROR_PREFIX = "Value error, "


@dataclass
class ValidationResult(Generic[SchemaT]):
    value: Optional[SchemaT] = None
    violations: List[FieldViolation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def unwrap(self) -> SchemaT:
        """Return the value or raise `ValidationError` with every violation."""
        if self.violations:
            raise ValidationError(self.violations)
        return cast(SchemaT, self.value)


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in _SOURCE_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def _clean_message(msg: str) -> str:
    if msg.startswith(_VALUE_ERROR_PREFIX):
        return msg[len(_VALUE_ERROR_PREFIX):]
    return msg


def violations_from_errors(errors: Iterable[Mapping[str, Any]]) -> List[FieldViolation]:
    """Flatten Pydantic/FastAPI error dicts into `FieldViolation`s, keeping order."""
    return [
        FieldViolation(field=_field_name(err.get("loc", ())), message=_clean_message(str(err.get("msg", ""))))
        for err in errors
    ]


def validate(schema: Type[SchemaT], data: Mapping[str, Any]) -> ValidationResult[SchemaT]:
    """Validate `data` against `schema` without raising."""
    try:
        return ValidationResult(value=schema.model_validate(dict(data)))
    except PydanticValidationError as exc:
        return ValidationResult(violations=violations_from_errors(exc.errors()))


def query_validator(schema: Type[SchemaT]) -> Callable[[Request], SchemaT]:
    """
    Build a dependency that validates the query string against `schema`.

    Query values arrive as strings; schemas coerce numeric strings and fill in
    defaults (page, limit) themselves.
    """

    def dependency(request: Request) -> SchemaT:
        return validate(schema, request.query_params).unwrap()

    dependency.__name__ = f"validate_{schema.__name__}"
    return dependency
