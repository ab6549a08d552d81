"""
Request Validation - pydantic schemas compiled into chain middleware.

A route's ``validation`` maps request sections to a schema:

    validation = {
        "params": {"post_id": int},
        "body": {"foo": (str, Field(min_length=4))},
    }

A schema is either a pydantic model class or a mapping of field definitions,
which is turned into a model that forbids unknown keys (headers excepted).
Validated data replaces the request section before the rest of the chain
runs.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError, create_model
from pydantic.fields import FieldInfo

from ..pipeline.contracts import RouteflowError
from .chain import ErrorHandler, Middleware, Proceed
from .context import RequestContext, ResponseSink

logger = logging.getLogger(__name__)

SECTIONS = ("params", "query", "body", "headers")

VALIDATION_ERROR_HANDLER = "validation_errors"


class ValidationFailure(RouteflowError):
    """
    A request section did not conform to its schema.

    Attributes:
        section: Request section that failed ("params", "query", "body", "headers")
        errors: Per-field errors as {"field": ..., "message": ...}
        status_code: Always 400
    """

    status_code = int(HTTPStatus.BAD_REQUEST)

    def __init__(self, section: str, errors: List[Dict[str, str]], message: Optional[str] = None) -> None:
        self.section = section
        self.errors = errors
        if message is None:
            message = "; ".join(
                f"{e['field']}: {e['message']}" if e["field"] else e["message"] for e in errors
            ) or "Validation failed"
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, section: str, exc: ValidationError) -> "ValidationFailure":
        errors = []
        for error in exc.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append({"field": loc, "message": error["msg"]})
        return cls(section, errors)

    @property
    def keys(self) -> List[str]:
        return [e["field"] for e in self.errors if e["field"]]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "error": HTTPStatus(self.status_code).phrase,
            "message": str(self),
            "validation": {"source": self.section, "keys": self.keys},
            "errors": self.errors,
        }


def build_model(name: str, definitions: Mapping[str, Any], *, extra: str = "forbid") -> Type[BaseModel]:
    """
    Create a pydantic model from field definitions.

    Each value is a type (a required field), a ``(type, default_or_Field)``
    tuple, or a FieldInfo carrying its own annotation.
    """
    model_fields: Dict[str, Any] = {}
    for field_name, definition in definitions.items():
        if isinstance(definition, tuple):
            model_fields[field_name] = definition
        elif isinstance(definition, FieldInfo):
            model_fields[field_name] = (definition.annotation or Any, definition)
        else:
            model_fields[field_name] = (definition, ...)
    return create_model(name, __config__=ConfigDict(extra=extra), **model_fields)


def _as_model(section: str, schema: Any) -> Type[BaseModel]:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema
    if isinstance(schema, Mapping):
        # Requests always carry headers nobody declared
        extra = "ignore" if section == "headers" else "forbid"
        return build_model(f"{section.capitalize()}Schema", schema, extra=extra)
    raise TypeError(f"Schema for '{section}' must be a pydantic model or a mapping of fields")


def compile_schema(schema: Mapping[str, Any]) -> Middleware:
    """Compile a per-section schema into a validating chain middleware."""
    unknown = set(schema) - set(SECTIONS)
    if unknown:
        raise ValueError(f"Unknown validation sections: {sorted(unknown)}")

    models = {section: _as_model(section, schema[section]) for section in SECTIONS if section in schema}

    def validate(ctx: RequestContext, response: ResponseSink, proceed: Proceed) -> None:
        for section, model in models.items():
            data = getattr(ctx, section)
            try:
                validated = model.model_validate({} if data is None else data)
            except ValidationError as exc:
                proceed(ValidationFailure.from_pydantic(section, exc))
                return
            cleaned = validated.model_dump(by_alias=True)
            if section == "headers":
                cleaned = {**ctx.headers, **cleaned}
            setattr(ctx, section, cleaned)
        proceed()

    validate.models = models  # type: ignore[attr-defined]
    return validate


def validation_error_handler() -> ErrorHandler:
    """Error link rendering ValidationFailure as a 400 response."""

    def render(error: BaseException, ctx: RequestContext, response: ResponseSink, proceed: Proceed) -> None:
        if not isinstance(error, ValidationFailure):
            proceed(error)
            return
        logger.warning("Validation error on %s %s: %s", ctx.method, ctx.path, error.errors)
        response.status(error.status_code).json(error.to_payload())

    return ErrorHandler(render, name=VALIDATION_ERROR_HANDLER)
