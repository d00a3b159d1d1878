"""
Request validation dependencies.

``validate_request(schema, part)`` builds a FastAPI dependency that reads one
part of the request (JSON body, query string or path parameters), validates it
against a Pydantic model and hands the parsed model to the route. Any violation
short-circuits the request with a 400 whose message lists every failing field.
"""
import json
from enum import Enum
from typing import Any, Dict, Iterable, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError
from starlette import status

from responses import APIError

ModelT = TypeVar("ModelT", bound=BaseModel)


class RequestPart(str, Enum):
    BODY = "body"
    QUERY = "query"
    PARAMS = "params"


class SchemaValidationError(APIError):
    def __init__(self, summary: str):
        super().__init__(status.HTTP_400_BAD_REQUEST, summary, summary)


def format_validation_errors(errors: Iterable[Dict[str, Any]], strip_source: bool = False) -> str:
    """
    Render pydantic errors as a readable, field-by-field summary:

        ✖ Field required
          → at shipping_address.city
    """
    lines = []
    for err in errors:
        loc = list(err.get("loc") or ())
        if strip_source and loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        lines.append(f"✖ {err.get('msg', 'Invalid input')}")
        if loc:
            lines.append("  → at " + ".".join(str(p) for p in loc))
    return "\n".join(lines)


async def _read_part(request: Request, part: RequestPart) -> Any:
    if part is RequestPart.QUERY:
        return dict(request.query_params)
    if part is RequestPart.PARAMS:
        return dict(request.path_params)
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise SchemaValidationError("✖ Invalid JSON body")


def validate_request(schema: Type[ModelT], part: RequestPart):
    async def dependency(request: Request) -> ModelT:
        data = await _read_part(request, part)
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise SchemaValidationError(format_validation_errors(e.errors()))

    dependency.__name__ = f"validate_{part.value}_{schema.__name__}"
    return dependency


def validate_body(schema: Type[ModelT]):
    return validate_request(schema, RequestPart.BODY)


def validate_query(schema: Type[ModelT]):
    return validate_request(schema, RequestPart.QUERY)


def validate_params(schema: Type[ModelT]):
    return validate_request(schema, RequestPart.PARAMS)
