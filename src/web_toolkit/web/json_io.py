import json
import logging
from collections.abc import Mapping, Sequence, Set as AbstractSet
from http import HTTPMethod
from types import UnionType
from typing import Annotated, Any, Optional, TypeVar, Union, get_args, get_origin

import httpx
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ValidationError
from starlette.requests import Request

from web_toolkit.common.errors import (
    BodyTooLargeError,
    EmptyBodyError,
    JSONTypeMismatchError,
    MalformedJSONError,
    TrailingContentError,
    UnknownFieldError,
)
from web_toolkit.utils.httpx_manager.httpx_manager import httpx_manager
from web_toolkit.utils.schemas import JSONDecodeConfig, JSONEnvelope

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_WHITESPACE = " \t\n\r"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


_decoder = json.JSONDecoder(parse_constant=_reject_constant)


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


_SEQUENCES = (list, tuple, set, frozenset, Sequence, AbstractSet)
_MAPPINGS = (dict, Mapping)


def _models_in(annotation: Any) -> list[type[BaseModel]]:
    """Model classes a JSON object in this position may be validated into"""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return [annotation]
    origin = get_origin(annotation)
    if origin is Annotated:
        return _models_in(get_args(annotation)[0])
    if origin is Union or origin is UnionType:
        return [m for arg in get_args(annotation) for m in _models_in(arg)]
    return []


def _keys_of(model: type[BaseModel]) -> dict[str, Any]:
    keys: dict[str, Any] = {}
    for name, field in model.model_fields.items():
        keys[name] = field.annotation
        if field.alias:
            keys[field.alias] = field.annotation
        if isinstance(field.validation_alias, str):
            keys[field.validation_alias] = field.annotation
        elif isinstance(field.validation_alias, AliasChoices):
            for choice in field.validation_alias.choices:
                if isinstance(choice, str):
                    keys[choice] = field.annotation
    return keys


def _apply_key_policy(value: Any, annotation: Any, path: tuple, allow_unknown: bool) -> Any:
    """Walk a decoded value alongside the type it will be validated into.

    Unknown object keys raise UnknownFieldError with their dotted path when
    they are not allowed. When they are allowed they are dropped from objects
    bound for models that would otherwise refuse them.
    """
    origin = get_origin(annotation)
    if origin is Annotated:
        return _apply_key_policy(value, get_args(annotation)[0], path, allow_unknown)

    if isinstance(value, dict):
        models = _models_in(annotation)
        if models:
            known: dict[str, Any] = {}
            for model in reversed(models):
                known.update(_keys_of(model))
            keeps_extra = any(m.model_config.get("extra") == "allow" for m in models)

            result = {}
            for key, item in value.items():
                if key not in known:
                    if not allow_unknown:
                        raise UnknownFieldError(_field_path(path + (key,)))
                    if not keeps_extra:
                        continue
                    result[key] = item
                    continue
                result[key] = _apply_key_policy(item, known[key], path + (key,), allow_unknown)
            return result

        if origin in _MAPPINGS:
            args = get_args(annotation)
            item_type = args[1] if len(args) == 2 else Any
            return {
                key: _apply_key_policy(item, item_type, path + (key,), allow_unknown)
                for key, item in value.items()
            }
        if origin is Union or origin is UnionType:
            for arg in get_args(annotation):
                if get_origin(arg) in _MAPPINGS:
                    return _apply_key_policy(value, arg, path, allow_unknown)
        return value

    if isinstance(value, list):
        if origin is Union or origin is UnionType:
            for arg in get_args(annotation):
                if get_origin(arg) in _SEQUENCES:
                    return _apply_key_policy(value, arg, path, allow_unknown)
            return value
        if origin not in _SEQUENCES:
            return value
        args = get_args(annotation)
        if origin is tuple and args and args[-1] is not Ellipsis:
            item_types = list(args) + [Any] * (len(value) - len(args))
        else:
            item_types = [args[0] if args else Any] * len(value)
        return [
            _apply_key_policy(item, item_type, path + (index,), allow_unknown)
            for index, (item, item_type) in enumerate(zip(value, item_types))
        ]

    return value


async def _read_limited(request: Request, limit: int) -> bytes:
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            logger.warning("Refused JSON body larger than %d bytes", limit)
            raise BodyTooLargeError(limit)
    return bytes(body)


def _map_validation_error(err: ValidationError, start: int) -> Exception:
    errors = err.errors()
    for error in errors:
        if error["type"] == "extra_forbidden":
            return UnknownFieldError(_field_path(tuple(error["loc"])))

    first = errors[0]
    loc = tuple(first.get("loc", ()))
    if loc:
        return JSONTypeMismatchError(
            field=_field_path(loc), missing=first["type"] == "missing"
        )
    return JSONTypeMismatchError(offset=start)


def decode_json(
    body: bytes,
    model: Optional[type[M]] = None,
    config: Optional[JSONDecodeConfig] = None,
) -> M | Any:
    """Decode exactly one JSON value from body.

    With a model the value is validated strictly into an instance of it,
    otherwise the plain decoded value is returned.
    """
    config = config or JSONDecodeConfig()

    if len(body) > config.max_body_bytes:
        raise BodyTooLargeError(config.max_body_bytes)

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedJSONError(e.start) from e

    start = len(text) - len(text.lstrip(_WHITESPACE))
    if start == len(text):
        raise EmptyBodyError()

    try:
        value, end = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as e:
        raise MalformedJSONError(e.pos) from e
    except ValueError as e:
        raise MalformedJSONError() from e

    if text[end:].strip(_WHITESPACE):
        raise TrailingContentError()

    if model is None:
        return value

    cleaned = _apply_key_policy(value, model, (), config.allow_unknown_fields)
    document = text[start:end] if cleaned == value else json.dumps(cleaned)
    try:
        return model.model_validate_json(document, strict=True)
    except ValidationError as e:
        raise _map_validation_error(e, start) from e


async def read_json(
    request: Request,
    model: Optional[type[M]] = None,
    config: Optional[JSONDecodeConfig] = None,
) -> M | Any:
    """Read a request body holding exactly one JSON value.

    Args:
        request: incoming request
        model: pydantic model the body must fit; None returns the raw value
        config: body size cap and unknown field policy

    Returns:
        An instance of model, or the decoded value when model is None

    Raises:
        JSONReadError: a subclass naming what was wrong with the body
    """
    config = config or JSONDecodeConfig()
    body = await _read_limited(request, config.max_body_bytes)
    return decode_json(body, model, config)


def write_json(
    data: Any,
    status: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Build a JSON response; extra headers are applied before Content-Type"""
    content = data.to_content() if isinstance(data, JSONEnvelope) else data
    response = JSONResponse(content=jsonable_encoder(content), status_code=status)
    if headers:
        for key, value in headers.items():
            response.headers[key] = value
    response.headers["content-type"] = "application/json"
    return response


def error_json(err: BaseException | str, status: int = 400) -> JSONResponse:
    """Send {"error": true, "message": ...} with status (400 unless given)"""
    payload = JSONEnvelope(error=True, message=str(err))
    return write_json(payload, status)


async def push_json_to_remote(
    uri: str,
    data: Any,
    client: Optional[httpx.AsyncClient] = None,
) -> tuple[httpx.Response, int]:
    """POST data as JSON to uri and return the response and its status code.

    Without a client the shared httpx manager supplies one.
    """
    json_data = json.dumps(jsonable_encoder(data)).encode("utf-8")
    headers = {"Content-Type": "application/json"}

    logger.debug("Posting %d bytes of JSON to %s", len(json_data), uri)
    if client is not None:
        response = await client.post(uri, content=json_data, headers=headers)
    else:
        response = await httpx_manager.async_request(
            url=uri,
            method=HTTPMethod.POST,
            headers=headers,
            content=json_data,
        )
    return response, response.status_code
