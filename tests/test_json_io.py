"""Tests for strict JSON reading, JSON responses and outbound JSON posts."""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import httpx
import pytest
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from web_toolkit import (
    BodyTooLargeError,
    EmptyBodyError,
    JSONDecodeConfig,
    JSONEnvelope,
    JSONReadError,
    JSONTypeMismatchError,
    MalformedJSONError,
    TrailingContentError,
    UnknownFieldError,
    decode_json,
    error_json,
    push_json_to_remote,
    read_json,
    write_json,
)

JSON_HEADERS = {"content-type": "application/json"}


class Foo(BaseModel):
    foo: str = ""


class Nested(BaseModel):
    name: str
    inner: Foo


class Lenient(BaseModel):
    model_config = ConfigDict(extra="allow")

    foo: str = ""


# ============================================================================
#                              read_json
# ============================================================================


@pytest.mark.parametrize(
    ("body", "allow_unknown", "expected_error"),
    [
        ('{"foo": "bar"}', False, None),
        ('{"foo":}', False, MalformedJSONError),
        ('{"foo": 1}', False, JSONTypeMismatchError),
        ('{"foo": "1"}{"alpha": "beta"}', False, TrailingContentError),
        ('{"foo": "1"} trailing', False, TrailingContentError),
        ("", False, EmptyBodyError),
        ("   \n ", False, EmptyBodyError),
        ('{"fooo": "bar"}', False, UnknownFieldError),
        ('{"fooo": "bar"}', True, None),
        ('{"foo": "bar"', False, MalformedJSONError),
        ('{"foo": NaN}', False, MalformedJSONError),
        ("[1, 2]", False, JSONTypeMismatchError),
    ],
    ids=[
        "good json",
        "badly formatted json",
        "incorrect type",
        "two json values",
        "trailing garbage",
        "empty body",
        "blank body",
        "unknown field",
        "allow unknown fields",
        "missing closing brace",
        "not a number",
        "not an object",
    ],
)
def test_read_json(run_handler, body, allow_unknown, expected_error):
    config = JSONDecodeConfig(allow_unknown_fields=allow_unknown)
    outcome = run_handler(
        lambda r: read_json(r, Foo, config), content=body.encode(), headers=JSON_HEADERS
    )

    if expected_error is None:
        assert isinstance(outcome.unwrap(), Foo)
    else:
        assert isinstance(outcome.error, expected_error)
        assert isinstance(outcome.error, JSONReadError)


def test_read_json_populates_model(run_handler):
    outcome = run_handler(
        lambda r: read_json(r, Foo), content=b' {"foo": "bar"} \n', headers=JSON_HEADERS
    )
    assert outcome.unwrap() == Foo(foo="bar")


def test_read_json_without_model_returns_value(run_handler):
    outcome = run_handler(
        lambda r: read_json(r), content=b'[{"foo": "1"}, 2]', headers=JSON_HEADERS
    )
    assert outcome.unwrap() == [{"foo": "1"}, 2]


def test_body_too_large(run_handler):
    config = JSONDecodeConfig(max_body_bytes=8)
    outcome = run_handler(
        lambda r: read_json(r, Foo, config),
        content=b'{"foo": "a much longer value"}',
        headers=JSON_HEADERS,
    )
    assert isinstance(outcome.error, BodyTooLargeError)
    assert str(outcome.error) == "body must not be larger than 8 bytes"


def test_type_mismatch_names_the_field(run_handler):
    outcome = run_handler(
        lambda r: read_json(r, Foo), content=b'{"foo": 1}', headers=JSON_HEADERS
    )
    assert outcome.error.field == "foo"
    assert str(outcome.error) == 'body contains incorrect JSON type for field "foo"'


def test_type_mismatch_on_whole_value_reports_offset():
    with pytest.raises(JSONTypeMismatchError) as exc_info:
        decode_json(b'  "just a string"', Foo)
    assert exc_info.value.field is None
    assert exc_info.value.offset == 2


def test_syntax_error_reports_offset():
    with pytest.raises(MalformedJSONError) as exc_info:
        decode_json(b'{"foo":}', Foo)
    assert exc_info.value.offset == 7
    assert "at character 7" in str(exc_info.value)


def test_unknown_field_names_the_key():
    with pytest.raises(UnknownFieldError) as exc_info:
        decode_json(b'{"fooo": "bar"}', Foo)
    assert exc_info.value.field == "fooo"
    assert str(exc_info.value) == 'body contains unknown key "fooo"'


def test_missing_required_field_is_type_mismatch():
    with pytest.raises(JSONTypeMismatchError) as exc_info:
        decode_json(b'{"inner": {"foo": "x"}}', Nested)
    assert exc_info.value.field == "name"


def test_nested_type_mismatch_uses_dotted_path():
    with pytest.raises(JSONTypeMismatchError) as exc_info:
        decode_json(b'{"name": "n", "inner": {"foo": 3}}', Nested)
    assert exc_info.value.field == "inner.foo"


def test_strict_mode_does_not_coerce_strings():
    class Counter(BaseModel):
        count: int

    with pytest.raises(JSONTypeMismatchError):
        decode_json(b'{"count": "3"}', Counter)
    assert decode_json(b'{"count": 3}', Counter).count == 3


def test_allow_unknown_fields_overrides_model_policy():
    """Unknown keys are refused even when the model itself would accept them."""
    with pytest.raises(UnknownFieldError):
        decode_json(b'{"fooo": 1}', Lenient, JSONDecodeConfig())

    result = decode_json(
        b'{"foo": "a", "fooo": 1}', Lenient, JSONDecodeConfig(allow_unknown_fields=True)
    )
    assert result.foo == "a"
    assert isinstance(result, Lenient)


class Tagged(BaseModel):
    model_config = ConfigDict(extra="forbid")

    label: str = Field(alias="Label")


class Basket(BaseModel):
    items: list[Foo] = []
    tags: dict[str, Tagged] = {}
    main: Optional[Tagged] = None


@pytest.mark.parametrize(
    ("model", "body", "field"),
    [
        (Nested, b'{"name": "n", "inner": {"foo": "x", "zz": 2}}', "inner.zz"),
        (Basket, b'{"items": [{"foo": "a"}, {"foo": "b", "zz": 1}]}', "items.1.zz"),
        (Basket, b'{"tags": {"red": {"Label": "r", "zz": 1}}}', "tags.red.zz"),
        (Basket, b'{"main": {"Label": "m", "zz": 1}}', "main.zz"),
    ],
    ids=["nested-model", "list-item", "dict-value", "optional-model"],
)
def test_unknown_nested_key_is_refused(model, body, field):
    with pytest.raises(UnknownFieldError) as exc_info:
        decode_json(body, model)
    assert exc_info.value.field == field


def test_unknown_nested_keys_are_dropped_when_allowed():
    config = JSONDecodeConfig(allow_unknown_fields=True)

    nested = decode_json(b'{"name": "n", "inner": {"foo": "x", "zz": 2}}', Nested, config)
    basket = decode_json(
        b'{"main": {"Label": "m", "zz": 1}, "tags": {"t": {"Label": "t", "zz": 2}}}',
        Basket,
        config,
    )

    assert nested == Nested(name="n", inner=Foo(foo="x"))
    assert basket.main.label == "m"
    assert basket.tags["t"].label == "t"


def test_aliased_keys_are_known():
    result = decode_json(b'{"main": {"Label": "m"}}', Basket)
    assert result.main.label == "m"


class WithPrivate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    a: int
    _seen: int = PrivateAttr(0)

    @model_validator(mode="after")
    def remember(self):
        self._seen = self.a * 2
        return self


@pytest.mark.parametrize(
    ("body", "allow_unknown"),
    [(b'{"a": 3}', False), (b'{"a": 3, "b": 1}', True)],
    ids=["strict", "unknown-dropped"],
)
def test_returns_the_validated_instance(body, allow_unknown):
    result = decode_json(body, WithPrivate, JSONDecodeConfig(allow_unknown_fields=allow_unknown))

    assert type(result) is WithPrivate
    assert result._seen == 6  # pylint: disable=protected-access
    assert result == WithPrivate(a=3)


def test_invalid_utf8_is_malformed():
    with pytest.raises(MalformedJSONError):
        decode_json(b'{"foo": "\xff"}', Foo)


# ============================================================================
#                         write_json / error_json
# ============================================================================


def test_write_json():
    payload = JSONEnvelope(error=False, message="foo")
    response = write_json(payload, 202, headers={"FOO": "BAR"})

    assert response.status_code == 202
    assert response.headers["foo"] == "BAR"
    assert response.headers["content-type"] == "application/json"
    assert json.loads(response.body) == {"error": False, "message": "foo"}


def test_write_json_keeps_data_when_set():
    response = write_json(JSONEnvelope(message="ok", data={"id": 7}))
    assert response.status_code == 200
    assert json.loads(response.body) == {"error": False, "message": "ok", "data": {"id": 7}}


def test_write_json_encodes_models():
    response = write_json([Foo(foo="a"), Foo(foo="b")])
    assert json.loads(response.body) == [{"foo": "a"}, {"foo": "b"}]


@pytest.mark.parametrize(
    ("kwargs", "expected_status"),
    [({}, 400), ({"status": 503}, 503)],
    ids=["default status", "explicit status"],
)
def test_error_json(kwargs, expected_status):
    response = error_json(ValueError("some error"), **kwargs)

    assert response.status_code == expected_status
    assert json.loads(response.body) == {"error": True, "message": "some error"}


def test_error_json_from_toolkit_error():
    response = error_json(TrailingContentError())
    assert json.loads(response.body)["message"] == "body must contain only one JSON value"


# ============================================================================
#                         push_json_to_remote
# ============================================================================


def test_push_json_to_remote():
    seen: dict = {}

    def respond(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, text="ok")

    async def push():
        async with httpx.AsyncClient(transport=httpx.MockTransport(respond)) as client:
            return await push_json_to_remote(
                "http://example.com/some/path", {"bar": "bar"}, client
            )

    response, status_code = asyncio.run(push())

    assert status_code == 200
    assert response.text == "ok"
    assert seen == {
        "method": "POST",
        "url": "http://example.com/some/path",
        "content_type": "application/json",
        "body": {"bar": "bar"},
    }


def test_push_json_to_remote_returns_remote_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(418))

    async def push():
        async with httpx.AsyncClient(transport=transport) as client:
            return await push_json_to_remote("http://example.com", Foo(foo="x"), client)

    _, status_code = asyncio.run(push())
    assert status_code == 418
