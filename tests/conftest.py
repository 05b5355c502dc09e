"""Global pytest fixtures for the toolkit tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import pytest
from fastapi import FastAPI, Request, Response
from fastapi.testclient import TestClient

from tests.helpers import make_png

## Adjust pylint to deal with fixtures
# pylint: disable=redefined-outer-name


@dataclass
class Outcome:
    """What a handler returned, or the exception it raised."""

    result: Any = None
    error: BaseException | None = None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.result


Handler = Callable[[Request], Awaitable[Any]]


@pytest.fixture
def run_handler() -> Callable[..., Outcome]:
    """Run an async handler against a real request sent through TestClient.

    Keyword arguments are passed to ``TestClient.post`` unchanged. The
    handler's return value (or exception) is captured instead of being
    turned into an HTTP response.

    Example:
        ```py
        outcome = run_handler(lambda r: read_json(r), content=b"{}")
        assert outcome.unwrap() == {}
        ```
    """

    def _run(handler: Handler, **request_kwargs: Any) -> Outcome:
        outcome = Outcome()
        app = FastAPI()

        @app.post("/")
        async def endpoint(request: Request) -> Response:
            try:
                outcome.result = await handler(request)
            except Exception as e:  # pylint: disable=broad-exception-caught
                outcome.error = e
            return Response(status_code=204)

        with TestClient(app) as client:
            client.post("/", **request_kwargs)
        return outcome

    return _run


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()
