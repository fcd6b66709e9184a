"""A small authenticated API storing named things."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

from oapigen.auth import AuthenticationError, JWSValidator, authenticate

WRITE_SCOPE = "things:w"


@dataclass(frozen=True)
class Thing:
    """A thing as submitted by a client."""

    name: str

    @classmethod
    def from_dict(cls, data: Any) -> Thing:
        """Build from a decoded JSON object; raise ValueError on a bad shape."""
        if not isinstance(data, dict):
            raise ValueError("thing must be an object")
        name = data.get("name", "")
        if name is None:
            name = ""
        if not isinstance(name, str):
            raise ValueError("thing name must be a string")
        return cls(name=name)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass(frozen=True)
class ThingWithId:
    """A stored thing with its id."""

    id: int
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class ThingStore:
    """Thread-safe in-memory storage of things keyed by id."""

    things: dict[int, Thing] = field(default_factory=dict)
    last_id: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def list_things(self) -> list[ThingWithId]:
        """All stored things, ordered by id."""
        with self._lock:
            return [
                ThingWithId(id=key, name=self.things[key].name)
                for key in sorted(self.things)
            ]

    def add_thing(self, thing: Thing) -> ThingWithId:
        """Store a thing under the next id and return it with that id."""
        with self._lock:
            stored = ThingWithId(id=self.last_id, name=thing.name)
            self.things[self.last_id] = thing
            self.last_id += 1
        return stored


class _HTTPError(Exception):
    def __init__(self, status: int, body: Any) -> None:
        super().__init__(status)
        self.status = status
        self.body = body


def _status_line(code: int) -> str:
    return f"{code} {HTTPStatus(code).phrase}"


def _read_json_body(environ: dict[str, Any]) -> Any:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    data = environ["wsgi.input"].read(length) if length > 0 else b""
    if not data:
        raise _HTTPError(
            HTTPStatus.BAD_REQUEST,
            {"message": "request body has an error: value is required but missing"},
        )
    content_type = environ.get("CONTENT_TYPE", "")
    if content_type.split(";")[0].strip().lower() != "application/json":
        raise _HTTPError(
            HTTPStatus.BAD_REQUEST,
            {
                "message": "request body has an error: header Content-Type has "
                f'unexpected value "{content_type}"'
            },
        )
    try:
        return json.loads(data)
    except ValueError:
        raise _HTTPError(
            HTTPStatus.BAD_REQUEST,
            {"message": "request body has an error: failed to decode request body"},
        ) from None


class ThingsApp:
    """WSGI application listing and adding things behind bearer authentication.

    Listing needs any valid token; adding needs the ``things:w`` claim.
    """

    def __init__(self, store: ThingStore, validator: JWSValidator) -> None:
        self.store = store
        self.validator = validator

    def __call__(
        self, environ: dict[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        try:
            status, body = self._dispatch(environ)
        except _HTTPError as exc:
            status, body = int(exc.status), exc.body
        payload = (json.dumps(body) + "\n").encode("utf-8")
        start_response(
            _status_line(status),
            [("Content-Type", "application/json"), ("Content-Length", str(len(payload)))],
        )
        return [payload]

    def _authorize(self, environ: dict[str, Any], scopes: list[str]) -> None:
        headers = {}
        if "HTTP_AUTHORIZATION" in environ:
            headers["Authorization"] = environ["HTTP_AUTHORIZATION"]
        try:
            authenticate(self.validator, "BearerAuth", headers, scopes)
        except AuthenticationError as exc:
            raise _HTTPError(
                HTTPStatus.FORBIDDEN,
                {"message": f"security requirements failed: {exc}"},
            ) from exc

    def _dispatch(self, environ: dict[str, Any]) -> tuple[int, Any]:
        method = environ.get("REQUEST_METHOD", "GET").upper()
        path = environ.get("PATH_INFO") or "/"
        if path != "/things":
            raise _HTTPError(
                HTTPStatus.BAD_REQUEST, {"message": "no matching operation was found"}
            )
        if method == "GET":
            self._authorize(environ, [])
            return int(HTTPStatus.OK), [t.to_dict() for t in self.store.list_things()]
        if method == "POST":
            decoded = _read_json_body(environ)
            self._authorize(environ, [WRITE_SCOPE])
            try:
                thing = Thing.from_dict(decoded)
            except ValueError:
                code = int(HTTPStatus.BAD_REQUEST)
                return code, {"code": code, "message": "could not bind request body"}
            return int(HTTPStatus.CREATED), self.store.add_thing(thing).to_dict()
        raise _HTTPError(HTTPStatus.BAD_REQUEST, {"message": "method not allowed"})


def create_app(store: ThingStore | None, validator: JWSValidator) -> ThingsApp:
    """Create the things application around a store and a token validator."""
    return ThingsApp(ThingStore() if store is None else store, validator)