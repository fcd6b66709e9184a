"""A WSGI application serving the pet store, with request validation."""

from __future__ import annotations

import argparse
import json
import re
from collections.abc import Callable, Iterable, Sequence
from http import HTTPStatus
from typing import Any
from urllib.parse import parse_qs
from wsgiref.simple_server import make_server

from oapigen.petstore import NewPet, PetNotFoundError, PetStore
from oapigen.strict import JSONResponse, NoContentResponse, StrictPetStore, StrictResponse

_INT_RE = re.compile(r"[+-]?\d+")
_PET_PATH = re.compile(r"/pets/([^/]+)")
_INT32 = (-(2**31), 2**31 - 1)
_INT64 = (-(2**63), 2**63 - 1)


class _BadRequest(Exception):
    """A request that does not conform to the API description."""


def _parse_int(text: str, name: str, location: str, bounds: tuple[int, int]) -> int:
    prefix = f'parameter "{name}" in {location} has an error: '
    if not _INT_RE.fullmatch(text):
        raise _BadRequest(f"{prefix}value {text}: an invalid integer: invalid syntax")
    value = int(text)
    low, high = bounds
    if value < low:
        raise _BadRequest(f"{prefix}number must be at least {low}")
    if value > high:
        raise _BadRequest(f"{prefix}number must be at most {high}")
    return value


def _read_new_pet(environ: dict[str, Any]) -> NewPet:
    prefix = "request body has an error: "
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    data = environ["wsgi.input"].read(length) if length > 0 else b""
    if not data:
        raise _BadRequest(prefix + "value is required but missing")
    content_type = environ.get("CONTENT_TYPE", "")
    if content_type.split(";")[0].strip().lower() != "application/json":
        raise _BadRequest(prefix + f'header Content-Type has unexpected value "{content_type}"')
    try:
        decoded = json.loads(data)
    except ValueError:
        raise _BadRequest(prefix + "failed to decode request body") from None
    if not isinstance(decoded, dict):
        raise _BadRequest(prefix + "doesn't match schema: value must be an object")
    if "name" not in decoded:
        raise _BadRequest(prefix + 'doesn\'t match schema: property "name" is missing')
    try:
        return NewPet.from_dict(decoded)
    except ValueError as exc:
        raise _BadRequest(prefix + f"doesn't match schema: {exc}") from None


class PetStoreApp:
    """WSGI application for the pet store API.

    Works with a plain PetStore (pet creation answers 201) or with a
    StrictPetStore (whose responses are sent as they are).
    """

    def __init__(self, store: PetStore | StrictPetStore | None = None) -> None:
        self.store = PetStore() if store is None else store

    def __call__(
        self, environ: dict[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        try:
            response = self._dispatch(environ)
        except _BadRequest as exc:
            body = (str(exc) + "\n").encode("utf-8")
            start_response(
                _status_line(int(HTTPStatus.BAD_REQUEST)),
                [
                    ("Content-Type", "text/plain; charset=utf-8"),
                    ("X-Content-Type-Options", "nosniff"),
                    ("Content-Length", str(len(body))),
                ],
            )
            return [body]

        if isinstance(response, NoContentResponse):
            start_response(_status_line(response.status_code), [])
            return [b""]
        body = response.encode()
        start_response(
            _status_line(response.status_code),
            [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
        )
        return [body]

    def _dispatch(self, environ: dict[str, Any]) -> StrictResponse:
        method = environ.get("REQUEST_METHOD", "GET").upper()
        path = environ.get("PATH_INFO") or "/"

        if path == "/pets":
            if method == "GET":
                tags, limit = self._query(environ)
                return self._find_pets(tags, limit)
            if method == "POST":
                return self._add_pet(_read_new_pet(environ))
            raise _BadRequest("method not allowed")

        match = _PET_PATH.fullmatch(path)
        if match is None:
            raise _BadRequest("no matching operation was found")
        if method not in ("GET", "DELETE"):
            raise _BadRequest("method not allowed")
        pet_id = _parse_int(match.group(1), "id", "path", _INT64)
        if method == "GET":
            return self._find_pet_by_id(pet_id)
        return self._delete_pet(pet_id)

    @staticmethod
    def _query(environ: dict[str, Any]) -> tuple[list[str] | None, int | None]:
        params = parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)
        tags = params.get("tags")
        raw_limit = params.get("limit")
        limit = _parse_int(raw_limit[0], "limit", "query", _INT32) if raw_limit else None
        return tags, limit

    def _find_pets(self, tags: list[str] | None, limit: int | None) -> StrictResponse:
        if isinstance(self.store, StrictPetStore):
            return self.store.find_pets(tags, limit)
        pets = self.store.find_pets(tags, limit)
        return JSONResponse(int(HTTPStatus.OK), [pet.to_dict() for pet in pets])

    def _add_pet(self, new_pet: NewPet) -> StrictResponse:
        if isinstance(self.store, StrictPetStore):
            return self.store.add_pet(new_pet)
        pet = self.store.add_pet(new_pet)
        return JSONResponse(int(HTTPStatus.CREATED), pet.to_dict())

    def _find_pet_by_id(self, pet_id: int) -> StrictResponse:
        if isinstance(self.store, StrictPetStore):
            return self.store.find_pet_by_id(pet_id)
        try:
            pet = self.store.find_pet_by_id(pet_id)
        except PetNotFoundError as exc:
            return _error(exc)
        return JSONResponse(int(HTTPStatus.OK), pet.to_dict())

    def _delete_pet(self, pet_id: int) -> StrictResponse:
        if isinstance(self.store, StrictPetStore):
            return self.store.delete_pet(pet_id)
        try:
            self.store.delete_pet(pet_id)
        except PetNotFoundError as exc:
            return _error(exc)
        return NoContentResponse()


def _error(exc: PetNotFoundError) -> JSONResponse:
    code = int(exc.status_code)
    return JSONResponse(code, {"code": code, "message": exc.message})


def _status_line(code: int) -> str:
    return f"{code} {HTTPStatus(code).phrase}"


def create_app(store: PetStore | StrictPetStore | None = None) -> PetStoreApp:
    """Create the pet store application around a store."""
    return PetStoreApp(store)


def main(argv: Sequence[str] | None = None) -> None:
    """Serve the pet store over HTTP until interrupted."""
    parser = argparse.ArgumentParser(description="Serve the pet store API.")
    parser.add_argument("--port", type=int, default=8080, help="port for the HTTP server")
    parser.add_argument(
        "--strict", action="store_true", help="serve through the strict handler"
    )
    args = parser.parse_args(argv)
    store: PetStore | StrictPetStore = StrictPetStore() if args.strict else PetStore()
    with make_server("0.0.0.0", args.port, create_app(store)) as server:
        server.serve_forever()