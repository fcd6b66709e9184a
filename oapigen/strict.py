"""Pet store operations that return response objects instead of raising."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Union

from oapigen.petstore import NewPet, PetNotFoundError, PetStore


@dataclass(frozen=True)
class JSONResponse:
    """A response carrying a JSON body with a status code."""

    status_code: int
    body: Any

    def encode(self) -> bytes:
        """The body as JSON text followed by a newline."""
        return (json.dumps(self.body) + "\n").encode("utf-8")


@dataclass(frozen=True)
class NoContentResponse:
    """A response without a body."""

    status_code: int = int(HTTPStatus.NO_CONTENT)


StrictResponse = Union[JSONResponse, NoContentResponse]


def _not_found(exc: PetNotFoundError) -> JSONResponse:
    code = int(HTTPStatus.NOT_FOUND)
    return JSONResponse(code, {"code": code, "message": exc.message})


@dataclass
class StrictPetStore:
    """A pet store whose operations describe their complete HTTP response."""

    backend: PetStore = field(default_factory=PetStore)

    def find_pets(
        self, tags: Iterable[str] | None = None, limit: int | None = None
    ) -> JSONResponse:
        """List pets, optionally filtered by tag and capped at a limit."""
        pets = self.backend.find_pets(tags, limit)
        return JSONResponse(int(HTTPStatus.OK), [pet.to_dict() for pet in pets])

    def add_pet(self, new_pet: NewPet) -> JSONResponse:
        """Store a new pet and answer with it."""
        pet = self.backend.add_pet(new_pet)
        return JSONResponse(int(HTTPStatus.OK), pet.to_dict())

    def find_pet_by_id(self, pet_id: int) -> JSONResponse:
        """Answer with the pet, or with a not-found error body."""
        try:
            pet = self.backend.find_pet_by_id(pet_id)
        except PetNotFoundError as exc:
            return _not_found(exc)
        return JSONResponse(int(HTTPStatus.OK), pet.to_dict())

    def delete_pet(self, pet_id: int) -> StrictResponse:
        """Delete the pet, answering with no content or a not-found error body."""
        try:
            self.backend.delete_pet(pet_id)
        except PetNotFoundError as exc:
            return _not_found(exc)
        return NoContentResponse()