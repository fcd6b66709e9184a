"""An in-memory pet store implementing the expanded Petstore API operations."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

FIRST_PET_ID = 1000


class PetNotFoundError(LookupError):
    """Raised when no pet has the requested id."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, pet_id: int) -> None:
        super().__init__(f"Could not find pet with ID {pet_id}")
        self.pet_id = pet_id

    @property
    def message(self) -> str:
        return str(self)


def _require_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"Invalid format for {what}")
    return data


def _optional_str(data: dict[str, Any], key: str, what: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"Invalid format for {what}")
    return value


def _str(data: dict[str, Any], key: str, what: str) -> str:
    value = _optional_str(data, key, what)
    return "" if value is None else value


@dataclass(frozen=True)
class NewPet:
    """A pet as submitted for creation, without an id."""

    name: str
    tag: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> NewPet:
        """Build from a decoded JSON object; raise ValueError on a bad shape."""
        mapping = _require_mapping(data, "NewPet")
        return cls(
            name=_str(mapping, "name", "NewPet"),
            tag=_optional_str(mapping, "tag", "NewPet"),
        )


@dataclass(frozen=True)
class Pet:
    """A stored pet."""

    id: int = 0
    name: str = ""
    tag: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Pet:
        """Build from a decoded JSON object; raise ValueError on a bad shape."""
        mapping = _require_mapping(data, "Pet")
        pet_id = mapping.get("id", 0)
        if pet_id is None:
            pet_id = 0
        if isinstance(pet_id, bool) or not isinstance(pet_id, int):
            raise ValueError("Invalid format for Pet")
        return cls(
            id=pet_id,
            name=_str(mapping, "name", "Pet"),
            tag=_optional_str(mapping, "tag", "Pet"),
        )

    def to_dict(self) -> dict[str, Any]:
        """The JSON object form; the tag is left out when unset."""
        out: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.tag is not None:
            out["tag"] = self.tag
        return out


@dataclass
class PetStore:
    """Thread-safe in-memory storage of pets keyed by id."""

    pets: dict[int, Pet] = field(default_factory=dict)
    next_id: int = FIRST_PET_ID
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def find_pets(
        self, tags: Iterable[str] | None = None, limit: int | None = None
    ) -> list[Pet]:
        """List pets, optionally filtered by tag and capped at a limit.

        A pet is included once for every requested tag it matches. The limit
        is checked after each pet is considered.
        """
        wanted = None if tags is None else list(tags)
        result: list[Pet] = []
        with self._lock:
            for pet in self.pets.values():
                if wanted is not None:
                    result.extend(
                        pet for t in wanted if pet.tag is not None and pet.tag == t
                    )
                else:
                    result.append(pet)
                if limit is not None and len(result) >= limit:
                    break
        return result

    def add_pet(self, new_pet: NewPet) -> Pet:
        """Store a new pet under the next free id and return it."""
        with self._lock:
            pet = Pet(id=self.next_id, name=new_pet.name, tag=new_pet.tag)
            self.next_id += 1
            self.pets[pet.id] = pet
        return pet

    def find_pet_by_id(self, pet_id: int) -> Pet:
        """Return the pet with this id, or raise PetNotFoundError."""
        with self._lock:
            try:
                return self.pets[pet_id]
            except KeyError:
                raise PetNotFoundError(pet_id) from None

    def delete_pet(self, pet_id: int) -> None:
        """Remove the pet with this id, or raise PetNotFoundError."""
        with self._lock:
            if pet_id not in self.pets:
                raise PetNotFoundError(pet_id)
            del self.pets[pet_id]