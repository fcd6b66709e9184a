import json

from oapigen.petstore import NewPet, Pet
from oapigen.strict import JSONResponse, NoContentResponse, StrictPetStore


def test_add_pet_returns_ok_with_pet():
    store = StrictPetStore()
    response = store.add_pet(NewPet(name="Spot", tag="TagOfSpot"))
    assert response.status_code == 200
    assert response.body == {"id": 1000, "name": "Spot", "tag": "TagOfSpot"}
    assert store.backend.pets[1000] == Pet(id=1000, name="Spot", tag="TagOfSpot")


def test_find_pet_by_id():
    store = StrictPetStore()
    store.backend.pets[100] = Pet(id=100)
    response = store.find_pet_by_id(100)
    assert response.status_code == 200
    assert Pet.from_dict(response.body) == Pet(id=100)


def test_pet_not_found():
    store = StrictPetStore()
    response = store.find_pet_by_id(27179095781)
    assert response.status_code == 404
    assert response.body["code"] == 404
    assert response.body["message"] == "Could not find pet with ID 27179095781"


def test_list_all_pets():
    store = StrictPetStore()
    store.backend.pets = {1: Pet(id=1), 2: Pet(id=2)}
    response = store.find_pets()
    assert response.status_code == 200
    assert len(response.body) == 2


def test_filter_pets_by_tag():
    store = StrictPetStore()
    store.backend.pets = {1: Pet(id=1, tag="TagOfFido"), 2: Pet(id=2)}
    response = store.find_pets(["TagOfFido"])
    assert response.body == [{"id": 1, "name": "", "tag": "TagOfFido"}]


def test_filter_pets_by_missing_tag():
    store = StrictPetStore()
    store.backend.pets = {1: Pet(id=1), 2: Pet(id=2)}
    assert store.find_pets(["NotExists"]).body == []


def test_delete_pets():
    store = StrictPetStore()
    store.backend.pets = {1: Pet(id=1), 2: Pet(id=2)}

    missing = store.delete_pet(7)
    assert isinstance(missing, JSONResponse)
    assert missing.status_code == 404
    assert missing.body["code"] == 404

    assert store.delete_pet(1) == NoContentResponse()
    assert store.delete_pet(2).status_code == 204
    assert store.find_pets().body == []


def test_json_response_encode():
    response = JSONResponse(200, {"id": 5, "name": "testpet"})
    assert json.loads(response.encode()) == {"id": 5, "name": "testpet"}
    assert response.encode().endswith(b"\n")