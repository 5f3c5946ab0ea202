import pytest

from tests.factories import make_name, make_record

NAMES = "/api/v1/abn-names"


@pytest.fixture
def example_record(record_store):
    record_store.insert(make_record("12345678901", organisation_name="Example Pty Ltd", entity_type_code="COM"))


def test_create_name(client, example_record):
    response = client.post(NAMES, json={"abn": "12345678901", "name": "Example Trading Name", "type": "TradingName"})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Example Trading Name"
    assert data["abnRecord"] == {
        "abn": "12345678901",
        "status": "Active",
        "legalName": None,
        "organisationName": "Example Pty Ltd",
        "entityTypeCode": "COM",
    }
    assert "createdAt" in data


def test_create_name_for_unknown_abn_returns_400(client):
    response = client.post(NAMES, json={"abn": "11111111111", "name": "Ghost", "type": "Other"})
    assert response.status_code == 400
    assert response.json() == {"status": "error", "message": "ABN does not exist in records"}


def test_duplicate_name_returns_400(client, example_record):
    payload = {"abn": "12345678901", "name": "Dup", "type": "TradingName"}
    assert client.post(NAMES, json=payload).status_code == 201
    response = client.post(NAMES, json=payload)
    assert response.status_code == 400
    assert response.json()["message"] == "This name already exists for the given ABN and type"


def test_invalid_name_returns_field_errors(client):
    response = client.post(NAMES, json={"abn": "12345678901", "type": "Nickname"})
    assert response.status_code == 400
    assert [e["field"] for e in response.json()["errors"]] == ["name", "type"]


def test_get_update_delete_name(client, example_record, name_store):
    name_id = name_store.insert(make_name("12345678901", "Old"))["id"]

    assert client.get(f"{NAMES}/{name_id}").json()["data"]["name"] == "Old"

    updated = client.put(f"{NAMES}/{name_id}", json={"name": "New", "type": "BusinessName"})
    assert updated.status_code == 200
    assert (updated.json()["data"]["name"], updated.json()["data"]["type"]) == ("New", "BusinessName")

    deleted = client.delete(f"{NAMES}/{name_id}")
    assert deleted.json() == {"status": "success", "message": "ABN name deleted successfully"}
    assert client.get(f"{NAMES}/{name_id}").status_code == 404
    assert client.delete(f"{NAMES}/{name_id}").status_code == 404


def test_non_numeric_id_returns_400(client):
    assert client.get(f"{NAMES}/abc").status_code == 400


def test_names_for_abn(client, example_record, record_store, name_store):
    name_store.insert(make_name("12345678901", "A"))
    name_store.insert(make_name("12345678901", "B", "BusinessName"))
    record_store.insert(make_record("98765432109"))

    response = client.get(f"{NAMES}/abn/12345678901")
    assert response.status_code == 200
    body = response.json()
    assert body["results"] == 2
    assert [n["name"] for n in body["data"]] == ["A", "B"]

    empty = client.get(f"{NAMES}/abn/98765432109")
    assert empty.status_code == 200
    assert empty.json() == {"status": "success", "results": 0, "data": []}

    assert client.get(f"{NAMES}/abn/11111111111").status_code == 404


def test_list_names_with_filters(client, example_record, name_store):
    name_store.insert(make_name("12345678901", "Harbour Cafe", "TradingName"))
    name_store.insert(make_name("12345678901", "Harbour Bakery", "BusinessName"))
    name_store.insert(make_name("98765432109", "Mountain Cafe", "TradingName"))

    response = client.get(NAMES, params={"type": "TradingName", "sortBy": "name", "sortOrder": "asc"})
    body = response.json()
    assert body["total"] == 2
    assert [n["name"] for n in body["data"]] == ["Harbour Cafe", "Mountain Cafe"]
    assert body["data"][1]["abnRecord"] is None

    response = client.get(NAMES, params={"abn": "12345678901", "search": "bakery"})
    assert [n["name"] for n in response.json()["data"]] == ["Harbour Bakery"]


def test_list_rejects_unknown_sort_field(client):
    response = client.get(NAMES, params={"sortBy": "lastUpdated"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "sortBy"


def test_search_ranks_results(client, example_record, name_store):
    name_store.insert(make_name("12345678901", "John Smith Consulting Services", "BusinessName"))
    name_store.insert(make_name("12345678901", "Smith Consulting", "TradingName"))
    name_store.insert(make_name("12345678901", "Blacksmith Supplies", "Other"))

    response = client.get(f"{NAMES}/search/smith")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["pages"] == 1
    assert [h["name"] for h in body["data"]] == ["Smith Consulting", "John Smith Consulting Services"]
    assert body["data"][0]["score"] == 0.75


def test_search_pagination(client, example_record, name_store):
    for i in range(5):
        name_store.insert(make_name("12345678901", f"Cafe {i}"))
    body = client.get(f"{NAMES}/search/cafe", params={"limit": 2, "page": 3}).json()
    assert body["pages"] == 3
    assert [h["name"] for h in body["data"]] == ["Cafe 4"]


def test_search_term_too_long_returns_400(client):
    assert client.get(f"{NAMES}/search/{'x' * 101}").status_code == 400


def test_stats_overview(client, example_record, name_store):
    name_store.insert(make_name("12345678901", "A", "TradingName"))
    name_store.insert(make_name("12345678901", "B", "BusinessName"))
    data = client.get(f"{NAMES}/stats/overview").json()["data"]
    assert data["overview"] == {"totalNames": 2, "uniqueAbns": 1}
    assert data["nameTypes"] == [{"type": "BusinessName", "count": 1}, {"type": "TradingName", "count": 1}]


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_id_outside_integer_range_returns_400(client, method):
    kwargs = {"json": {"name": "New"}} if method == "put" else {}
    response = getattr(client, method)(f"{NAMES}/10000000000000000000", **kwargs)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "name_id"


def test_id_zero_returns_400(client):
    assert client.get(f"{NAMES}/0").status_code == 400


def test_page_too_large_returns_400(client, example_record, name_store):
    name_store.insert(make_name("12345678901", "Cafe"))
    assert client.get(NAMES, params={"page": 10**19}).status_code == 400
    assert client.get(f"{NAMES}/search/cafe", params={"page": 10**19}).status_code == 400


def test_search_folds_non_ascii_case(client, example_record, name_store):
    name_store.insert(make_name("12345678901", "CAFÉ ROYAL"))
    name_store.insert(make_name("12345678901", "Cafe Express"))

    ranked = client.get(f"{NAMES}/search/café").json()
    assert ranked["total"] == 1
    assert ranked["data"][0]["name"] == "CAFÉ ROYAL"

    listed = client.get(NAMES, params={"search": "café royal"}).json()
    assert [n["name"] for n in listed["data"]] == ["CAFÉ ROYAL"]
