from tests.factories import abn_for, make_name, make_record

RECORDS = "/api/v1/abn-records"
NAMES = "/api/v1/abn-names"


def test_create_record(client):
    response = client.post(RECORDS, json={"abn": "12345678901", "organisationName": "Example Pty Ltd"})
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    data = body["data"]
    assert data["abn"] == "12345678901"
    assert data["status"] == "Active"
    assert data["gstStatus"] == "Cancelled"
    assert data["fullEntityName"] == "Example Pty Ltd"
    assert "lastUpdated" in data and "organisation_name" not in data


def test_create_accepts_snake_case_body(client):
    response = client.post(RECORDS, json={"abn": "12345678901", "legal_name": "John Smith"})
    assert response.status_code == 201
    assert response.json()["data"]["legalName"] == "John Smith"


def test_duplicate_abn_returns_400(client):
    payload = {"abn": "12345678901", "legalName": "John Smith"}
    assert client.post(RECORDS, json=payload).status_code == 201
    response = client.post(RECORDS, json=payload)
    assert response.status_code == 400
    assert response.json() == {"status": "error", "message": "ABN already exists"}


def test_invalid_record_lists_field_errors(client):
    response = client.post(RECORDS, json={"abn": "123", "acn": "12"})
    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Validation failed"
    assert [e["field"] for e in body["errors"]] == ["abn", "legalName", "organisationName", "acn"]


def test_wrongly_typed_body_returns_400(client):
    response = client.post(RECORDS, json={"abn": 12345678901, "legalName": "John Smith"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "abn"


def test_get_record_includes_names(client, record_store, name_store):
    record_store.insert(make_record("12345678901"))
    name_store.insert(make_name("12345678901", "Example Trading Name"))
    response = client.get(f"{RECORDS}/12345678901")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["record"]["abn"] == "12345678901"
    assert data["names"][0]["name"] == "Example Trading Name"
    assert data["names"][0]["abnRecord"]["abn"] == "12345678901"


def test_get_unknown_record_returns_404(client):
    response = client.get(f"{RECORDS}/11111111111")
    assert response.status_code == 404
    assert response.json()["status"] == "error"


def test_get_with_malformed_abn_returns_400(client):
    assert client.get(f"{RECORDS}/abc").status_code == 400


def test_update_record(client, record_store):
    record_store.insert(make_record("12345678901", state="NSW"))
    response = client.put(f"{RECORDS}/12345678901", json={"postcode": "2000"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["postcode"], data["state"]) == ("2000", "NSW")


def test_update_cannot_rekey_record(client, record_store):
    record_store.insert(make_record("12345678901"))
    response = client.put(f"{RECORDS}/12345678901", json={"abn": "98765432109"})
    assert response.status_code == 400
    assert client.get(f"{RECORDS}/98765432109").status_code == 404


def test_update_unknown_record_returns_404(client):
    assert client.put(f"{RECORDS}/12345678901", json={"state": "VIC"}).status_code == 404


def test_delete_cascades_to_names(client):
    created = client.post(RECORDS, json={"abn": "12345678901", "organisationName": "Example Pty Ltd"})
    assert created.status_code == 201
    assert created.json()["data"]["status"] == "Active"

    name = client.post(NAMES, json={"abn": "12345678901", "name": "Example Trading Name", "type": "TradingName"})
    assert name.status_code == 201

    deleted = client.delete(f"{RECORDS}/12345678901")
    assert deleted.status_code == 200
    assert deleted.json() == {
        "status": "success",
        "message": "ABN record and associated names deleted successfully",
    }

    assert client.get(f"{NAMES}/abn/12345678901").status_code == 404
    assert client.get(f"{NAMES}/{name.json()['data']['id']}").status_code == 404


def test_delete_unknown_record_returns_404(client):
    assert client.delete(f"{RECORDS}/12345678901").status_code == 404


def test_list_filters_by_status_newest_first(client, record_store):
    record_store.insert(make_record(abn_for(1), last_updated="2021-01-01T00:00:00.000Z"))
    record_store.insert(make_record(abn_for(2), last_updated="2023-01-01T00:00:00.000Z"))
    record_store.insert(make_record(abn_for(3), status="Cancelled", last_updated="2024-01-01T00:00:00.000Z"))
    record_store.insert(make_record(abn_for(4), last_updated="2022-01-01T00:00:00.000Z"))

    response = client.get(
        RECORDS,
        params={"status": "Active", "sortBy": "lastUpdated", "sortOrder": "desc", "page": 1, "limit": 10},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["results"] == 3
    assert [r["abn"] for r in body["data"]] == [abn_for(2), abn_for(4), abn_for(1)]


def test_second_page(client, record_store):
    for i in range(25):
        record_store.insert(make_record(abn_for(i)))
    response = client.get(RECORDS, params={"sortBy": "abn", "sortOrder": "asc", "limit": 10, "page": 2})
    body = response.json()
    assert body["page"] == 2
    assert body["pages"] == 3
    assert body["total"] == 25
    assert [r["abn"] for r in body["data"]] == [abn_for(i) for i in range(10, 20)]


def test_search_and_filters(client, record_store):
    record_store.insert(make_record(abn_for(1), organisation_name="Harbour Bakery", state="NSW", entity_type_code="COM"))
    record_store.insert(make_record(abn_for(2), organisation_name="Harbour Cafe", state="VIC", entity_type_code="COM"))
    record_store.insert(make_record(abn_for(3), organisation_name="Mountain Bakery", state="NSW", entity_type_code="IND"))

    response = client.get(RECORDS, params={"search": "HARBOUR", "state": "NSW"})
    assert [r["abn"] for r in response.json()["data"]] == [abn_for(1)]

    response = client.get(RECORDS, params={"entityType": "COM"})
    assert response.json()["total"] == 2


def test_invalid_list_options_return_400(client):
    for params in ({"page": 0}, {"limit": 101}, {"sortBy": "postcode"}, {"status": "Dormant"}, {"sortOrder": "up"}):
        response = client.get(RECORDS, params=params)
        assert response.status_code == 400, params
        assert response.json()["errors"], params


def test_stats_overview(client, record_store):
    record_store.insert(make_record(abn_for(1), entity_type_code="COM", state="NSW", gst_status="Registered"))
    record_store.insert(make_record(abn_for(2), entity_type_code="COM", state="NSW", status="Cancelled"))
    response = client.get(f"{RECORDS}/stats/overview")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["overview"] == {
        "totalRecords": 2,
        "activeRecords": 1,
        "cancelledRecords": 1,
        "gstRegistered": 1,
    }
    assert data["entityTypes"] == [{"entityTypeCode": "COM", "count": 2}]
    assert data["states"] == [{"state": "NSW", "count": 2}]


def test_page_too_large_for_the_store_returns_400(client, record_store):
    record_store.insert(make_record(abn_for(1)))
    response = client.get(RECORDS, params={"page": 10**19})
    assert response.status_code == 400
    assert [e["field"] for e in response.json()["errors"]] == ["page"]


def test_search_folds_non_ascii_case(client, record_store):
    record_store.insert(make_record(abn_for(1), organisation_name="ÉCOLE Pty Ltd"))
    record_store.insert(make_record(abn_for(2), organisation_name="Harbour Bakery"))
    response = client.get(RECORDS, params={"search": "école"})
    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["organisationName"] == "ÉCOLE Pty Ltd"
