def test_lessons_are_listed_in_order(client, seeded):
    response = client.get(
        "/api/table/list",
        params={"tableName": "lesson", "limit": 100, "orderBy": "lesson_no", "orderDir": "ASC"},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert [row["lesson_no"] for row in payload["data"]] == list(range(1, 14))
    assert payload["data"][0]["begin_time"] == "08:00"
    assert payload["pagination"]["total"] == 13


def test_search_fields_filter_rows(client, seeded):
    response = client.get("/api/table/list", params={"tableName": "semester_date", "search_date": "2026-10-05"})
    rows = response.json()["data"]
    assert len(rows) == 1
    assert rows[0]["day_type"] == "holiday"
    assert rows[0]["holiday_name"] == "National Day"
    assert rows[0]["week"] == 5


def test_pagination_and_descending_order(client, seeded):
    response = client.get(
        "/api/table/list",
        params={"tableName": "classroom", "limit": 2, "page": 2, "orderBy": "capacity", "orderDir": "DESC"},
    )
    payload = response.json()
    assert [row["name"] for row in payload["data"]] == ["S101", "L01"]
    assert payload["pagination"] == {"total": 6, "page": 2, "totalPages": 3, "limit": 2}


def test_limit_is_capped(client, seeded):
    response = client.get("/api/table/list", params={"tableName": "semester_date", "limit": 5000})
    assert response.json()["pagination"]["limit"] == 2000


def test_unknown_table_is_not_found(client):
    response = client.get("/api/table/list", params={"tableName": "users"})
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Table with id users not found", "details": {}}


def test_malformed_names_are_rejected(client):
    assert client.get("/api/table/list", params={"tableName": "lesson;drop"}).status_code == 400
    response = client.get("/api/table/list", params={"tableName": "lesson", "search_nope": "1"})
    assert response.status_code == 400
    assert response.json()["success"] is False
    response = client.get("/api/table/list", params={"tableName": "lesson", "orderBy": "nope"})
    assert response.status_code == 400


def test_missing_table_name_is_a_bad_request(client):
    response = client.get("/api/table/list")
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_occupancy_view_starts_empty(client, seeded):
    response = client.get("/api/table/list", params={"tableName": "room_occupancy"})
    assert response.status_code == 200
    assert response.json()["data"] == []


def test_health_endpoints(client):
    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    assert "database" in ready.json()
