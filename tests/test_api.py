#!/usr/bin/env python3
"""
API tests for the task planner.

Exercises the JSON task endpoints, the plain-text next-date preview and the
health/metrics endpoints through FastAPI's TestClient. Today is 2024-01-15.
"""

import pytest


def _create(client, **fields):
    response = client.post("/api/task", json=fields)
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.mark.api
class TestTaskEndpoints:
    """Test /api/task and /api/tasks."""

    def test_create_and_get(self, api_client, sample_task):
        task_id = _create(api_client, **sample_task)
        assert isinstance(task_id, int)

        response = api_client.get("/api/task", params={"id": task_id})
        assert response.status_code == 200
        assert response.json() == {
            "id": str(task_id),
            "date": "20240120",
            "title": "Water the plants",
            "comment": "Balcony first",
            "repeat": "d 3",
        }

    def test_create_without_date_uses_today(self, api_client):
        task_id = _create(api_client, title="Call the bank")
        task = api_client.get("/api/task", params={"id": task_id}).json()
        assert task["date"] == "20240115"
        assert task["comment"] == ""
        assert task["repeat"] == ""

    def test_create_past_recurring_task(self, api_client):
        task_id = _create(api_client, title="Review", date="20240101", repeat="d 7")
        assert api_client.get("/api/task", params={"id": task_id}).json()["date"] == "20240122"

    @pytest.mark.parametrize("payload", [
        {"date": "20240120"},
        {"title": "   ", "date": "20240120"},
        {"title": "x", "date": "01/20/2024"},
        {"title": "x", "date": "20240120", "repeat": "k 34"},
        {"title": "x", "date": "20240120", "repeat": "d 401"},
    ])
    def test_create_rejects_invalid_fields(self, api_client, payload):
        response = api_client.post("/api/task", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]

    def test_create_rejects_malformed_json(self, api_client):
        response = api_client.post(
            "/api/task", content="{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_list_tasks(self, api_client):
        _create(api_client, title="Later", date="20240301")
        _create(api_client, title="Sooner", date="20240116")

        response = api_client.get("/api/tasks")
        assert response.status_code == 200
        titles = [task["title"] for task in response.json()["tasks"]]
        assert titles == ["Sooner", "Later"]

    def test_list_empty(self, api_client):
        response = api_client.get("/api/tasks")
        assert response.status_code == 200
        assert response.json() == {"tasks": []}

    def test_get_requires_id(self, api_client):
        response = api_client.get("/api/task")
        assert response.status_code == 400
        assert response.json() == {"error": "Task identifier is required"}

    @pytest.mark.parametrize("task_id", ["999", "abc", "99999999999999999999"])
    def test_get_unknown_task(self, api_client, task_id):
        response = api_client.get("/api/task", params={"id": task_id})
        assert response.status_code == 404
        assert "not found" in response.json()["error"]

    def test_update(self, api_client, sample_task):
        task_id = _create(api_client, **sample_task)
        response = api_client.put("/api/task", json={
            "id": str(task_id),
            "date": "20240201",
            "title": "Water the garden",
            "comment": "",
            "repeat": "w 6",
        })
        assert response.status_code == 200
        assert response.json() == {}

        task = api_client.get("/api/task", params={"id": task_id}).json()
        assert task["title"] == "Water the garden"
        assert task["date"] == "20240201"
        assert task["repeat"] == "w 6"

    def test_update_requires_id(self, api_client):
        response = api_client.put("/api/task", json={"title": "x", "date": "20240120"})
        assert response.status_code == 400

    def test_update_unknown_task(self, api_client):
        response = api_client.put("/api/task", json={"id": "12", "title": "x", "date": "20240120"})
        assert response.status_code == 404

    def test_complete_at_end_of_calendar(self, api_client):
        task_id = _create(api_client, title="x", date="99991231", repeat="d 1")
        response = api_client.post("/api/task/done", params={"id": task_id})
        assert response.status_code == 400
        assert "out of range" in response.json()["error"]

    def test_update_invalid_rule(self, api_client):
        task_id = _create(api_client, title="x", date="20240120")
        response = api_client.put("/api/task", json={
            "id": task_id, "title": "x", "date": "20240120", "repeat": "m 0"
        })
        assert response.status_code == 400

    def test_delete(self, api_client):
        task_id = _create(api_client, title="x")
        response = api_client.delete("/api/task", params={"id": task_id})
        assert response.status_code == 200
        assert response.json() == {}
        assert api_client.get("/api/task", params={"id": task_id}).status_code == 404
        assert api_client.delete("/api/task", params={"id": task_id}).status_code == 404

    def test_delete_requires_id(self, api_client):
        assert api_client.delete("/api/task").status_code == 400


@pytest.mark.api
class TestCompleteEndpoint:
    """Test POST /api/task/done."""

    def test_one_shot_task_is_removed(self, api_client):
        task_id = _create(api_client, title="Buy milk", date="20240120")
        response = api_client.post("/api/task/done", params={"id": task_id})
        assert response.status_code == 200
        assert response.json() == {}
        assert api_client.get("/api/tasks").json() == {"tasks": []}

    def test_recurring_task_moves_forward(self, api_client, sample_task):
        task_id = _create(api_client, **sample_task)
        api_client.post("/api/task/done", params={"id": task_id})
        task = api_client.get("/api/task", params={"id": task_id}).json()
        assert task["date"] == "20240123"
        assert task["title"] == sample_task["title"]

    def test_unknown_task(self, api_client):
        assert api_client.post("/api/task/done", params={"id": 5}).status_code == 404

    def test_requires_id(self, api_client):
        assert api_client.post("/api/task/done").status_code == 400


@pytest.mark.api
class TestNextDateEndpoint:
    """Test GET /api/nextdate."""

    @pytest.mark.parametrize("params,expected", [
        ({"now": "20240126", "date": "20240126", "repeat": "d 1"}, "20240126"),
        ({"now": "20240126", "date": "20240120", "repeat": "d 5"}, "20240130"),
        ({"now": "20240126", "date": "20200229", "repeat": "y"}, "20240229"),
        ({"now": "20251019", "date": "20200229", "repeat": "y"}, "20250301"),
        ({"now": "20240126", "date": "20240126", "repeat": "w 1,7"}, "20240128"),
        ({"now": "20240126", "date": "20240126", "repeat": "m -1"}, "20240131"),
        ({"now": "20240126", "date": "20240126", "repeat": "m 1 1,6"}, "20240601"),
    ])
    def test_computes_next_date(self, api_client, params, expected):
        response = api_client.get("/api/nextdate", params=params)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == expected

    def test_now_defaults_to_today(self, api_client):
        response = api_client.get("/api/nextdate", params={"date": "20240101", "repeat": "d 7"})
        assert response.text == "20240122"

    def test_empty_date_defaults_to_now(self, api_client):
        response = api_client.get("/api/nextdate", params={"now": "20240126", "repeat": "d 3"})
        assert response.text == "20240126"

    def test_multiple_dates(self, api_client):
        response = api_client.get("/api/nextdate", params={"repeat": "d 2", "count": 3})
        assert response.status_code == 200
        assert response.text.splitlines() == ["20240115", "20240117", "20240119"]

    @pytest.mark.parametrize("params", [
        {"now": "20240126", "date": "20240126", "repeat": "k 34"},
        {"now": "20240126", "date": "20240126", "repeat": ""},
        {"now": "20240126", "date": "2024", "repeat": "d 1"},
        {"now": "yesterday", "date": "20240126", "repeat": "d 1"},
        {"now": "20240126", "date": "20240126", "repeat": "m 30 2"},
        {"now": "99991230", "date": "99991230", "repeat": "m 1"},
        {"now": "99991230", "date": "99991230", "repeat": "y"},
    ])
    def test_rejects_invalid_input(self, api_client, params):
        response = api_client.get("/api/nextdate", params=params)
        assert response.status_code == 400
        assert response.text

    def test_preview_outcomes_are_counted(self, api_client):
        api_client.get("/api/nextdate", params={"now": "20240126", "repeat": "k 34"})
        api_client.get("/api/nextdate", params={"now": "20240126", "repeat": "w 2"})
        text = api_client.get("/metrics").text
        assert 'planner_next_date_computations_total{rule_kind="unknown",outcome="error"}' in text
        assert 'planner_next_date_computations_total{rule_kind="weekly",outcome="ok"}' in text

    def test_preview_past_end_of_calendar(self, api_client):
        response = api_client.get("/api/nextdate", params={"now": "99991229", "repeat": "d 1", "count": 5})
        assert response.status_code == 400
        assert "out of range" in response.text


@pytest.mark.api
class TestServiceEndpoints:
    """Health, metrics and request tracing."""

    def test_health(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["database"]["details"]["task_count"] == 0

    def test_liveness(self, api_client):
        response = api_client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness(self, api_client):
        response = api_client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["database"] is True

    def test_metrics(self, api_client):
        _create(api_client, title="x", repeat="d 1")
        response = api_client.get("/metrics")
        assert response.status_code == 200
        assert "planner_http_requests_total" in response.text
        assert "planner_task_operations_total" in response.text
        assert "planner_stored_tasks 1.0" in response.text

    def test_request_id_header(self, api_client):
        response = api_client.get("/api/tasks")
        assert response.headers["X-Request-ID"].startswith("req-")

    def test_root_without_web_client(self, api_client):
        response = api_client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "Task Planner"

    def test_unknown_route_uses_error_envelope(self, api_client):
        response = api_client.get("/api/nothing")
        assert response.status_code == 404
        assert "error" in response.json()


@pytest.mark.api
def test_web_client_served_from_root(tmp_path, store, db_engine, clock):
    from fastapi.testclient import TestClient

    from api.config import AppConfig
    from api.main import create_app

    web_dir = tmp_path / "site"
    web_dir.mkdir()
    (web_dir / "index.html").write_text("<h1>Planner</h1>")

    config = AppConfig(db_file=str(tmp_path / "tasks.db"), web_dir=str(web_dir))
    client = TestClient(create_app(config=config, store=store, db_engine=db_engine, clock=clock))

    assert "<h1>Planner</h1>" in client.get("/").text
    assert client.get("/api/tasks").json() == {"tasks": []}
