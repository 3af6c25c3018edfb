from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from app import create_app

from conftest import RecordingBackend


@pytest.fixture
def client(make_visualizer) -> FlaskClient:
    visualizer = make_visualizer(RecordingBackend(failures={"KP-200": RuntimeError("boom")}))
    app = create_app(visualizer)
    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client


def test_visualize_round_trip(client: FlaskClient) -> None:
    response = client.post(
        "/api/visualize",
        json={"image": "http://x/house.jpg", "product_codes": ["ND-050", "KP-200", "NOPE"]},
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "completed"
    assert [a["generated_by"] for a in payload["artifacts"]] == ["backend", "placeholder"]

    request_id = payload["request_id"]
    fetched = client.get(f"/api/results/{request_id}")
    assert fetched.status_code == 200
    assert fetched.get_json() == payload

    status = client.get(f"/api/results/{request_id}/status")
    assert status.get_json() == {"request_id": request_id, "status": "completed"}


def test_visualize_with_no_matching_paints(client: FlaskClient) -> None:
    response = client.post("/api/visualize", json={"image": "img", "product_codes": []})

    assert response.status_code == 200
    assert response.get_json()["status"] == "failed"
    assert response.get_json()["error"] == "no matching paints"


def test_visualize_respects_max_patterns(client: FlaskClient) -> None:
    response = client.post(
        "/api/visualize",
        json={"image": "img", "product_codes": ["ND-050", "SK-300"], "options": {"max_patterns": 1}},
    )

    assert len(response.get_json()["artifacts"]) == 1


@pytest.mark.parametrize(
    "body",
    [
        {"product_codes": ["ND-050"]},
        {"image": "  ", "product_codes": ["ND-050"]},
        {"image": "img", "product_codes": "ND-050"},
        {"image": "img", "product_codes": [1, 2]},
        {"image": "img", "product_codes": ["ND-050"], "options": {"max_patterns": "lots"}},
    ],
)
def test_visualize_rejects_bad_input(client: FlaskClient, body: dict) -> None:
    response = client.post("/api/visualize", json=body)

    assert response.status_code == 400
    assert "error" in response.get_json()


def test_async_visualize_returns_request_id(client: FlaskClient) -> None:
    response = client.post(
        "/api/visualize",
        json={"image": "img", "product_codes": ["ND-050"], "async": True},
    )

    assert response.status_code == 202
    request_id = response.get_json()["request_id"]
    assert client.get(f"/api/results/{request_id}/status").get_json()["status"] in (
        "pending",
        "processing",
        "completed",
    )
    client.application.config["VISUALIZER"].shutdown()
    assert client.get(f"/api/results/{request_id}").get_json()["status"] == "completed"


def test_unknown_result_is_404(client: FlaskClient) -> None:
    assert client.get("/api/results/req_missing").status_code == 404
    status = client.get("/api/results/req_missing/status")
    assert status.status_code == 404
    assert status.get_json()["status"] == "not_found"


def test_stats_endpoint(client: FlaskClient) -> None:
    client.post("/api/visualize", json={"image": "img", "product_codes": ["ND-050"]})
    client.post("/api/visualize", json={"image": "img", "product_codes": ["NOPE"]})

    assert client.get("/api/stats").get_json() == {
        "total": 2,
        "completed": 1,
        "failed": 1,
        "processing": 0,
        "pending": 0,
    }


def test_paint_search_endpoint(client: FlaskClient) -> None:
    response = client.get("/api/paints?manufacturer=Kansai%20Paint&max_price=3000")

    assert [p["product_code"] for p in response.get_json()] == ["KP-150"]
    assert client.get("/api/paints?min_price=cheap").status_code == 400


def test_backend_endpoint(client: FlaskClient) -> None:
    assert client.get("/api/backend").get_json() == {"provider": "recording", "ready": True}


@pytest.mark.parametrize("body", [[], "house.jpg", 42])
def test_visualize_rejects_non_object_body(client: FlaskClient, body) -> None:
    response = client.post("/api/visualize", json=body)

    assert response.status_code == 400
    assert response.get_json()["error"] == "request body must be a JSON object"


def test_visualize_after_shutdown_is_503(client: FlaskClient) -> None:
    client.application.config["VISUALIZER"].shutdown()

    response = client.post("/api/visualize", json={"image": "img", "product_codes": ["ND-050"]})

    assert response.status_code == 503
