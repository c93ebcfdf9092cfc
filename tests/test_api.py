"""Tests for the HTTP API."""

import io

from fastapi.testclient import TestClient
from PIL import Image

from calorie_tracker.api.app import create_app
from calorie_tracker.domain.errors import AIUnavailableError
from calorie_tracker.domain.models import WeightEntry
from tests.conftest import FakeVisionClient, InMemorySheetRepository


def _jpeg() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (64, 48), color=(10, 200, 10)).save(buf, format="JPEG")
    return buf.getvalue()


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_index_serves_static_client(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "/static/app.js" in response.text


def test_stats_for_empty_user(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/stats", params={"user": "wife"})

    assert response.status_code == 200
    data = response.json()
    assert data["totalCals"] == 0
    assert data["totalProtein"] == 0
    assert data["lastWeight"] is None
    assert data["recentLogs"] == []
    assert data["chartData"]["values"] == [0] * 7
    assert len(data["chartData"]["labels"]) == 7
    assert data["dailyGoal"] == 2000


def test_stats_unknown_user_is_bad_request(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/stats", params={"user": "stranger"})

    assert response.status_code == 400
    assert "error" in response.json()


def test_manual_log_then_stats(container) -> None:
    client = TestClient(create_app(container))

    created = client.post(
        "/api/log/manual",
        json={
            "user": "husband",
            "item": "Oatmeal",
            "calories": 350,
            "protein": "12",
            "category": "Breakfast",
        },
    )
    stats = client.get("/api/stats", params={"user": "husband"}).json()

    assert created.status_code == 200
    entry = created.json()
    assert entry["item"] == "Oatmeal"
    assert entry["protein"] == 12
    assert stats["totalCals"] == 350
    assert stats["totalProtein"] == 12
    assert stats["chartData"]["values"][-1] == 350
    assert stats["recentLogs"][0]["id"] == entry["id"]
    assert stats["percentOfGoal"] == 9


def test_manual_log_negative_calories_rejected(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/log/manual", json={"user": "husband", "item": "X", "calories": -1}
    )

    assert response.status_code == 400
    assert container.store.entries_for_user("husband") == []


def test_manual_log_malformed_body_is_bad_request(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/api/log/manual", json=["not", "an", "object"])

    assert response.status_code == 400


def test_photo_log_creates_entry(
    container, sheet_repository: InMemorySheetRepository
) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/log/photo",
        data={"user": "wife"},
        files={"photo": ("meal.jpg", _jpeg(), "image/jpeg")},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["item"] == "Burger"
    assert data["calories"] == 650
    assert data["protein"] == 30
    assert data["category"] == "AI Photo"
    assert [entry.id for entry in sheet_repository.logs] == [data["id"]]


def test_photo_log_accepts_image_field(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/log/photo",
        data={"user": "husband"},
        files={"image": ("meal.jpg", _jpeg(), "image/jpeg")},
    )

    assert response.status_code == 200


def test_photo_log_without_file_is_bad_request(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/api/log/photo", data={"user": "wife"})

    assert response.status_code == 400
    assert response.json()["error"] == "No photo attached."


def test_photo_log_parse_failure_writes_nothing(
    container, vision_client: FakeVisionClient
) -> None:
    vision_client.text = "That looks delicious!"
    client = TestClient(create_app(container))

    response = client.post(
        "/api/log/photo",
        data={"user": "wife"},
        files={"photo": ("meal.jpg", _jpeg(), "image/jpeg")},
    )

    assert response.status_code == 502
    assert "error" in response.json()
    assert container.store.entries_for_user("wife") == []


def test_photo_log_ai_unavailable(container, vision_client: FakeVisionClient) -> None:
    vision_client.error = AIUnavailableError()
    client = TestClient(create_app(container))

    response = client.post(
        "/api/log/photo",
        data={"user": "wife"},
        files={"photo": ("meal.jpg", _jpeg(), "image/jpeg")},
    )

    assert response.status_code == 503
    assert container.store.entries_for_user("wife") == []


def test_weight_then_stats(container) -> None:
    client = TestClient(create_app(container))

    first = client.post("/api/weight", json={"user": "wife", "weight": 60})
    client.post("/api/weight", json={"user": "wife", "weight": "59.5"})
    stats = client.get("/api/stats", params={"user": "wife"}).json()

    assert first.json() == {"success": True}
    assert stats["lastWeight"] == 59.5
    assert [point["y"] for point in stats["weightHistory"]] == [60, 59.5]


def test_weight_invalid_is_bad_request(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/api/weight", json={"user": "wife", "weight": "abc"})

    assert response.status_code == 400


def test_delete_log(container, sheet_repository: InMemorySheetRepository) -> None:
    client = TestClient(create_app(container))
    entry = client.post(
        "/api/log/manual", json={"user": "husband", "item": "Cake", "calories": 400}
    ).json()

    response = client.request(
        "DELETE", f"/api/log/{entry['id']}", json={"user": "husband"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert container.store.entries_for_user("husband") == []
    assert sheet_repository.deleted == [entry["id"]]


def test_delete_unknown_id_succeeds(container) -> None:
    client = TestClient(create_app(container))

    response = client.request("DELETE", "/api/log/nope", json={"user": "husband"})

    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_sheet_write_failure_does_not_fail_request(
    container, sheet_repository: InMemorySheetRepository
) -> None:
    sheet_repository.fail_writes = True
    client = TestClient(create_app(container))

    response = client.post(
        "/api/log/manual", json={"user": "husband", "item": "Tea", "calories": 5}
    )

    assert response.status_code == 200
    assert len(container.store.entries_for_user("husband")) == 1


def test_startup_hydrates_store_from_sheet(
    container, sheet_repository: InMemorySheetRepository
) -> None:
    sheet_repository.weights.append(WeightEntry("2024-01-05", "husband", 88.0))

    with TestClient(create_app(container)) as client:
        stats = client.get("/api/stats", params={"user": "husband"}).json()

    assert stats["lastWeight"] == 88.0


def test_stats_blank_user_uses_default(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/stats", params={"user": ""})

    assert response.status_code == 200
    assert response.json()["dailyGoal"] == 4000


def test_photo_log_rejects_oversized_upload(
    container, vision_client: FakeVisionClient
) -> None:
    container.photo_service.max_upload_bytes = 100
    client = TestClient(create_app(container))

    response = client.post(
        "/api/log/photo",
        data={"user": "wife"},
        files={"photo": ("meal.jpg", b"\xff\xd8\xff" + b"0" * 200, "image/jpeg")},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Photo is too large."
    assert vision_client.calls == []
