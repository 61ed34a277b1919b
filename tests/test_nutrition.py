from datetime import datetime, timezone
from pathlib import Path

from .conftest import ALICE


async def _create_day(client, **extra):
    body = {
        "meals": [
            {"type": "breakfast", "name": "Oats", "calories": 350, "protein": 12, "fats": 6, "carbs": 60},
            {"type": "lunch", "name": "Chicken", "calories": 500, "protein": 45, "fats": 15, "carbs": 40},
        ],
        **extra,
    }
    resp = await client.post("/api/nutrition", headers=ALICE, json=body)
    assert resp.status_code == 200
    return resp.json()["data"]


async def test_create_computes_totals_from_meals(client):
    day = await _create_day(client)
    assert day["total_calories"] == 850
    assert day["total_protein"] == 57
    assert day["water"] == {"goal": 2.5, "consumed": 0}
    assert [m["type"] for m in day["meals"]] == ["breakfast", "lunch"]
    assert all(m["eaten"] is False for m in day["meals"])


async def test_explicit_totals_win(client):
    day = await _create_day(client, total_calories=2000, water={"goal": 3})
    assert day["total_calories"] == 2000
    assert day["total_carbs"] == 100
    assert day["water"]["goal"] == 3


async def test_get_by_date(client):
    await _create_day(client, date="2026-03-01T09:00:00Z")
    found = (await client.get("/api/nutrition", params={"date": "2026-03-01"}, headers=ALICE)).json()["data"]
    assert found is not None
    assert found["date"].startswith("2026-03-01")
    missing = (await client.get("/api/nutrition", params={"date": "2026-03-02"}, headers=ALICE)).json()["data"]
    assert missing is None


async def test_bad_date_is_invalid_input(client):
    resp = await client.get("/api/nutrition", params={"date": "yesterday"}, headers=ALICE)
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "E_INVALID_INPUT"


async def test_mark_meal(client, storage):
    day = await _create_day(client)
    meal_id = day["meals"][1]["id"]
    resp = await client.put(
        f"/api/nutrition/{day['id']}/meal/{meal_id}",
        headers=ALICE,
        data={"eaten": "true", "notes": "tasty"},
        files={"photo": ("lunch.JPG", b"\xff\xd8jpeg", "image/jpeg")},
    )
    assert resp.status_code == 200
    meal = next(m for m in resp.json()["data"]["meals"] if m["id"] == meal_id)
    assert meal["eaten"] is True
    assert meal["notes"] == "tasty"
    assert meal["eaten_at"] is not None
    assert meal["photo"].startswith("/uploads/") and meal["photo"].endswith(".jpg")
    with open(storage.get_path(meal["photo"]), "rb") as f:
        assert f.read() == b"\xff\xd8jpeg"


async def test_meal_flag_is_true_only_for_literal_true(client):
    day = await _create_day(client)
    meal_id = day["meals"][0]["id"]
    resp = await client.put(f"/api/nutrition/{day['id']}/meal/{meal_id}", headers=ALICE, data={"eaten": "yes"})
    meal = next(m for m in resp.json()["data"]["meals"] if m["id"] == meal_id)
    assert meal["eaten"] is False


async def test_meal_not_found_is_distinct_from_day_not_found(client):
    day = await _create_day(client)
    resp = await client.put(f"/api/nutrition/{day['id']}/meal/999999", headers=ALICE, data={"eaten": "true"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E_MEAL_NOT_FOUND"

    resp = await client.put("/api/nutrition/999999/meal/1", headers=ALICE, data={"eaten": "true"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E_NUTRITION_NOT_FOUND"


async def test_unknown_meal_does_not_store_photo(client, storage):
    day = await _create_day(client)
    resp = await client.put(
        f"/api/nutrition/{day['id']}/meal/999999",
        headers=ALICE,
        data={"eaten": "true"},
        files={"photo": ("lunch.jpg", b"jpeg", "image/jpeg")},
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E_MEAL_NOT_FOUND"
    assert list(Path(storage.base_dir).iterdir()) == []


async def test_add_water(client):
    day = await _create_day(client)
    resp = await client.put(f"/api/nutrition/{day['id']}/water", headers=ALICE, json={"amount": 0.5})
    assert resp.status_code == 200
    assert resp.json()["data"]["water"]["consumed"] == 0.5
    resp = await client.put(f"/api/nutrition/{day['id']}/water", headers=ALICE, json={"amount": 0.25})
    assert resp.json()["data"]["water"]["consumed"] == 0.75


async def test_add_water_rejects_non_numeric(client):
    day = await _create_day(client)
    for body in ({"amount": "lots"}, {}, {"amount": None}):
        resp = await client.put(f"/api/nutrition/{day['id']}/water", headers=ALICE, json=body)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "E_INVALID_INPUT"


async def test_add_water_unknown_day(client):
    resp = await client.put("/api/nutrition/424242/water", headers=ALICE, json={"amount": 1})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E_NUTRITION_NOT_FOUND"


async def test_latest_day_without_date(client):
    await _create_day(client, date=datetime(2026, 1, 1, tzinfo=timezone.utc).isoformat())
    newest = await _create_day(client, date=datetime(2026, 2, 1, tzinfo=timezone.utc).isoformat())
    found = (await client.get("/api/nutrition", headers=ALICE)).json()["data"]
    assert found["id"] == newest["id"]
