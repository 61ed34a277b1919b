from datetime import datetime, timedelta, timezone
from pathlib import Path

from .conftest import ALICE


async def _create_workout(client, **extra):
    body = {
        "program_name": "Base",
        "workout_name": "Push",
        "duration": 45,
        "exercises": [
            {"name": "Bench press", "sets": 4, "reps": 8, "weight": 60},
            {"name": "Push-ups", "sets": 3, "reps": 15},
        ],
        **extra,
    }
    resp = await client.post("/api/workouts", headers=ALICE, json=body)
    assert resp.status_code == 200
    return resp.json()["data"]


async def test_create_and_list(client):
    w = await _create_workout(client)
    assert w["completed"] is False
    assert [e["name"] for e in w["exercises"]] == ["Bench press", "Push-ups"]
    items = (await client.get("/api/workouts", headers=ALICE)).json()["data"]["items"]
    assert [i["id"] for i in items] == [w["id"]]


async def test_exercise_requires_name(client):
    resp = await client.post("/api/workouts", headers=ALICE, json={"exercises": [{"sets": 3}]})
    assert resp.status_code == 422


async def test_today(client):
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    await _create_workout(client, date=yesterday, workout_name="Old")
    assert (await client.get("/api/workouts/today", headers=ALICE)).json()["data"] is None

    w = await _create_workout(client)
    today = (await client.get("/api/workouts/today", headers=ALICE)).json()["data"]
    assert today["id"] == w["id"]


async def test_update_exercise(client, storage):
    w = await _create_workout(client)
    exercise_id = w["exercises"][0]["id"]
    resp = await client.put(
        f"/api/workouts/{w['id']}/exercise/{exercise_id}",
        headers=ALICE,
        data={"completed": "true", "feeling": "hard", "notes": "last set tough"},
        files={"video": ("set.mp4", b"video-bytes", "video/mp4")},
    )
    assert resp.status_code == 200
    exercise = resp.json()["data"]["exercises"][0]
    assert exercise["completed"] is True
    assert exercise["feeling"] == "hard"
    assert exercise["user_video"].endswith(".mp4")
    assert resp.json()["data"]["exercises"][1]["completed"] is False


async def test_update_exercise_rejects_unknown_feeling(client):
    w = await _create_workout(client)
    resp = await client.put(
        f"/api/workouts/{w['id']}/exercise/{w['exercises'][0]['id']}", headers=ALICE, data={"feeling": "meh"}
    )
    assert resp.status_code == 422


async def test_exercise_not_found_is_distinct_from_workout_not_found(client):
    w = await _create_workout(client)
    resp = await client.put(f"/api/workouts/{w['id']}/exercise/999999", headers=ALICE, data={"completed": "true"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E_EXERCISE_NOT_FOUND"

    resp = await client.put("/api/workouts/999999/exercise/1", headers=ALICE, data={"completed": "true"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E_WORKOUT_NOT_FOUND"


async def test_unknown_exercise_does_not_store_video(client, storage):
    w = await _create_workout(client)
    resp = await client.put(
        f"/api/workouts/{w['id']}/exercise/999999",
        headers=ALICE,
        data={"completed": "true"},
        files={"video": ("set.mp4", b"video-bytes", "video/mp4")},
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E_EXERCISE_NOT_FOUND"
    assert list(Path(storage.base_dir).iterdir()) == []


async def test_exercise_plan_fields_are_stored(client):
    w = await _create_workout(
        client,
        exercises=[{"name": "Plank", "completed": True, "feeling": "easy", "notes": "60s"}],
    )
    exercise = w["exercises"][0]
    assert exercise["completed"] is True
    assert exercise["feeling"] == "easy"
    assert exercise["notes"] == "60s"

    resp = await client.post(
        "/api/workouts", headers=ALICE, json={"exercises": [{"name": "Plank", "feeling": "meh"}]}
    )
    assert resp.status_code == 422


async def test_complete(client):
    w = await _create_workout(client)
    resp = await client.put(f"/api/workouts/{w['id']}/complete", headers=ALICE, json={"rating": 8, "notes": "good"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["completed"] is True
    assert data["completed_at"] is not None
    assert data["rating"] == 8


async def test_complete_rejects_rating_out_of_range(client):
    w = await _create_workout(client)
    resp = await client.put(f"/api/workouts/{w['id']}/complete", headers=ALICE, json={"rating": 11})
    assert resp.status_code == 422


async def test_complete_unknown_workout(client):
    resp = await client.put("/api/workouts/999999/complete", headers=ALICE, json={"rating": 5})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E_WORKOUT_NOT_FOUND"
