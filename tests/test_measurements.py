import json
from pathlib import Path

import httpx

from infra.api.app import create_app
from infra.storage.object_storage import UploadStorage

from .conftest import ALICE


async def test_create_with_circumferences_and_photos(client, storage):
    resp = await client.post(
        "/api/measurements",
        headers=ALICE,
        data={"weight": "81.5", "measurements": json.dumps({"chest": 100, "bicepLeft": 35}), "notes": "morning"},
        files=[
            ("photos", ("front.png", b"png-1", "image/png")),
            ("photos", ("side.png", b"png-2", "image/png")),
        ],
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["weight"] == 81.5
    assert data["notes"] == "morning"
    assert data["measurements"]["chest"] == 100
    assert data["measurements"]["bicep_left"] == 35
    assert data["measurements"]["waist"] is None
    assert len(data["photos"]) == 2
    assert all(p.startswith("/uploads/") for p in data["photos"])
    assert len(list(Path(storage.base_dir).iterdir())) == 2


async def test_weight_updates_profile(client):
    await client.post("/api/measurements", headers=ALICE, data={"weight": "79"})
    profile = (await client.get("/api/user", headers=ALICE)).json()["data"]["profile"]
    assert profile["current_weight"] == 79


async def test_too_many_photos(client):
    files = [("photos", (f"{i}.jpg", b"x", "image/jpeg")) for i in range(4)]
    resp = await client.post("/api/measurements", headers=ALICE, data={"weight": "80"}, files=files)
    assert resp.status_code == 422
    assert (await client.get("/api/measurements", headers=ALICE)).json()["data"]["items"] == []


async def test_invalid_weight_and_payload(client):
    resp = await client.post("/api/measurements", headers=ALICE, data={"weight": "-3"})
    assert resp.status_code == 422
    resp = await client.post("/api/measurements", headers=ALICE, data={"weight": "80", "measurements": "{oops"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "E_INVALID_INPUT"


async def test_list_is_newest_first_and_latest(client):
    for w in ("85", "82", "80"):
        await client.post("/api/measurements", headers=ALICE, data={"weight": w})
    items = (await client.get("/api/measurements", headers=ALICE)).json()["data"]["items"]
    assert [i["weight"] for i in items] == [80, 82, 85]
    latest = (await client.get("/api/measurements/latest", headers=ALICE)).json()["data"]
    assert latest["id"] == items[0]["id"]


async def test_upload_over_limit_is_rejected(app, tmp_path):
    small = create_app(UploadStorage(base_dir=str(tmp_path / "small"), max_bytes=4))
    small.dependency_overrides.update(app.dependency_overrides)

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=small), base_url="http://test") as c:
        resp = await c.post(
            "/api/measurements",
            headers=ALICE,
            data={"weight": "80"},
            files={"photos": ("big.jpg", b"0123456789", "image/jpeg")},
        )
    assert resp.status_code == 422
    assert list(Path(tmp_path / "small").iterdir()) == []
