from .conftest import ALICE, as_user


async def test_send_text_message_carries_trainer(client):
    await client.put("/api/user", headers=ALICE, json={"trainer_id": 77})
    resp = await client.post("/api/messages", headers=ALICE, json={"content": "Привет!"})
    assert resp.status_code == 200
    msg = resp.json()["data"]
    assert msg["sender"] == "user"
    assert msg["message_type"] == "text"
    assert msg["trainer_id"] == 77
    assert msg["read"] is False


async def test_send_multipart_with_file(client):
    resp = await client.post(
        "/api/messages",
        headers=ALICE,
        data={"content": "form check", "messageType": "video"},
        files={"file": ("squat.mov", b"mov", "video/quicktime")},
    )
    assert resp.status_code == 200
    msg = resp.json()["data"]
    assert msg["message_type"] == "video"
    assert msg["file_url"].endswith(".mov")


async def test_unknown_message_type(client):
    resp = await client.post("/api/messages", headers=ALICE, json={"content": "x", "messageType": "sticker"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "E_INVALID_INPUT"


async def test_history_is_last_fifty_oldest_first(client):
    headers = as_user(3003)
    for i in range(55):
        await client.post("/api/messages", headers=headers, json={"content": str(i)})
    items = (await client.get("/api/messages", headers=headers)).json()["data"]["items"]
    assert len(items) == 50
    assert [m["content"] for m in items] == [str(i) for i in range(5, 55)]
