import datetime as dt

import pytest

from arena.models.chat import ChatMessage


pytestmark = pytest.mark.asyncio


def chat_payload(title: str = "Test", **overrides) -> dict:
    payload = {
        "title": title,
        "messages": [
            {"role": "user", "content": "hello", "timestamp": "1999-01-01T00:00:00Z"},
            {"role": "assistant", "content": "hi", "model": "gpt-5-nano", "type": "text"},
        ],
        "mode": "single",
        "generationType": "text",
        "models": ["gpt-5-nano"],
    }
    payload.update(overrides)
    return payload


async def test_save_and_get_chat_roundtrip(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)

    saved = await client.post("/api/auth/save-chat", json=chat_payload(), headers=headers)
    assert saved.status_code == 200, saved.text
    chat_id = saved.json()["chatId"]
    assert chat_id.startswith("chat_")

    resp = await client.get(f"/api/auth/chats/{chat_id}", headers=headers)
    assert resp.status_code == 200
    chat = resp.json()["chat"]
    assert chat["id"] == chat_id
    assert chat["title"] == "Test"
    assert chat["mode"] == "single"
    assert chat["generationType"] == "text"
    assert chat["models"] == ["gpt-5-nano"]
    assert [m["content"] for m in chat["messages"]] == ["hello", "hi"]
    assert chat["messages"][1]["model"] == "gpt-5-nano"
    # Client timestamps are replaced by the server's
    assert not chat["messages"][0]["timestamp"].startswith("1999")
    assert chat["createdAt"] == chat["updatedAt"]


async def test_save_chat_rejects_empty_messages(client, create_user, auth_headers):
    user, _ = await create_user()
    resp = await client.post("/api/auth/save-chat", json=chat_payload(messages=[]), headers=auth_headers(user))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid input"


async def test_save_chat_validates_fields(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)

    long_title = await client.post("/api/auth/save-chat", json=chat_payload(title="x" * 101), headers=headers)
    assert long_title.status_code == 400

    bad_mode = await client.post("/api/auth/save-chat", json=chat_payload(mode="duel"), headers=headers)
    assert bad_mode.status_code == 400

    stray_url = chat_payload(messages=[{"role": "assistant", "content": "", "type": "text", "imageUrl": "http://x/y.png"}])
    assert (await client.post("/api/auth/save-chat", json=stray_url, headers=headers)).status_code == 400


async def test_save_chat_bounds_model_and_media_urls(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)

    long_model = chat_payload(messages=[{"role": "assistant", "content": "hi", "model": "m" * 129, "type": "text"}])
    resp = await client.post("/api/auth/save-chat", json=long_model, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid input"

    long_url = chat_payload(messages=[
        {"role": "assistant", "content": "", "type": "image", "imageUrl": "https://img.example/" + "x" * 2048},
    ])
    assert (await client.post("/api/auth/save-chat", json=long_url, headers=headers)).status_code == 400

    long_audio = chat_payload(messages=[
        {"role": "assistant", "content": "", "type": "audio", "audioUrl": "https://audio.example/" + "x" * 2048},
    ])
    assert (await client.post("/api/auth/save-chat", json=long_audio, headers=headers)).status_code == 400


async def test_media_messages_keep_their_urls(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)
    payload = chat_payload(
        generationType="image",
        messages=[
            {"role": "user", "content": "a red fox"},
            {"role": "assistant", "content": "", "type": "image", "imageUrl": "https://img.example/fox.png"},
        ],
    )
    chat_id = (await client.post("/api/auth/save-chat", json=payload, headers=headers)).json()["chatId"]
    chat = (await client.get(f"/api/auth/chats/{chat_id}", headers=headers)).json()["chat"]
    assert chat["messages"][1]["imageUrl"] == "https://img.example/fox.png"
    assert chat["messages"][1]["audioUrl"] is None


async def test_partial_update_keeps_messages(client, create_user, auth_headers, frozen_clock):
    user, _ = await create_user()
    headers = auth_headers(user)
    t0 = dt.datetime(2026, 5, 1, 10, 0, tzinfo=dt.timezone.utc)
    frozen_clock(t0)
    chat_id = (await client.post("/api/auth/save-chat", json=chat_payload(), headers=headers)).json()["chatId"]

    frozen_clock(t0 + dt.timedelta(minutes=1))
    resp = await client.put(f"/api/auth/chats/{chat_id}", json={"title": "Renamed"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Chat updated successfully"

    chat = (await client.get(f"/api/auth/chats/{chat_id}", headers=headers)).json()["chat"]
    assert chat["title"] == "Renamed"
    assert [m["content"] for m in chat["messages"]] == ["hello", "hi"]
    assert chat["updatedAt"] > chat["createdAt"]


async def test_update_replaces_messages(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)
    chat_id = (await client.post("/api/auth/save-chat", json=chat_payload(), headers=headers)).json()["chatId"]

    new_messages = [
        {"role": "user", "content": "hello"},
        {"role": "assistant", "content": "hi"},
        {"role": "user", "content": "and again"},
    ]
    resp = await client.put(f"/api/auth/chats/{chat_id}", json={"messages": new_messages}, headers=headers)
    assert resp.status_code == 200
    chat = (await client.get(f"/api/auth/chats/{chat_id}", headers=headers)).json()["chat"]
    assert [m["content"] for m in chat["messages"]] == ["hello", "hi", "and again"]
    assert await ChatMessage.filter(chat_id=chat_id).count() == 3

    empty = await client.put(f"/api/auth/chats/{chat_id}", json={"messages": []}, headers=headers)
    assert empty.status_code == 400


async def test_list_chats_most_recent_first(client, create_user, auth_headers, frozen_clock):
    user, _ = await create_user()
    headers = auth_headers(user)
    t0 = dt.datetime(2026, 5, 1, 10, 0, tzinfo=dt.timezone.utc)

    frozen_clock(t0)
    first = (await client.post("/api/auth/save-chat", json=chat_payload("First"), headers=headers)).json()["chatId"]
    frozen_clock(t0 + dt.timedelta(minutes=1))
    await client.post("/api/auth/save-chat", json=chat_payload("Second"), headers=headers)

    titles = [c["title"] for c in (await client.get("/api/auth/chats", headers=headers)).json()["chats"]]
    assert titles == ["Second", "First"]

    # Touching the older chat moves it to the top
    frozen_clock(t0 + dt.timedelta(minutes=2))
    await client.put(f"/api/auth/chats/{first}", json={"title": "First again"}, headers=headers)
    titles = [c["title"] for c in (await client.get("/api/auth/chats", headers=headers)).json()["chats"]]
    assert titles == ["First again", "Second"]


async def test_search_matches_title_and_content(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)
    await client.post("/api/auth/save-chat", json=chat_payload("Holiday plans"), headers=headers)
    await client.post(
        "/api/auth/save-chat",
        json=chat_payload("Other", messages=[{"role": "user", "content": "Explain Quantum tunnelling"}]),
        headers=headers,
    )

    by_content = (await client.get("/api/auth/chats/search/quantum", headers=headers)).json()["chats"]
    assert [c["title"] for c in by_content] == ["Other"]

    by_title = (await client.get("/api/auth/chats/search/HOLIDAY", headers=headers)).json()["chats"]
    assert [c["title"] for c in by_title] == ["Holiday plans"]

    nothing = (await client.get("/api/auth/chats/search/zebra", headers=headers)).json()["chats"]
    assert nothing == []


async def test_chats_are_private(client, create_user, auth_headers):
    owner, _ = await create_user()
    stranger, _ = await create_user()
    chat_id = (await client.post("/api/auth/save-chat", json=chat_payload("Secret"), headers=auth_headers(owner))).json()["chatId"]
    other = auth_headers(stranger)

    assert (await client.get(f"/api/auth/chats/{chat_id}", headers=other)).status_code == 404
    assert (await client.put(f"/api/auth/chats/{chat_id}", json={"title": "x"}, headers=other)).status_code == 404
    assert (await client.delete(f"/api/auth/chats/{chat_id}", headers=other)).status_code == 404
    assert (await client.get("/api/auth/chats", headers=other)).json()["chats"] == []
    assert (await client.get("/api/auth/chats/search/Secret", headers=other)).json()["chats"] == []


async def test_delete_chat_removes_messages(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)
    chat_id = (await client.post("/api/auth/save-chat", json=chat_payload(), headers=headers)).json()["chatId"]

    resp = await client.delete(f"/api/auth/chats/{chat_id}", headers=headers)
    assert resp.status_code == 200
    assert (await client.get(f"/api/auth/chats/{chat_id}", headers=headers)).status_code == 404
    assert await ChatMessage.filter(chat_id=chat_id).count() == 0

    again = await client.delete(f"/api/auth/chats/{chat_id}", headers=headers)
    assert again.status_code == 404
