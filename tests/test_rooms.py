"""
tests.test_rooms

Group chat: rooms, invites, channels, member roles and message paging.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

OWNER = "user_owner"
GUEST = "user_guest"


@pytest_asyncio.fixture
async def room(client: httpx.AsyncClient, auth, signup) -> dict:
    await signup(OWNER, "owner")
    await signup(GUEST, "guest")
    r = await client.post("/api/rooms", headers=auth(OWNER), json={"name": "Physics", "imageUrl": "https://img"})
    assert r.status_code == 200, r.text
    return r.json()


async def _join(client: httpx.AsyncClient, auth, room: dict, user_id: str = GUEST) -> dict:
    r = await client.post(f"/api/rooms/join/{room['inviteCode']}", headers=auth(user_id))
    assert r.status_code == 200, r.text
    r = await client.get(f"/api/rooms/{room['id']}", headers=auth(user_id))
    return r.json()


def _member(detail: dict, name: str) -> dict:
    return next(m for m in detail["members"] if m["profile"]["name"] == name)


@pytest.mark.asyncio
async def test_profile_is_required(client: httpx.AsyncClient, auth) -> None:
    r = await client.post("/api/rooms", headers=auth("user_nobody"), json={"name": "X"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_new_room_has_general_chat_and_admin_owner(room: dict) -> None:
    assert [c["name"] for c in room["chats"]] == ["general"]
    assert room["chats"][0]["type"] == "TEXT"
    assert len(room["members"]) == 1
    assert room["members"][0]["role"] == "ADMIN"
    assert room["members"][0]["profile"]["name"] == "owner"
    assert room["inviteCode"]


@pytest.mark.asyncio
async def test_join_is_idempotent_and_members_sorted(client: httpx.AsyncClient, auth, room: dict) -> None:
    detail = await _join(client, auth, room)
    detail = await _join(client, auth, room)
    assert [m["role"] for m in detail["members"]] == ["ADMIN", "GUEST"]

    r = await client.get("/api/rooms", headers=auth(GUEST))
    assert [x["id"] for x in r.json()] == [room["id"]]

    r = await client.post("/api/rooms/join/not-a-code", headers=auth(GUEST))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_non_members_cannot_see_room(client: httpx.AsyncClient, auth, room: dict) -> None:
    r = await client.get(f"/api/rooms/{room['id']}", headers=auth(GUEST))
    assert r.status_code == 404
    assert r.json() == {"error": "Room not found"}


@pytest.mark.asyncio
async def test_owner_only_room_changes(client: httpx.AsyncClient, auth, room: dict) -> None:
    await _join(client, auth, room)
    r = await client.patch(f"/api/rooms/{room['id']}", headers=auth(GUEST), json={"name": "Mine"})
    assert r.status_code == 404
    r = await client.patch(f"/api/rooms/{room['id']}", headers=auth(OWNER), json={"name": "Physics 2"})
    assert r.json()["name"] == "Physics 2"
    assert r.json()["imageUrl"] == "https://img"

    r = await client.delete(f"/api/rooms/{room['id']}", headers=auth(GUEST))
    assert r.status_code == 404
    r = await client.delete(f"/api/rooms/{room['id']}", headers=auth(OWNER))
    assert r.status_code == 200
    r = await client.get("/api/rooms", headers=auth(GUEST))
    assert r.json() == []


@pytest.mark.asyncio
async def test_invite_code_rotation(client: httpx.AsyncClient, auth, room: dict) -> None:
    r = await client.patch(f"/api/rooms/{room['id']}/invite-code", headers=auth(OWNER))
    new_code = r.json()["inviteCode"]
    assert new_code != room["inviteCode"]

    r = await client.post(f"/api/rooms/join/{room['inviteCode']}", headers=auth(GUEST))
    assert r.status_code == 404
    r = await client.post(f"/api/rooms/join/{new_code}", headers=auth(GUEST))
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_leave(client: httpx.AsyncClient, auth, room: dict) -> None:
    await _join(client, auth, room)
    r = await client.post(f"/api/rooms/{room['id']}/leave", headers=auth(OWNER))
    assert r.status_code == 400
    r = await client.post(f"/api/rooms/{room['id']}/leave", headers=auth(GUEST))
    assert r.status_code == 200
    r = await client.get(f"/api/rooms/{room['id']}", headers=auth(GUEST))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_chat_channels(client: httpx.AsyncClient, auth, room: dict) -> None:
    await _join(client, auth, room)
    params = {"roomId": room["id"]}

    r = await client.post("/api/chats", headers=auth(GUEST), params=params, json={"name": "voice", "type": "AUDIO"})
    assert r.status_code == 403

    r = await client.post("/api/chats", headers=auth(OWNER), params=params, json={"name": "general"})
    assert r.status_code == 400

    r = await client.post("/api/chats", headers=auth(OWNER), params=params, json={"name": "voice", "type": "AUDIO"})
    chats = {c["name"]: c for c in r.json()["chats"]}
    assert chats["voice"]["type"] == "AUDIO"

    general_id = chats["general"]["id"]
    r = await client.delete(f"/api/chats/{general_id}", headers=auth(OWNER), params=params)
    assert r.status_code == 400
    assert r.json() == {"error": "The general chat cannot be changed"}

    r = await client.patch(
        f"/api/chats/{chats['voice']['id']}", headers=auth(OWNER), params=params, json={"name": "lounge"}
    )
    assert {c["name"] for c in r.json()["chats"]} == {"general", "lounge"}

    r = await client.delete(f"/api/chats/{chats['voice']['id']}", headers=auth(OWNER), params=params)
    assert [c["name"] for c in r.json()["chats"]] == ["general"]


@pytest.mark.asyncio
async def test_member_roles_and_kick(client: httpx.AsyncClient, auth, room: dict) -> None:
    detail = await _join(client, auth, room)
    params = {"roomId": room["id"]}
    guest = _member(detail, "guest")
    owner = _member(detail, "owner")

    r = await client.patch(f"/api/members/{owner['id']}", headers=auth(OWNER), params=params, json={"role": "GUEST"})
    assert r.status_code == 404

    r = await client.patch(
        f"/api/members/{guest['id']}", headers=auth(GUEST), params=params, json={"role": "ADMIN"}
    )
    assert r.status_code == 404

    r = await client.patch(
        f"/api/members/{guest['id']}", headers=auth(OWNER), params=params, json={"role": "MODERATOR"}
    )
    assert _member(r.json(), "guest")["role"] == "MODERATOR"

    # Moderators may manage channels.
    r = await client.post("/api/chats", headers=auth(GUEST), params=params, json={"name": "homework"})
    assert r.status_code == 200

    r = await client.delete(f"/api/members/{guest['id']}", headers=auth(OWNER), params=params)
    assert [m["profile"]["name"] for m in r.json()["members"]] == ["owner"]


@pytest.mark.asyncio
async def test_messages_page_newest_first(client: httpx.AsyncClient, auth, room: dict) -> None:
    chat_id = room["chats"][0]["id"]
    params = {"roomId": room["id"], "chatId": chat_id}
    for i in range(12):
        r = await client.post("/api/messages", headers=auth(OWNER), params=params, json={"content": f"m{i}"})
        assert r.status_code == 200

    r = await client.get("/api/messages", headers=auth(OWNER), params={"chatId": chat_id})
    page = r.json()
    assert [m["content"] for m in page["items"]] == [f"m{i}" for i in range(11, 1, -1)]
    assert page["items"][0]["member"]["profile"]["name"] == "owner"
    assert page["nextCursor"] == page["items"][-1]["id"]

    r = await client.get(
        "/api/messages", headers=auth(OWNER), params={"chatId": chat_id, "cursor": page["nextCursor"]}
    )
    page = r.json()
    assert [m["content"] for m in page["items"]] == ["m1", "m0"]
    assert page["nextCursor"] is None


@pytest.mark.asyncio
async def test_message_rules(client: httpx.AsyncClient, auth, room: dict) -> None:
    chat_id = room["chats"][0]["id"]
    params = {"roomId": room["id"], "chatId": chat_id}

    r = await client.post("/api/messages", headers=auth(OWNER), params=params, json={"content": ""})
    assert r.status_code == 400
    assert r.json() == {"error": "Content Missing"}

    r = await client.post("/api/messages", headers=auth(GUEST), params=params, json={"content": "hi"})
    assert r.status_code == 404

    r = await client.get("/api/messages", headers=auth(GUEST), params={"chatId": chat_id})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_message(client: httpx.AsyncClient, auth, room: dict) -> None:
    await _join(client, auth, room)
    chat_id = room["chats"][0]["id"]
    params = {"roomId": room["id"], "chatId": chat_id}
    r = await client.post(
        "/api/messages", headers=auth(OWNER), params=params, json={"content": "see file", "fileUrl": "https://f"}
    )
    message_id = r.json()["id"]

    r = await client.delete(f"/api/messages/{message_id}", headers=auth(GUEST), params={"chatId": chat_id})
    assert r.status_code == 403

    r = await client.delete(f"/api/messages/{message_id}", headers=auth(OWNER), params={"chatId": chat_id})
    body = r.json()
    assert body["deleted"] is True
    assert body["content"] == "This message has been deleted."
    assert body["fileUrl"] is None

    r = await client.delete(f"/api/messages/{message_id}", headers=auth(OWNER), params={"chatId": chat_id})
    assert r.status_code == 404
