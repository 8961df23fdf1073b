"""
tests.test_tracker

Org-scoped sprint/list/task flows and their audit trail.
"""

from __future__ import annotations

import httpx
import pytest

ORG = "org_alpha"
OTHER_ORG = "org_beta"
USER = "user_a"
IMAGE = "img1|https://thumb|https://full|<a>Unsplash</a>|Jane Doe"


@pytest.fixture
def member(auth):
    return auth(USER, org_id=ORG)


async def _sprint(client: httpx.AsyncClient, headers, title: str = "Sprint One", **extra) -> dict:
    r = await client.post("/api/sprints", headers=headers, json={"title": title, "image": IMAGE, **extra})
    assert r.status_code == 200, r.text
    return r.json()


async def _list(client: httpx.AsyncClient, headers, sprint_id: str, title: str) -> dict:
    r = await client.post("/api/lists", headers=headers, json={"title": title, "sprintId": sprint_id})
    assert r.status_code == 200, r.text
    return r.json()


async def _task(client: httpx.AsyncClient, headers, sprint_id: str, list_id: str, title: str) -> dict:
    r = await client.post(
        "/api/tasks", headers=headers, json={"title": title, "sprintId": sprint_id, "listId": list_id}
    )
    assert r.status_code == 200, r.text
    return r.json()


@pytest.mark.asyncio
async def test_org_is_required(client: httpx.AsyncClient, auth) -> None:
    r = await client.get("/api/sprints", headers=auth(USER))
    assert r.status_code == 401
    r = await client.get("/api/sprints")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_create_sprint(client: httpx.AsyncClient, member, signup) -> None:
    await signup(USER, "alice")
    sprint = await _sprint(client, member)
    assert sprint["orgId"] == ORG
    assert sprint["imageUserName"] == "Jane Doe"
    assert sprint["isTemplate"] is False

    r = await client.post("/api/sprints", headers=member, json={"title": "ab", "image": IMAGE})
    assert r.status_code == 422
    r = await client.post("/api/sprints", headers=member, json={"title": "Sprint", "image": "a|b"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing Fields"}

    r = await client.get("/api/audit-logs", headers=member)
    logs = r.json()
    assert len(logs) == 1
    assert logs[0]["action"] == "CREATE"
    assert logs[0]["entityType"] == "SPRINT"
    assert logs[0]["userName"] == "alice"


@pytest.mark.asyncio
async def test_sprints_are_scoped_to_org(client: httpx.AsyncClient, member, auth) -> None:
    sprint = await _sprint(client, member)
    outsider = auth("user_b", org_id=OTHER_ORG)

    r = await client.get("/api/sprints", headers=outsider)
    assert r.json() == []
    r = await client.get(f"/api/sprints/{sprint['id']}", headers=outsider)
    assert r.status_code == 404
    r = await client.patch("/api/sprints", headers=outsider, json={"id": sprint["id"], "title": "Mine now"})
    assert r.status_code == 404
    r = await client.post("/api/lists", headers=outsider, json={"title": "Todo", "sprintId": sprint["id"]})
    assert r.status_code == 404

    # The org lookup is open to any signed-in caller.
    r = await client.get(f"/api/sprint/{sprint['id']}", headers=auth("user_c"))
    assert r.json() == {"orgId": ORG}
    r = await client.get("/api/sprint/00000000-0000-0000-0000-000000000000", headers=auth("user_c"))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_board_orders_lists_and_tasks(client: httpx.AsyncClient, member) -> None:
    sprint = await _sprint(client, member)
    todo = await _list(client, member, sprint["id"], "Todo")
    done = await _list(client, member, sprint["id"], "Done")
    assert (todo["order"], done["order"]) == (1, 2)

    first = await _task(client, member, sprint["id"], todo["id"], "Write")
    second = await _task(client, member, sprint["id"], todo["id"], "Review")
    assert (first["order"], second["order"]) == (1, 2)

    r = await client.get(f"/api/sprints/{sprint['id']}", headers=member)
    board = r.json()
    assert [tl["title"] for tl in board["lists"]] == ["Todo", "Done"]
    assert [t["title"] for t in board["lists"][0]["tasks"]] == ["Write", "Review"]
    assert board["lists"][1]["tasks"] == []


@pytest.mark.asyncio
async def test_update_and_delete_sprint(client: httpx.AsyncClient, member) -> None:
    sprint = await _sprint(client, member)
    todo = await _list(client, member, sprint["id"], "Todo")
    await _task(client, member, sprint["id"], todo["id"], "Write")

    r = await client.patch("/api/sprints", headers=member, json={"id": sprint["id"], "title": "Renamed"})
    assert r.json()["title"] == "Renamed"

    r = await client.request("DELETE", "/api/sprints", headers=member, json={"id": sprint["id"]})
    assert r.status_code == 200
    r = await client.get(f"/api/sprints/{sprint['id']}", headers=member)
    assert r.status_code == 404

    r = await client.get("/api/audit-logs", headers=member)
    assert [e["action"] for e in r.json()][:2] == ["DELETE", "UPDATE"]


@pytest.mark.asyncio
async def test_copy_list_duplicates_tasks(client: httpx.AsyncClient, member) -> None:
    sprint = await _sprint(client, member)
    todo = await _list(client, member, sprint["id"], "Todo")
    await _list(client, member, sprint["id"], "Done")
    await _task(client, member, sprint["id"], todo["id"], "Write")
    await _task(client, member, sprint["id"], todo["id"], "Review")

    r = await client.post("/api/lists/copy", headers=member, json={"id": todo["id"], "sprintId": sprint["id"]})
    copy = r.json()
    assert copy["title"] == "Todo - Copy"
    assert copy["order"] == 3

    r = await client.get(f"/api/sprints/{sprint['id']}", headers=member)
    lists = r.json()["lists"]
    assert [t["title"] for t in lists[2]["tasks"]] == ["Write", "Review"]


@pytest.mark.asyncio
async def test_list_update_delete_and_reorder(client: httpx.AsyncClient, member) -> None:
    sprint = await _sprint(client, member)
    todo = await _list(client, member, sprint["id"], "Todo")
    done = await _list(client, member, sprint["id"], "Done")

    r = await client.patch(
        "/api/lists", headers=member, json={"id": todo["id"], "sprintId": sprint["id"], "title": "Backlog"}
    )
    assert r.json()["title"] == "Backlog"

    r = await client.put(
        "/api/lists/order",
        headers=member,
        json={
            "sprintId": sprint["id"],
            "items": [{"id": todo["id"], "order": 2}, {"id": done["id"], "order": 1}],
        },
    )
    assert [tl["title"] for tl in r.json()] == ["Done", "Backlog"]

    r = await client.request(
        "DELETE", "/api/lists", headers=member, json={"id": done["id"], "sprintId": sprint["id"]}
    )
    assert r.status_code == 200
    r = await client.get(f"/api/sprints/{sprint['id']}", headers=member)
    assert [tl["title"] for tl in r.json()["lists"]] == ["Backlog"]


@pytest.mark.asyncio
async def test_task_update_copy_delete(client: httpx.AsyncClient, member) -> None:
    sprint = await _sprint(client, member)
    todo = await _list(client, member, sprint["id"], "Todo")
    task = await _task(client, member, sprint["id"], todo["id"], "Write")

    r = await client.patch(
        "/api/tasks",
        headers=member,
        json={
            "id": task["id"],
            "sprintId": sprint["id"],
            "description": "Draft chapter one",
            "dueDate": "2026-03-01T09:00:00",
        },
    )
    updated = r.json()
    assert updated["title"] == "Write"
    assert updated["description"] == "Draft chapter one"
    assert updated["dueDate"].startswith("2026-03-01T09:00:00")

    r = await client.post("/api/tasks/copy", headers=member, json={"id": task["id"], "sprintId": sprint["id"]})
    copy = r.json()
    assert copy["title"] == "Write - Copy"
    assert copy["order"] == 2
    assert copy["description"] == "Draft chapter one"

    r = await client.request(
        "DELETE", "/api/tasks", headers=member, json={"id": task["id"], "sprintId": sprint["id"]}
    )
    assert r.status_code == 200

    r = await client.get(f"/api/audit-logs/TASK/{task['id']}", headers=member)
    assert [e["action"] for e in r.json()] == ["DELETE", "UPDATE", "CREATE"]


@pytest.mark.asyncio
async def test_reorder_tasks_across_lists(client: httpx.AsyncClient, member) -> None:
    sprint = await _sprint(client, member)
    todo = await _list(client, member, sprint["id"], "Todo")
    done = await _list(client, member, sprint["id"], "Done")
    task = await _task(client, member, sprint["id"], todo["id"], "Write")

    r = await client.put(
        "/api/tasks/order",
        headers=member,
        json={"sprintId": sprint["id"], "items": [{"id": task["id"], "order": 1, "listId": done["id"]}]},
    )
    assert r.status_code == 200
    r = await client.get(f"/api/sprints/{sprint['id']}", headers=member)
    lists = r.json()["lists"]
    assert lists[0]["tasks"] == []
    assert [t["id"] for t in lists[1]["tasks"]] == [task["id"]]


@pytest.mark.asyncio
async def test_task_needs_list_in_sprint(client: httpx.AsyncClient, member) -> None:
    sprint = await _sprint(client, member)
    other = await _sprint(client, member, "Sprint Two")
    todo = await _list(client, member, other["id"], "Todo")
    r = await client.post(
        "/api/tasks", headers=member, json={"title": "Write", "sprintId": sprint["id"], "listId": todo["id"]}
    )
    assert r.status_code == 404
    assert r.json() == {"error": "List not found"}


@pytest.mark.asyncio
async def test_grab_template_sprint(client: httpx.AsyncClient, member, auth) -> None:
    template = await _sprint(client, member, "Exam Prep", template=True)
    todo = await _list(client, member, template["id"], "Todo")
    await _task(client, member, template["id"], todo["id"], "Past papers")

    other = auth("user_b", org_id=OTHER_ORG)
    r = await client.get("/api/sprints/templates", headers=other)
    assert [s["id"] for s in r.json()] == [template["id"]]

    r = await client.post("/api/grab-sprint", headers=other, json={"sprintId": template["id"]})
    assert r.status_code == 200
    copy_id = r.json()["sprintId"]
    assert copy_id != template["id"]

    r = await client.get(f"/api/sprints/{copy_id}", headers=other)
    board = r.json()
    assert board["orgId"] == OTHER_ORG
    assert board["isTemplate"] is False
    assert [t["title"] for t in board["lists"][0]["tasks"]] == ["Past papers"]

    r = await client.post("/api/grab-sprint", headers=other, json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing sprintId"}
    r = await client.post(
        "/api/grab-sprint", headers=other, json={"sprintId": "00000000-0000-0000-0000-000000000000"}
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_malformed_sprint_ids(client: httpx.AsyncClient, member, auth) -> None:
    r = await client.get("/api/sprint/not-a-uuid", headers=auth("user_c"))
    assert r.status_code == 404
    assert r.json() == {"error": "Sprint not found"}

    r = await client.post("/api/grab-sprint", headers=member, json={"sprintId": ""})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing sprintId"}

    r = await client.post("/api/grab-sprint", headers=member, json={"sprintId": "not-a-uuid"})
    assert r.status_code == 404
    assert r.json() == {"error": "Sprint not found"}
