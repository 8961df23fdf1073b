"""
tests.test_notes

Tutor onboarding plus the note authoring and reading flows.
"""

from __future__ import annotations

import httpx
import pytest

ADMIN_ID = "user_admin"
TUTOR_ID = "user_tutor"
STUDENT_ID = "user_student"


async def _make_tutor(client: httpx.AsyncClient, auth) -> None:
    r = await client.post("/api/admin/tutors", headers=auth(ADMIN_ID), json={"userId": TUTOR_ID})
    assert r.status_code == 201, r.text


async def _published_note(client: httpx.AsyncClient, auth, *, chapters: int = 2) -> tuple[str, list[str]]:
    await _make_tutor(client, auth)
    tutor = auth(TUTOR_ID)
    r = await client.post("/api/notes", headers=tutor, json={"title": "Organic Chemistry"})
    note_id = r.json()["id"]
    await client.patch(
        f"/api/notes/{note_id}",
        headers=tutor,
        json={"description": "Carbon", "imageUrl": "https://img/n.png", "subject": "Chemistry"},
    )
    chapter_ids = []
    for i in range(chapters):
        r = await client.post(f"/api/notes/{note_id}/chapters", headers=tutor, json={"title": f"Ch {i + 1}"})
        chapter_id = r.json()["id"]
        await client.patch(
            f"/api/notes/{note_id}/chapters/{chapter_id}",
            headers=tutor,
            json={"videoUrl": f"https://video/{i}"},
        )
        r = await client.patch(f"/api/notes/{note_id}/chapters/{chapter_id}/publish", headers=tutor)
        assert r.status_code == 200, r.text
        chapter_ids.append(chapter_id)
    r = await client.patch(f"/api/notes/{note_id}/publish", headers=tutor)
    assert r.status_code == 200, r.text
    return note_id, chapter_ids


# --- tutors ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_admin_tutor_registry(client: httpx.AsyncClient, auth) -> None:
    r = await client.post("/api/admin/tutors", headers=auth("user_x"), json={"userId": TUTOR_ID})
    assert r.status_code == 403

    await _make_tutor(client, auth)
    r = await client.post("/api/admin/tutors", headers=auth(ADMIN_ID), json={"userId": TUTOR_ID})
    assert r.status_code == 400
    assert r.json() == {"error": "User is already an active tutor"}

    r = await client.get("/api/admin/tutors", headers=auth(ADMIN_ID), params={"filter": "active"})
    body = r.json()
    assert [t["userId"] for t in body["tutors"]] == [TUTOR_ID]
    assert body["pagination"] == {"current": 1, "limit": 20, "total": 1, "pages": 1}

    r = await client.delete(f"/api/admin/tutors/{TUTOR_ID}", headers=auth(ADMIN_ID))
    assert r.status_code == 200
    r = await client.delete(f"/api/admin/tutors/{TUTOR_ID}", headers=auth(ADMIN_ID))
    assert r.json() == {"error": "Tutor is already inactive"}
    r = await client.delete("/api/admin/tutors/nobody", headers=auth(ADMIN_ID))
    assert r.status_code == 404

    r = await client.get("/api/admin/tutors", headers=auth(ADMIN_ID), params={"filter": "inactive"})
    assert r.json()["tutors"][0]["isActive"] is False

    # Re-adding an inactive tutor reactivates the same row.
    r = await client.post(
        "/api/admin/tutors", headers=auth(ADMIN_ID), json={"userId": TUTOR_ID, "role": "SENIOR_TUTOR"}
    )
    assert r.status_code == 201
    assert r.json()["tutor"]["role"] == "SENIOR_TUTOR"
    assert r.json()["tutor"]["isActive"] is True


@pytest.mark.asyncio
async def test_create_note_requires_tutor(client: httpx.AsyncClient, auth) -> None:
    r = await client.post("/api/notes", json={"title": "X"})
    assert r.status_code == 401

    r = await client.post("/api/notes", headers=auth(STUDENT_ID), json={"title": "X"})
    assert r.status_code == 401

    r = await client.post("/api/notes", headers=auth(STUDENT_ID, roles=["tutor"]), json={"title": "X"})
    assert r.status_code == 200

    await _make_tutor(client, auth)
    r = await client.post("/api/notes", headers=auth(TUTOR_ID), json={"title": "Algebra"})
    assert r.status_code == 200
    note = r.json()
    assert note["title"] == "Algebra"
    assert note["userId"] == TUTOR_ID
    assert note["isPublished"] is False


# --- authoring ---------------------------------------------------------------


@pytest.mark.asyncio
async def test_publish_rules(client: httpx.AsyncClient, auth) -> None:
    await _make_tutor(client, auth)
    tutor = auth(TUTOR_ID)
    note_id = (await client.post("/api/notes", headers=tutor, json={"title": "Waves"})).json()["id"]

    r = await client.patch(f"/api/notes/{note_id}/publish", headers=tutor)
    assert r.status_code == 400
    assert r.json() == {"error": "Please fill all required fields"}

    await client.patch(
        f"/api/notes/{note_id}",
        headers=tutor,
        json={"description": "d", "imageUrl": "https://img", "subject": "Physics"},
    )
    r = await client.patch(f"/api/notes/{note_id}/publish", headers=tutor)
    assert r.json() == {"error": "At least one published chapter is required"}

    chapter_id = (
        await client.post(f"/api/notes/{note_id}/chapters", headers=tutor, json={"title": "Intro"})
    ).json()["id"]
    r = await client.patch(f"/api/notes/{note_id}/chapters/{chapter_id}/publish", headers=tutor)
    assert r.json() == {"error": "Either videoUrl or sessionLink is required"}

    await client.patch(
        f"/api/notes/{note_id}/chapters/{chapter_id}",
        headers=tutor,
        json={"sessionLink": "https://meet/x", "isPublished": True},
    )
    r = await client.get(f"/api/notes/{note_id}", headers=tutor)
    assert r.json()["chapters"][0]["isPublished"] is False

    r = await client.patch(f"/api/notes/{note_id}/chapters/{chapter_id}/publish", headers=tutor)
    assert r.json()["isPublished"] is True
    r = await client.patch(f"/api/notes/{note_id}/publish", headers=tutor)
    assert r.json()["isPublished"] is True

    # Unpublishing the last published chapter unpublishes the note.
    await client.patch(f"/api/notes/{note_id}/chapters/{chapter_id}/unpublish", headers=tutor)
    r = await client.get("/api/notes/mine", headers=tutor)
    assert r.json()[0]["isPublished"] is False


@pytest.mark.asyncio
async def test_deleting_last_published_chapter_unpublishes_note(client: httpx.AsyncClient, auth) -> None:
    note_id, chapter_ids = await _published_note(client, auth, chapters=1)
    tutor = auth(TUTOR_ID)
    r = await client.delete(f"/api/notes/{note_id}/chapters/{chapter_ids[0]}", headers=tutor)
    assert r.status_code == 200
    r = await client.get(f"/api/notes/{note_id}", headers=tutor)
    assert r.json()["isPublished"] is False
    assert r.json()["chapters"] == []


@pytest.mark.asyncio
async def test_only_owner_edits(client: httpx.AsyncClient, auth) -> None:
    note_id, chapter_ids = await _published_note(client, auth)
    other = auth("user_other", roles=["tutor"])
    r = await client.patch(f"/api/notes/{note_id}", headers=other, json={"title": "Hijack"})
    assert r.status_code == 404
    r = await client.delete(f"/api/notes/{note_id}/chapters/{chapter_ids[0]}", headers=other)
    assert r.status_code == 404
    r = await client.delete(f"/api/notes/{note_id}", headers=other)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_chapters_are_appended_and_reordered(client: httpx.AsyncClient, auth) -> None:
    await _make_tutor(client, auth)
    tutor = auth(TUTOR_ID)
    note_id = (await client.post("/api/notes", headers=tutor, json={"title": "Cells"})).json()["id"]
    first = (await client.post(f"/api/notes/{note_id}/chapters", headers=tutor, json={"title": "A"})).json()
    second = (await client.post(f"/api/notes/{note_id}/chapters", headers=tutor, json={"title": "B"})).json()
    assert (first["position"], second["position"]) == (1, 2)

    r = await client.put(
        f"/api/notes/{note_id}/chapters/reorder",
        headers=tutor,
        json={"list": [{"id": first["id"], "position": 2}, {"id": second["id"], "position": 1}]},
    )
    assert r.json() == {"message": "Success", "updated": 2}
    r = await client.get(f"/api/notes/{note_id}", headers=tutor)
    assert [c["title"] for c in r.json()["chapters"]] == ["B", "A"]


# --- reading -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_drafts_are_hidden_from_readers(client: httpx.AsyncClient, auth) -> None:
    await _make_tutor(client, auth)
    note_id = (await client.post("/api/notes", headers=auth(TUTOR_ID), json={"title": "Draft"})).json()["id"]

    r = await client.get(f"/api/notes/{note_id}", headers=auth(STUDENT_ID))
    assert r.status_code == 404
    r = await client.get("/api/notes")
    assert r.json() == []


@pytest.mark.asyncio
async def test_catalogue_search(client: httpx.AsyncClient, auth) -> None:
    await _published_note(client, auth)
    r = await client.get("/api/notes", params={"title": "organic"})
    assert len(r.json()) == 1
    assert r.json()[0]["progress"] is None
    assert len(r.json()[0]["chapters"]) == 2

    r = await client.get("/api/notes", params={"subject": "Physics"})
    assert r.json() == []


@pytest.mark.asyncio
async def test_enrollment_and_progress(client: httpx.AsyncClient, auth) -> None:
    note_id, chapter_ids = await _published_note(client, auth)
    student = auth(STUDENT_ID)

    r = await client.post(f"/api/notes/{note_id}/enroll", headers=student)
    assert r.status_code == 201
    r = await client.post(f"/api/notes/{note_id}/enroll", headers=student)
    assert r.json() == {"error": "Already enrolled"}

    r = await client.get(f"/api/notes/{note_id}/chapters/{chapter_ids[0]}", headers=student)
    body = r.json()
    assert body["isEnrolled"] is True
    assert body["userProgress"] is None
    assert body["nextChapter"]["id"] == chapter_ids[1]

    r = await client.put(
        f"/api/notes/{note_id}/chapters/{chapter_ids[0]}/progress",
        headers=student,
        json={"isCompleted": "yes"},
    )
    assert r.status_code == 400

    r = await client.put(
        f"/api/notes/{note_id}/chapters/{chapter_ids[0]}/progress",
        headers=student,
        json={"isCompleted": True},
    )
    assert r.json()["isCompleted"] is True

    r = await client.get("/api/notes", headers=student)
    assert r.json()[0]["progress"] == 50

    r = await client.get("/api/dashboard/notes", headers=student)
    assert [n["id"] for n in r.json()["notesInProgress"]] == [note_id]
    assert r.json()["completedNotes"] == []

    await client.put(
        f"/api/notes/{note_id}/chapters/{chapter_ids[1]}/progress",
        headers=student,
        json={"isCompleted": True},
    )
    r = await client.get("/api/dashboard/notes", headers=student)
    assert [n["id"] for n in r.json()["completedNotes"]] == [note_id]
    assert r.json()["completedNotes"][0]["progress"] == 100

    r = await client.delete(f"/api/notes/{note_id}/enroll", headers=student)
    assert r.status_code == 200
    r = await client.delete(f"/api/notes/{note_id}/enroll", headers=student)
    assert r.status_code == 404
    r = await client.get("/api/dashboard/notes", headers=student)
    assert r.json() == {"completedNotes": [], "notesInProgress": []}


@pytest.mark.asyncio
async def test_next_chapter_only_for_enrolled_readers(client: httpx.AsyncClient, auth) -> None:
    note_id, chapter_ids = await _published_note(client, auth)
    r = await client.get(f"/api/notes/{note_id}/chapters/{chapter_ids[0]}", headers=auth(STUDENT_ID))
    assert r.json()["isEnrolled"] is False
    assert r.json()["nextChapter"] is None


@pytest.mark.asyncio
async def test_admin_tutor_pages(client: httpx.AsyncClient, auth) -> None:
    user_ids = [f"user_t{i}" for i in range(5)]
    for user_id in user_ids:
        r = await client.post("/api/admin/tutors", headers=auth(ADMIN_ID), json={"userId": user_id})
        assert r.status_code == 201

    seen: list[str] = []
    for page in (1, 2, 3):
        r = await client.get("/api/admin/tutors", headers=auth(ADMIN_ID), params={"page": page, "limit": 2})
        body = r.json()
        assert body["pagination"] == {"current": page, "limit": 2, "total": 5, "pages": 3}
        seen += [t["userId"] for t in body["tutors"]]
    assert sorted(seen) == user_ids

    r = await client.get("/api/admin/tutors", headers=auth(ADMIN_ID), params={"page": 4, "limit": 2})
    assert r.json()["tutors"] == []
