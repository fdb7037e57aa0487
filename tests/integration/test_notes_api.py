"""Integration tests for /api/notes (rules backend, categories policy)"""

from __future__ import annotations

from noteq.storage import NoteCreate, NoteRepository, UserRepository

TEST_EMAIL = "tester@example.com"


def capture(client, text, **extra):
    response = client.post("/api/notes", json={"text": text, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def test_capture_splits_notes_and_todos(client):
    body = capture(client, "Need eggs\nCall the dentist tomorrow\nIdea: build a birdhouse")

    assert [n["text"] for n in body["notes"]] == ["Idea: build a birdhouse"]
    note = body["notes"][0]
    assert note["category_slug"] == "ideas"
    assert note["category_label"] == "Ideas"
    assert note["confidence"] == 0.9
    assert note["source"] == "rules"

    assert sorted(t["content"] for t in body["todos"]) == ["Buy eggs", "Call the dentist tomorrow"]
    assert all(t["is_done"] is False for t in body["todos"])


def test_capture_without_keywords_is_uncategorized(client):
    body = capture(client, "sunset photo from the pier")

    note = body["notes"][0]
    assert note["category_slug"] == "uncategorized"
    assert note["category_label"] == "Other"
    assert note["confidence"] < 0.35


def test_capture_stores_html_and_image_on_first_note(client):
    body = capture(
        client,
        "budget review\nsunset photo",
        textHtml='<p onclick="x()">budget review</p><script>bad()</script>',
        imageData="data:image/png;base64,iVBORw0KGgo=",
    )

    notes = {n["text"]: n for n in body["notes"]}
    first = notes["budget review"]
    assert "script" not in first["text_html"]
    assert "onclick" not in first["text_html"]
    assert first["image_data"].startswith("data:image/png")
    assert notes["sunset photo"]["text_html"] is None
    assert notes["sunset photo"]["image_data"] is None


def test_image_only_capture_creates_image_note(client):
    body = capture(client, "", imageData="data:image/png;base64,iVBORw0KGgo=")

    assert len(body["notes"]) == 1
    note = body["notes"][0]
    assert note["text"] == "Image note"
    assert note["category_slug"] == "uncategorized"
    assert note["confidence"] == 0.2


def test_capture_requires_text_or_image(client):
    response = client.post("/api/notes", json={"text": "   "})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"


def test_capture_rejects_oversized_text(client):
    response = client.post("/api/notes", json={"text": "x" * 4001})

    assert response.status_code == 400
    assert response.json()["details"] == "Invalid fields: text"


def test_list_notes_newest_first(client):
    capture(client, "first thought about the sea")
    capture(client, "second thought about the sky")

    notes = client.get("/api/notes").json()["notes"]

    assert [n["text"] for n in notes] == [
        "second thought about the sky",
        "first thought about the sea",
    ]


def test_notes_are_private_per_user(client, switch_user):
    capture(client, "my private journal entry")

    switch_user("someone-else@example.com")
    assert client.get("/api/notes").json()["notes"] == []


def test_reassign_category(client):
    note_id = capture(client, "sunset photo")["notes"][0]["id"]

    response = client.patch(f"/api/notes/{note_id}", json={"category": "ideas"})

    assert response.status_code == 200
    assert response.json()["note"]["category_slug"] == "ideas"
    assert response.json()["note"]["category_name"] == "Ideas"


def test_reassign_unknown_category_is_400(client):
    note_id = capture(client, "sunset photo")["notes"][0]["id"]

    response = client.patch(f"/api/notes/{note_id}", json={"category": "astrology"})

    assert response.status_code == 400
    assert response.json()["error"] == "Unknown category"


def test_reassign_missing_note_is_404(client):
    response = client.patch("/api/notes/does-not-exist", json={"category": "ideas"})

    assert response.status_code == 404
    assert response.json() == {"error": "Note not found", "details": None}


def test_extract_todos_from_stored_note(client):
    user_id = UserRepository.upsert(TEST_EMAIL).id
    note = NoteRepository.create(
        NoteCreate(user_id=user_id, text="call the plumber; need nails", category_slug="tasks")
    )

    response = client.post(f"/api/notes/{note.id}/todos")

    assert response.status_code == 201
    todos = response.json()["todos"]
    assert [t["content"] for t in todos] == ["Call the plumber", "Buy nails"]
    assert {t["source_note_id"] for t in todos} == {note.id}


def test_extract_todos_unknown_note_is_404(client):
    assert client.post("/api/notes/nope/todos").status_code == 404


def test_delete_note_keeps_extracted_todos(client):
    note_id = capture(client, "garage is a mess")["notes"][0]["id"]
    todo = client.post("/api/todos", json={"content": "Clean garage", "sourceNoteId": note_id}).json()[
        "todo"
    ]
    assert todo["source_note_id"] == note_id

    assert client.delete(f"/api/notes/{note_id}").json() == {"deleted": True}
    assert client.delete(f"/api/notes/{note_id}").status_code == 404

    todos = client.get("/api/todos").json()["todos"]
    assert [t["content"] for t in todos] == ["Clean garage"]
    assert todos[0]["source_note_id"] is None


def test_note_label_attach_and_detach(client):
    note_id = capture(client, "sunset photo")["notes"][0]["id"]

    first = client.post(f"/api/notes/{note_id}/labels", json={"name": "travel"})
    second = client.post(f"/api/notes/{note_id}/labels", json={"name": "TRAVEL"})

    assert first.status_code == 200
    assert [lb["name"] for lb in first.json()["labels"]] == ["Travel"]
    assert second.json()["labels"] == first.json()["labels"]

    label_id = first.json()["labels"][0]["id"]
    response = client.delete(f"/api/notes/{note_id}/labels", params={"labelId": label_id})
    assert response.json() == {"labels": []}

    listed = client.get("/api/notes").json()["notes"][0]
    assert listed["labels"] == []


def test_note_label_detach_requires_label_id(client):
    note_id = capture(client, "sunset photo")["notes"][0]["id"]

    response = client.delete(f"/api/notes/{note_id}/labels")

    assert response.status_code == 400
    assert response.json()["error"] == "labelId is required"


def test_note_label_invalid_name(client):
    note_id = capture(client, "sunset photo")["notes"][0]["id"]

    response = client.post(f"/api/notes/{note_id}/labels", json={"name": "???"})

    assert response.status_code == 400
