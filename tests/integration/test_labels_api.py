"""Integration tests for /api/labels and the labels taxonomy policy"""

from __future__ import annotations


def create_label(client, name, **extra):
    response = client.post("/api/labels", json={"name": name, **extra})
    assert response.status_code == 201, response.text
    return response.json()["label"]


def test_creating_same_label_twice_returns_same_id(client):
    first = create_label(client, "urgent")
    second = create_label(client, "urgent")

    assert first["id"] == second["id"]
    assert first["name"] == "Urgent"
    assert len(client.get("/api/labels").json()["labels"]) == 1


def test_label_names_unique_ignoring_case(client):
    work = create_label(client, "Work")
    again = create_label(client, "work")

    assert again["id"] == work["id"]
    assert [lb["name"] for lb in client.get("/api/labels").json()["labels"]] == ["Work"]


def test_create_label_color(client):
    assert create_label(client, "Errands", color="#123abc")["color"] == "#123abc"
    assert client.post("/api/labels", json={"name": "Bad", "color": "blue"}).status_code == 400


def test_create_label_invalid_name(client):
    assert client.post("/api/labels", json={"name": "!!!"}).status_code == 400
    assert client.post("/api/labels", json={"name": ""}).status_code == 400


def test_labels_are_private_per_user(client, switch_user):
    create_label(client, "urgent")

    switch_user("someone-else@example.com")
    assert client.get("/api/labels").json()["labels"] == []


def test_list_labels_with_counts(client):
    note_id = client.post("/api/notes", json={"text": "sunset photo"}).json()["notes"][0]["id"]
    todo_id = client.post("/api/todos", json={"content": "Frame the photo"}).json()["todo"]["id"]
    client.post(f"/api/notes/{note_id}/labels", json={"name": "photos"})
    client.post(f"/api/todos/{todo_id}/labels", json={"name": "photos"})

    labels = client.get("/api/labels").json()["labels"]

    assert len(labels) == 1
    assert labels[0]["name"] == "Photos"
    assert labels[0]["note_count"] == 1
    assert labels[0]["todo_count"] == 1


def test_rename_and_recolor(client):
    label = create_label(client, "urgent")

    response = client.patch(f"/api/labels/{label['id']}", json={"name": "asap", "color": "#ff0000"})

    assert response.status_code == 200
    assert response.json()["label"] == {"id": label["id"], "name": "Asap", "color": "#ff0000"}


def test_rename_conflict_is_400(client):
    create_label(client, "work")
    home = create_label(client, "home")

    response = client.patch(f"/api/labels/{home['id']}", json={"name": "WORK", "color": "#000000"})

    assert response.status_code == 400


def test_patch_requires_color(client):
    label = create_label(client, "urgent")

    assert client.patch(f"/api/labels/{label['id']}", json={"name": "asap"}).status_code == 400


def test_unknown_label_is_404(client):
    assert client.patch("/api/labels/nope", json={"name": "x", "color": "#000000"}).status_code == 404
    missing = "1b4e28ba-2fa1-11d2-883f-0016d3cca427"
    assert client.delete(f"/api/labels/{missing}").status_code == 404
    assert client.get(f"/api/labels/{missing}/items").status_code == 404


def test_delete_label_detaches_items(client):
    note_id = client.post("/api/notes", json={"text": "sunset photo"}).json()["notes"][0]["id"]
    label_id = client.post(f"/api/notes/{note_id}/labels", json={"name": "photos"}).json()["labels"][
        0
    ]["id"]

    assert client.delete(f"/api/labels/{label_id}").json() == {"deleted": True}
    assert client.get("/api/notes").json()["notes"][0]["labels"] == []


def test_label_items(client):
    note_id = client.post("/api/notes", json={"text": "sunset photo"}).json()["notes"][0]["id"]
    client.post("/api/notes", json={"text": "unrelated musing"})
    label_id = client.post(f"/api/notes/{note_id}/labels", json={"name": "photos"}).json()["labels"][
        0
    ]["id"]

    body = client.get(f"/api/labels/{label_id}/items").json()

    assert body["label"]["name"] == "Photos"
    assert [n["id"] for n in body["notes"]] == [note_id]
    assert body["todos"] == []
    assert body["summary"] == {"noteCount": 1, "todoCount": 0}


def test_apply_auto_links_existing_labels_only(client):
    client.post("/api/notes", json={"text": "budget spreadsheet for the client"})
    client.post("/api/todos", json={"content": "Book the doctor visit"})
    client.post("/api/notes", json={"text": "sunset photo"})
    create_label(client, "work")

    response = client.post("/api/labels/apply-auto")

    assert response.status_code == 200
    assert response.json()["summary"] == {
        "notesScanned": 2,
        "todosScanned": 1,
        "noteLinksAdded": 1,
        "todoLinksAdded": 0,
        "labelsCreated": 0,
    }
    names = [lb["name"] for lb in client.get("/api/labels").json()["labels"]]
    assert names == ["Work"]


def test_apply_auto_without_labels_scans_only(client):
    client.post("/api/notes", json={"text": "budget spreadsheet for the client"})

    summary = client.post("/api/labels/apply-auto").json()["summary"]

    assert summary["notesScanned"] == 1
    assert summary["noteLinksAdded"] == 0


def test_labels_policy_capture_labels_notes_and_todos(labels_client):
    body = labels_client.post(
        "/api/notes", json={"text": "client meeting notes\nbuy milk asap"}
    ).json()

    note = body["notes"][0]
    assert note["text"] == "client meeting notes"
    assert note["category_slug"] is None
    assert note["confidence"] == 0.0
    assert [lb["name"] for lb in note["labels"]] == ["Work"]

    todo = body["todos"][0]
    assert todo["content"] == "Buy milk asap"
    assert [lb["name"] for lb in todo["labels"]] == ["Shopping", "Urgent"]

    names = sorted(lb["name"] for lb in labels_client.get("/api/labels").json()["labels"])
    assert names == ["Shopping", "Urgent", "Work"]


def test_labels_policy_image_note_has_no_category(labels_client):
    body = labels_client.post(
        "/api/notes", json={"imageData": "data:image/png;base64,iVBORw0KGgo="}
    ).json()

    assert body["notes"][0]["text"] == "Image note"
    assert body["notes"][0]["category_slug"] is None
