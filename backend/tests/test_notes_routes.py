import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import ProgrammingError

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated
from app.modules.notes.router import router as notes_router
from app.modules.notes.routes import images as images_routes
from app.modules.notes.routes import ocr as ocr_routes
from app.modules.notes.services import ocr_service


@pytest.fixture
def current(user):
    return {"user": user}


@pytest.fixture
def client(session_factory, current):
    app = FastAPI()
    app.include_router(notes_router)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[GetDb] = _get_db
    app.dependency_overrides[RequireAuthenticated] = lambda: current["user"]
    with TestClient(app) as test_client:
        yield test_client


def _create_folder(client, name, parent_id=None):
    response = client.post("/api/folders", json={"Name": name, "ParentFolderId": parent_id})
    assert response.status_code == 201
    return response.json()


def _create_note(client, folder_id, title, content=""):
    response = client.post("/api/notes", json={"FolderId": folder_id, "Title": title, "Content": content})
    assert response.status_code == 201
    return response.json()


def test_folder_tree_and_paths(client):
    root = _create_folder(client, "Work")
    child = _create_folder(client, "Projects", root["Id"])

    assert root["IsRoot"] is True
    assert child["FullPath"] == "Work/Projects"
    assert [folder["Id"] for folder in client.get("/api/folders").json()] == [root["Id"]]
    children = client.get(f"/api/folders/{root['Id']}/children").json()
    assert [folder["Name"] for folder in children] == ["Projects"]

    response = client.post(f"/api/folders/{root['Id']}/move", json={"ParentFolderId": child["Id"]})
    assert response.status_code == 400

    response = client.patch(f"/api/folders/{root['Id']}", json={"Name": "   "})
    assert response.status_code == 400


def test_notes_are_private(client, current, other_user):
    folder = _create_folder(client, "Inbox")
    note = _create_note(client, folder["Id"], "Secret", "hidden")

    current["user"] = other_user
    assert client.get(f"/api/notes/{note['Id']}").status_code == 404
    assert client.post("/api/notes", json={"FolderId": folder["Id"], "Title": "x"}).status_code == 404


def test_note_detail_tags_and_reminders(client):
    folder = _create_folder(client, "Inbox")
    note = _create_note(client, folder["Id"], "Groceries", "milk")

    response = client.put(f"/api/notes/{note['Id']}/tags", json={"Names": ["food", "Home", "food"]})
    assert response.status_code == 200
    assert sorted(tag["Name"] for tag in response.json()) == ["Home", "food"]

    response = client.post(
        f"/api/notes/{note['Id']}/reminders",
        json={"Title": "Buy milk", "RepeatType": "weekly"},
    )
    assert response.status_code == 201
    assert response.json()["RepeatType"] == "weekly"
    assert response.json()["NoteTitle"] == "Groceries"

    detail = client.get(f"/api/notes/{note['Id']}").json()
    assert [tag["Name"] for tag in detail["Tags"]] == ["food", "Home"]
    assert [reminder["Title"] for reminder in detail["Reminders"]] == ["Buy milk"]

    response = client.patch(f"/api/notes/{note['Id']}", json={"Title": "Shopping"})
    assert response.json()["Title"] == "Shopping"
    assert response.json()["Content"] == "milk"


def test_rich_content_round_trip(client):
    folder = _create_folder(client, "Inbox")
    note = _create_note(client, folder["Id"], "Styled")

    assert client.get(f"/api/notes/{note['Id']}/rich-content").status_code == 404
    response = client.put(
        f"/api/notes/{note['Id']}/rich-content",
        files={"file": ("body.rtf", b"{\\rtf1 hello}", "application/rtf")},
    )
    assert response.status_code == 200
    assert response.json()["HasRichContent"] is True
    assert client.get(f"/api/notes/{note['Id']}/rich-content").content == b"{\\rtf1 hello}"


def test_run_reminders_requires_admin(client, current, admin):
    assert client.post("/api/reminders/run").status_code == 403
    current["user"] = admin
    response = client.post("/api/reminders/run")
    assert response.status_code == 200
    assert response.json()["Processed"] == 0


def test_image_upload_with_background_ocr(client, session_factory, monkeypatch, png_bytes):
    monkeypatch.setattr(images_routes, "OpenSession", session_factory)
    monkeypatch.setattr(ocr_service.pytesseract, "image_to_string", lambda image, lang=None: "Hello\nWorld")
    folder = _create_folder(client, "Scans")
    note = _create_note(client, folder["Id"], "Scan")

    response = client.post(
        f"/api/notes/{note['Id']}/images",
        files={"file": ("scan.png", png_bytes, "image/png")},
        data={"run_ocr": "true"},
    )
    assert response.status_code == 201
    image_id = response.json()["Id"]

    image = client.get(f"/api/images/{image_id}").json()
    assert image["OcrStatus"] == "Complete"
    assert image["OcrText"] == "Hello\nWorld"
    assert client.get(f"/api/images/{image_id}/file").content == png_bytes

    response = client.post(
        f"/api/notes/{note['Id']}/images",
        files={"file": ("notes.txt", b"plain text", "text/plain")},
    )
    assert response.status_code == 415


def test_ocr_note_endpoint(client, monkeypatch, png_bytes):
    monkeypatch.setattr(ocr_service.pytesseract, "image_to_string", lambda image, lang=None: "Receipt\nTotal 5")
    folder = _create_folder(client, "Scans")

    response = client.post(
        "/api/notes/ocr/note",
        files={"file": ("scan.png", png_bytes, "image/png")},
        data={"folder_id": str(folder["Id"])},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["Content"] == "Receipt\nTotal 5"
    assert len(body["Images"]) == 1

    monkeypatch.setattr(ocr_service.pytesseract, "image_to_string", lambda image, lang=None: "")
    response = client.post("/api/notes/ocr", files={"file": ("scan.png", png_bytes, "image/png")})
    assert response.status_code == 422


def test_search_and_trash_flow(client):
    folder = _create_folder(client, "Recipes")
    note = _create_note(client, folder["Id"], "Crème brûlée", "caramelized sugar")

    response = client.get("/api/search", params={"q": "creme"})
    assert response.status_code == 200
    assert [hit["Note"]["Id"] for hit in response.json()["Results"]] == [note["Id"]]

    assert client.post(f"/api/folders/{folder['Id']}/trash").status_code == 200
    assert client.get("/api/search", params={"q": "creme"}).json()["Results"] == []
    assert client.get("/api/trash/count").json()["Count"] == 2

    trash = client.get("/api/trash").json()
    assert [item["Id"] for item in trash["Folders"]] == [folder["Id"]]
    assert [item["Id"] for item in trash["Notes"]] == [note["Id"]]

    restored = client.post(f"/api/folders/{folder['Id']}/restore")
    assert restored.status_code == 200
    assert client.get(f"/api/notes/{note['Id']}").json()["IsInTrash"] is False

    client.post(f"/api/notes/{note['Id']}/trash")
    purge = client.delete("/api/trash").json()
    assert purge == {"NotesDeleted": 1, "FoldersDeleted": 0, "ImagesDeleted": 0}
    assert client.get(f"/api/notes/{note['Id']}").status_code == 404


def test_image_and_ocr_routes_report_missing_schema(client, monkeypatch, png_bytes):
    def _missing_table(*args, **kwargs):
        raise ProgrammingError("SELECT 1", {}, Exception("no such table: NoteImages"))

    monkeypatch.setattr(images_routes, "ListImages", _missing_table)
    monkeypatch.setattr(images_routes, "AddImage", _missing_table)
    monkeypatch.setattr(ocr_routes, "CreateNoteFromOcr", _missing_table)

    response = client.get("/api/notes/1/images")
    assert response.status_code == 503
    assert "alembic upgrade head" in response.json()["detail"]

    upload = {"file": ("scan.png", png_bytes, "image/png")}
    assert client.post("/api/notes/1/images", files=upload).status_code == 503
    assert client.post("/api/notes/ocr/note", files=upload, data={"folder_id": "1"}).status_code == 503
