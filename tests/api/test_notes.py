"""Tests for the notes API."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from services.api.app.models.issues import Issue
from services.api.app.models.notes import Note

URL = "/api/notes"


@pytest.fixture
def alice(make_user):
    return make_user(login="alice")


@pytest.fixture
def bob(make_user):
    return make_user(login="bob")


@pytest.fixture
def make_note(db_session):
    def _make(user, title="note", **fields) -> Note:
        note = Note(user_id=user.id, type=fields.pop("type", "text"), title=title, **fields)
        db_session.add(note)
        db_session.commit()
        return note

    return _make


@pytest.fixture
def make_issue(db_session, make_project):
    def _make(user, github_repo_id=42, number=1) -> Issue:
        project = make_project(user, github_repo_id=github_repo_id)
        issue = Issue(project_id=project.id, github_issue_number=number, title="An issue")
        db_session.add(issue)
        db_session.commit()
        return issue

    return _make


class TestCreateNote:
    """Tests for POST /api/notes."""

    def test_create_minimal(self, client: TestClient, alice, login_as):
        login_as(alice)

        response = client.post(URL, json={"type": "text", "title": "Remember"})

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Remember"
        assert data["type"] == "text"
        assert data["userId"] == alice.id
        assert data["color"] == "#fff9c4"
        assert data["isPinned"] is False
        assert data["issueId"] is None
        assert "createdAt" in data and "updatedAt" in data

    def test_create_with_issue_and_category(
        self, client: TestClient, alice, login_as, make_issue
    ):
        issue = make_issue(alice)
        login_as(alice)

        response = client.post(
            URL,
            json={
                "type": "checklist",
                "title": "Steps",
                "content": "- [ ] one",
                "issueId": issue.id,
                "category": "todo",
                "color": "#c8e6c9",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["issueId"] == issue.id
        assert data["category"] == "todo"
        assert data["color"] == "#c8e6c9"

    def test_content_stored_verbatim(self, client: TestClient, alice, login_as):
        login_as(alice)
        content = "<script>alert(1)</script>"
        response = client.post(URL, json={"type": "text", "title": "x", "content": content})
        assert response.json()["content"] == content

    def test_issue_of_other_user(
        self, client: TestClient, db_session: Session, alice, bob, login_as, make_issue
    ):
        issue = make_issue(bob)
        login_as(alice)

        response = client.post(URL, json={"type": "text", "title": "x", "issueId": issue.id})

        assert response.status_code == 400
        assert response.json()["detail"] == "Issue not found"
        assert db_session.execute(select(func.count()).select_from(Note)).scalar_one() == 0

    def test_unknown_issue(self, client: TestClient, alice, login_as):
        login_as(alice)
        response = client.post(URL, json={"type": "text", "title": "x", "issueId": "missing"})
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "no type"},
            {"type": "text"},
            {"type": "text", "title": ""},
            {"type": "diagram", "title": "bad type"},
        ],
    )
    def test_validation_errors(self, client: TestClient, alice, login_as, payload):
        login_as(alice)
        response = client.post(URL, json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Validation error"

    def test_requires_auth(self, client: TestClient):
        response = client.post(URL, json={"type": "text", "title": "x"})
        assert response.status_code == 401


class TestListNotes:
    """Tests for GET /api/notes."""

    def test_only_own_notes(self, client: TestClient, alice, bob, login_as, make_note):
        make_note(alice, title="mine")
        make_note(bob, title="theirs")
        login_as(alice)

        response = client.get(URL)

        assert response.status_code == 200
        titles = [n["title"] for n in response.json()["notes"]]
        assert titles == ["mine"]

    def test_pinned_first_then_newest(self, client: TestClient, alice, login_as, make_note):
        make_note(alice, title="old")
        make_note(alice, title="pinned", is_pinned=True)
        make_note(alice, title="new")
        login_as(alice)

        titles = [n["title"] for n in client.get(URL).json()["notes"]]

        assert titles == ["pinned", "new", "old"]

    def test_filter_by_category(self, client: TestClient, alice, login_as, make_note):
        make_note(alice, title="a", category="bugs")
        make_note(alice, title="b", category="ideas")
        login_as(alice)

        titles = [n["title"] for n in client.get(URL, params={"category": "bugs"}).json()["notes"]]

        assert titles == ["a"]

    def test_filter_by_issue(self, client: TestClient, alice, login_as, make_note, make_issue):
        issue = make_issue(alice)
        make_note(alice, title="linked", issue_id=issue.id)
        make_note(alice, title="loose")
        login_as(alice)

        response = client.get(URL, params={"issueId": issue.id})

        assert [n["title"] for n in response.json()["notes"]] == ["linked"]

    def test_empty(self, client: TestClient, alice, login_as):
        login_as(alice)
        assert client.get(URL).json() == {"notes": []}

    def test_requires_auth(self, client: TestClient):
        assert client.get(URL).status_code == 401


class TestUpdateNote:
    """Tests for PATCH /api/notes/{id}."""

    def test_update_fields(self, client: TestClient, alice, login_as, make_note):
        note = make_note(alice, title="before", content="body")
        login_as(alice)

        response = client.patch(f"{URL}/{note.id}", json={"title": "after", "isPinned": True})

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "after"
        assert data["isPinned"] is True
        assert data["content"] == "body"

    def test_null_fields_ignored(self, client: TestClient, alice, login_as, make_note):
        note = make_note(alice, title="keep", content="body")
        login_as(alice)

        response = client.patch(f"{URL}/{note.id}", json={"content": None, "color": "#ffffff"})

        assert response.status_code == 200
        assert response.json()["content"] == "body"
        assert response.json()["color"] == "#ffffff"

    def test_not_found(self, client: TestClient, alice, login_as):
        login_as(alice)
        response = client.patch(f"{URL}/missing", json={"title": "x"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Note not found"

    def test_other_users_note(
        self, client: TestClient, db_session: Session, alice, bob, login_as, make_note
    ):
        note = make_note(bob, title="bob's")
        login_as(alice)

        response = client.patch(f"{URL}/{note.id}", json={"title": "hijacked"})

        assert response.status_code == 403
        assert db_session.get(Note, note.id).title == "bob's"

    def test_ownership_checked_before_body(self, client: TestClient, alice, bob, login_as, make_note):
        note = make_note(bob)
        login_as(alice)
        assert client.patch(f"{URL}/{note.id}", json={}).status_code == 403

    def test_no_fields(self, client: TestClient, alice, login_as, make_note):
        note = make_note(alice)
        login_as(alice)
        response = client.patch(f"{URL}/{note.id}", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "No fields to update"

    def test_only_nulls_is_no_fields(self, client: TestClient, alice, login_as, make_note):
        note = make_note(alice)
        login_as(alice)
        response = client.patch(f"{URL}/{note.id}", json={"title": None})
        assert response.status_code == 400


class TestDeleteNote:
    """Tests for DELETE /api/notes/{id}."""

    def test_delete(self, client: TestClient, db_session: Session, alice, login_as, make_note):
        note = make_note(alice)
        note_id = note.id
        login_as(alice)

        response = client.delete(f"{URL}/{note_id}")

        assert response.status_code == 204
        assert response.content == b""
        assert db_session.get(Note, note_id) is None

    def test_not_found(self, client: TestClient, alice, login_as):
        login_as(alice)
        assert client.delete(f"{URL}/missing").status_code == 404

    def test_other_users_note(
        self, client: TestClient, db_session: Session, alice, bob, login_as, make_note
    ):
        note = make_note(bob)
        note_id = note.id
        login_as(alice)

        assert client.delete(f"{URL}/{note_id}").status_code == 403
        assert db_session.get(Note, note_id) is not None
