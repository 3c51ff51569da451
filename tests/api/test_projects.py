"""Tests for the projects API."""

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from services.api.app.models.projects import Project

URL = "/api/projects"


class TestCreateProject:
    """Tests for POST /api/projects."""

    def test_create(self, client: TestClient, db_session: Session, make_user, login_as):
        user = make_user()
        login_as(user)

        response = client.post(
            URL, json={"githubRepoId": 42, "name": "demo-repo", "description": "Demo"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["githubRepoId"] == 42
        assert data["name"] == "demo-repo"
        assert data["userId"] == user.id

        project = db_session.execute(select(Project)).scalar_one()
        assert project.id == data["id"]

    def test_repository_already_linked(
        self, client: TestClient, make_user, make_project, login_as
    ):
        make_project(make_user(login="first"), github_repo_id=42)
        login_as(make_user(login="second"))

        response = client.post(URL, json={"githubRepoId": 42, "name": "dup"})

        assert response.status_code == 409

    def test_concurrent_link_loses_on_unique_constraint(
        self, client: TestClient, db_session: Session, make_user, make_project, login_as, mocker
    ):
        """A link that passes the duplicate check but fails on insert is still a 409."""
        make_project(make_user(login="first"), github_repo_id=42)
        login_as(make_user(login="second"))
        mocker.patch(
            "services.api.app.api.routers.projects._linked_project", return_value=None
        )

        response = client.post(URL, json={"githubRepoId": 42, "name": "dup"})

        assert response.status_code == 409
        assert response.json() == {"detail": "repository already linked to a project"}
        rows = db_session.execute(select(Project)).scalars().all()
        assert [p.name for p in rows] == ["demo-repo"]

    def test_validation(self, client: TestClient, make_user, login_as):
        login_as(make_user())
        assert client.post(URL, json={"githubRepoId": 0, "name": "x"}).status_code == 400
        assert client.post(URL, json={"githubRepoId": 1, "name": ""}).status_code == 400
        assert client.post(URL, json={"name": "x"}).status_code == 400

    def test_requires_auth(self, client: TestClient):
        assert client.post(URL, json={"githubRepoId": 42, "name": "x"}).status_code == 401


class TestListProjects:
    """Tests for GET /api/projects."""

    def test_lists_own_projects_newest_first(
        self, client: TestClient, make_user, make_project, login_as
    ):
        owner = make_user(login="owner")
        make_project(owner, github_repo_id=1, name="older")
        make_project(owner, github_repo_id=2, name="newer")
        make_project(make_user(login="other"), github_repo_id=3, name="not-mine")
        login_as(owner)

        response = client.get(URL)

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["newer", "older"]
