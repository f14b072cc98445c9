import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from quizzy import config
from quizzy.errors import (
    ConflictError,
    EntityValidationError,
    MalformedIdentifierError,
    NotFoundError,
    register_error_handlers,
)


class _DriverError(Exception):
    pass


@pytest.fixture
def error_app():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/not-found")
    async def not_found():
        raise NotFoundError("Quiz not found")

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("Blog with this slug already exists")

    @app.get("/invalid")
    async def invalid():
        raise EntityValidationError({"title": "Path `title` is required.", "slug": "Path `slug` is required."})

    @app.get("/malformed")
    async def malformed():
        raise MalformedIdentifierError("zzz")

    @app.get("/duplicate")
    async def duplicate():
        raise IntegrityError(
            "INSERT INTO blogs ...", {}, _DriverError("UNIQUE constraint failed: blogs.slug")
        )

    @app.get("/foreign-key")
    async def foreign_key():
        raise IntegrityError(
            "INSERT INTO blogs ...", {}, _DriverError("FOREIGN KEY constraint failed")
        )

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database went away")

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "path, status, message",
    [
        ("/not-found", 404, "Quiz not found"),
        ("/conflict", 400, "Blog with this slug already exists"),
        ("/invalid", 400, "Path `title` is required., Path `slug` is required."),
        ("/malformed", 404, "Resource not found"),
        ("/duplicate", 400, "Duplicate field value entered"),
        ("/foreign-key", 500, None),
        ("/boom", 500, "database went away"),
    ],
)
def test_error_translation(error_app, path, status, message):
    response = error_app.get(path)

    assert response.status_code == status
    body = response.json()
    assert set(body) == {"message", "stack"}
    if message is not None:
        assert body["message"] == message


def test_stack_included_outside_production(error_app):
    body = error_app.get("/boom").json()

    assert "RuntimeError" in body["stack"]


def test_stack_hidden_in_production(error_app, monkeypatch):
    monkeypatch.setattr(config, "IS_PRODUCTION", True)

    body = error_app.get("/boom").json()

    assert body == {"message": "database went away", "stack": None}


def test_unknown_route_names_the_path(client):
    response = client.get("/api/quizzes/123")

    assert response.status_code == 404
    assert response.json()["message"] == "Not Found - /api/quizzes/123"


def test_validation_error_carries_field_map():
    exc = EntityValidationError({"image": "Path `image` is required."})

    assert exc.status_code == 400
    assert exc.errors == {"image": "Path `image` is required."}
    assert str(exc) == "Path `image` is required."


def test_server_errors_keep_cors_headers():
    app = FastAPI()
    register_error_handlers(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database went away")

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/boom", headers={"Origin": "http://localhost:5173"})

    assert response.status_code == 500
    assert response.json()["message"] == "database went away"
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert response.headers["access-control-allow-credentials"] == "true"
