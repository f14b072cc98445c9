import os
import tempfile

os.environ.setdefault("QUIZZY_DB_PATH", os.path.join(tempfile.mkdtemp(), "quizzy.db"))
os.environ.setdefault("QUIZZY_SECRET_KEY", "test-secret-key")
os.environ["QUIZZY_ADMIN_PASSWORD"] = "correct-horse"
os.environ.pop("AXIOM_TOKEN", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from quizzy.db.database import create_db_engine, get_db, init_db
from quizzy.db.models import Author
from quizzy.main import app
from quizzy.routes.auth import create_access_token, limiter
from quizzy.schemas import BlogIn
from quizzy.services import blogs as blogs_service


@pytest.fixture
def engine(tmp_path):
    db_engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add_author(db, **fields):
    author = Author(**fields)
    db.add(author)
    db.commit()
    db.refresh(author)
    return author


@pytest.fixture
def admin(db):
    return _add_author(
        db,
        name="Ada Admin",
        email="ada@quizzy.test",
        picture="https://img.quizzy.test/ada.png",
        role="admin",
    )


@pytest.fixture
def reader(db):
    return _add_author(db, name="Rita Reader", email="rita@quizzy.test", role="user")


@pytest.fixture
def auth_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(admin.id)}"}


@pytest.fixture
def blog_payload():
    def build(**overrides):
        payload = {
            "title": "Intro to AI",
            "slug": "intro-to-ai",
            "excerpt": "What machine learning means for your study sessions.",
            "content": "# Intro\n\nQuizzes generated from your notes.",
            "image": "https://img.quizzy.test/ai.png",
            "tags": ["ai", "study"],
            "isPublished": False,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def make_blog(db, admin, blog_payload):
    """Create a blog straight through the service layer."""
    def build(**overrides):
        return blogs_service.create_blog(db, admin, BlogIn(**blog_payload(**overrides)))
    return build
