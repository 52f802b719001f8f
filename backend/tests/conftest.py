import io
import os

import pytest
from PIL import Image
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from app.db import Base, CreateEngineForUrl  # noqa: E402
from app.modules.auth import models as auth_models  # noqa: E402,F401
from app.modules.auth.deps import ADMIN_ROLE, UserContext  # noqa: E402
from app.modules.auth.models import User  # noqa: E402
from app.modules.notes import models as notes_models  # noqa: E402,F401
from app.modules.notifications import models as notifications_models  # noqa: E402,F401


@pytest.fixture
def engine():
    created = CreateEngineForUrl("sqlite://")
    Base.metadata.create_all(created)
    yield created
    Base.metadata.drop_all(created)
    created.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def image_root(tmp_path, monkeypatch):
    root = tmp_path / "images"
    monkeypatch.setenv("IMAGE_STORAGE_ROOT", str(root))
    return root


def _create_user(db, username: str, role: str) -> UserContext:
    record = User(Username=username, PasswordHash="hashed", Role=role, FailedLoginCount=0)
    db.add(record)
    db.commit()
    db.refresh(record)
    return UserContext(Id=record.Id, Username=record.Username, Role=record.Role)


@pytest.fixture
def user(db) -> UserContext:
    return _create_user(db, "alice", "User")


@pytest.fixture
def other_user(db) -> UserContext:
    return _create_user(db, "bob", "User")


@pytest.fixture
def admin(db) -> UserContext:
    return _create_user(db, "admin", ADMIN_ROLE)


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color="white").save(buffer, format="PNG")
    return buffer.getvalue()
