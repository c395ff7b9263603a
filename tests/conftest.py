import uuid
from datetime import datetime, timedelta, timezone

import pytest
import sys
from pathlib import Path

# Ensure repository root is on sys.path for `import techblog`
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import select


BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """A fixed instant ``minutes`` after BASE_TIME, for deterministic ordering."""
    return BASE_TIME + timedelta(minutes=minutes)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


# -----------------------
#  Store-level fixtures (real SQLite file through aiosqlite)
# -----------------------

@pytest.fixture()
async def engine(tmp_path):
    from techblog.db import sa

    eng = sa.build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await sa.create_tables(eng)
    yield eng
    await eng.dispose()


@pytest.fixture()
def session_factory(engine):
    from techblog.db import sa

    return sa.build_sessionmaker(engine)


@pytest.fixture()
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture()
async def author(session):
    from techblog.models.auth_models import User

    user = User(id=uuid.uuid4(), name="Ada", email="ada@example.com", password_hash="x")
    session.add(user)
    await session.commit()
    return user


@pytest.fixture()
def make_category(session):
    from techblog.services.categories import create_category

    async def _make(name="DevOps", **fields):
        return await create_category(session, {"name": name, **fields})

    return _make


@pytest.fixture()
def make_article(session, author):
    from techblog.services.articles import create_article

    async def _make(category, title, status="draft", content="Body text", now=None, **fields):
        payload = {
            "title": title,
            "content": content,
            "category_id": category.id,
            "status": status,
            **fields,
        }
        return await create_article(session, payload, author_id=author.id, now=now)

    return _make


# -----------------------
#  HTTP fixtures
# -----------------------

@pytest.fixture()
def client(monkeypatch, tmp_path):
    import techblog.db.sa as db_sa

    monkeypatch.setattr(db_sa, "DB_DSN", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")

    from techblog.core import deps as core_deps
    from techblog import main as main_mod
    from techblog.models.auth_models import User

    # Stand-in identity provider: a persisted user so author references resolve
    async def fake_current_user(session=Depends(db_sa.get_session)):
        res = await session.execute(select(User).where(User.email == "tester@example.com"))
        user = res.scalar_one_or_none()
        if user is None:
            user = User(name="Tester", email="tester@example.com", password_hash="x")
            session.add(user)
            await session.commit()
        return user

    app = main_mod.app
    app.dependency_overrides[core_deps.get_current_user] = fake_current_user

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
