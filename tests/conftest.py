import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from backend.config import Settings
from backend.dashboard import DashboardService
from backend.database import Database
from backend.lifecycle import TaskLifecycle
from backend.main import create_app
from backend.security import CredentialStore
from backend.store import TaskStore

TEST_SECRET = "test-session-secret-0123456789abcdef"


# 💡 Отдельный файл БД на каждый тест
@pytest.fixture()
def settings(tmp_path):
    return Settings(session_secret=TEST_SECRET, database_url=f"sqlite:///{tmp_path / 'test.db'}")


# 💡 Создаём и удаляем таблицы вокруг теста
@pytest.fixture()
def database(settings):
    database = Database(settings.database_url)
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture()
def app(settings, database):
    return create_app(settings, database=database)


# 💡 HTTP-клиент с ASGITransport
@pytest.fixture()
async def aclient(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def db_session(database):
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def store(db_session):
    return TaskStore(db_session)


@pytest.fixture()
def lifecycle(store):
    return TaskLifecycle(store)


@pytest.fixture()
def dashboard(store):
    return DashboardService(store)


@pytest.fixture()
def credentials(db_session):
    return CredentialStore(db_session)


@pytest.fixture()
def alice(credentials):
    return credentials.register("alice", "alice-pass")


@pytest.fixture()
def bob(credentials):
    return credentials.register("bob", "bob-pass")

