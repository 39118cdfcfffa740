import pytest
from fastapi.testclient import TestClient

from checklist.core.config import Settings
from checklist.main import create_app
from checklist.store import MemoryClientStore, SqlClientStore


def make_sql_store() -> SqlClientStore:
    store = SqlClientStore.from_settings(Settings(db_url="sqlite://"))
    store.init_schema()
    return store


@pytest.fixture(params=["memory", "sql"])
def store(request):
    s = MemoryClientStore() if request.param == "memory" else make_sql_store()
    yield s
    s.close()


@pytest.fixture
def static_dir(tmp_path):
    root = tmp_path / "public"
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_text("<html><body>checklist spa</body></html>", encoding="utf-8")
    (root / "assets" / "app.js").write_text("console.log('app');", encoding="utf-8")
    return root


@pytest.fixture
def settings(static_dir):
    return Settings(store_backend="memory", static_dir=static_dir)


@pytest.fixture
def client(settings, store):
    app = create_app(settings, store)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sql_store():
    s = make_sql_store()
    yield s
    s.close()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in (
        "DATABASE_URL",
        "DB_URL",
        "DATABASE_SSL",
        "STORE_BACKEND",
        "STATIC_DIR",
        "ADMIN_RESET_ENABLED",
        "PORT",
    ):
        monkeypatch.delenv(name, raising=False)
