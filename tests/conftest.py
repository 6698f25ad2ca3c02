import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Must be set before core.config is imported anywhere
_TMP = tempfile.mkdtemp(prefix="cookfeed-tests-")
os.environ["COOKFEED_DB_PATH"] = os.path.join(_TMP, "import.db")
os.environ["COOKFEED_SECRET_KEY"] = "test-secret"
os.environ["COOKFEED_LOG_FILE"] = ""
os.environ["COOKFEED_RATE_LIMIT_ENABLED"] = "0"
os.environ["COOKFEED_UNCATEGORIZED_FAVORITES_PUBLIC"] = "1"

import pytest
from fastapi.testclient import TestClient

from core.auth import create_access_token
from core.config import Settings
from core.database import DatabaseManager, get_db
from logic.policy import AccessPolicy


@pytest.fixture
def database(tmp_path):
    return DatabaseManager(tmp_path / "cookfeed.db")


@pytest.fixture
def policy(database):
    return AccessPolicy(database, Settings())


@pytest.fixture
def client(database):
    from main import app

    app.dependency_overrides[get_db] = lambda: database
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(database, email, name=None, hashed_password="not-a-real-hash"):
    user_id = database.create_user(email, name or email.split("@")[0].title(), hashed_password)
    assert user_id is not None
    return user_id


def make_recipe(database, owner_id, visibility="public", title="Tomato soup"):
    return database.create_recipe(owner_id, {
        "title": title,
        "visibility": visibility,
        "tags": ["soup"],
        "ingredients": ["4 tomatoes", "1 onion"],
        "instructions": "Simmer, then blend.",
    })


def auth_headers(email):
    return {"Authorization": f"Bearer {create_access_token({'sub': email})}"}
