import os
import shutil
import tempfile

# point the app at throwaway storage before anything imports app.config
_TMP = tempfile.mkdtemp(prefix="inventory-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOADS_DIR"] = os.path.join(_TMP, "uploads")
os.environ["IMPORT_SWEEP_ENABLED"] = "false"

import pytest

from app.db import SessionLocal, init_db


@pytest.fixture(autouse=True)
def fresh_db():
    # Recreate DB fresh for every test
    init_db(reset=True)
    yield


@pytest.fixture
def uploads():
    path = os.environ["UPLOADS_DIR"]
    os.makedirs(path, exist_ok=True)
    for name in os.listdir(path):
        os.remove(os.path.join(path, name))
    yield path


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_TMP, ignore_errors=True)
