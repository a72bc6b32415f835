from app.main import app
from fastapi.testclient import TestClient


def test_health_ok():
    # context manager runs the lifespan (schema init) as a real server would
    with TestClient(app) as client:
        res = client.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert body["db"] is True


def test_root_message():
    client = TestClient(app)
    res = client.get("/")
    assert res.status_code == 200
    assert res.json() == {"message": "Backend running successfully"}
