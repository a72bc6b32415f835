from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from app.main import app
from app.models.stock_change import StockChange
from app.repositories.stock_change_repo import StockChangeRepository
from app.schemas.product_schema import ProductCreate, ProductUpdate
from app.services.product_service import ProductService

client = TestClient(app)


def _product(stock=5):
    res = client.post("/api/products", json={"name": "Sugar", "stock": stock})
    assert res.status_code == 201
    return res.json()["id"]


def _history(pid):
    res = client.get(f"/api/products/{pid}/history")
    assert res.status_code == 200
    return res.json()


def test_update_without_stock_writes_no_history():
    pid = _product()
    assert client.put(f"/api/products/{pid}", json={"unit": "kg"}).status_code == 200
    assert _history(pid) == []


def test_update_to_same_stock_writes_no_history():
    pid = _product(5)
    assert client.put(f"/api/products/{pid}", json={"stock": 5}).status_code == 200
    assert _history(pid) == []


def test_stock_change_writes_one_record():
    pid = _product(5)
    res = client.put(f"/api/products/{pid}", json={"stock": 8})
    assert res.status_code == 200
    assert res.json()["stock"] == 8

    logs = _history(pid)
    assert len(logs) == 1
    assert logs[0]["product_id"] == pid
    assert logs[0]["old_stock"] == 5
    assert logs[0]["new_stock"] == 8
    assert logs[0]["changed_by"] == "system"
    assert logs[0]["timestamp"]


def test_actor_label_is_recorded():
    pid = _product(5)
    client.put(f"/api/products/{pid}", json={"stock": 2, "changedBy": "alice"})
    assert _history(pid)[0]["changed_by"] == "alice"


def test_history_is_newest_first():
    pid = _product(5)
    client.put(f"/api/products/{pid}", json={"stock": 8})
    client.put(f"/api/products/{pid}", json={"stock": 2})
    logs = _history(pid)
    assert [(l["old_stock"], l["new_stock"]) for l in logs] == [(8, 2), (5, 8)]


def test_create_and_delete_write_no_history(db):
    pid = _product(7)
    assert _history(pid) == []
    client.delete(f"/api/products/{pid}")
    assert db.query(StockChange).count() == 0


def test_history_survives_product_delete():
    pid = _product(1)
    client.put(f"/api/products/{pid}", json={"stock": 3})
    client.delete(f"/api/products/{pid}")
    assert len(_history(pid)) == 1


def test_failed_audit_write_leaves_product_untouched(monkeypatch):
    pid = _product(5)

    def broken_record(self, *args, **kwargs):
        raise SQLAlchemyError("audit table unavailable")

    monkeypatch.setattr(StockChangeRepository, "record", broken_record)
    res = client.put(f"/api/products/{pid}", json={"stock": 9, "name": "Brown Sugar"})
    assert res.status_code == 500
    assert res.json()["detail"] == "Internal server error"

    monkeypatch.undo()
    product = client.get(f"/api/products/{pid}").json()
    assert product["stock"] == 5
    assert product["name"] == "Sugar"
    assert _history(pid) == []


def test_service_update_records_change(db):
    svc = ProductService(db)
    p = svc.create(ProductCreate(name="Salt", stock=10))
    svc.update(p.id, ProductUpdate(stock=4, changedBy="bob"))
    logs = svc.history(p.id)
    assert len(logs) == 1
    assert (logs[0].old_stock, logs[0].new_stock, logs[0].changed_by) == (10, 4, "bob")
