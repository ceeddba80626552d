from app.models.visitor_counter import VisitorCounter
from app.routers.visitors import increment_visitor_count
from app.routers.visitors import router as visitors_router


def test_count_is_zero_without_visits(build_client):
    client = build_client(visitors_router)

    response = client.get("/api/visitors/1")

    assert response.status_code == 200
    assert response.json() == {"tenant_id": 1, "count": 0}


def test_register_visit_increments_per_tenant(build_client):
    client = build_client(visitors_router)

    counts = [client.post("/api/visitors/1").json()["count"] for _ in range(3)]
    other = client.post("/api/visitors/2").json()

    assert counts == [1, 2, 3]
    assert other == {"tenant_id": 2, "count": 1}
    assert client.get("/api/visitors/1").json()["count"] == 3


def test_increment_updates_existing_row_in_place(db_session):
    db_session.add(VisitorCounter(tenant_id=1, count=41))
    db_session.commit()

    assert increment_visitor_count(db_session, 1) == 42
    assert db_session.query(VisitorCounter).count() == 1
