from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from hoa_portal.auth.jwt import get_current_user, require_minimum_role, require_roles


class DummyUser:
    def __init__(self, role: str):
        self.role = role

    def has_any_role(self, *role_names: str) -> bool:
        return self.role in role_names


def _build_app() -> FastAPI:
    app = FastAPI()

    @app.get("/settings")
    def settings_route(_: object = Depends(require_roles("Admin"))):
        return {"ok": True}

    @app.get("/visitors")
    def visitors_route(_: object = Depends(require_roles("Admin", "Staff"))):
        return {"ok": True}

    @app.get("/cctv")
    def cctv_route(_: object = Depends(require_minimum_role("Staff"))):
        return {"ok": True}

    return app


def test_settings_route_requires_admin_role():
    app = _build_app()
    client = TestClient(app)

    app.dependency_overrides[get_current_user] = lambda: DummyUser("Homeowner")
    response = client.get("/settings")
    assert response.status_code == 403

    app.dependency_overrides[get_current_user] = lambda: DummyUser("Admin")
    response = client.get("/settings")
    assert response.status_code == 200


def test_visitor_log_allows_admin_or_staff():
    app = _build_app()
    client = TestClient(app)

    app.dependency_overrides[get_current_user] = lambda: DummyUser("Tenant")
    response = client.get("/visitors")
    assert response.status_code == 403

    app.dependency_overrides[get_current_user] = lambda: DummyUser("Staff")
    response = client.get("/visitors")
    assert response.status_code == 200

    app.dependency_overrides[get_current_user] = lambda: DummyUser("Admin")
    response = client.get("/visitors")
    assert response.status_code == 200


def test_minimum_role_follows_priority():
    app = _build_app()
    client = TestClient(app)

    app.dependency_overrides[get_current_user] = lambda: DummyUser("Homeowner")
    assert client.get("/cctv").status_code == 403

    app.dependency_overrides[get_current_user] = lambda: DummyUser("Admin")
    assert client.get("/cctv").status_code == 200
