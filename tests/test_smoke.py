import pytest

from app.bizadmin import create_app
from app.bizadmin.models import Base


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True

    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_dashboard_renders(client):
    r = client.get("/")
    assert r.status_code == 200
    assert b"Dashboard" in r.data
    assert b"R$ 0,00" in r.data


@pytest.mark.parametrize(
    "path,title",
    [
        ("/customers", b"Customers"),
        ("/categories", b"Categories"),
        ("/services", b"Services"),
        ("/contracts", b"Contracts"),
        ("/addresses", b"Addresses"),
        ("/items", b"Items"),
    ],
)
def test_empty_lists_render_empty_state(client, path, title):
    r = client.get(path)
    assert r.status_code == 200
    assert title in r.data
    assert b"No " in r.data and b"found" in r.data


@pytest.mark.parametrize("path", ["/customers/new", "/categories/new", "/services/new", "/contracts/new", "/addresses/new", "/items/new"])
def test_create_forms_render(client, path):
    r = client.get(path)
    assert r.status_code == 200
    assert b"<form" in r.data


def test_unknown_page_is_404(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert b"Page not found" in r.data


def test_production_requires_real_settings(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "change-me")
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/bizadmin")
    with pytest.raises(RuntimeError):
        create_app()
