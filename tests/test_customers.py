from datetime import date

import pytest
from sqlalchemy import select

from app.bizadmin import create_app
from app.bizadmin.db import session_scope
from app.bizadmin.models import AuditEvent, Base
from app.bizadmin.modules.categories.service import CategoryService
from app.bizadmin.modules.customers.models import Customer
from app.bizadmin.modules.customers.service import CustomerService


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _seed(app):
    with session_scope(app) as s:
        gold = CategoryService(s).create({"name": "Gold", "active": True})
        silver = CategoryService(s).create({"name": "Silver", "active": True})
        svc = CustomerService(s)
        svc.create({"name": "Ana Souza", "cpf": "11122233344", "category": gold["id"], "active": True})
        svc.create({"name": "Bruno Lima", "cpf": "55566677788", "category": silver["id"], "active": False})
        svc.create({"name": "Carla Dias", "cpf": "99988877766", "category": gold["id"], "active": True})
    return gold["id"], silver["id"]


def _customer(app, cpf):
    with session_scope(app) as s:
        return s.scalars(select(Customer).where(Customer.cpf == cpf)).one_or_none()


def test_create_customer_formats_masks_and_redirects(app, client):
    r = client.post(
        "/customers/new",
        data={
            "name": "Diego Alves",
            "cpf": "12345678909",
            "email": "diego@example.com",
            "phone": "11999998888",
            "birth_date": "1990-05-20",
            "category": "",
            "active": "1",
        },
    )
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/customers")

    c = _customer(app, "123.456.789-09")
    assert c is not None
    assert c.name == "Diego Alves"
    assert c.phone == "(11) 99999-8888"
    assert c.birth_date == date(1990, 5, 20)
    assert c.active is True
    assert c.category_id is None

    r = client.get("/customers")
    assert b"Customer created successfully" in r.data
    assert b"123.456.789-09" in r.data
    assert b"20/05/1990" in r.data

    with session_scope(app) as s:
        ev = s.scalars(select(AuditEvent).where(AuditEvent.action == "customer.create")).one()
        assert ev.entity_type == "Customer"
        assert ev.entity_id == str(c.id)


def test_unchecked_checkbox_saves_inactive(app, client):
    r = client.post("/customers/new", data={"name": "Elisa Rocha", "cpf": "12345678909"})
    assert r.status_code == 302
    assert _customer(app, "123.456.789-09").active is False


def test_invalid_customer_form_rerenders_with_errors(app, client):
    r = client.post("/customers/new", data={"name": "", "cpf": "123", "email": "not-an-email"})
    assert r.status_code == 400
    assert b"Please correct the errors in the form" in r.data
    assert b"This field is required" in r.data
    assert b"Enter a valid CPF (000.000.000-00)" in r.data
    assert b"Invalid email address" in r.data

    with session_scope(app) as s:
        assert s.scalars(select(Customer)).all() == []


def test_future_birth_date_is_rejected(app, client):
    r = client.post(
        "/customers/new",
        data={"name": "Felipe Costa", "cpf": "12345678909", "birth_date": "2999-01-01", "active": "1"},
    )
    assert r.status_code == 400
    assert b"Birth date cannot be in the future" in r.data


def test_duplicate_cpf_shows_service_error(app, client):
    _seed(app)
    r = client.post("/customers/new", data={"name": "Outra Ana", "cpf": "111.222.333-44", "active": "1"})
    assert r.status_code == 400
    assert b"A customer with this CPF already exists." in r.data


def test_edit_customer_prefills_and_updates(app, client):
    gold, silver = _seed(app)
    ana = _customer(app, "111.222.333-44")

    r = client.get(f"/customers/{ana.id}/edit")
    assert r.status_code == 200
    assert b"Edit Customer" in r.data
    assert b'value="Ana Souza"' in r.data
    assert f'<option value="{gold}" selected'.encode() in r.data

    r = client.post(
        f"/customers/{ana.id}/edit",
        data={"name": "Ana Souza Lima", "cpf": "11122233344", "category": str(silver), "active": "1"},
    )
    assert r.status_code == 302
    updated = _customer(app, "111.222.333-44")
    assert updated.name == "Ana Souza Lima"
    assert updated.category_id == silver

    r = client.get("/customers")
    assert b"Customer updated successfully" in r.data


def test_edit_missing_customer_redirects_with_message(client):
    r = client.get("/customers/999/edit", follow_redirects=True)
    assert r.status_code == 200
    assert b"Customer not found" in r.data


def test_cancel_returns_to_list(client):
    r = client.post("/customers/new", data={"action": "cancel", "name": ""})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/customers")


def test_filters_dispatch_to_searches(app, client):
    gold, _silver = _seed(app)

    r = client.get("/customers?name=ana")
    assert b"Ana Souza" in r.data
    assert b"Bruno Lima" not in r.data
    assert b"1 customer found" in r.data

    r = client.get("/customers?cpf=555.666")
    assert b"Bruno Lima" in r.data
    assert b"Ana Souza" not in r.data

    r = client.get(f"/customers?category={gold}")
    assert b"Ana Souza" in r.data
    assert b"Carla Dias" in r.data
    assert b"Bruno Lima" not in r.data

    r = client.get("/customers?active=1")
    assert b"Bruno Lima" not in r.data
    assert b"Carla Dias" in r.data

    r = client.get("/customers?name=zzz")
    assert b"No customers found" in r.data


def test_sorting_by_column(app, client):
    _seed(app)
    r = client.get("/customers?sort=name&dir=desc")
    body = r.data
    assert body.index(b"Carla Dias") < body.index(b"Bruno Lima") < body.index(b"Ana Souza")

    r = client.get("/customers?sort=name&dir=asc")
    body = r.data
    assert body.index(b"Ana Souza") < body.index(b"Bruno Lima") < body.index(b"Carla Dias")


def test_delete_requires_confirmation(app, client):
    _seed(app)
    bruno = _customer(app, "555.666.777-88")

    r = client.get(f"/customers/{bruno.id}/delete")
    assert r.status_code == 200
    assert b"Bruno Lima" in r.data
    assert b"cannot be undone" in r.data

    r = client.post(f"/customers/{bruno.id}/delete", data={})
    assert r.status_code == 302
    assert _customer(app, "555.666.777-88") is not None

    r = client.post(f"/customers/{bruno.id}/delete", data={"confirm": "yes"})
    assert r.status_code == 302
    assert _customer(app, "555.666.777-88") is None

    r = client.get("/customers")
    assert b"deleted successfully" in r.data

    with session_scope(app) as s:
        ev = s.scalars(select(AuditEvent).where(AuditEvent.action == "customer.delete")).one()
        assert ev.entity_id == str(bruno.id)


def test_delete_missing_customer_redirects(client):
    r = client.post("/customers/999/delete", data={"confirm": "yes"}, follow_redirects=True)
    assert r.status_code == 200
    assert b"Customer not found" in r.data
