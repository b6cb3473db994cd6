from flask import Blueprint, render_template
from sqlalchemy import func, select

from app.bizadmin.db import db_session
from app.bizadmin.modules.contracts.models import Contract
from app.bizadmin.modules.customers.models import Customer
from app.bizadmin.modules.offerings.models import Offering

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    s = db_session()
    stats = {
        "customers": s.scalar(select(func.count(Customer.id))) or 0,
        "active_customers": s.scalar(select(func.count(Customer.id)).where(Customer.active.is_(True))) or 0,
        "offerings": s.scalar(select(func.count(Offering.id))) or 0,
        "active_contracts": s.scalar(select(func.count(Contract.id)).where(Contract.status == "ACTIVE")) or 0,
        "contracted_value": s.scalar(
            select(func.coalesce(func.sum(Contract.total_value), 0)).where(Contract.status.in_(("ACTIVE", "COMPLETED")))
        ),
    }
    return render_template("index.html", stats=stats)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for container probes. No DB access, minimal overhead.
    """
    return "ok", 200
