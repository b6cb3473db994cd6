import sys
from decimal import Decimal
from pathlib import Path

from sqlalchemy.orm import Session

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.bizadmin import create_app
from app.bizadmin.audit import record_event
from app.bizadmin.db import session_scope
from app.bizadmin.models import Base
from app.bizadmin.modules.categories.models import Category
from app.bizadmin.modules.offerings.models import Offering

DEMO_CATEGORIES = (
    ("Standard", "Default customer tier", "Email support"),
    ("Premium", "Customers with an active maintenance plan", "Priority support\nFree yearly review"),
    ("Corporate", "Companies with several contracts", "Dedicated account manager\nMonthly reports"),
)

# (name, description, price, category name)
DEMO_OFFERINGS = (
    ("Consulting hour", "One hour of specialist consulting", Decimal("180.00"), None),
    ("Monthly maintenance", "Preventive maintenance visit", Decimal("450.00"), "Premium"),
    ("Onboarding package", "Setup and training for new customers", Decimal("1200.00"), "Corporate"),
)


def seed_only(s: Session) -> dict[str, int]:
    """
    Seed demo categories and services in an idempotent way (matched by name).
    Existing rows are never overwritten.
    """
    created = {"categories": 0, "offerings": 0}

    def ensure_category(name: str, description: str, benefits: str) -> Category:
        c = s.query(Category).filter(Category.name == name).one_or_none()
        if not c:
            c = Category(name=name, description=description, benefits=benefits, active=True)
            s.add(c)
            s.flush()
            created["categories"] += 1
            record_event(s, action="category.seed", entity_type="Category", entity_id=str(c.id))
        return c

    categories = {name: ensure_category(name, desc, benefits) for name, desc, benefits in DEMO_CATEGORIES}

    for name, description, price, category_name in DEMO_OFFERINGS:
        if s.query(Offering).filter(Offering.name == name).one_or_none():
            continue
        o = Offering(
            name=name,
            description=description,
            price=price,
            active=True,
            category_id=categories[category_name].id if category_name else None,
        )
        s.add(o)
        s.flush()
        created["offerings"] += 1
        record_event(s, action="offering.seed", entity_type="Service", entity_id=str(o.id))

    return created


def main() -> None:
    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    with session_scope(app) as s:
        created = seed_only(s)

    print("Initialized database.")
    print(f"Database: {app.config['DATABASE_URL']}")
    print(f"Seeded {created['categories']} categories and {created['offerings']} services.")


if __name__ == "__main__":
    main()
