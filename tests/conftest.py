"""
Pytest fixtures for the pharmacy API test suite.

Provides:
- An in-memory SQLite database per test (StaticPool, shared across threads)
- One seeded user per role, with matching ActorContext and bearer headers
- A TestClient whose get_db dependency uses the test database
- Small factories for medicines, customers and suppliers
"""
import os

# Must be set before pharmacy_api is imported: the engine is built at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pharmacy_api import models  # noqa: F401 - register models
from pharmacy_api.api.deps import get_db
from pharmacy_api.core.permissions import ActorContext, Role
from pharmacy_api.core.security import create_access_token, get_password_hash
from pharmacy_api.db.base import Base
from pharmacy_api.main import app
from pharmacy_api.models.user import User
from pharmacy_api.schemas.customer import CustomerCreate
from pharmacy_api.schemas.medicine import MedicineCreate
from pharmacy_api.schemas.supplier import SupplierCreate
from pharmacy_api.services import catalog_service

TEST_PASSWORD = "correct-horse-battery"
# bcrypt is slow on purpose; hash once per session
_TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Users and actors
# =============================================================================


@pytest.fixture
def users(db):
    """One user per role, keyed by Role."""
    created = {}
    for role in Role:
        user = User(
            name=role.value.title(),
            username=role.value.lower(),
            email=f"{role.value.lower()}@pharmacy.example.com",
            hashed_password=_TEST_PASSWORD_HASH,
            role=role.value,
        )
        db.add(user)
        created[role] = user
    db.commit()
    return created


@pytest.fixture
def password():
    """Plain-text password shared by every seeded user."""
    return TEST_PASSWORD


@pytest.fixture
def actors(users):
    return {role: ActorContext(user_id=user.id, role=role) for role, user in users.items()}


@pytest.fixture
def admin(actors):
    return actors[Role.ADMIN]


@pytest.fixture
def manager(actors):
    return actors[Role.INVENTORY_MANAGER]


@pytest.fixture
def pharmacist(actors):
    return actors[Role.PHARMACIST]


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def client(session_factory, users):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(users):
    """
    Bearer headers for a role.

    Usage::

        def test_something(client, auth_headers):
            client.get("/medicines", headers=auth_headers(Role.PHARMACIST))
    """
    def _headers(role: Role = Role.ADMIN) -> dict:
        user = users[role]
        token = create_access_token(subject=str(user.id), role=user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_medicine(db, admin):
    counter = {"n": 0}

    def _make(name: str | None = None, stock: int = 0, category: str = "General", retail_price: str = "10.00"):
        counter["n"] += 1
        return catalog_service.create_medicine(db, admin, MedicineCreate(
            name=name or f"Medicine {counter['n']}",
            category=category,
            import_price=Decimal("5.00"),
            retail_price=Decimal(retail_price),
            stock=stock,
        ))

    return _make


@pytest.fixture
def make_customer(db, admin):
    def _make(name: str = "Nguyen Van A", phone: str = "0900000001"):
        return catalog_service.create_customer(db, admin, CustomerCreate(name=name, phone=phone))

    return _make


@pytest.fixture
def make_supplier(db, admin):
    def _make(name: str = "Central Pharma"):
        return catalog_service.create_supplier(db, admin, SupplierCreate(
            name=name,
            phone="0280000000",
            address="1 Depot Street",
            contact_person="Receiving",
        ))

    return _make
