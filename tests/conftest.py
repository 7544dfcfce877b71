"""Shared fixtures: in-memory database, seeded users and an API client."""

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.base import Base
from database.connection import get_db
from models import user, category, material, product, voucher, order  # noqa: F401
from models.category import Category
from models.material import Material
from models.product import Product, ProductStatus
from models.user import User, UserRole
from models.voucher import Voucher, VoucherType, VoucherStatus
from core.security import Principal, EnforcingPolicy
from routers.auth import get_authorization_policy
from services.auth import create_token_for_user
from main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def policy():
    return EnforcingPolicy()


@pytest.fixture
def client(db, policy):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_authorization_policy] = lambda: policy
    # No context manager: startup would create tables on the configured database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_emails():
    """Capture outgoing email instead of touching a transport."""
    with patch("services.notification.deliver_email", return_value=True) as mock_deliver:
        yield mock_deliver


# ------------------------------------------------------------------ #
#  Seed data                                                           #
# ------------------------------------------------------------------ #


def make_user(db, username, role=UserRole.CUSTOMER, **fields):
    account = User(
        username=username,
        email=f"{username}@example.com",
        password_hash="not-a-real-hash",
        role=role,
        is_active=True,
        **fields,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def make_product(db, seller, name="Jade Bangle", price="120.00", stock=10, **fields):
    item = Product(
        seller_id=seller.id,
        name=name,
        description=f"{name} description",
        price=Decimal(price),
        stock=stock,
        status=fields.pop("status", ProductStatus.ACTIVE),
        **fields,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def make_voucher(db, seller, code="SAVE10", **fields):
    now = datetime.utcnow()
    values = dict(
        seller_id=seller.id,
        code=code,
        name=f"{code} voucher",
        type=VoucherType.PERCENTAGE,
        value=Decimal("10"),
        min_order_amount=Decimal("0"),
        usage_limit=100,
        used_count=0,
        status=VoucherStatus.ACTIVE,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=30),
    )
    values.update(fields)
    entry = Voucher(**values)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def principal_for(account):
    return Principal(id=account.id, email=account.email, role=account.role, name=account.display_name)


def auth_headers(account):
    return {"Authorization": f"Bearer {create_token_for_user(account)}"}


@pytest.fixture
def seller(db):
    return make_user(db, "seller", role=UserRole.SELLER, first_name="Mei", last_name="Tan")


@pytest.fixture
def other_seller(db):
    return make_user(db, "otherseller", role=UserRole.SELLER)


@pytest.fixture
def customer(db):
    return make_user(db, "customer", first_name="Aisha", last_name="Rahman", phone="+60123456789")


@pytest.fixture
def ring(db, seller):
    return make_product(db, seller, name="Sapphire Ring", price="2499.99", stock=5)


@pytest.fixture
def necklace(db, seller):
    return make_product(db, seller, name="Pearl Necklace", price="350.00", stock=2)


@pytest.fixture
def category_entry(db, seller):
    entry = Category(seller_id=seller.id, name="Rings", active=True)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


@pytest.fixture
def material_entry(db, seller):
    entry = Material(seller_id=seller.id, name="Gold", active=True)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry
