import os
import tempfile
from decimal import Decimal

# Settings are read at import time, so the environment goes first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_ADMIN"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="storefront-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.monitoring import monitoring
from app.core.security import create_access_token, hash_password
from app.db.deps import get_db
from app.db.init_db import create_tables
from app.db.session import Base, build_engine
from app.main import app
from app.models.models import CartItem, User, UserRole
from app.models.product import Product


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_tables(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    monitoring.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make_user(username=None, role=UserRole.user, password="secret123"):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            password=hash_password(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_product(db):
    def _make_product(name="Widget", price="10.00", stock=10, category="General", added_by=None, **extra):
        product = Product(
            name=name,
            description=extra.pop("description", f"{name} description"),
            price=Decimal(price),
            category=category,
            stock_quantity=stock,
            added_by=added_by,
            image_urls=extra.pop("image_urls", []),
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make_product


@pytest.fixture()
def add_to_cart(db):
    def _add_to_cart(user, product, quantity=1):
        item = CartItem(user_id=user.id, product_id=product.id, quantity=quantity)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _add_to_cart


@pytest.fixture()
def user(make_user):
    return make_user("alice")


@pytest.fixture()
def admin(make_user):
    return make_user("boss", role=UserRole.admin)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}


@pytest.fixture()
def headers_for():
    return auth_headers


@pytest.fixture()
def user_headers(user):
    return auth_headers(user)


@pytest.fixture()
def admin_headers(admin):
    return auth_headers(admin)
