"""
Pytest fixtures for the finance API test suite.

Provides:
- An in-memory SQLite store shared by the test and the app
- A TestClient whose session resolver can be pinned to any identity
- Small factories for users and movements
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from common.enum import MovementTypeEnum, RoleEnum
from database import Base, get_db
from main import app
from models import Movement, User
from schemas import Identity
from security import resolve_session


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
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """Pin the session resolver to an identity (None means anonymous)"""

    def _login(identity):
        app.dependency_overrides[resolve_session] = lambda: identity
        return client

    return _login


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(name="User", role=RoleEnum.USER, email=None):
        counter["n"] += 1
        user = User(
            name=name,
            email=email or f"user{counter['n']}@finance.io",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_movement(db_session):
    def _make(user, amount="10", type=MovementTypeEnum.INCOME, concept="Sale", date=None):
        movement = Movement(
            amount=amount,
            concept=concept,
            type=type,
            date=date or datetime(2026, 1, 1),
            user_id=user.id,
        )
        db_session.add(movement)
        db_session.commit()
        db_session.refresh(movement)
        return movement

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", role=RoleEnum.ADMIN)


@pytest.fixture
def admin_client(login_as, admin):
    return login_as(Identity(id=admin.id, name=admin.name, email=admin.email, role=RoleEnum.ADMIN))


@pytest.fixture
def user_client(login_as, make_user):
    user = make_user(name="Reader")
    return login_as(Identity(id=user.id, name=user.name, email=user.email, role=RoleEnum.USER))
