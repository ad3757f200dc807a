"""Shared fixtures: a throwaway data directory, a fresh schema per test."""

import os
import tempfile

# Settings are read at import time, so point them at a temp dir first
_DATA_DIR = tempfile.mkdtemp(prefix="bribebank-test-")
os.environ["BRIBEBANK_DATA_DIR"] = _DATA_DIR
os.environ["BRIBEBANK_DB_PATH"] = os.path.join(_DATA_DIR, "test.db")
os.environ["BRIBEBANK_JWT_SECRET"] = "test-secret"
os.environ["BRIBEBANK_VAPID_PUBLIC_KEY"] = ""
os.environ["BRIBEBANK_VAPID_PRIVATE_KEY"] = ""

from dataclasses import dataclass  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from bribebank.database import engine, init_db  # noqa: E402
from bribebank.models import Family, Role, User  # noqa: E402
from bribebank.utils.security import hash_password  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    SQLModel.metadata.drop_all(engine)
    init_db()
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@dataclass
class Household:
    family: Family
    parent: User
    alice: User
    bob: User


def _add_user(session: Session, family: Family, username: str, role: Role, tickets: int = 0) -> User:
    user = User(
        family_id=family.id,
        username=username,
        password_hash=hash_password("pw"),
        display_name=username.capitalize(),
        role=role,
        ticket_balance=tickets,
    )
    session.add(user)
    return user


@pytest.fixture
def household(session) -> Household:
    """One parent and two children in the same family."""
    family = Family(name="Smith")
    session.add(family)
    session.flush()
    parent = _add_user(session, family, "mom", Role.PARENT)
    alice = _add_user(session, family, "alice", Role.CHILD)
    bob = _add_user(session, family, "bob", Role.CHILD)
    session.commit()
    for obj in (family, parent, alice, bob):
        session.refresh(obj)
    return Household(family=family, parent=parent, alice=alice, bob=bob)


@pytest.fixture
def other_household(session) -> Household:
    family = Family(name="Jones")
    session.add(family)
    session.flush()
    parent = _add_user(session, family, "dad", Role.PARENT)
    alice = _add_user(session, family, "carol", Role.CHILD)
    bob = _add_user(session, family, "dave", Role.CHILD)
    session.commit()
    for obj in (family, parent, alice, bob):
        session.refresh(obj)
    return Household(family=family, parent=parent, alice=alice, bob=bob)


@pytest.fixture
def client():
    from bribebank.main import app

    with TestClient(app) as c:
        yield c


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_family(client):
    """Register a parent over HTTP and join two children with the join code."""
    r = client.post(
        "/auth/register",
        json={
            "username": "Mom",
            "password": "secret",
            "displayName": "Mom",
            "familyName": "Smith",
        },
    )
    assert r.status_code == 201, r.text
    parent = r.json()

    children = []
    for name in ("alice", "bob"):
        r = client.post(
            "/auth/join",
            json={
                "joinCode": parent["joinCode"].lower(),
                "username": name,
                "password": "secret",
                "displayName": name.capitalize(),
            },
        )
        assert r.status_code == 201, r.text
        children.append(r.json())

    return {
        "family_id": parent["familyId"],
        "parent": parent,
        "alice": children[0],
        "bob": children[1],
        "parent_headers": _bearer(parent["token"]),
        "alice_headers": _bearer(children[0]["token"]),
        "bob_headers": _bearer(children[1]["token"]),
    }
