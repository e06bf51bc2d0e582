from __future__ import annotations

import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from potmonitor.db.session import Base, build_session_factory
from potmonitor.main import create_app
from potmonitor.models.entities import Measurement, Node, NodeToken, Pot, User, UserToken

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


class Seeder:
    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def user(self, username: str = "grower", token: str | None = None, expires_at=None) -> User:
        user = self._save(
            User(
                id=str(uuid.uuid4()),
                username=username,
                email=f"{username}-{uuid.uuid4().hex[:6]}@example.com",
                password_hash="x" * 128,
                created_at=NOW,
            )
        )
        if token:
            self._save(UserToken(id=str(uuid.uuid4()), user_id=user.id, token=token, expires_at=expires_at))
        return user

    def node(self, user_id: str | None, name: str = "greenhouse", token: str | None = None) -> Node:
        node = self._save(
            Node(id=str(uuid.uuid4()), user_id=user_id, name=name, note="", status="active", created_at=NOW)
        )
        if token:
            self._save(NodeToken(id=str(uuid.uuid4()), node_id=node.id, token=token, created_at=NOW))
        return node

    def pot(self, node_id: str, thresholds=None, name: str = "basil") -> Pot:
        if thresholds is not None and not isinstance(thresholds, str):
            thresholds = json.dumps(thresholds)
        return self._save(
            Pot(
                id=str(uuid.uuid4()),
                node_id=node_id,
                name=name,
                note="",
                status="active",
                thresholds=thresholds,
                created_at=NOW,
            )
        )

    def measurement(self, pot_id: str, value: float, type: str = "moisture") -> dict:
        m = self._save(
            Measurement(id=str(uuid.uuid4()), pot_id=pot_id, timestamp=NOW, value=value, type=type)
        )
        return {"id": m.id, "pot_id": m.pot_id, "timestamp": m.timestamp, "value": m.value, "type": m.type}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def client(session_factory):
    return TestClient(create_app(session_factory))


@pytest.fixture
def at():
    def _at(minutes: int) -> datetime:
        return NOW + timedelta(minutes=minutes)

    return _at
