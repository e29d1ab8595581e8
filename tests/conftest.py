"""Shared test fixtures."""
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models import Player, Room, RoomStatus
from services.broadcast_service import broadcaster


def make_items(count, price=1000):
    return [
        {
            "id": str(i),
            "name": f"Test Item {i}",
            "description": "Test item",
            "price": price,
            "category": "Test",
            "emoji": "🎁",
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """HTTP client wired to the test database."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_broadcaster():
    yield
    broadcaster.clear()


@pytest.fixture
def room_factory(db):
    """
    Build a room already in play.

    Returns (room, players); players[0] is the host.
    """
    def _make(capitals, price=1000, status=RoomStatus.BIDDING, current_round=1, max_rounds=10):
        items = make_items(max_rounds, price)
        room = Room(
            code=uuid.uuid4().hex[:6].upper(),
            status=status,
            current_round=current_round,
            max_rounds=max_rounds,
            items=items,
            current_item=items[current_round - 1] if current_round else None,
            last_resolved_round=0,
            state_version=0,
        )
        db.add(room)
        db.flush()

        players = []
        for index, capital in enumerate(capitals):
            player = Player(
                room_id=room.id,
                player_name=f"P{index + 1}",
                capital=capital,
                is_eliminated=False,
                is_ai=False,
            )
            db.add(player)
            players.append(player)
        db.flush()

        room.host_player_id = players[0].id
        db.commit()
        return room, players

    return _make
