import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from main import app
from models import LobbySettings, LobbyStatus, Role
from core.lobby_manager import LobbyManager
from core.lobby_store import load_lobby, save_lobby


@pytest.fixture
def engine():
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
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def rewrite_lobby(db, code, mutate):
    """Load, mutate and commit a snapshot directly (test setup shortcut)."""
    lobby = load_lobby(db, code)
    mutate(lobby)
    save_lobby(db, lobby)
    db.commit()
    return lobby


@pytest.fixture
def rewrite(db):
    def _rewrite(code, mutate):
        return rewrite_lobby(db, code, mutate)

    return _rewrite


@pytest.fixture
def make_lobby(db):
    """Lobby with `size` players; returns (code, player ids in join order). Host is first."""
    def _make(size=3, settings=None):
        lobby, host, _ = LobbyManager.create_lobby(db, "Host", settings or {})
        ids = [host.id]
        for i in range(1, size):
            _, player = LobbyManager.join_lobby(db, lobby.code, f"Player {i}")
            ids.append(player.id)
        return lobby.code, ids

    return _make


@pytest.fixture
def seed_round(db):
    """Put a lobby into a started round with a fixed role per player (join order)."""
    def _seed(code, roles, legit_word="Apple", clone_word="Pear"):
        words = {Role.LEGIT: legit_word, Role.CLONE: clone_word, Role.BLIND: None}

        def mutate(lobby):
            lobby.status = LobbyStatus.STARTED
            lobby.legit_word = legit_word
            lobby.clone_word = clone_word
            lobby.winner = None
            lobby.pending_blind_id = None
            lobby.votes = {}
            lobby.settings = LobbySettings(
                legits=roles.count(Role.LEGIT),
                clones=roles.count(Role.CLONE),
                blinds=roles.count(Role.BLIND),
            )
            for position, (player, role) in enumerate(zip(lobby.players, roles), start=1):
                player.role = role
                player.word = words[role]
                player.is_eliminated = False
                player.talk_order = position

        return rewrite_lobby(db, code, mutate)

    return _seed
