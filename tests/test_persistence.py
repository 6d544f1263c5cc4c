import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models import Lobby, LobbyRecord, LobbySettings, LobbyStatus, Player, Role, Winner
from core.exceptions import ConcurrentLobbyUpdate
from core.lobby_manager import LobbyManager
from core.lobby_store import find_unused_code, load_lobby, save_lobby
from services import naming_service
from core import lobby_store


def _full_lobby():
    return Lobby(
        code="QW3RT",
        host_id="h",
        host_secret="4821",
        players=[
            Player(id="h", name="Host", role=Role.LEGIT, word="Tea", is_host=True, last_seen=1, talk_order=2),
            Player(id="c", name="Clone", role=Role.CLONE, word="Coffee", is_eliminated=True, last_seen=2),
            Player(id="b", name="Blind", role=Role.BLIND, word=None, talk_order=1),
        ],
        settings=LobbySettings(legits=1, clones=1, blinds=1),
        status=LobbyStatus.FINISHED,
        legit_word="Tea",
        clone_word="Coffee",
        winner=Winner.LEGITS,
        pending_blind_id=None,
        used_word_indices=[7, 3, 12],
        votes={"h": "b", "b": "h"},
    )


def test_lobby_round_trips_through_storage(session_factory):
    original = _full_lobby()

    writer = session_factory()
    save_lobby(writer, original)
    writer.commit()
    writer.close()

    reader = session_factory()
    loaded = load_lobby(reader, "qw3rt")
    reader.close()

    assert loaded == original
    assert set(loaded.used_word_indices) == {3, 7, 12}
    assert loaded.votes == {"h": "b", "b": "h"}


def test_find_unused_code_avoids_existing(db, monkeypatch):
    save_lobby(db, _full_lobby())
    db.commit()

    codes = iter(["QW3RT", "QW3RT", "ABCDE"])
    monkeypatch.setattr(lobby_store, "generate_lobby_code", lambda: next(codes))

    assert find_unused_code(db) == "ABCDE"


def test_find_unused_code_falls_back_after_attempts(db, monkeypatch):
    save_lobby(db, _full_lobby())
    db.commit()

    monkeypatch.setattr(lobby_store, "generate_lobby_code", lambda: "QW3RT")
    assert find_unused_code(db) == "QW3RT"


def test_concurrent_save_is_rejected(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'lobbies.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    setup = Session()
    lobby, host, _ = LobbyManager.create_lobby(setup, "Host", {"legits": 2})
    setup.close()

    first, second = Session(), Session()
    try:
        mine = load_lobby(first, lobby.code)
        theirs = load_lobby(second, lobby.code)

        mine.settings = LobbySettings(legits=3)
        save_lobby(first, mine)
        first.commit()

        theirs.settings = LobbySettings(legits=5)
        with pytest.raises(ConcurrentLobbyUpdate):
            save_lobby(second, theirs)
        second.rollback()
    finally:
        first.close()
        second.close()

    check = Session()
    assert load_lobby(check, lobby.code).settings == LobbySettings(legits=3)
    check.close()
    engine.dispose()


def test_naming_helpers_used_for_new_lobbies(db):
    lobby, host, secret = LobbyManager.create_lobby(db, "Host")
    assert naming_service.normalize_lobby_code(lobby.code) == lobby.code
    assert lobby.settings == LobbySettings()


@pytest.mark.filterwarnings("error:datetime.datetime.utcnow:DeprecationWarning")
def test_save_stamps_updated_at(db):
    save_lobby(db, _full_lobby())
    db.commit()
    first = db.get(LobbyRecord, "QW3RT").updated_at

    lobby = load_lobby(db, "QW3RT")
    save_lobby(db, lobby)
    db.commit()
    record = db.get(LobbyRecord, "QW3RT")

    assert first is not None
    assert record.updated_at >= first
    assert record.version == 2
