"""
Lobby store: persistence of the lobby snapshot

- load_lobby: row-locked read + pruning of silent waiting players
- save_lobby: version-checked write
- find_unused_code: collision-free code for a new lobby

Persistence is the source of truth; nothing is cached between requests.
"""
from datetime import datetime, timezone
from typing import Optional
import logging

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from models import Lobby, LobbyRecord
from core.locks import with_lobby_lock
from core.exceptions import ConcurrentLobbyUpdate
from database import get_settings
from services.naming_service import generate_lobby_code, normalize_lobby_code
from services.presence_service import now_ms, prune_inactive_players

logger = logging.getLogger(__name__)


def load_lobby(db: Session, code: str) -> Optional[Lobby]:
    """
    Load (and lock) a lobby snapshot

    Silent waiting players are pruned from the returned snapshot; the pruning
    is persisted by the next save of the same transaction.

    Args:
        db: SQLAlchemy Session
        code: lobby code, any case

    Returns:
        Lobby, or None if no such lobby
    """
    normalized = normalize_lobby_code(code)
    if not normalized:
        return None

    record = with_lobby_lock(normalized, db).first()
    if not record:
        logger.info(f"No lobby found for code {normalized}")
        return None

    lobby = Lobby.model_validate(record.data)
    timeout_ms = get_settings().lobby_inactivity_timeout_sec * 1000
    prune_inactive_players(lobby, now_ms(), timeout_ms)
    return lobby


def save_lobby(db: Session, lobby: Lobby) -> None:
    """
    Write the snapshot back

    The row loaded by load_lobby stays in the session's identity map, so the
    UPDATE is issued against the version that was read.

    Raises:
        ConcurrentLobbyUpdate: another request saved this lobby in between
    """
    lobby.code = normalize_lobby_code(lobby.code)
    data = lobby.model_dump(mode="json")

    record = db.get(LobbyRecord, lobby.code)
    if record is None:
        record = LobbyRecord(code=lobby.code, data=data)
        db.add(record)
    else:
        record.data = data
    record.updated_at = datetime.now(timezone.utc)

    logger.info(
        f"Saving lobby {lobby.code} status={lobby.status.value} "
        f"used_word_indices={lobby.used_word_indices}"
    )

    try:
        db.flush()
    except StaleDataError:
        logger.warning(f"Version conflict while saving lobby {lobby.code}")
        raise ConcurrentLobbyUpdate(lobby.code)


def lobby_code_exists(db: Session, code: str) -> bool:
    return db.get(LobbyRecord, normalize_lobby_code(code)) is not None


def find_unused_code(db: Session) -> str:
    """
    Generate a lobby code no stored lobby uses

    Tries settings.lobby_code_attempts times, then falls back to an unchecked
    code (a collision then surfaces as a primary-key error on commit).
    """
    attempts = get_settings().lobby_code_attempts
    for _ in range(attempts):
        code = generate_lobby_code()
        if not lobby_code_exists(db, code):
            return code
        logger.warning(f"Lobby code collision detected, regenerating: {code}")
    return generate_lobby_code()
