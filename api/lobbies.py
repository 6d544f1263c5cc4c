"""
Lobby API Endpoints

Responsibilities:
1. Create a lobby (host)
2. Public lobby snapshot (polled by every client)
3. Host controls: settings, start, reset
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import HostAction, LobbyCreate, LobbyCreateResponse, LobbyView, SettingsUpdate
from core.lobby_manager import LobbyManager
from core.exceptions import (
    ConcurrentLobbyUpdate,
    LobbyNotFound,
    LobbyNotWaiting,
    NotLobbyHost,
    RosterIncomplete,
    WordPairsExhausted,
)
from services.view_service import lobby_public_state

router = APIRouter(prefix="/api/lobbies", tags=["lobbies"])
logger = logging.getLogger(__name__)


@router.post("", response_model=LobbyCreateResponse)
def create_lobby(payload: LobbyCreate, db: Session = Depends(get_db)):
    """
    Create a lobby (host endpoint)

    Returns:
        - code: lobby code to share
        - player_id: the host's player id
        - host_secret: lets the host reclaim the lobby when rejoining
    """
    try:
        lobby, host, host_secret = LobbyManager.create_lobby(
            db, payload.host_name, payload.settings.model_dump()
        )
    except Exception as e:
        logger.error(f"Failed to create lobby: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return LobbyCreateResponse(
        code=lobby.code,
        player_id=host.id,
        host_secret=host_secret,
        lobby=lobby_public_state(lobby),
    )


@router.get("/{code}", response_model=LobbyView)
def get_lobby(code: str, db: Session = Depends(get_db)):
    """
    Public lobby snapshot

    Roles and words are hidden until the game is finished.
    """
    try:
        lobby = LobbyManager.get_lobby(db, code)
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except Exception as e:
        logger.error(f"Failed to get lobby: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return lobby_public_state(lobby)


@router.put("/{code}/settings", response_model=LobbyView)
def update_settings(code: str, payload: SettingsUpdate, db: Session = Depends(get_db)):
    """
    Change role counts (host endpoint, waiting only)

    Malformed or negative counts are stored as 0.
    """
    try:
        lobby = LobbyManager.update_lobby_settings(
            db, code, payload.host_id, payload.settings.model_dump()
        )
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except NotLobbyHost:
        raise HTTPException(status_code=403, detail="Only the host can change settings")
    except LobbyNotWaiting as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update settings: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return lobby_public_state(lobby)


@router.post("/{code}/start", response_model=LobbyView)
def start_game(code: str, payload: HostAction, db: Session = Depends(get_db)):
    """
    Start a round (host endpoint)

    Preconditions:
    - lobby is waiting
    - role settings add up to the number of players
    - the lobby still has unplayed word pairs
    """
    try:
        lobby = LobbyManager.start_game(db, code, payload.host_id)
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except NotLobbyHost:
        raise HTTPException(status_code=403, detail="Only the host can start the game")
    except LobbyNotWaiting as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (RosterIncomplete, WordPairsExhausted) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to start game: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return lobby_public_state(lobby)


@router.post("/{code}/reset", response_model=LobbyView)
def reset_lobby(code: str, payload: HostAction, db: Session = Depends(get_db)):
    """
    Back to the waiting stage, same players (host endpoint)
    """
    try:
        lobby = LobbyManager.reset_lobby(db, code, payload.host_id)
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except NotLobbyHost:
        raise HTTPException(status_code=403, detail="Only the host can reset the lobby")
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to reset lobby: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return lobby_public_state(lobby)
