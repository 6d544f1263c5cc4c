"""
Player API Endpoints

Responsibilities:
1. Join a lobby
2. Own state (polled; also the heartbeat)
3. Leave / host kick
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import HostTargetAction, JoinResponse, LobbyView, PlayerJoin, PlayerRef, PlayerStateResponse, StatusResponse
from core.lobby_manager import LobbyManager
from core.exceptions import (
    ConcurrentLobbyUpdate,
    LobbyNotFound,
    LobbyNotWaiting,
    NotLobbyHost,
    PlayerNotFound,
    PlayerNotInLobby,
)
from services.view_service import lobby_public_state, player_private_state

router = APIRouter(prefix="/api/lobbies", tags=["players"])
logger = logging.getLogger(__name__)


@router.post("/{code}/join", response_model=JoinResponse)
def join_lobby(code: str, payload: PlayerJoin, db: Session = Depends(get_db)):
    """
    Join a lobby (player endpoint)

    Preconditions:
    - lobby exists
    - lobby is waiting (no round running)

    A host_code matching the lobby's host secret rejoins as host.
    """
    try:
        lobby, player = LobbyManager.join_lobby(db, code, payload.name, payload.host_code)
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except LobbyNotWaiting as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to join lobby: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return JoinResponse(
        code=lobby.code,
        player_id=player.id,
        is_host=player.is_host,
        lobby=lobby_public_state(lobby),
    )


@router.post("/{code}/my-state", response_model=PlayerStateResponse)
def my_state(code: str, payload: PlayerRef, db: Session = Depends(get_db)):
    """
    A player's own view: role, word, status, winner

    Every call refreshes the player's heartbeat. 404 with
    code PLAYER_NOT_IN_LOBBY tells the client it was removed.
    """
    try:
        lobby, player = LobbyManager.get_player_state(db, code, payload.player_id)
    except (LobbyNotFound, PlayerNotInLobby):
        return JSONResponse(
            status_code=404,
            content={"detail": "Player not found in lobby", "code": "PLAYER_NOT_IN_LOBBY"},
        )
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get player state: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return player_private_state(lobby, player)


@router.post("/{code}/leave", response_model=StatusResponse)
def leave_lobby(code: str, payload: PlayerRef, db: Session = Depends(get_db)):
    """
    Leave the lobby (any status)

    Leaving a lobby one is not part of is accepted and changes nothing.
    """
    try:
        LobbyManager.remove_player_from_lobby(db, code, payload.player_id)
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to leave lobby: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return StatusResponse()


@router.post("/{code}/kick", response_model=LobbyView)
def kick_player(code: str, payload: HostTargetAction, db: Session = Depends(get_db)):
    """
    Remove a player before the round starts (host endpoint)
    """
    try:
        lobby = LobbyManager.kick_from_lobby(db, code, payload.host_id, payload.target_id)
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except NotLobbyHost:
        raise HTTPException(status_code=403, detail="Only the host can kick players")
    except LobbyNotWaiting as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="Player not found")
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to kick player: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return lobby_public_state(lobby)
