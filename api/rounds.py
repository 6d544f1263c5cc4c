"""
Round API Endpoints - short polling

Notes:
1. Clients learn about every change through GET /api/lobbies/{code} and /my-state
2. All game rules live in LobbyManager
3. Votes are informational; only the host eliminates
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import BlindGuessSubmit, EliminateResponse, HostTargetAction, LobbyView, VoteSubmit, VoteResponse
from core.lobby_manager import LobbyManager
from core.exceptions import (
    ConcurrentLobbyUpdate,
    EmptyGuess,
    InvalidStateTransition,
    LobbyNotFound,
    NotLobbyHost,
    NotPendingBlind,
    PlayerNotFound,
)
from services.view_service import lobby_public_state

router = APIRouter(prefix="/api/lobbies", tags=["rounds"])
logger = logging.getLogger(__name__)


@router.post("/{code}/eliminate", response_model=EliminateResponse)
def eliminate_player(code: str, payload: HostTargetAction, db: Session = Depends(get_db)):
    """
    Execute a player during the round (host endpoint)

    Effects:
    - votes are cleared
    - eliminating the blind opens the blind guess (blind_needs_guess=True)
    - otherwise the game may end (one faction left)

    Eliminating an already eliminated player is accepted and changes nothing.
    """
    try:
        lobby, blind_needs_guess = LobbyManager.eliminate_player(
            db, code, payload.host_id, payload.target_id
        )
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except NotLobbyHost:
        raise HTTPException(status_code=403, detail="Only the host can eliminate players")
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="Player not found")
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidStateTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to eliminate player: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return EliminateResponse(
        blind_needs_guess=blind_needs_guess,
        lobby=lobby_public_state(lobby),
    )


@router.post("/{code}/blind-guess", response_model=LobbyView)
def submit_blind_guess(code: str, payload: BlindGuessSubmit, db: Session = Depends(get_db)):
    """
    The eliminated blind guesses the legit word

    Matching ignores case and surrounding whitespace.
    - correct: blind wins
    - wrong:   round continues without the blind
    """
    try:
        lobby = LobbyManager.submit_blind_guess(db, code, payload.player_id, payload.guess)
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except NotPendingBlind as e:
        raise HTTPException(status_code=403, detail=str(e))
    except EmptyGuess as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidStateTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to submit blind guess: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return lobby_public_state(lobby)


@router.post("/{code}/vote", response_model=VoteResponse)
def add_vote(code: str, payload: VoteSubmit, db: Session = Depends(get_db)):
    """
    Vote for a player (moves any previous vote by the same voter)

    Returns:
        - accepted: False when the vote was ignored (no round running,
          voter or target missing or already eliminated)
    """
    try:
        _, accepted = LobbyManager.add_vote(db, code, payload.voter_id, payload.target_id)
    except LobbyNotFound:
        raise HTTPException(status_code=404, detail="Lobby not found")
    except ConcurrentLobbyUpdate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to add vote: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    return VoteResponse(accepted=accepted)
