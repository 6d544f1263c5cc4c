"""
Request / response bodies of the HTTP API
"""
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, Field, StringConstraints

from models import LobbyStatus, Role, Winner


# ============ Requests ============

# surrounding whitespace is stripped before the length check
DisplayName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)]


class SettingsPayload(BaseModel):
    # Any: malformed counts are clamped to 0 by the engine instead of rejected
    legits: Any = 0
    clones: Any = 0
    blinds: Any = 0


class LobbyCreate(BaseModel):
    host_name: DisplayName
    settings: SettingsPayload = Field(default_factory=SettingsPayload)


class PlayerJoin(BaseModel):
    name: DisplayName
    host_code: Optional[str] = None


class PlayerRef(BaseModel):
    player_id: str


class HostAction(BaseModel):
    host_id: str


class HostTargetAction(BaseModel):
    host_id: str
    target_id: str


class SettingsUpdate(BaseModel):
    host_id: str
    settings: SettingsPayload


class BlindGuessSubmit(BaseModel):
    player_id: str
    guess: str


class VoteSubmit(BaseModel):
    voter_id: str
    target_id: str


# ============ Responses ============

class SettingsView(BaseModel):
    legits: int
    clones: int
    blinds: int


class PlayerPublic(BaseModel):
    id: str
    name: str
    is_host: bool
    is_eliminated: bool
    talk_order: Optional[int] = None
    # only revealed once the game is finished
    role: Optional[Role] = None


class LobbyView(BaseModel):
    code: str
    host_id: str
    status: LobbyStatus
    settings: SettingsView
    players: List[PlayerPublic]
    winner: Optional[Winner] = None
    pending_blind_id: Optional[str] = None
    votes: Dict[str, str] = Field(default_factory=dict)
    vote_counts: Dict[str, int] = Field(default_factory=dict)
    # only revealed once the game is finished
    legit_word: Optional[str] = None
    clone_word: Optional[str] = None


class PlayerPrivate(BaseModel):
    id: str
    name: str
    role: Optional[Role] = None
    word: Optional[str] = None
    is_host: bool
    is_eliminated: bool
    talk_order: Optional[int] = None


class LobbyCreateResponse(BaseModel):
    code: str
    player_id: str
    host_secret: str
    lobby: LobbyView


class JoinResponse(BaseModel):
    code: str
    player_id: str
    is_host: bool
    lobby: LobbyView


class PlayerStateResponse(BaseModel):
    lobby_status: LobbyStatus
    winner: Optional[Winner] = None
    pending_blind_id: Optional[str] = None
    # only sent to the host, so they can reclaim the lobby from another device
    host_secret: Optional[str] = None
    player: PlayerPrivate


class EliminateResponse(BaseModel):
    blind_needs_guess: bool
    lobby: LobbyView


class VoteResponse(BaseModel):
    ok: bool = True
    accepted: bool


class StatusResponse(BaseModel):
    ok: bool = True
