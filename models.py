"""
Data model

- LobbyRecord: the single SQLAlchemy table; one row per lobby holding a JSON snapshot
- Lobby / Player / LobbySettings: the snapshot itself (pydantic), round-tripped through the row
"""
import enum
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, Integer, JSON, String

from database import Base


class LobbyStatus(str, enum.Enum):
    WAITING = "waiting"
    STARTED = "started"
    BLIND_GUESS = "blind_guess"
    FINISHED = "finished"


# statuses in which a round is being played
ACTIVE_STATUSES = (LobbyStatus.STARTED, LobbyStatus.BLIND_GUESS)


class Role(str, enum.Enum):
    LEGIT = "legit"
    CLONE = "clone"
    BLIND = "blind"


class Winner(str, enum.Enum):
    LEGITS = "legits"
    CLONES = "clones"
    BLIND = "blind"


class LobbyRecord(Base):
    __tablename__ = "lobbies"

    code = Column(String(5), primary_key=True)
    data = Column(JSON, nullable=False)
    # bumped on every UPDATE; a stale version makes the flush fail
    version = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    __mapper_args__ = {"version_id_col": version}


class LobbySettings(BaseModel):
    """How many of each role to deal when the game starts"""
    legits: int = 0
    clones: int = 0
    blinds: int = 0

    @property
    def total(self) -> int:
        return self.legits + self.clones + self.blinds


class Player(BaseModel):
    id: str
    name: str
    role: Optional[Role] = None
    # None for the blind role and before a round
    word: Optional[str] = None
    is_host: bool = False
    is_eliminated: bool = False
    # epoch milliseconds of the last heartbeat
    last_seen: Optional[int] = None
    # 1-based speaking order among alive players
    talk_order: Optional[int] = None


class Lobby(BaseModel):
    code: str
    host_id: str
    host_secret: str
    players: List[Player] = Field(default_factory=list)  # join order
    settings: LobbySettings = Field(default_factory=LobbySettings)
    status: LobbyStatus = LobbyStatus.WAITING
    legit_word: Optional[str] = None
    clone_word: Optional[str] = None
    winner: Optional[Winner] = None
    pending_blind_id: Optional[str] = None
    used_word_indices: List[int] = Field(default_factory=list)
    # voter id -> target id
    votes: Dict[str, str] = Field(default_factory=dict)

    def find_player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def alive_players(self) -> List[Player]:
        return [p for p in self.players if not p.is_eliminated]
