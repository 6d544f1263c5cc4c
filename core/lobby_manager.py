"""
Lobby Manager: every lobby state transition

Responsibilities:
1. Lobby lifecycle (create, join, leave, kick, reset, settings)
2. Round flow (start, eliminate, blind guess, votes)
3. Heartbeat / player view

Each operation is one transaction:
    load (locked) -> validate -> mutate -> recompute -> save -> commit
A raised exception rolls everything back, nothing partial is stored.

Status machine:
    waiting -> started -> blind_guess -> finished
    blind_guess -> started       (wrong guess, or guess forfeited)
    started/blind_guess -> finished   (auto-win or correct guess)
    any -> waiting               (reset, or lobby emptied)
"""
from sqlalchemy.orm import Session
from typing import Any, Optional, Tuple
import logging

from models import ACTIVE_STATUSES, Lobby, LobbyStatus, Player, Role, Winner
from core.lobby_store import find_unused_code, load_lobby, save_lobby
from core.exceptions import (
    EmptyGuess,
    InvalidStateTransition,
    LobbyNotFound,
    LobbyNotWaiting,
    NotLobbyHost,
    NotPendingBlind,
    PlayerNotFound,
    PlayerNotInLobby,
    RosterIncomplete,
    WordPairsExhausted,
)
from services.elimination_service import apply_auto_win, recompute_talk_order
from services.naming_service import generate_host_secret, generate_player_id
from services.presence_service import now_ms
from services.role_service import coerce_settings, deal_roles, shuffle_talk_order
from services.vote_service import drop_votes_involving, record_vote
from services.word_service import pick_word_pair
from database import transactional

logger = logging.getLogger(__name__)


def _get_lobby_or_raise(db: Session, code: str) -> Lobby:
    lobby = load_lobby(db, code)
    if lobby is None:
        raise LobbyNotFound(code)
    return lobby


def _require_host(lobby: Lobby, host_id: Optional[str]) -> None:
    if not host_id or lobby.host_id != host_id:
        raise NotLobbyHost(host_id)


def _clear_round(lobby: Lobby) -> None:
    lobby.status = LobbyStatus.WAITING
    lobby.winner = None
    lobby.pending_blind_id = None
    lobby.legit_word = None
    lobby.clone_word = None
    lobby.votes = {}


def _normalize_guess(text: Optional[str]) -> str:
    return (text or "").strip().casefold()


def _detach_player(lobby: Lobby, player_id: str) -> None:
    """
    Shared tail of leave and kick, after the player is out of lobby.players

    - empty roster: back to a clean waiting lobby
    - departing host: the first remaining player (join order) takes over
    - running round: a pending guess owed to the leaver is forfeited,
      speaking order closes the gap, and the departure may decide the game
    """
    drop_votes_involving(lobby, player_id)

    if not lobby.players:
        _clear_round(lobby)
        logger.info(f"Lobby {lobby.code} empty, reset to waiting")
        return

    if lobby.host_id == player_id:
        successor = lobby.players[0]
        successor.is_host = True
        lobby.host_id = successor.id
        logger.info(f"Host left lobby {lobby.code}, {successor.id} is the new host")

    if lobby.status in ACTIVE_STATUSES:
        if lobby.pending_blind_id == player_id:
            lobby.pending_blind_id = None
            lobby.status = LobbyStatus.STARTED
        recompute_talk_order(lobby)
        apply_auto_win(lobby)


class LobbyManager:
    """Lobby state engine"""

    @staticmethod
    @transactional
    def create_lobby(db: Session, host_name: str, settings: Any = None) -> Tuple[Lobby, Player, str]:
        """
        Create a new lobby with its host

        Flow:
        1. Find an unused lobby code
        2. Create the host player (heartbeat set to now)
        3. Store the lobby in waiting status

        Args:
            db: SQLAlchemy Session
            host_name: display name of the host
            settings: role counts (coerced to non-negative integers)

        Returns:
            (Lobby, host Player, host_secret)
        """
        code = find_unused_code(db)
        host_secret = generate_host_secret()

        host = Player(
            id=generate_player_id(),
            name=host_name,
            is_host=True,
            last_seen=now_ms(),
        )
        lobby = Lobby(
            code=code,
            host_id=host.id,
            host_secret=host_secret,
            players=[host],
            settings=coerce_settings(settings),
        )
        save_lobby(db, lobby)

        logger.info(f"Created lobby {code} for host {host.id} ({host_name})")
        return lobby, host, host_secret

    @staticmethod
    @transactional
    def join_lobby(db: Session, code: str, player_name: str, host_code: Optional[str] = None) -> Tuple[Lobby, Player]:
        """
        Add a player to a waiting lobby

        A host_code matching the lobby's host secret makes the new player the
        host (a host reconnecting from a fresh session).

        Raises:
            LobbyNotFound: no such lobby
            LobbyNotWaiting: a round is running or finished
        """
        lobby = _get_lobby_or_raise(db, code)
        if lobby.status != LobbyStatus.WAITING:
            raise LobbyNotWaiting(
                f"Lobby {lobby.code} is not accepting players (status: {lobby.status.value})"
            )

        reclaims_host = bool(host_code) and host_code == lobby.host_secret

        player = Player(
            id=generate_player_id(),
            name=player_name,
            is_host=reclaims_host,
            last_seen=now_ms(),
        )

        if reclaims_host:
            for other in lobby.players:
                other.is_host = False
            lobby.host_id = player.id

        lobby.players.append(player)
        save_lobby(db, lobby)

        logger.info(
            f"Player {player.id} ({player_name}) joined lobby {lobby.code}"
            + (" as host" if reclaims_host else "")
        )
        return lobby, player

    @staticmethod
    @transactional
    def start_game(db: Session, code: str, host_id: Optional[str] = None) -> Lobby:
        """
        Deal a new round (waiting -> started)

        Preconditions:
        1. Lobby exists and is waiting
        2. If host_id is given, it must be the host
        3. legits + clones + blinds == number of players (and > 0)
        4. At least one word pair left unused by this lobby

        Flow:
        1. Pick an unused pair, randomly flipped
        2. Shuffle and deal roles + words
        3. Shuffle the speaking order
        4. Record the pair as used

        Raises:
            LobbyNotFound, NotLobbyHost, LobbyNotWaiting,
            RosterIncomplete: "lobby not full",
            WordPairsExhausted
        """
        lobby = _get_lobby_or_raise(db, code)
        if host_id is not None:
            _require_host(lobby, host_id)
        if lobby.status != LobbyStatus.WAITING:
            raise LobbyNotWaiting(f"Lobby {lobby.code} already has a round (status: {lobby.status.value})")

        player_count = len(lobby.players)
        if player_count == 0 or lobby.settings.total != player_count:
            raise RosterIncomplete(
                f"Lobby is not full: settings need {lobby.settings.total} players, got {player_count}"
            )

        try:
            index, legit_word, clone_word = pick_word_pair(lobby.used_word_indices)
        except LookupError:
            raise WordPairsExhausted("This lobby has used all available word pairs")

        logger.info(
            f"Starting new round in lobby {lobby.code}: pair={index} "
            f"previous used_word_indices={lobby.used_word_indices}"
        )

        lobby.used_word_indices.append(index)
        deal_roles(lobby.players, lobby.settings, legit_word, clone_word)
        shuffle_talk_order(lobby.players)

        lobby.status = LobbyStatus.STARTED
        lobby.legit_word = legit_word
        lobby.clone_word = clone_word
        lobby.winner = None
        lobby.pending_blind_id = None
        lobby.votes = {}

        save_lobby(db, lobby)
        return lobby

    @staticmethod
    @transactional
    def eliminate_player(db: Session, code: str, host_id: str, target_id: str) -> Tuple[Lobby, bool]:
        """
        Host executes a player during a round

        Effects:
        - target marked eliminated, speaking order renumbered, votes cleared
        - blind target: status -> blind_guess, the blind now owes a guess
        - other target: any pending guess is forfeited and auto-win runs

        Eliminating someone already out is a no-op that still succeeds.

        Returns:
            (Lobby, blind_needs_guess)

        Raises:
            LobbyNotFound, NotLobbyHost,
            InvalidStateTransition: no round running,
            PlayerNotFound: target not in lobby
        """
        lobby = _get_lobby_or_raise(db, code)
        _require_host(lobby, host_id)
        if lobby.status not in ACTIVE_STATUSES:
            raise InvalidStateTransition(
                f"Cannot eliminate in status {lobby.status.value}"
            )

        target = lobby.find_player(target_id)
        if target is None:
            raise PlayerNotFound(target_id)

        if target.is_eliminated:
            save_lobby(db, lobby)
            return lobby, False

        target.is_eliminated = True
        recompute_talk_order(lobby)
        lobby.votes = {}

        blind_needs_guess = target.role == Role.BLIND
        if blind_needs_guess:
            lobby.status = LobbyStatus.BLIND_GUESS
            lobby.pending_blind_id = target.id
        else:
            if lobby.status == LobbyStatus.BLIND_GUESS:
                logger.info(f"Pending blind guess forfeited in lobby {lobby.code}")
                lobby.status = LobbyStatus.STARTED
            lobby.pending_blind_id = None
            apply_auto_win(lobby)

        logger.info(
            f"Host eliminated {target.id} ({target.role.value if target.role else None}) "
            f"in lobby {lobby.code}, status={lobby.status.value}"
        )

        save_lobby(db, lobby)
        return lobby, blind_needs_guess

    @staticmethod
    @transactional
    def kick_from_lobby(db: Session, code: str, host_id: str, target_id: str) -> Lobby:
        """
        Host removes a player before the round starts

        Raises:
            LobbyNotFound, NotLobbyHost,
            LobbyNotWaiting: only allowed in waiting,
            PlayerNotFound: target not in lobby
        """
        lobby = _get_lobby_or_raise(db, code)
        _require_host(lobby, host_id)
        if lobby.status != LobbyStatus.WAITING:
            raise LobbyNotWaiting(f"Cannot kick in status {lobby.status.value}")

        if lobby.find_player(target_id) is None:
            raise PlayerNotFound(target_id)

        lobby.players = [p for p in lobby.players if p.id != target_id]
        _detach_player(lobby, target_id)

        logger.info(f"Host kicked player {target_id} from lobby {lobby.code}")
        save_lobby(db, lobby)
        return lobby

    @staticmethod
    @transactional
    def submit_blind_guess(db: Session, code: str, player_id: str, guess: str) -> Lobby:
        """
        The eliminated blind guesses the legit word

        Comparison ignores surrounding whitespace and case.
        - correct: status -> finished, winner -> blind
        - wrong:   blind stays out, votes by or for them dropped,
                   status -> started, auto-win runs

        Raises:
            LobbyNotFound,
            NotPendingBlind: no guess owed, or owed to someone else,
            EmptyGuess: blank guess,
            InvalidStateTransition: round has no legit word
        """
        lobby = _get_lobby_or_raise(db, code)
        if lobby.status != LobbyStatus.BLIND_GUESS or lobby.pending_blind_id != player_id:
            raise NotPendingBlind(f"Player {player_id} has no pending guess in lobby {lobby.code}")

        player = lobby.find_player(player_id)
        if player is None:
            raise NotPendingBlind(f"Player {player_id} has no pending guess in lobby {lobby.code}")

        normalized_word = _normalize_guess(lobby.legit_word)
        if not normalized_word:
            raise InvalidStateTransition(f"Lobby {lobby.code} has no legit word to guess")

        normalized_guess = _normalize_guess(guess)
        if not normalized_guess:
            raise EmptyGuess("Guess must not be empty")

        lobby.pending_blind_id = None
        if normalized_guess == normalized_word:
            lobby.status = LobbyStatus.FINISHED
            lobby.winner = Winner.BLIND
            logger.info(f"Blind guessed correctly in lobby {lobby.code}")
        else:
            logger.info(f"Blind guess wrong in lobby {lobby.code}")
            player.is_eliminated = True
            drop_votes_involving(lobby, player_id)
            lobby.status = LobbyStatus.STARTED
            recompute_talk_order(lobby)
            apply_auto_win(lobby)

        save_lobby(db, lobby)
        return lobby

    @staticmethod
    @transactional
    def reset_lobby(db: Session, code: str, host_id: str) -> Lobby:
        """
        Back to the waiting stage, keeping the roster

        Clears the round (words, winner, pending guess, votes) and every
        player's role, word, elimination and speaking order. used_word_indices
        is kept so the lobby never repeats a pair.

        Raises:
            LobbyNotFound, NotLobbyHost
        """
        lobby = _get_lobby_or_raise(db, code)
        _require_host(lobby, host_id)

        _clear_round(lobby)
        for player in lobby.players:
            player.role = None
            player.word = None
            player.is_eliminated = False
            player.talk_order = None

        logger.info(f"Lobby {lobby.code} reset to waiting")
        save_lobby(db, lobby)
        return lobby

    @staticmethod
    @transactional
    def update_lobby_settings(db: Session, code: str, host_id: str, settings: Any) -> Lobby:
        """
        Change role counts while waiting

        Raises:
            LobbyNotFound, NotLobbyHost, LobbyNotWaiting
        """
        lobby = _get_lobby_or_raise(db, code)
        _require_host(lobby, host_id)
        if lobby.status != LobbyStatus.WAITING:
            raise LobbyNotWaiting(f"Cannot change settings in status {lobby.status.value}")

        lobby.settings = coerce_settings(settings)

        logger.info(f"Updated settings for {lobby.code} -> {lobby.settings.model_dump()}")
        save_lobby(db, lobby)
        return lobby

    @staticmethod
    @transactional
    def get_player_state(db: Session, code: str, player_id: str) -> Tuple[Lobby, Player]:
        """
        Read a player's own view; doubles as the heartbeat

        Raises:
            LobbyNotFound,
            PlayerNotInLobby: left, kicked or pruned
        """
        lobby = _get_lobby_or_raise(db, code)
        player = lobby.find_player(player_id)
        if player is None:
            raise PlayerNotInLobby(player_id)

        player.last_seen = now_ms()
        save_lobby(db, lobby)
        return lobby, player

    @staticmethod
    @transactional
    def add_vote(db: Session, code: str, voter_id: str, target_id: str) -> Tuple[Lobby, bool]:
        """
        Record (or move) a player's vote

        Invalid votes (no round, dead or missing voter/target) are ignored
        and nothing is saved.

        Returns:
            (Lobby, accepted)

        Raises:
            LobbyNotFound
        """
        lobby = _get_lobby_or_raise(db, code)
        accepted = record_vote(lobby, voter_id, target_id)
        if accepted:
            save_lobby(db, lobby)
        return lobby, accepted

    @staticmethod
    @transactional
    def remove_player_from_lobby(db: Session, code: str, player_id: str) -> Lobby:
        """
        Player leaves (any status)

        Unknown players leave the lobby untouched.

        Raises:
            LobbyNotFound
        """
        lobby = _get_lobby_or_raise(db, code)
        if lobby.find_player(player_id) is None:
            return lobby

        lobby.players = [p for p in lobby.players if p.id != player_id]
        _detach_player(lobby, player_id)

        logger.info(f"Player {player_id} left lobby {lobby.code}")
        save_lobby(db, lobby)
        return lobby

    @staticmethod
    def get_lobby(db: Session, code: str) -> Lobby:
        """
        Read-only snapshot (pruned view, nothing saved)

        Raises:
            LobbyNotFound
        """
        return _get_lobby_or_raise(db, code)
