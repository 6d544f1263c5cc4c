"""
Elimination service: speaking order and win detection after someone is out

Both helpers mutate the snapshot in place and are run by LobbyManager after
every elimination, wrong blind guess or departure.
"""
import logging
from collections import Counter
from typing import Dict

from models import Lobby, LobbyStatus, Role, Winner

logger = logging.getLogger(__name__)

_FACTION_WINNER = {
    Role.LEGIT: Winner.LEGITS,
    Role.CLONE: Winner.CLONES,
    Role.BLIND: Winner.BLIND,
}


def recompute_talk_order(lobby: Lobby) -> None:
    """
    Renumber alive players 1..N, keeping their previous relative order

    - alive players are stable-sorted by previous talk_order (None counts as 0)
    - eliminated players lose their talk_order
    """
    alive = sorted(lobby.alive_players(), key=lambda p: p.talk_order or 0)
    for position, player in enumerate(alive, start=1):
        player.talk_order = position

    for player in lobby.players:
        if player.is_eliminated:
            player.talk_order = None


def alive_counts(lobby: Lobby) -> Dict[Role, int]:
    counts = Counter(p.role for p in lobby.alive_players() if p.role is not None)
    return {role: counts.get(role, 0) for role in Role}


def apply_auto_win(lobby: Lobby) -> None:
    """
    Decide whether the round ends after an elimination-causing event

    Rules:
    - nothing happens once finished, while a blind guess is owed, or with nobody alive
    - started with exactly 2 alive, one of them blind: the blind gets a last guess
      (status -> blind_guess, pending_blind_id -> that player)
    - exactly one faction still has alive members: that faction wins
    - two or more factions alive: no decision yet
    """
    if lobby.status in (LobbyStatus.FINISHED, LobbyStatus.BLIND_GUESS):
        return

    alive = lobby.alive_players()
    if not alive:
        return

    counts = alive_counts(lobby)

    if lobby.status == LobbyStatus.STARTED and len(alive) == 2 and counts[Role.BLIND] == 1:
        blind = next(p for p in alive if p.role == Role.BLIND)
        lobby.status = LobbyStatus.BLIND_GUESS
        lobby.pending_blind_id = blind.id
        logger.info(f"Blind guess triggered with 2 players left in lobby {lobby.code}")
        return

    factions = [role for role, count in counts.items() if count > 0]
    if len(factions) == 1:
        lobby.status = LobbyStatus.FINISHED
        lobby.winner = _FACTION_WINNER[factions[0]]
        lobby.pending_blind_id = None
        logger.info(f"Auto-win: {lobby.winner.value} in lobby {lobby.code}")
