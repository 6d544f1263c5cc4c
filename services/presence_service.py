"""
Presence service: heartbeat timestamps and pruning of silent players

Clients poll their own state; every poll refreshes Player.last_seen.
Only the waiting stage is cleaned up, a running round keeps its roster.
"""
import logging
import time

from models import Lobby, LobbyStatus

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def prune_inactive_players(lobby: Lobby, now: int, timeout_ms: int) -> int:
    """
    Drop waiting players whose heartbeat is older than timeout_ms

    Rules:
    - only while status is waiting
    - players that never reported a heartbeat (last_seen is None) are kept

    Args:
        lobby: snapshot, mutated in place
        now: current epoch milliseconds
        timeout_ms: inactivity threshold

    Returns:
        number of players removed
    """
    if lobby.status != LobbyStatus.WAITING:
        return 0

    before = len(lobby.players)
    lobby.players = [
        p for p in lobby.players
        if p.last_seen is None or now - p.last_seen < timeout_ms
    ]
    removed = before - len(lobby.players)

    if removed:
        logger.info(
            f"Pruned inactive players in {lobby.code}: before={before} after={len(lobby.players)}"
        )
    return removed
