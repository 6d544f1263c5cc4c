"""
Vote service: informational votes shown next to each player

Votes never eliminate anyone by themselves; the host reads the tally and
decides. Each voter holds at most one vote (last write wins).
"""
from collections import Counter
from typing import Dict

from models import ACTIVE_STATUSES, Lobby


def record_vote(lobby: Lobby, voter_id: str, target_id: str) -> bool:
    """
    Point voter's vote at target

    Returns:
        True if recorded, False if ignored (no round running, voter or target
        missing or already eliminated)
    """
    if lobby.status not in ACTIVE_STATUSES:
        return False

    voter = lobby.find_player(voter_id)
    target = lobby.find_player(target_id)
    if voter is None or voter.is_eliminated:
        return False
    if target is None or target.is_eliminated:
        return False

    lobby.votes[voter_id] = target_id
    return True


def drop_votes_involving(lobby: Lobby, player_id: str) -> None:
    """Remove the vote cast by player_id and every vote cast for them"""
    lobby.votes = {
        voter: target for voter, target in lobby.votes.items()
        if voter != player_id and target != player_id
    }


def tally_votes(lobby: Lobby) -> Dict[str, int]:
    """target id -> number of votes received"""
    return dict(Counter(lobby.votes.values()))
