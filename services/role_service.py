"""
Role service: role counts, dealing roles and the opening speaking order

Pure computation on the snapshot, status changes belong to LobbyManager
"""
import math
import random
from typing import Any, List, Mapping, Optional, Union

from models import LobbySettings, Player, Role


def _coerce_count(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return max(0, int(number))


def coerce_settings(raw: Optional[Union[LobbySettings, Mapping[str, Any]]]) -> LobbySettings:
    """
    Turn client-supplied role counts into non-negative integers

    Rules:
    - missing, non-numeric, NaN or infinite values become 0
    - negative values are clamped to 0
    - fractional values are truncated ("2.7" -> 2)

    Args:
        raw: LobbySettings or any mapping with legits/clones/blinds keys

    Returns:
        LobbySettings
    """
    if raw is None:
        return LobbySettings()
    if isinstance(raw, LobbySettings):
        raw = raw.model_dump()
    return LobbySettings(
        legits=_coerce_count(raw.get("legits")),
        clones=_coerce_count(raw.get("clones")),
        blinds=_coerce_count(raw.get("blinds")),
    )


def build_role_pool(settings: LobbySettings) -> List[Role]:
    """Exactly settings.legits legit, settings.clones clone and settings.blinds blind entries"""
    return (
        [Role.LEGIT] * settings.legits
        + [Role.CLONE] * settings.clones
        + [Role.BLIND] * settings.blinds
    )


def deal_roles(players: List[Player], settings: LobbySettings, legit_word: str, clone_word: str) -> None:
    """
    Shuffle the role pool and hand one role to each player by position

    Every player also gets the word that goes with the role (None for the blind)
    and starts the round alive.

    Args:
        players: Lobby.players, len(players) must equal settings.total
        settings: role counts
        legit_word / clone_word: the round's pair

    Raises:
        ValueError: pool size does not match the roster
    """
    roles = build_role_pool(settings)
    if len(roles) != len(players):
        raise ValueError(f"Role pool has {len(roles)} entries for {len(players)} players")

    # random.shuffle is an in-place Fisher-Yates shuffle
    random.shuffle(roles)

    words = {Role.LEGIT: legit_word, Role.CLONE: clone_word, Role.BLIND: None}
    for player, role in zip(players, roles):
        player.role = role
        player.word = words[role]
        player.is_eliminated = False


def shuffle_talk_order(players: List[Player]) -> None:
    """Independent random speaking order 1..N across all players"""
    order = list(players)
    random.shuffle(order)
    for position, player in enumerate(order, start=1):
        player.talk_order = position
