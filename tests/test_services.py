from collections import Counter

import pytest

from models import Lobby, LobbySettings, LobbyStatus, Player, Role, Winner
from services import word_service
from services.elimination_service import alive_counts, apply_auto_win, recompute_talk_order
from services.naming_service import (
    LOBBY_CODE_ALPHABET,
    generate_host_secret,
    generate_lobby_code,
    normalize_lobby_code,
)
from services.presence_service import prune_inactive_players
from services.role_service import build_role_pool, coerce_settings, deal_roles, shuffle_talk_order
from services.vote_service import drop_votes_involving, record_vote, tally_votes


def _lobby(roles, status=LobbyStatus.STARTED, eliminated=()):
    players = [
        Player(
            id=f"p{i}",
            name=f"P{i}",
            role=role,
            is_eliminated=f"p{i}" in eliminated,
            talk_order=None if f"p{i}" in eliminated else i + 1,
        )
        for i, role in enumerate(roles)
    ]
    return Lobby(code="ABCDE", host_id="p0", host_secret="1234", players=players, status=status)


def _alive_orders(lobby):
    return sorted(p.talk_order for p in lobby.players if not p.is_eliminated)


# ============ naming ============

def test_lobby_code_uses_unambiguous_alphabet():
    for _ in range(50):
        code = generate_lobby_code()
        assert len(code) == 5
        assert set(code) <= set(LOBBY_CODE_ALPHABET)
    assert not set("01OIL") & set(LOBBY_CODE_ALPHABET)


def test_host_secret_is_four_digits():
    for _ in range(50):
        secret = generate_host_secret()
        assert secret.isdigit()
        assert 1000 <= int(secret) <= 9999


def test_normalize_lobby_code():
    assert normalize_lobby_code(" abcde ") == "ABCDE"
    assert normalize_lobby_code(None) == ""


# ============ settings / roles ============

def test_coerce_settings_clamps_bad_values():
    settings = coerce_settings({"legits": "3", "clones": -2, "blinds": "abc"})
    assert settings == LobbySettings(legits=3, clones=0, blinds=0)

    settings = coerce_settings({"legits": 2.9, "clones": None, "blinds": float("nan")})
    assert settings == LobbySettings(legits=2, clones=0, blinds=0)

    assert coerce_settings(None) == LobbySettings()
    assert coerce_settings(LobbySettings(legits=1, clones=1, blinds=1)).total == 3


@pytest.mark.parametrize("legits,clones,blinds", [(3, 1, 0), (2, 1, 1), (4, 2, 1), (1, 0, 0), (0, 2, 2)])
def test_deal_roles_matches_settings(legits, clones, blinds):
    settings = LobbySettings(legits=legits, clones=clones, blinds=blinds)
    players = [Player(id=f"p{i}", name=f"P{i}", is_eliminated=True) for i in range(settings.total)]

    deal_roles(players, settings, "Apple", "Pear")

    counts = Counter(p.role for p in players)
    assert counts[Role.LEGIT] == legits
    assert counts[Role.CLONE] == clones
    assert counts[Role.BLIND] == blinds
    for p in players:
        assert p.is_eliminated is False
        expected = {Role.LEGIT: "Apple", Role.CLONE: "Pear", Role.BLIND: None}[p.role]
        assert p.word == expected


def test_deal_roles_rejects_size_mismatch():
    players = [Player(id="p0", name="P0")]
    with pytest.raises(ValueError):
        deal_roles(players, LobbySettings(legits=2), "Apple", "Pear")


def test_build_role_pool_order_before_shuffle():
    pool = build_role_pool(LobbySettings(legits=2, clones=1, blinds=1))
    assert pool == [Role.LEGIT, Role.LEGIT, Role.CLONE, Role.BLIND]


def test_shuffle_talk_order_is_a_permutation():
    players = [Player(id=f"p{i}", name=f"P{i}") for i in range(6)]
    shuffle_talk_order(players)
    assert sorted(p.talk_order for p in players) == [1, 2, 3, 4, 5, 6]


# ============ words ============

def test_pick_word_pair_skips_used_indices(monkeypatch):
    monkeypatch.setattr(word_service, "WORD_PAIRS", [("A", "B"), ("C", "D"), ("E", "F")])

    for _ in range(20):
        index, legit, clone = word_service.pick_word_pair([0, 2])
        assert index == 1
        assert {legit, clone} == {"C", "D"}


def test_pick_word_pair_exhausted(monkeypatch):
    monkeypatch.setattr(word_service, "WORD_PAIRS", [("A", "B")])
    with pytest.raises(LookupError):
        word_service.pick_word_pair([0])


def test_pick_word_pair_flips_orientation(monkeypatch):
    monkeypatch.setattr(word_service, "WORD_PAIRS", [("A", "B")])

    monkeypatch.setattr(word_service.random, "random", lambda: 0.1)
    assert word_service.pick_word_pair([]) == (0, "B", "A")

    monkeypatch.setattr(word_service.random, "random", lambda: 0.9)
    assert word_service.pick_word_pair([]) == (0, "A", "B")


def test_word_pairs_are_distinct():
    assert len(set(word_service.WORD_PAIRS)) == len(word_service.WORD_PAIRS)
    for legit, clone in word_service.WORD_PAIRS:
        assert legit.strip() and clone.strip()
        assert legit.lower() != clone.lower()


# ============ talk order ============

def test_recompute_talk_order_closes_gaps_and_keeps_relative_order():
    lobby = _lobby([Role.LEGIT] * 5)
    orders = [4, 1, 5, 2, 3]
    for player, order in zip(lobby.players, orders):
        player.talk_order = order
    lobby.players[1].is_eliminated = True  # had 1
    lobby.players[4].is_eliminated = True  # had 3

    recompute_talk_order(lobby)

    assert lobby.players[1].talk_order is None
    assert lobby.players[4].talk_order is None
    # p3 (2) < p0 (4) < p2 (5)
    assert lobby.players[3].talk_order == 1
    assert lobby.players[0].talk_order == 2
    assert lobby.players[2].talk_order == 3


def test_recompute_talk_order_treats_missing_as_zero():
    lobby = _lobby([Role.LEGIT] * 3)
    lobby.players[0].talk_order = 2
    lobby.players[1].talk_order = None
    lobby.players[2].talk_order = 1

    recompute_talk_order(lobby)

    assert [p.talk_order for p in lobby.players] == [3, 1, 2]


# ============ auto-win ============

def test_auto_win_single_faction_clones():
    lobby = _lobby([Role.LEGIT, Role.CLONE, Role.CLONE], eliminated={"p0"})
    assert alive_counts(lobby) == {Role.LEGIT: 0, Role.CLONE: 2, Role.BLIND: 0}

    apply_auto_win(lobby)

    assert lobby.status == LobbyStatus.FINISHED
    assert lobby.winner == Winner.CLONES
    assert lobby.pending_blind_id is None


def test_auto_win_single_faction_legits():
    lobby = _lobby([Role.LEGIT, Role.LEGIT, Role.CLONE], eliminated={"p2"})
    apply_auto_win(lobby)
    assert lobby.status == LobbyStatus.FINISHED
    assert lobby.winner == Winner.LEGITS


def test_auto_win_two_alive_with_blind_opens_guess():
    lobby = _lobby([Role.LEGIT, Role.CLONE, Role.BLIND], eliminated={"p1"})

    apply_auto_win(lobby)

    assert lobby.status == LobbyStatus.BLIND_GUESS
    assert lobby.pending_blind_id == "p2"
    assert lobby.winner is None


def test_auto_win_only_blinds_left():
    lobby = _lobby([Role.LEGIT, Role.BLIND, Role.BLIND, Role.CLONE], eliminated={"p0", "p3"})
    apply_auto_win(lobby)
    assert lobby.status == LobbyStatus.FINISHED
    assert lobby.winner == Winner.BLIND


def test_auto_win_undecided_with_several_factions():
    lobby = _lobby([Role.LEGIT, Role.LEGIT, Role.CLONE, Role.BLIND])
    apply_auto_win(lobby)
    assert lobby.status == LobbyStatus.STARTED
    assert lobby.winner is None


@pytest.mark.parametrize("status", [LobbyStatus.FINISHED, LobbyStatus.BLIND_GUESS])
def test_auto_win_skipped_when_finished_or_guessing(status):
    lobby = _lobby([Role.LEGIT, Role.CLONE], status=status, eliminated={"p1"})
    apply_auto_win(lobby)
    assert lobby.status == status
    assert lobby.winner is None


def test_auto_win_noop_without_alive_players():
    lobby = _lobby([Role.LEGIT, Role.CLONE], eliminated={"p0", "p1"})
    apply_auto_win(lobby)
    assert lobby.status == LobbyStatus.STARTED
    assert lobby.winner is None


# ============ pruning ============

def test_prune_removes_stale_players_only_while_waiting():
    lobby = _lobby([None, None, None], status=LobbyStatus.WAITING)
    now = 1_000_000
    lobby.players[0].last_seen = now - 59_999
    lobby.players[1].last_seen = now - 60_000
    lobby.players[2].last_seen = None

    removed = prune_inactive_players(lobby, now, 60_000)

    assert removed == 1
    assert [p.id for p in lobby.players] == ["p0", "p2"]


def test_prune_ignores_running_rounds():
    lobby = _lobby([Role.LEGIT, Role.CLONE])
    for player in lobby.players:
        player.last_seen = 0

    assert prune_inactive_players(lobby, 10_000_000, 60_000) == 0
    assert len(lobby.players) == 2


# ============ votes ============

def test_record_vote_last_write_wins():
    lobby = _lobby([Role.LEGIT, Role.LEGIT, Role.CLONE])
    assert record_vote(lobby, "p0", "p1") is True
    assert record_vote(lobby, "p0", "p2") is True
    assert lobby.votes == {"p0": "p2"}


def test_record_vote_rejects_dead_or_missing_players():
    lobby = _lobby([Role.LEGIT, Role.LEGIT, Role.CLONE], eliminated={"p1"})
    assert record_vote(lobby, "p1", "p0") is False
    assert record_vote(lobby, "p0", "p1") is False
    assert record_vote(lobby, "ghost", "p0") is False
    assert record_vote(lobby, "p0", "ghost") is False
    assert lobby.votes == {}


def test_record_vote_rejected_outside_round():
    lobby = _lobby([Role.LEGIT, Role.CLONE], status=LobbyStatus.WAITING)
    assert record_vote(lobby, "p0", "p1") is False


def test_tally_and_drop_votes():
    lobby = _lobby([Role.LEGIT, Role.LEGIT, Role.CLONE])
    lobby.votes = {"p0": "p2", "p1": "p2", "p2": "p0"}
    assert tally_votes(lobby) == {"p2": 2, "p0": 1}

    drop_votes_involving(lobby, "p2")
    assert lobby.votes == {}
