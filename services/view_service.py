"""
View service: what each client is allowed to see

Roles and words stay secret until the game is finished; a player only ever
sees their own role and word through the player state endpoint.
"""
from models import Lobby, LobbyStatus, Player
from schemas import LobbyView, PlayerPrivate, PlayerPublic, PlayerStateResponse, SettingsView
from services.vote_service import tally_votes


def lobby_public_state(lobby: Lobby) -> LobbyView:
    revealed = lobby.status == LobbyStatus.FINISHED
    players = [
        PlayerPublic(
            id=p.id,
            name=p.name,
            is_host=p.is_host,
            is_eliminated=p.is_eliminated,
            talk_order=p.talk_order,
            role=p.role if revealed else None,
        )
        for p in lobby.players
    ]
    return LobbyView(
        code=lobby.code,
        host_id=lobby.host_id,
        status=lobby.status,
        settings=SettingsView(**lobby.settings.model_dump()),
        players=players,
        winner=lobby.winner,
        pending_blind_id=lobby.pending_blind_id,
        votes=dict(lobby.votes),
        vote_counts=tally_votes(lobby),
        legit_word=lobby.legit_word if revealed else None,
        clone_word=lobby.clone_word if revealed else None,
    )


def player_private_state(lobby: Lobby, player: Player) -> PlayerStateResponse:
    is_host = player.id == lobby.host_id
    return PlayerStateResponse(
        lobby_status=lobby.status,
        winner=lobby.winner,
        pending_blind_id=lobby.pending_blind_id,
        host_secret=lobby.host_secret if is_host else None,
        player=PlayerPrivate(
            id=player.id,
            name=player.name,
            role=player.role,
            word=player.word,
            is_host=is_host,
            is_eliminated=player.is_eliminated,
            talk_order=player.talk_order,
        ),
    )
