"""
Custom exceptions

All lobby engine failures live here so the API layer can map them in one place.
Every exception is raised before anything is persisted; the surrounding
transaction rolls back so the stored lobby stays untouched.
"""


class CloneGameException(Exception):
    """Base class for every game exception"""
    pass


# ============ Not found ============

class LobbyNotFound(CloneGameException):
    """Lobby does not exist"""
    def __init__(self, code):
        self.code = code
        super().__init__(f"Lobby {code} not found")


class PlayerNotFound(CloneGameException):
    """Target player is not part of the lobby"""
    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(f"Player {player_id} not found")


class PlayerNotInLobby(PlayerNotFound):
    """The calling player is no longer in the lobby (left, kicked or pruned)"""
    pass


# ============ Authorization ============

class NotLobbyHost(CloneGameException):
    """Host-only action attempted by someone else"""
    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(f"Player {player_id} is not the lobby host")


# ============ Status transitions ============

class InvalidStateTransition(CloneGameException):
    """Operation attempted outside its permitted statuses"""
    pass


class LobbyNotWaiting(InvalidStateTransition):
    """Lobby has left the waiting stage (join, kick, settings, start)"""
    pass


class NotPendingBlind(InvalidStateTransition):
    """Guess submitted by someone who is not owed a blind guess"""
    pass


# ============ Validation ============

class LobbyValidationError(CloneGameException):
    """Caller-fixable precondition failed"""
    pass


class RosterIncomplete(LobbyValidationError):
    """Role settings do not add up to the number of players"""
    pass


class WordPairsExhausted(LobbyValidationError):
    """Every word pair has already been played in this lobby"""
    pass


class EmptyGuess(LobbyValidationError):
    """Blind guess is empty after trimming"""
    pass


# ============ Concurrency ============

class ConcurrentLobbyUpdate(CloneGameException):
    """Lobby was saved by another request since it was loaded"""
    def __init__(self, code):
        self.code = code
        super().__init__(f"Lobby {code} was modified concurrently, retry the request")
