"""
Concurrency control

Two request handlers working on the same lobby must not overwrite each other's
save (e.g. two simultaneous votes). Two layers guard against it:

1. Pessimistic: SELECT ... FOR UPDATE on the lobby row (PostgreSQL, MySQL).
   SQLite ignores the clause, so:
2. Optimistic: LobbyRecord.version is SQLAlchemy's version_id_col. The UPDATE
   only matches the version that was loaded; a lost race raises StaleDataError,
   translated to ConcurrentLobbyUpdate by the store.
"""
from sqlalchemy.orm import Session, Query

from models import LobbyRecord


def with_lobby_lock(code: str, db: Session) -> Query:
    """
    Lock one lobby row for the rest of the transaction

    Usage:
        record = with_lobby_lock(code, db).first()
        if not record:
            raise LobbyNotFound(code)
        ...
        db.commit()

    Args:
        code: normalized (upper-case) lobby code
        db: SQLAlchemy Session

    Returns:
        Query object (call .first())

    Notes:
        - nowait=False: a second request waits for the first to commit
        - populate_existing: data and version are re-read once the lock is held
        - must run inside a transaction (see database.transactional)
    """
    return db.query(LobbyRecord).filter(
        LobbyRecord.code == code
    ).with_for_update(nowait=False).populate_existing()
