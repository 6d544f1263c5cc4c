from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache, wraps
from typing import List
import logging

from core.exceptions import CloneGameException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./clone_game.db"

    # seconds without a heartbeat before a waiting player is pruned
    lobby_inactivity_timeout_sec: int = 60
    # attempts at an unused lobby code before falling back to an unchecked one
    lobby_code_attempts: int = 50

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()


def _connect_args(url: str) -> dict:
    # sync endpoints run in FastAPI's threadpool; SQLite connections must be shareable
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url), pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency: provide a database Session

    yield guarantees the session is closed when the request ends
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _session_from_call(args, kwargs) -> Session:
    db = kwargs.get("db")
    if db is None and args and isinstance(args[0], Session):
        db = args[0]
    if db is None:
        raise TypeError("@transactional needs a Session as first argument or as db=")
    return db


def transactional(func):
    """
    Transaction decorator: make one engine operation atomic

    Usage:
        @transactional
        def some_lobby_operation(db: Session, ...):
            lobby = load_lobby(db, code)
            ...
            save_lobby(db, lobby)

    Commits when the operation returns. Game exceptions (CloneGameException)
    are logged as warnings, anything else as errors with a traceback; either
    way the session is rolled back and the exception re-raised for the API
    layer to map. Operations never commit themselves.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = _session_from_call(args, kwargs)
        try:
            result = func(*args, **kwargs)
            db.commit()
        except CloneGameException as e:
            db.rollback()
            logger.warning(f"{func.__name__} rejected: {e}")
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"{func.__name__} aborted, rolled back: {e}", exc_info=True)
            raise
        return result

    return wrapper
