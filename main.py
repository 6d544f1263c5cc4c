from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import models  # noqa: F401  registers LobbyRecord on Base.metadata
from database import Base, engine, settings
from api import lobbies, players, rounds

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create the lobbies table if missing
    Base.metadata.create_all(bind=engine)
    logger.info("Lobby table ready")
    yield


app = FastAPI(
    title="Clone Game API",
    description="Lobby backend for the Legits / Clones / Blind word game",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(lobbies.router)
app.include_router(players.router)
app.include_router(rounds.router)


@app.get("/")
def root():
    return {"message": "Clone Game API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
