"""
Mergers Rules Service - FastAPI Application
Stateless HTTP adapter over the rules engine: setup, move evaluation,
legal-move listing and the client read model
"""

import logging
import os
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from . import config
from .core.logging_config import configure_third_party_loggers, setup_logging
from .errors import MergersError
from .game_engine import GameEngine
from .models import GameState, Move, MoveResult, RulesOptions
from .view import GameView, PriceGuideRow, build_view, price_guide

# Configure logging for the whole package
setup_logging(
    "mergers", level=config.LOG_LEVEL, format_style=config.LOG_FORMAT
)
configure_third_party_loggers(quiet=True)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Mergers Rules Service",
    description="Rules engine for the Mergers hotel-chain board game",
    version="1.0.0",
)

cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SetupRequest(BaseModel):
    """Request model for creating a new game"""
    num_players: int = Field(alias="numPlayers")
    seed: Optional[int] = Field(None, ge=0, le=0xFFFFFFFF)
    options: Optional[RulesOptions] = None

    class Config:
        populate_by_name = True


class ApplyMoveRequest(BaseModel):
    """Request model for applying a move"""
    game_state: GameState = Field(alias="gameState")
    move: Move

    class Config:
        populate_by_name = True


class ValidMovesRequest(BaseModel):
    game_state: GameState = Field(alias="gameState")
    player: str

    class Config:
        populate_by_name = True


class ViewRequest(BaseModel):
    game_state: GameState = Field(alias="gameState")
    viewer: Optional[str] = None

    class Config:
        populate_by_name = True


def _bad_request(error: MergersError) -> HTTPException:
    return HTTPException(status_code=400, detail=error.to_dict())


@app.get("/")
async def root():
    """Service banner"""
    return {
        "service": "Mergers Rules Service",
        "status": "running",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    """Health check for container orchestration"""
    return {"status": "healthy"}


@app.get("/metrics")
async def metrics():
    """Prometheus metrics in the default text exposition format."""
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


@app.post("/games/setup", response_model=GameState)
async def setup_game(request: SetupRequest):
    try:
        return GameEngine.setup(
            request.num_players, seed=request.seed, options=request.options
        )
    except MergersError as e:
        logger.warning("Rejected setup: %s", e)
        raise _bad_request(e)


@app.post("/rules/apply_move", response_model=MoveResult)
async def apply_move(request: ApplyMoveRequest):
    """Apply a move to a state.

    Rule and turn rejections come back as ``valid=False`` with an error
    code so the caller can refuse to broadcast the move. A state the engine
    cannot make sense of is a 400.
    """
    try:
        return GameEngine.evaluate_move(request.game_state, request.move)
    except MergersError as e:
        logger.error("Error in /rules/apply_move: %s", e)
        raise _bad_request(e)


@app.post("/rules/valid_moves", response_model=List[Move])
async def valid_moves(request: ValidMovesRequest):
    try:
        return GameEngine.get_valid_moves(request.game_state, request.player)
    except MergersError as e:
        logger.error("Error in /rules/valid_moves: %s", e)
        raise _bad_request(e)


@app.post("/rules/view", response_model=GameView)
async def view(request: ViewRequest):
    return build_view(request.game_state, viewer=request.viewer)


@app.get("/rules/price_guide", response_model=List[PriceGuideRow])
async def get_price_guide():
    return price_guide()


if __name__ == "__main__":
    import uvicorn

    port_str = os.getenv("MERGERS_SERVICE_PORT", "8001")
    try:
        port = int(port_str)
    except ValueError:
        port = 8001

    uvicorn.run(app, host="0.0.0.0", port=port)
