"""
HTTP surface for the tycoon simulator.

Run with ``uvicorn server:app`` from the backend directory. Game sessions live
in memory; each one owns its GameState, its random source and a lock, so two
requests against the same session never interleave.

Sessions are dropped by ``DELETE /api/games/{id}``. At most MAX_SESSIONS are
kept; starting one more evicts the oldest, so an abandoned game is lost once
enough newer games have started. Save a game to keep it.
"""

import logging
import os
import random
import sys
import threading
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

# Add current directory to path so we can import backend modules
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

import auth
import transactions
from catalog import new_game
from config import Settings, load_settings
from economy import advance_turn
from models import GameState
from schemas import (
    Credentials,
    InvalidSaveDocument,
    NewGameRequest,
    QuantityRequest,
    SaveDocumentRequest,
    SaveRequest,
    SaveSummary,
    SaveUpdateRequest,
    TransactionOut,
    UserOut,
    parse_game_state,
)
from storage import PersistenceError, SaveIntegrityError, SaveNotFoundError, SaveRecord, SaveStore
from valuation import total_revenue

# Setup logging
logging.basicConfig(level=load_settings().log_level)
logger = logging.getLogger(__name__)

MAX_SESSIONS = 1000

app = FastAPI(title="Tycoon Simulator")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_store() -> SaveStore:
    return SaveStore(get_settings().db_path)


@dataclass
class GameSession:
    state: GameState
    rng: random.Random
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionManager:
    """In-memory registry of live game sessions, oldest evicted past max_sessions."""

    def __init__(self, max_sessions: int = MAX_SESSIONS):
        self.max_sessions = max_sessions
        self.sessions: Dict[str, GameSession] = {}
        self._registry_lock = threading.Lock()

    def create(self, state: GameState, rng: random.Random) -> str:
        session_id = uuid.uuid4().hex
        with self._registry_lock:
            while self.sessions and len(self.sessions) >= self.max_sessions:
                # dicts keep insertion order, so the first key is the oldest session
                evicted = next(iter(self.sessions))
                del self.sessions[evicted]
                logger.info(f"Game session {evicted} evicted")
            self.sessions[session_id] = GameSession(state=state, rng=rng)
        return session_id

    def get(self, session_id: str) -> GameSession:
        with self._registry_lock:
            session = self.sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Game session not found")
        return session

    def close(self, session_id: str):
        with self._registry_lock:
            if self.sessions.pop(session_id, None) is None:
                raise HTTPException(status_code=404, detail="Game session not found")

    def run(self, session_id: str, operation: Callable[[GameSession], Any]) -> Any:
        """Run ``operation`` while holding the session's lock."""
        session = self.get(session_id)
        with session.lock:
            return operation(session)


manager = SessionManager()


def _summary(record: SaveRecord) -> SaveSummary:
    return SaveSummary(
        id=record.id,
        user_id=record.user_id,
        name=record.name,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _game_payload(session_id: str, state: GameState) -> Dict[str, Any]:
    return {
        "session_id": session_id,
        "revenue_per_turn": total_revenue(state),
        "game_state": state.to_dict(),
    }


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@app.post("/api/users", response_model=UserOut, status_code=201)
def create_user(
    credentials: Credentials,
    store: SaveStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    try:
        user_id = auth.register(store, credentials.username, credentials.password, settings.password_pepper)
    except auth.ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to create user")
    return UserOut(id=user_id, username=credentials.username)


@app.post("/api/users/auth", response_model=UserOut)
def authenticate_user(
    credentials: Credentials,
    store: SaveStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    try:
        user_id = auth.login(store, credentials.username, credentials.password, settings.password_pepper)
    except auth.AuthError:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Authentication failed")
    return UserOut(id=user_id, username=credentials.username)


# ---------------------------------------------------------------------------
# Saves
# ---------------------------------------------------------------------------

@app.get("/api/saves")
def list_saves(user_id: int, store: SaveStore = Depends(get_store)):
    try:
        return [_summary(r) for r in store.list(user_id)]
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to fetch game saves")


@app.post("/api/saves", response_model=SaveSummary, status_code=201)
def create_save(request: SaveDocumentRequest, store: SaveStore = Depends(get_store)):
    try:
        state = parse_game_state(request.game_state)
    except InvalidSaveDocument as e:
        raise HTTPException(status_code=422, detail=f"Invalid game state: {e}")
    try:
        save_id = store.save(request.user_id, request.name, state)
        return _summary(store.get(save_id))
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to save game")


@app.get("/api/saves/{save_id}")
def get_save(save_id: int, store: SaveStore = Depends(get_store)):
    try:
        record = store.get(save_id)
        state = store.load(save_id)
    except SaveNotFoundError:
        raise HTTPException(status_code=404, detail="Game save not found")
    except SaveIntegrityError:
        raise HTTPException(status_code=422, detail="Game save is corrupt")
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to fetch game save")
    return {**_summary(record).model_dump(), "game_state": state.to_dict()}


@app.put("/api/saves/{save_id}", response_model=SaveSummary)
def update_save(save_id: int, request: SaveUpdateRequest, store: SaveStore = Depends(get_store)):
    state: Optional[GameState] = None
    if request.game_state is not None:
        try:
            state = parse_game_state(request.game_state)
        except InvalidSaveDocument as e:
            raise HTTPException(status_code=422, detail=f"Invalid game state: {e}")
    try:
        return _summary(store.update(save_id, name=request.name, state=state))
    except SaveNotFoundError:
        raise HTTPException(status_code=404, detail="Game save not found")
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to update game save")


@app.delete("/api/saves/{save_id}", status_code=204)
def delete_save(save_id: int, store: SaveStore = Depends(get_store)):
    try:
        store.delete(save_id)
    except SaveNotFoundError:
        raise HTTPException(status_code=404, detail="Game save not found")
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to delete game save")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Game sessions
# ---------------------------------------------------------------------------

@app.post("/api/games", status_code=201)
def start_game(request: NewGameRequest):
    rng = random.Random(request.seed)
    state = new_game(request.player_name, rng)
    session_id = manager.create(state, rng)
    logger.info(f"Game session {session_id} started")
    return _game_payload(session_id, state)


@app.get("/api/games/{session_id}")
def get_game(session_id: str):
    state = manager.run(session_id, lambda s: s.state)
    return _game_payload(session_id, state)


@app.delete("/api/games/{session_id}", status_code=204)
def end_game(session_id: str):
    manager.close(session_id)
    return Response(status_code=204)


@app.post("/api/games/{session_id}/turn")
def end_turn(session_id: str):
    def step(session: GameSession) -> GameState:
        session.state = advance_turn(session.state, session.rng)
        return session.state

    state = manager.run(session_id, step)
    return _game_payload(session_id, state)


def _transact(session_id: str, operation: Callable[[GameSession], transactions.TransactionResult]) -> TransactionOut:
    """Apply a transaction under the session lock; rejections become 400s."""

    def apply(session: GameSession) -> transactions.TransactionResult:
        result = operation(session)
        if result.accepted:
            session.state = result.state
        return result

    result = manager.run(session_id, apply)
    if not result.accepted:
        raise HTTPException(status_code=400, detail=result.reason)
    return TransactionOut(
        accepted=True,
        reason=result.reason,
        amount=result.amount,
        game_state=result.state.to_dict(),
    )


@app.post("/api/games/{session_id}/businesses/{business_id}/purchase", response_model=TransactionOut)
def purchase_business(session_id: str, business_id: str):
    return _transact(session_id, lambda s: transactions.purchase_business(s.state, business_id))


@app.post("/api/games/{session_id}/businesses/{business_id}/upgrade", response_model=TransactionOut)
def upgrade_business(session_id: str, business_id: str):
    return _transact(session_id, lambda s: transactions.upgrade_business(s.state, business_id))


@app.post("/api/games/{session_id}/businesses/{business_id}/sell", response_model=TransactionOut)
def sell_business(session_id: str, business_id: str):
    return _transact(session_id, lambda s: transactions.sell_business(s.state, business_id))


@app.post("/api/games/{session_id}/businesses/{business_id}/quick-money", response_model=TransactionOut)
def activate_quick_money(session_id: str, business_id: str):
    return _transact(session_id, lambda s: transactions.activate_quick_money(s.state, business_id, s.rng))


@app.post(
    "/api/games/{session_id}/businesses/{business_id}/upgrades/{upgrade_id}",
    response_model=TransactionOut,
)
def purchase_upgrade(session_id: str, business_id: str, upgrade_id: str):
    return _transact(session_id, lambda s: transactions.purchase_upgrade(s.state, business_id, upgrade_id))


@app.post(
    "/api/games/{session_id}/businesses/{business_id}/strategies/{strategy_id}",
    response_model=TransactionOut,
)
def apply_strategy(session_id: str, business_id: str, strategy_id: str):
    return _transact(session_id, lambda s: transactions.apply_strategy(s.state, business_id, strategy_id))


@app.post("/api/games/{session_id}/stocks/{stock_id}/buy", response_model=TransactionOut)
def buy_stock(session_id: str, stock_id: str, request: QuantityRequest):
    return _transact(session_id, lambda s: transactions.buy_stock(s.state, stock_id, request.quantity))


@app.post("/api/games/{session_id}/stocks/{stock_id}/sell", response_model=TransactionOut)
def sell_stock(session_id: str, stock_id: str, request: QuantityRequest):
    return _transact(session_id, lambda s: transactions.sell_stock(s.state, stock_id, request.quantity))


@app.post("/api/games/{session_id}/assets/{asset_id}/buy", response_model=TransactionOut)
def buy_asset(session_id: str, asset_id: str):
    return _transact(session_id, lambda s: transactions.buy_asset(s.state, asset_id))


@app.post("/api/games/{session_id}/assets/{asset_id}/sell", response_model=TransactionOut)
def sell_asset(session_id: str, asset_id: str):
    return _transact(session_id, lambda s: transactions.sell_asset(s.state, asset_id))


@app.post("/api/games/{session_id}/save", response_model=SaveSummary, status_code=201)
def save_game(session_id: str, request: SaveRequest, store: SaveStore = Depends(get_store)):
    state = manager.run(session_id, lambda s: s.state)
    try:
        save_id = store.save(request.user_id, request.name, state)
        return _summary(store.get(save_id))
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to save game")


@app.post("/api/games/{session_id}/load/{save_id}")
def load_game(session_id: str, save_id: int, store: SaveStore = Depends(get_store)):
    """Replace the session's state with a saved game; a bad save leaves it untouched."""
    try:
        loaded = store.load(save_id)
    except SaveNotFoundError:
        raise HTTPException(status_code=404, detail="Game save not found")
    except SaveIntegrityError:
        raise HTTPException(status_code=422, detail="Game save is corrupt")
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to load game")

    def swap(session: GameSession) -> GameState:
        session.state = loaded
        return loaded

    state = manager.run(session_id, swap)
    return _game_payload(session_id, state)
