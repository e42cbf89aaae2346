"""
Batch autoplay for the tycoon simulator.

Plays several seeded games with a simple greedy policy and reports summary
statistics across them. Optionally exports every turn to SQLite.

Usage:
    python run_simulation.py --games 20 --turns 100 --seed 7 --db autoplay.db
"""

import argparse
import logging
import os
import random
import sqlite3
import time
from typing import Dict, List, Optional

import numpy as np

from catalog import new_game
from config import CONFIG, SimulationConfig, load_settings
from economy import advance_turn
from models import GameState
from transactions import (
    activate_quick_money,
    apply_strategy,
    purchase_business,
    upgrade_business,
)
from valuation import effective_revenue, level_upgrade_cost, total_revenue

logger = logging.getLogger(__name__)

PREFERRED_STRATEGY = "Aggressive Growth"


def play_greedy(state: GameState, rng: random.Random, config: SimulationConfig = CONFIG) -> GameState:
    """
    One round of player actions before ending the turn.

    Cash in every available quick-money boost, then buy the cheapest
    affordable business (switching it to the preferred strategy), otherwise
    level up the owned business with the best revenue per upgrade dollar.
    """
    for business in state.businesses:
        if business.owned and business.quick_money_option and not business.boost_active:
            state = activate_quick_money(state, business.id, rng, config).state

    candidates = sorted(
        (b for b in state.businesses if b.unlocked and not b.owned),
        key=lambda b: b.purchase_price,
    )
    for business in candidates:
        result = purchase_business(state, business.id, config)
        if result:
            state = result.state
            strategy = next((s for s in business.strategies if s.name == PREFERRED_STRATEGY), None)
            if strategy is not None:
                state = apply_strategy(state, business.id, strategy.id, config).state
            return state

    owned = [b for b in state.businesses if b.owned]
    if owned:
        best = max(owned, key=lambda b: effective_revenue(b) / max(level_upgrade_cost(b), 1.0))
        result = upgrade_business(state, best.id, config)
        if result:
            state = result.state
    return state


def init_database(db_path: str):
    """Initialize SQLite database with schema."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS turns (
            game INTEGER,
            turn INTEGER,
            cash REAL,
            net_worth REAL,
            revenue_per_turn REAL,
            businesses_owned INTEGER,
            market_trend REAL,
            economic_health REAL,
            active_events INTEGER,
            PRIMARY KEY (game, turn)
        )
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_turns_game ON turns(game)")
    conn.commit()
    conn.close()


def export_turn(conn: sqlite3.Connection, game: int, state: GameState):
    conn.execute(
        "INSERT INTO turns VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            game,
            state.turn,
            state.player.cash,
            state.player.net_worth,
            total_revenue(state),
            sum(1 for b in state.businesses if b.owned),
            state.market_trend,
            state.economic_health,
            len(state.active_events),
        ),
    )


def play_game(
    seed: int,
    turns: int,
    config: SimulationConfig = CONFIG,
    conn: Optional[sqlite3.Connection] = None,
    game: int = 0,
) -> GameState:
    """Play one seeded game to completion and return its final state."""
    rng = random.Random(seed)
    state = new_game(f"autoplay-{game}", rng, config)
    for _ in range(turns):
        state = play_greedy(state, rng, config)
        state = advance_turn(state, rng, config)
        if conn is not None:
            export_turn(conn, game, state)
    return state


def compute_game_stats(states: List[GameState]) -> Dict[str, float]:
    """Vectorized summary of final game states."""
    if not states:
        return {
            "mean_net_worth": 0.0,
            "median_net_worth": 0.0,
            "std_net_worth": 0.0,
            "min_net_worth": 0.0,
            "max_net_worth": 0.0,
            "mean_cash": 0.0,
            "mean_businesses_owned": 0.0,
            "mean_events_fired": 0.0,
        }

    net_worth = np.array([s.player.net_worth for s in states], dtype=float)
    cash = np.array([s.player.cash for s in states], dtype=float)
    owned = np.array([sum(1 for b in s.businesses if b.owned) for s in states], dtype=float)
    fired = np.array([sum(1 for e in s.events if e.applied) for s in states], dtype=float)

    return {
        "mean_net_worth": float(net_worth.mean()),
        "median_net_worth": float(np.median(net_worth)),
        "std_net_worth": float(net_worth.std()),
        "min_net_worth": float(net_worth.min()),
        "max_net_worth": float(net_worth.max()),
        "mean_cash": float(cash.mean()),
        "mean_businesses_owned": float(owned.mean()),
        "mean_events_fired": float(fired.mean()),
    }


def main(num_games: int, num_turns: int, seed: int, db_path: Optional[str] = None):
    print("=" * 60)
    print(f"TYCOON AUTOPLAY ({num_games} games, {num_turns} turns)")
    print("=" * 60)

    conn = None
    if db_path:
        if os.path.exists(db_path):
            os.remove(db_path)
            print(f"Removed existing database: {db_path}")
        init_database(db_path)
        conn = sqlite3.connect(db_path)

    start = time.time()
    finals: List[GameState] = []
    try:
        for game in range(num_games):
            final = play_game(seed + game, num_turns, conn=conn, game=game)
            finals.append(final)
            print(f"Game {game:3d} | net worth ${final.player.net_worth:14,.0f} | "
                  f"cash ${final.player.cash:14,.0f}")
        if conn is not None:
            conn.commit()
    finally:
        if conn is not None:
            conn.close()

    elapsed = time.time() - start
    stats = compute_game_stats(finals)
    print()
    print(f"Completed in {elapsed:.2f} seconds")
    for key, value in stats.items():
        print(f"  {key:24s} {value:16,.2f}")
    if db_path:
        print(f"  Database saved to: {db_path}")
    return stats


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run tycoon autoplay games.")
    parser.add_argument("--games", type=int, default=10, help="Number of games to play")
    parser.add_argument("--turns", type=int, default=100, help="Turns per game")
    parser.add_argument("--seed", type=int, default=0, help="Seed of the first game")
    parser.add_argument("--db", type=str, default=None, help="Optional SQLite export path")
    args = parser.parse_args()

    logging.basicConfig(level=load_settings().log_level)
    main(num_games=args.games, num_turns=args.turns, seed=args.seed, db_path=args.db)
