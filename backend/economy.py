"""
Turn Orchestrator

Single entry point advancing a game by one turn. Phases run in a fixed order:

1. Turn counter increment
2. Business revenue collection (and boost reset)
3. Market step (macro indicators, stocks, owned assets)
4. Events (apply active, then maybe trigger one)
5. Net worth refresh
6. Business unlock check

Every phase returns a new GameState; the caller's state is never touched, so
an exception in any phase leaves nothing partially applied.
"""

import logging
from dataclasses import replace
from typing import Optional

from business import check_unlocks, collect_revenue, unlock_progress
from config import CONFIG, SimulationConfig
from events import advance_events
from market import advance_market
from models import GameState
from random_source import RandomSource, default_source
from valuation import refresh_net_worth

logger = logging.getLogger(__name__)


def advance_turn(
    state: GameState,
    rng: Optional[RandomSource] = None,
    config: SimulationConfig = CONFIG,
) -> GameState:
    """
    Resolve one turn.

    Args:
        state: Current game state (left unmodified)
        rng: Random source for market and events; unseeded if omitted
        config: Simulation configuration

    Returns:
        The next game state
    """
    rng = rng or default_source()

    next_state = replace(state, turn=state.turn + 1)
    next_state, revenue = collect_revenue(next_state)
    next_state = advance_market(next_state, rng, config)
    next_state = advance_events(next_state, rng, config)
    next_state = refresh_net_worth(next_state, config)
    next_state = check_unlocks(next_state, config)
    next_state = replace(next_state, unlock_progress=unlock_progress(next_state, config))

    logger.debug(
        f"Turn {next_state.turn}: revenue=${revenue:,.0f}, "
        f"cash=${next_state.player.cash:,.0f}, net_worth=${next_state.player.net_worth:,.0f}, "
        f"trend={next_state.market_trend:+.3f}, health={next_state.economic_health:.1f}, "
        f"active_events={len(next_state.active_events)}"
    )
    return next_state


def run_turns(
    state: GameState,
    turns: int,
    rng: Optional[RandomSource] = None,
    config: SimulationConfig = CONFIG,
) -> GameState:
    """Advance ``turns`` times with a shared random source."""
    if turns < 0:
        raise ValueError(f"turns cannot be negative, got {turns}")
    rng = rng or default_source()
    for _ in range(turns):
        state = advance_turn(state, rng, config)
    return state
