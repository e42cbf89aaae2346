"""
Business Engine

Per-turn revenue collection for owned businesses and net-worth driven
unlocking of new ones.
"""

import logging
from dataclasses import replace
from typing import Tuple

from config import CONFIG, SimulationConfig
from models import Business, GameState
from valuation import effective_revenue

logger = logging.getLogger(__name__)


def collect_revenue(state: GameState) -> Tuple[GameState, float]:
    """
    Credit one turn of revenue from every owned business.

    Each owned business pays revenue * level (scaled by its active strategy,
    rounded) into its own lifetime cash and has its quick-money boost reset.
    The total lands in the player's cash.

    Returns:
        Tuple of (new state, total revenue credited)
    """
    total = 0.0
    businesses = []
    for business in state.businesses:
        if business.owned:
            earned = effective_revenue(business)
            total += earned
            business = replace(business, cash=business.cash + earned, boost_active=False)
        businesses.append(business)

    new_state = replace(
        state,
        businesses=tuple(businesses),
        player=replace(state.player, cash=state.player.cash + total),
    )
    return new_state, total


def unlock_threshold(business: Business, config: SimulationConfig = CONFIG) -> float:
    """Lowest net worth that unlocks ``business``."""
    for price_bracket, required_net_worth in config.business.unlock_tiers:
        if business.purchase_price <= price_bracket:
            return required_net_worth
    return config.business.fallback_unlock_net_worth


def check_unlocks(state: GameState, config: SimulationConfig = CONFIG) -> GameState:
    """Unlock every locked business whose threshold the current net worth meets."""
    worth = state.player.net_worth
    businesses = []
    changed = False
    for business in state.businesses:
        if not business.unlocked and worth >= unlock_threshold(business, config):
            logger.info(f"{business.name} is now available for purchase")
            business = replace(business, unlocked=True)
            changed = True
        businesses.append(business)

    if not changed:
        return state
    return replace(state, businesses=tuple(businesses))


def unlock_progress(state: GameState, config: SimulationConfig = CONFIG) -> float:
    """
    Percent of the way from the current net worth to the next locked business.

    100 once everything is unlocked.
    """
    thresholds = [unlock_threshold(b, config) for b in state.businesses if not b.unlocked]
    if not thresholds:
        return 100.0
    target = min(thresholds)
    if target <= 0:
        return 100.0
    return max(0.0, min(100.0, state.player.net_worth / target * 100.0))
