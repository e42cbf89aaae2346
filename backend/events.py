"""
Event Engine

Two phases per turn. First every active event applies its multiplier to the
businesses and stocks it targets and counts down; then a new catalog event
may fire.

Active multipliers compound: an event that stays active for three turns
multiplies the targeted revenue (or stock trend) three separate times, and
the inflated figure outlives the event. Saved games depend on this.
"""

import logging
from dataclasses import replace
from typing import List, Tuple

from config import CONFIG, SimulationConfig
from models import Business, EconomicEvent, GameState, Stock, replace_at
from random_source import RandomSource, choose_index, clamp

logger = logging.getLogger(__name__)


def _apply_to_business(business: Business, event: EconomicEvent) -> Business:
    if event.affected_business_types and business.type in event.affected_business_types:
        return replace(business, revenue=business.revenue * event.multiplier)
    return business


def _apply_to_stock(stock: Stock, event: EconomicEvent, config: SimulationConfig) -> Stock:
    if event.affected_stocks and stock.id in event.affected_stocks:
        bound = config.market.stock_trend_bound
        return replace(stock, trend=clamp(stock.trend * event.multiplier, -bound, bound))
    return stock


def apply_active_events(state: GameState, config: SimulationConfig = CONFIG) -> GameState:
    """
    Apply each active event once and decrement its countdown.

    An event whose countdown would reach zero is retired after this final
    application. Events without targets (market-wide flavour events) only
    count down.
    """
    businesses = state.businesses
    stocks = state.stocks
    still_active: List[EconomicEvent] = []

    for event in state.active_events:
        if event.affected_business_types:
            businesses = tuple(_apply_to_business(b, event) for b in businesses)
        if event.affected_stocks:
            stocks = tuple(_apply_to_stock(s, event, config) for s in stocks)

        if event.turns_left is not None and event.turns_left > 1:
            still_active.append(replace(event, turns_left=event.turns_left - 1))
        else:
            logger.info(f"Event '{event.title}' has ended")

    return replace(
        state,
        businesses=businesses,
        stocks=stocks,
        active_events=tuple(still_active),
    )


def activate_event(state: GameState, event_id: str) -> GameState:
    """Mark a catalog event applied and start an active instance of it."""
    for idx, event in enumerate(state.events):
        if event.id == event_id:
            break
    else:
        raise KeyError(f"no catalog event with id {event_id!r}")

    events = replace_at(state.events, idx, replace(event, applied=True))
    instance = replace(event, applied=True, turns_left=event.duration)
    logger.info(f"Economic event triggered: {event.title} ({event.type}, x{event.multiplier} for {event.duration} turns)")
    return replace(state, events=events, active_events=state.active_events + (instance,))


def trigger_event(
    state: GameState,
    rng: RandomSource,
    config: SimulationConfig = CONFIG,
) -> GameState:
    """
    Possibly fire a new event.

    With the configured probability, pick uniformly among catalog events that
    have never fired. Once the catalog is exhausted nothing fires.
    """
    if rng.random() >= config.events.trigger_probability:
        return state
    available: Tuple[EconomicEvent, ...] = tuple(e for e in state.events if not e.applied)
    if not available:
        return state
    chosen = available[choose_index(rng, len(available))]
    return activate_event(state, chosen.id)


def advance_events(
    state: GameState,
    rng: RandomSource,
    config: SimulationConfig = CONFIG,
) -> GameState:
    """Apply-then-trigger; a freshly triggered event first takes effect next turn."""
    return trigger_event(apply_active_events(state, config), rng, config)
