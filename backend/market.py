"""
Market Engine

Advances the macro indicators, every stock price and every asset valuation by
one turn. Randomness comes only from the injected source; the same seed and
starting state always produce the same market.
"""

from dataclasses import replace
from typing import Tuple

from config import CONFIG, SimulationConfig
from models import Asset, GameState, Stock
from random_source import RandomSource, clamp, half_up, uniform


def next_market_trend(trend: float, rng: RandomSource, config: SimulationConfig = CONFIG) -> float:
    market = config.market
    return clamp(
        trend + uniform(rng, -market.trend_step, market.trend_step),
        -market.trend_bound,
        market.trend_bound,
    )


def next_economic_health(
    health: float,
    trend: float,
    rng: RandomSource,
    config: SimulationConfig = CONFIG,
) -> float:
    """
    Random walk of economic health, nudged by the sign of the market trend.

    ``trend`` is the already-updated market trend of this turn.
    """
    market = config.market
    bias = 0.0
    if trend > 0:
        bias = market.health_trend_bias
    elif trend < 0:
        bias = -market.health_trend_bias
    return clamp(
        health + uniform(rng, -market.health_step, market.health_step) + bias,
        market.health_min,
        market.health_max,
    )


def next_stock(
    stock: Stock,
    market_trend: float,
    rng: RandomSource,
    config: SimulationConfig = CONFIG,
) -> Stock:
    """
    Move one stock by a single turn.

    percent = uniform(-1,1)*volatility + market_trend*5 + trend*2, applied as
    percentage points. The price never drops under the floor and the history
    keeps only the most recent samples.
    """
    market = config.market
    percent = (
        uniform(rng, -1.0, 1.0) * stock.volatility
        + market_trend * market.market_trend_weight
        + stock.trend * market.stock_trend_weight
    )
    price = max(market.price_floor, stock.price * (1 + percent / 100.0))
    history = (stock.history + (price,))[-market.history_length:]
    trend = clamp(
        stock.trend + uniform(rng, -market.stock_trend_step, market.stock_trend_step),
        -market.stock_trend_bound,
        market.stock_trend_bound,
    )
    return replace(stock, price=price, history=history, trend=trend)


def appreciate_asset(asset: Asset) -> Asset:
    """Apply one turn of appreciation (negative rates depreciate)."""
    return replace(asset, value=half_up(asset.value * (1 + asset.appreciation)))


def advance_market(state: GameState, rng: RandomSource, config: SimulationConfig = CONFIG) -> GameState:
    """
    Run one market step over ``state``.

    Order: market trend, economic health, stocks in roster order, then assets.
    Only owned assets appreciate.
    """
    trend = next_market_trend(state.market_trend, rng, config)
    health = next_economic_health(state.economic_health, trend, rng, config)
    stocks: Tuple[Stock, ...] = tuple(next_stock(s, trend, rng, config) for s in state.stocks)
    assets: Tuple[Asset, ...] = tuple(appreciate_asset(a) if a.owned else a for a in state.assets)
    return replace(
        state,
        market_trend=trend,
        economic_health=health,
        stocks=stocks,
        assets=assets,
    )
