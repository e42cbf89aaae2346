"""
Valuation Functions

Pure, side-effect-free readings of a GameState: net worth, affordability,
per-turn revenue and position profit/loss. Nothing here mutates state;
refresh_net_worth returns a new state carrying the recomputed figure.
"""

from dataclasses import replace

from config import CONFIG, SimulationConfig
from models import Asset, Business, GameState, Stock
from random_source import half_up


def business_value(business: Business, config: SimulationConfig = CONFIG) -> float:
    """Book value of an owned business: purchasePrice * level * fixed multiplier."""
    return business.purchase_price * business.level * config.valuation.business_value_multiplier


def net_worth(state: GameState, config: SimulationConfig = CONFIG) -> float:
    """
    Net worth from scratch.

    cash + owned businesses at book value + owned shares at current price
    + owned assets at current value.
    """
    total = state.player.cash
    total += sum(business_value(b, config) for b in state.businesses if b.owned)
    total += sum(s.price * s.owned for s in state.stocks if s.owned > 0)
    total += sum(a.value for a in state.assets if a.owned)
    return total


def refresh_net_worth(state: GameState, config: SimulationConfig = CONFIG) -> GameState:
    """Return ``state`` with ``player.net_worth`` recomputed."""
    return replace(state, player=replace(state.player, net_worth=net_worth(state, config)))


def can_afford(state: GameState, cost: float) -> bool:
    return state.player.cash >= cost


def effective_revenue(business: Business) -> float:
    """Revenue the business would pay out this turn (level and active strategy applied)."""
    revenue = business.revenue * business.level
    strategy = business.active_strategy
    if strategy is not None:
        revenue = half_up(revenue * strategy.revenue_multiplier)
    return revenue


def total_revenue(state: GameState) -> float:
    """Sum of per-turn revenue across owned businesses."""
    return sum(effective_revenue(b) for b in state.businesses if b.owned)


def level_upgrade_cost(business: Business) -> float:
    return business.upgrade_price * business.level


def can_afford_upgrade(state: GameState, business: Business) -> bool:
    """Whether the next level of ``business`` is affordable."""
    return can_afford(state, level_upgrade_cost(business))


def sale_value(business: Business, config: SimulationConfig = CONFIG) -> float:
    """Cash a sale of ``business`` would credit."""
    return business.purchase_price * business.level * config.transactions.business_sale_factor


def percentage_change(old: float, new: float) -> float:
    """Percent change from old to new; 0 when old is 0."""
    if old == 0:
        return 0.0
    return (new - old) / old * 100.0


def stock_profit_loss(stock: Stock) -> float:
    """Unrealized gain on the shares held, 0 with no position."""
    if stock.owned == 0 or stock.purchase_price is None:
        return 0.0
    return (stock.price - stock.purchase_price) * stock.owned


def stock_profit_loss_percent(stock: Stock) -> float:
    if stock.owned == 0 or stock.purchase_price is None:
        return 0.0
    return percentage_change(stock.purchase_price, stock.price)


def asset_value_change(asset: Asset) -> float:
    return asset.value - asset.cost


def asset_value_change_percent(asset: Asset) -> float:
    return percentage_change(asset.cost, asset.value)


def max_affordable_quantity(state: GameState, stock: Stock) -> int:
    """Whole shares of ``stock`` the player's cash covers."""
    if stock.price <= 0:
        return 0
    return max(0, int(state.player.cash // stock.price))
