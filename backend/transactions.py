"""
Transaction Operations

Player actions taken between turns: buying, levelling and selling businesses,
one-shot upgrades, strategies, the quick-money boost, and trading stocks and
assets.

Every operation returns a TransactionResult. A rejected precondition is not an
error: the result carries ``accepted=False``, a short reason, and the very
state object that was passed in. Accepted operations return a new state with
the player's net worth refreshed.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from config import CONFIG, SimulationConfig
from models import GameState, index_of, replace_at
from random_source import RandomSource, default_source, half_up, uniform
from valuation import can_afford_upgrade, level_upgrade_cost, refresh_net_worth, sale_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransactionResult:
    """Outcome of a transaction operation."""
    accepted: bool
    state: GameState
    reason: Optional[str] = None
    amount: float = 0.0  # Cash moved by the operation, when meaningful

    def __bool__(self) -> bool:
        return self.accepted


def _reject(state: GameState, operation: str, reason: str) -> TransactionResult:
    logger.debug(f"{operation} rejected: {reason}")
    return TransactionResult(accepted=False, state=state, reason=reason)


def _accept(state: GameState, config: SimulationConfig, amount: float = 0.0) -> TransactionResult:
    return TransactionResult(accepted=True, state=refresh_net_worth(state, config), amount=amount)


def _with_cash(state: GameState, delta: float, **counters: int) -> GameState:
    player = state.player
    updates = {name: getattr(player, name) + value for name, value in counters.items()}
    return replace(state, player=replace(player, cash=player.cash + delta, **updates))


# ---------------------------------------------------------------------------
# Businesses
# ---------------------------------------------------------------------------

def purchase_business(state: GameState, business_id: str, config: SimulationConfig = CONFIG) -> TransactionResult:
    idx = index_of(state.businesses, business_id)
    if idx is None:
        return _reject(state, "purchase_business", "unknown business")
    business = state.businesses[idx]
    if not business.unlocked:
        return _reject(state, "purchase_business", "business is locked")
    if business.owned:
        return _reject(state, "purchase_business", "business already owned")
    if state.player.cash < business.purchase_price:
        return _reject(state, "purchase_business", "insufficient cash")

    new_state = _with_cash(state, -business.purchase_price)
    new_state = new_state.with_business(idx, replace(business, owned=True))
    logger.info(f"Purchased {business.name} for ${business.purchase_price:,.0f}")
    return _accept(new_state, config, business.purchase_price)


def upgrade_business(state: GameState, business_id: str, config: SimulationConfig = CONFIG) -> TransactionResult:
    """Raise an owned business one level for upgrade_price * current level."""
    idx = index_of(state.businesses, business_id)
    if idx is None:
        return _reject(state, "upgrade_business", "unknown business")
    business = state.businesses[idx]
    if not business.owned:
        return _reject(state, "upgrade_business", "business not owned")
    if not can_afford_upgrade(state, business):
        return _reject(state, "upgrade_business", "insufficient cash")

    cost = level_upgrade_cost(business)
    new_state = _with_cash(state, -cost, upgrades_purchased=1)
    new_state = new_state.with_business(idx, replace(business, level=business.level + 1))
    return _accept(new_state, config, cost)


def sell_business(state: GameState, business_id: str, config: SimulationConfig = CONFIG) -> TransactionResult:
    """
    Sell an owned business at a discount on purchase_price * level.

    The business returns to level 1. Purchased upgrades, the revenue they
    compounded, and the active strategy all stay with the business.
    """
    idx = index_of(state.businesses, business_id)
    if idx is None:
        return _reject(state, "sell_business", "unknown business")
    business = state.businesses[idx]
    if not business.owned:
        return _reject(state, "sell_business", "business not owned")

    proceeds = sale_value(business, config)
    new_state = _with_cash(state, proceeds, businesses_sold=1)
    new_state = new_state.with_business(idx, replace(business, owned=False, level=1))
    logger.info(f"Sold {business.name} for ${proceeds:,.0f}")
    return _accept(new_state, config, proceeds)


def purchase_upgrade(
    state: GameState,
    business_id: str,
    upgrade_id: str,
    config: SimulationConfig = CONFIG,
) -> TransactionResult:
    """Buy a one-shot upgrade and fold its effect into the business permanently."""
    idx = index_of(state.businesses, business_id)
    if idx is None:
        return _reject(state, "purchase_upgrade", "unknown business")
    business = state.businesses[idx]
    if not business.owned:
        return _reject(state, "purchase_upgrade", "business not owned")
    upgrade_idx = index_of(business.upgrades, upgrade_id)
    if upgrade_idx is None:
        return _reject(state, "purchase_upgrade", "unknown upgrade")
    upgrade = business.upgrades[upgrade_idx]
    if upgrade.purchased:
        return _reject(state, "purchase_upgrade", "upgrade already purchased")
    if not upgrade.unlocked:
        return _reject(state, "purchase_upgrade", "upgrade is locked")
    if state.player.cash < upgrade.cost:
        return _reject(state, "purchase_upgrade", "insufficient cash")

    revenue = business.revenue
    cost = business.cost
    if upgrade.revenue_multiplier > 1:
        revenue = half_up(revenue * upgrade.revenue_multiplier)
    if upgrade.cost_reduction > 0:
        cost = half_up(cost * (1 - upgrade.cost_reduction))

    upgraded = replace(
        business,
        revenue=revenue,
        cost=cost,
        upgrades=replace_at(business.upgrades, upgrade_idx, replace(upgrade, purchased=True)),
    )
    new_state = _with_cash(state, -upgrade.cost, upgrades_purchased=1)
    new_state = new_state.with_business(idx, upgraded)
    logger.info(f"Purchased {upgrade.name} for {business.name}")
    return _accept(new_state, config, upgrade.cost)


def apply_strategy(
    state: GameState,
    business_id: str,
    strategy_id: str,
    config: SimulationConfig = CONFIG,
) -> TransactionResult:
    """Make one strategy the only active one on a business, from next turn on."""
    idx = index_of(state.businesses, business_id)
    if idx is None:
        return _reject(state, "apply_strategy", "unknown business")
    business = state.businesses[idx]
    if not business.owned:
        return _reject(state, "apply_strategy", "business not owned")
    strategy_idx = index_of(business.strategies, strategy_id)
    if strategy_idx is None:
        return _reject(state, "apply_strategy", "unknown strategy")
    if not business.strategies[strategy_idx].unlocked:
        return _reject(state, "apply_strategy", "strategy is locked")

    strategies = tuple(
        replace(s, active=(i == strategy_idx)) for i, s in enumerate(business.strategies)
    )
    new_state = state.with_business(idx, replace(business, strategies=strategies))
    return _accept(new_state, config)


def activate_quick_money(
    state: GameState,
    business_id: str,
    rng: Optional[RandomSource] = None,
    config: SimulationConfig = CONFIG,
) -> TransactionResult:
    """
    Cash in a business's special ability once per turn.

    Pays round(revenue * level * uniform(2, 4)) and sets boost_active until the
    next turn clears it.
    """
    idx = index_of(state.businesses, business_id)
    if idx is None:
        return _reject(state, "activate_quick_money", "unknown business")
    business = state.businesses[idx]
    if not business.owned:
        return _reject(state, "activate_quick_money", "business not owned")
    if not business.quick_money_option:
        return _reject(state, "activate_quick_money", "business has no quick money option")
    if business.boost_active:
        return _reject(state, "activate_quick_money", "boost already used this turn")

    rng = rng or default_source()
    multiplier = uniform(
        rng,
        config.transactions.quick_money_min_multiplier,
        config.transactions.quick_money_max_multiplier,
    )
    amount = half_up(business.revenue * business.level * multiplier)
    new_state = _with_cash(state, amount)
    new_state = new_state.with_business(idx, replace(business, boost_active=True))
    logger.info(f"Quick money from {business.name}: ${amount:,}")
    return _accept(new_state, config, amount)


# ---------------------------------------------------------------------------
# Stocks
# ---------------------------------------------------------------------------

def buy_stock(
    state: GameState,
    stock_id: str,
    quantity: int,
    config: SimulationConfig = CONFIG,
) -> TransactionResult:
    """Buy shares at the current price; the cost basis becomes the volume-weighted average."""
    if quantity <= 0:
        return _reject(state, "buy_stock", "quantity must be positive")
    idx = index_of(state.stocks, stock_id)
    if idx is None:
        return _reject(state, "buy_stock", "unknown stock")
    stock = state.stocks[idx]
    total_cost = stock.price * quantity
    if state.player.cash < total_cost:
        return _reject(state, "buy_stock", "insufficient cash")

    basis = stock.purchase_price if stock.purchase_price is not None else stock.price
    owned = stock.owned + quantity
    average = (stock.owned * basis + total_cost) / owned

    new_state = _with_cash(state, -total_cost, stocks_traded=quantity)
    new_state = new_state.with_stock(idx, replace(stock, owned=owned, purchase_price=average))
    return _accept(new_state, config, total_cost)


def sell_stock(
    state: GameState,
    stock_id: str,
    quantity: int,
    config: SimulationConfig = CONFIG,
) -> TransactionResult:
    if quantity <= 0:
        return _reject(state, "sell_stock", "quantity must be positive")
    idx = index_of(state.stocks, stock_id)
    if idx is None:
        return _reject(state, "sell_stock", "unknown stock")
    stock = state.stocks[idx]
    if stock.owned < quantity:
        return _reject(state, "sell_stock", "not enough shares")

    proceeds = stock.price * quantity
    owned = stock.owned - quantity
    purchase_price = stock.purchase_price if owned > 0 else None

    new_state = _with_cash(state, proceeds, stocks_traded=quantity)
    new_state = new_state.with_stock(idx, replace(stock, owned=owned, purchase_price=purchase_price))
    return _accept(new_state, config, proceeds)


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------

def buy_asset(state: GameState, asset_id: str, config: SimulationConfig = CONFIG) -> TransactionResult:
    """Buy an asset at its cost; its value restarts from that cost."""
    idx = index_of(state.assets, asset_id)
    if idx is None:
        return _reject(state, "buy_asset", "unknown asset")
    asset = state.assets[idx]
    if asset.owned:
        return _reject(state, "buy_asset", "asset already owned")
    if state.player.cash < asset.cost:
        return _reject(state, "buy_asset", "insufficient cash")

    new_state = _with_cash(state, -asset.cost)
    new_state = new_state.with_asset(idx, replace(asset, owned=True, value=asset.cost))
    logger.info(f"Purchased {asset.name} for ${asset.cost:,.0f}")
    return _accept(new_state, config, asset.cost)


def sell_asset(state: GameState, asset_id: str, config: SimulationConfig = CONFIG) -> TransactionResult:
    """Sell an owned asset at its current value."""
    idx = index_of(state.assets, asset_id)
    if idx is None:
        return _reject(state, "sell_asset", "unknown asset")
    asset = state.assets[idx]
    if not asset.owned:
        return _reject(state, "sell_asset", "asset not owned")

    new_state = _with_cash(state, asset.value)
    new_state = new_state.with_asset(idx, replace(asset, owned=False))
    logger.info(f"Sold {asset.name} for ${asset.value:,.0f}")
    return _accept(new_state, config, asset.value)
