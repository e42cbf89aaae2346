"""
Unit tests for valuation functions
"""

from dataclasses import replace

from models import Asset, Business, BusinessStrategy, GameState, Player, Stock
from valuation import (
    asset_value_change,
    asset_value_change_percent,
    can_afford,
    can_afford_upgrade,
    effective_revenue,
    max_affordable_quantity,
    net_worth,
    percentage_change,
    refresh_net_worth,
    stock_profit_loss,
    stock_profit_loss_percent,
    total_revenue,
)


def make_state(**overrides) -> GameState:
    fields = dict(
        player=Player(cash=1000.0, net_worth=1000.0),
        turn=1,
        businesses=(
            Business(id="cheap", name="Cheap", type="LEMONADE_STAND", revenue=100, cost=50,
                     purchase_price=500, upgrade_price=200, unlocked=True),
            Business(id="dear", name="Dear", type="TECH_STARTUP", revenue=1000, cost=600,
                     purchase_price=50000, upgrade_price=10000),
        ),
        stocks=(Stock(id="tchn", name="Tech", symbol="TCHN", price=20.0, volatility=3.0, trend=0.5),),
        assets=(Asset(id="watch", name="Watch", type="LUXURY", cost=20000, value=20000, appreciation=0.01),),
    )
    fields.update(overrides)
    return GameState(**fields)


class TestNetWorth:

    def test_cash_only(self):
        assert net_worth(make_state()) == 1000

    def test_business_at_fixed_multiplier(self):
        """Owned business counts as purchasePrice * level * 1.5"""
        state = make_state()
        levelled = replace(state.businesses[0], owned=True, level=3)
        state = state.with_business(0, levelled)
        assert net_worth(state) == 1000 + 500 * 3 * 1.5

    def test_cheap_levelled_business_can_outvalue_expensive_one(self):
        state = make_state()
        cheap = replace(state.businesses[0], owned=True, level=101)
        dear = replace(state.businesses[1], owned=True)
        assert net_worth(state.with_business(0, cheap)) - 1000 > net_worth(state.with_business(1, dear)) - 1000

    def test_stocks_and_assets(self):
        state = make_state()
        state = state.with_stock(0, replace(state.stocks[0], owned=10, purchase_price=18.0))
        state = state.with_asset(0, replace(state.assets[0], owned=True, value=21000))
        assert net_worth(state) == 1000 + 200 + 21000

    def test_refresh_returns_new_state(self):
        state = make_state()
        owned = state.with_business(0, replace(state.businesses[0], owned=True))
        refreshed = refresh_net_worth(owned)
        assert refreshed.player.net_worth == 1750
        assert owned.player.net_worth == 1000


class TestRevenue:

    def test_level_scales_revenue(self):
        business = replace(make_state().businesses[0], owned=True, level=2)
        assert effective_revenue(business) == 200

    def test_active_strategy_rounds_half_up(self):
        strategy = BusinessStrategy(id="s", name="Balanced", revenue_multiplier=1.25,
                                    cost_multiplier=1.0, risk_level=4, active=True)
        business = replace(make_state().businesses[0], revenue=10, owned=True, strategies=(strategy,))
        # 10 * 1.25 = 12.5 rounds up to 13
        assert effective_revenue(business) == 13

    def test_total_counts_only_owned(self):
        state = make_state()
        state = state.with_business(0, replace(state.businesses[0], owned=True))
        assert total_revenue(state) == 100


class TestHelpers:

    def test_can_afford(self):
        state = make_state()
        assert can_afford(state, 1000)
        assert not can_afford(state, 1000.01)

    def test_stock_profit_loss(self):
        stock = Stock(id="x", name="X", symbol="X", price=24.0, volatility=1.0, trend=0.0,
                      owned=10, purchase_price=20.0)
        assert abs(stock_profit_loss(stock) - 40.0) < 1e-9
        assert abs(stock_profit_loss_percent(stock) - 20.0) < 1e-9

    def test_no_position_no_profit(self):
        stock = Stock(id="x", name="X", symbol="X", price=24.0, volatility=1.0, trend=0.0)
        assert stock_profit_loss(stock) == 0
        assert stock_profit_loss_percent(stock) == 0

    def test_asset_change(self):
        asset = Asset(id="car", name="Car", type="VEHICLE", cost=50000, value=47500, appreciation=-0.05)
        assert asset_value_change(asset) == -2500
        assert abs(asset_value_change_percent(asset) + 5.0) < 1e-9

    def test_percentage_change_from_zero(self):
        assert percentage_change(0, 10) == 0

    def test_max_affordable_quantity(self):
        state = make_state()
        assert max_affordable_quantity(state, state.stocks[0]) == 50

    def test_can_afford_upgrade_scales_with_level(self):
        state = make_state()
        business = replace(state.businesses[0], owned=True, level=5)
        assert can_afford_upgrade(state, business)
        assert not can_afford_upgrade(state, replace(business, level=6))
