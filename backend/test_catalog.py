"""
Unit tests for the entity catalog

Tests cover:
- Starting player and macro figures
- Business roster shape (upgrades, strategies, unlocks)
- Stock price bands and generated history
- Event pool targeting
"""

import random

import pytest

from catalog import STOCK_TEMPLATES, build_businesses, generate_history, new_game
from valuation import net_worth


class TestNewGame:
    """Test suite for new_game"""

    def test_starting_player(self):
        state = new_game("Alice", random.Random(1))

        assert state.player.cash == 1000
        assert state.player.net_worth == 1000
        assert state.player.name == "Alice"
        assert state.turn == 1
        assert abs(state.market_trend - 0.05) < 1e-9
        assert state.economic_health == 70
        assert state.active_events == ()

    def test_net_worth_matches_valuation(self):
        state = new_game(rng=random.Random(2))
        assert abs(state.player.net_worth - net_worth(state)) < 1e-9

    def test_same_seed_same_market(self):
        """Seeded construction is reproducible"""
        a = new_game(rng=random.Random(42))
        b = new_game(rng=random.Random(42))
        assert [s.price for s in a.stocks] == [s.price for s in b.stocks]
        assert [s.history for s in a.stocks] == [s.history for s in b.stocks]

    def test_nothing_owned_at_start(self):
        state = new_game(rng=random.Random(3))
        assert not any(b.owned for b in state.businesses)
        assert not any(a.owned for a in state.assets)
        assert all(s.owned == 0 for s in state.stocks)


class TestBusinessRoster:

    def test_lemonade_stand_template(self):
        businesses = {b.name: b for b in build_businesses()}
        stand = businesses["Lemonade Stand"]

        assert stand.purchase_price == 500
        assert stand.revenue == 100
        assert stand.level == 1
        assert stand.unlocked
        assert stand.quick_money_option

    def test_each_business_has_three_upgrades_and_strategies(self):
        for business in build_businesses():
            assert len(business.upgrades) == 3
            assert len(business.strategies) == 3
            assert business.active_strategy is None

    def test_upgrade_costs_scale_with_base_price(self):
        stand = build_businesses()[0]
        costs = [u.cost for u in stand.upgrades]
        assert costs == pytest.approx([240, 300, 400])

    def test_ids_are_unique(self):
        businesses = build_businesses()
        ids = [b.id for b in businesses]
        assert len(ids) == len(set(ids))
        upgrade_ids = [u.id for b in businesses for u in b.upgrades]
        assert len(upgrade_ids) == len(set(upgrade_ids))


class TestStocks:

    def test_prices_inside_bands(self):
        state = new_game(rng=random.Random(5))
        for stock, (_, symbol, low, high, _, _) in zip(state.stocks, STOCK_TEMPLATES):
            assert stock.symbol == symbol
            assert low <= stock.price <= high
            assert round(stock.price, 2) == stock.price

    def test_history_has_ten_points_above_floor(self):
        state = new_game(rng=random.Random(6))
        for stock in state.stocks:
            assert len(stock.history) == 10
            assert all(p >= 1 for p in stock.history)

    def test_history_refloors_collapsed_prices(self):
        """A walk that falls under the floor lands just above it"""

        class AlwaysZero:
            def random(self):
                return 0.0

        # Each step multiplies the price by (1 - 0.5 * 3) < 0
        history = generate_history(AlwaysZero(), 10.0, 3.0)
        assert all(abs(p - 1.0) < 1e-9 for p in history)


class TestEvents:

    def test_event_pool(self):
        state = new_game(rng=random.Random(7))
        assert len(state.events) == 12
        assert not any(e.applied for e in state.events)
        types = [e.type for e in state.events]
        assert types.count("POSITIVE") == 5
        assert types.count("NEGATIVE") == 5
        assert types.count("NEUTRAL") == 2

    def test_market_wide_stock_events_target_every_stock(self):
        state = new_game(rng=random.Random(8))
        stock_ids = {s.id for s in state.stocks}
        events = {e.title: e for e in state.events}
        assert set(events["Stock Market Rally"].affected_stocks) == stock_ids
        assert set(events["Market Crash"].affected_stocks) == stock_ids
        assert events["Economic Boom"].affected_stocks is None
