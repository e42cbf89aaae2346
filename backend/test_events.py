"""
Unit tests for the event engine

Tests cover:
- Compounding application to business revenue and stock trend
- Countdown and retirement of active events
- Probabilistic triggering and catalog exhaustion
"""

import random
from dataclasses import replace

import pytest

from catalog import new_game
from events import activate_event, advance_events, apply_active_events, trigger_event
from models import Business, EconomicEvent, GameState, Player, Stock


class ScriptedRandom:
    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


def make_state(active=(), events=()) -> GameState:
    return GameState(
        player=Player(cash=1000.0, net_worth=1000.0),
        turn=1,
        businesses=(
            Business(id="tech", name="Tech", type="TECH_STARTUP", revenue=1000, cost=600,
                     purchase_price=50000, upgrade_price=10000),
            Business(id="stand", name="Stand", type="LEMONADE_STAND", revenue=100, cost=50,
                     purchase_price=500, upgrade_price=200),
        ),
        stocks=(
            Stock(id="tchn", name="Tech", symbol="TCHN", price=20.0, volatility=3.0, trend=0.5),
            Stock(id="grtl", name="Retail", symbol="GRTL", price=50.0, volatility=1.5, trend=0.2),
        ),
        events=events,
        active_events=active,
    )


def tech_boom(turns_left=3) -> EconomicEvent:
    return EconomicEvent(id="boom", title="Tech Revolution", type="POSITIVE", multiplier=1.2,
                         duration=3, affected_business_types=("TECH_STARTUP",),
                         applied=True, turns_left=turns_left)


class TestApplyActiveEvents:

    def test_multiplier_hits_only_matching_type(self):
        state = apply_active_events(make_state(active=(tech_boom(),)))
        assert abs(state.businesses[0].revenue - 1200) < 1e-9
        assert state.businesses[1].revenue == 100

    def test_compounds_for_full_duration_then_retires(self):
        """1.2 applied three separate times, then never again"""
        state = make_state(active=(tech_boom(),))
        for _ in range(3):
            state = apply_active_events(state)
        assert state.businesses[0].revenue == pytest.approx(1000 * 1.2 ** 3)
        assert state.active_events == ()

        state = apply_active_events(state)
        assert state.businesses[0].revenue == pytest.approx(1000 * 1.2 ** 3)

    def test_countdown(self):
        state = apply_active_events(make_state(active=(tech_boom(),)))
        assert state.active_events[0].turns_left == 2

    def test_stock_trend_multiplied_and_bounded(self):
        rally = EconomicEvent(id="rally", title="Rally", type="POSITIVE", multiplier=1.4, duration=2,
                              affected_stocks=("tchn", "grtl"), applied=True, turns_left=2)
        state = make_state(active=(rally,))
        state = apply_active_events(state)
        assert state.stocks[0].trend == pytest.approx(0.7)
        assert state.stocks[1].trend == pytest.approx(0.28)

        steep = replace(state.stocks[0], trend=1.9)
        state = apply_active_events(state.with_stock(0, steep))
        assert state.stocks[0].trend == 2.0

    def test_untargeted_event_only_counts_down(self):
        boom = EconomicEvent(id="eb", title="Economic Boom", type="POSITIVE", multiplier=1.2,
                             duration=3, applied=True, turns_left=3)
        before = make_state(active=(boom,))
        after = apply_active_events(before)
        assert after.businesses == before.businesses
        assert after.stocks == before.stocks
        assert after.active_events[0].turns_left == 2


class TestTriggerEvent:

    def test_no_trigger_above_probability(self):
        state = new_game(rng=random.Random(1))
        assert trigger_event(state, ScriptedRandom(0.2)) is state

    def test_trigger_marks_catalog_and_activates(self):
        state = new_game(rng=random.Random(1))
        # 0.1 < 0.2 fires; 0.0 picks the first unapplied event
        fired = trigger_event(state, ScriptedRandom(0.1, 0.0))
        first = fired.events[0]
        assert first.applied
        assert len(fired.active_events) == 1
        assert fired.active_events[0].id == first.id
        assert fired.active_events[0].turns_left == first.duration
        assert not state.events[0].applied

    def test_exhausted_catalog_is_a_no_op(self):
        state = new_game(rng=random.Random(1))
        state = replace(state, events=tuple(replace(e, applied=True) for e in state.events))
        assert trigger_event(state, ScriptedRandom(0.0, 0.0)) is state

    def test_each_event_fires_at_most_once(self):
        rng = random.Random(3)
        state = new_game(rng=rng)
        seen = []
        for _ in range(300):
            before = {e.id for e in state.active_events}
            state = advance_events(state, rng)
            seen.extend(e.id for e in state.active_events if e.id not in before)
        assert len(seen) == len(set(seen))
        assert all(e.applied for e in state.events)

    def test_activate_unknown_event(self):
        with pytest.raises(KeyError):
            activate_event(make_state(), "missing")


class TestAdvanceEvents:

    def test_new_event_does_not_apply_same_turn(self):
        event = EconomicEvent(id="boom", title="Tech Revolution", type="POSITIVE", multiplier=1.5,
                              duration=2, affected_business_types=("TECH_STARTUP",))
        state = make_state(events=(event,))
        state = advance_events(state, ScriptedRandom(0.0, 0.0))
        assert state.businesses[0].revenue == 1000
        assert state.active_events[0].turns_left == 2
