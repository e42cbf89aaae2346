"""
Tests for the batch autoplay runner
"""

import random
import sqlite3

from catalog import new_game
from run_simulation import compute_game_stats, init_database, play_game, play_greedy


class TestAutoplay:

    def test_greedy_buys_first_business(self):
        state = new_game(rng=random.Random(1))
        played = play_greedy(state, random.Random(2))
        owned = [b for b in played.businesses if b.owned]
        assert [b.id for b in owned] == ["lemonade-stand"]
        assert owned[0].active_strategy.name == "Aggressive Growth"

    def test_play_game_exports_every_turn(self, tmp_path):
        db_path = str(tmp_path / "autoplay.db")
        init_database(db_path)
        conn = sqlite3.connect(db_path)
        final = play_game(seed=4, turns=12, conn=conn, game=0)
        conn.commit()
        rows = conn.execute("SELECT turn, net_worth FROM turns ORDER BY turn").fetchall()
        conn.close()

        assert len(rows) == 12
        assert rows[-1][0] == final.turn == 13
        assert abs(rows[-1][1] - final.player.net_worth) < 1e-9

    def test_stats(self):
        finals = [play_game(seed=s, turns=5) for s in range(3)]
        stats = compute_game_stats(finals)
        assert stats["min_net_worth"] <= stats["median_net_worth"] <= stats["max_net_worth"]
        assert stats["mean_businesses_owned"] >= 1

    def test_stats_empty(self):
        assert compute_game_stats([])["mean_net_worth"] == 0.0
