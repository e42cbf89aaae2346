"""
Simulation Configuration

Centralizes all tunable parameters for the tycoon simulation.
Engines read their constants from here instead of hard-coding them.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Tuple

from dotenv import load_dotenv


@dataclass
class PlayerConfig:
    """Starting conditions for a new game."""
    starting_cash: float = 1000.0
    starting_turn: int = 1
    starting_market_trend: float = 0.05  # Slightly positive at start
    starting_economic_health: float = 70.0  # Good but not perfect


@dataclass
class MarketConfig:
    """Market engine parameters (macro indicators and stock prices)."""

    # Macro trend random walk
    trend_step: float = 0.2  # uniform(-0.2, 0.2) per turn
    trend_bound: float = 0.5  # marketTrend stays in [-0.5, 0.5]

    # Economic health random walk
    health_step: float = 5.0  # uniform(-5, 5) per turn
    health_trend_bias: float = 2.0  # +2 when trend > 0, -2 when trend < 0
    health_min: float = 0.0
    health_max: float = 100.0

    # Stock price update (percentage points)
    market_trend_weight: float = 5.0
    stock_trend_weight: float = 2.0
    price_floor: float = 1.0
    history_length: int = 30

    # Per-stock trend drift
    stock_trend_step: float = 0.1
    stock_trend_bound: float = 2.0


@dataclass
class EventConfig:
    """Event engine parameters."""
    trigger_probability: float = 0.20


@dataclass
class BusinessConfig:
    """Business engine parameters."""

    # Net worth -> unlock threshold, keyed by the purchase price bracket.
    # A price above every bracket falls through to fallback_unlock_net_worth.
    unlock_tiers: Tuple[Tuple[float, float], ...] = (
        (5_000.0, 2_000.0),
        (20_000.0, 10_000.0),
        (50_000.0, 30_000.0),
        (200_000.0, 100_000.0),
    )
    fallback_unlock_net_worth: float = 500_000.0


@dataclass
class ValuationConfig:
    """Net worth parameters."""
    business_value_multiplier: float = 1.5  # purchasePrice * level * 1.5


@dataclass
class TransactionConfig:
    """Transaction operation parameters."""
    business_sale_factor: float = 0.8  # purchasePrice * level * 0.8
    quick_money_min_multiplier: float = 2.0
    quick_money_max_multiplier: float = 4.0


@dataclass
class CatalogConfig:
    """Entity catalog generation parameters."""
    history_points: int = 10
    history_start_ratio: float = 0.8  # Generated history starts a bit lower
    history_refloor_jitter: float = 0.5  # Sub-floor samples land in [1, 1.5)


@dataclass
class SimulationConfig:
    """Master configuration for the entire simulation."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    events: EventConfig = field(default_factory=EventConfig)
    business: BusinessConfig = field(default_factory=BusinessConfig)
    valuation: ValuationConfig = field(default_factory=ValuationConfig)
    transactions: TransactionConfig = field(default_factory=TransactionConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    def __post_init__(self):
        """Validation of cross-field bounds."""
        if self.player.starting_turn < 1:
            raise ValueError("starting_turn must be at least 1")
        if abs(self.player.starting_market_trend) > self.market.trend_bound:
            raise ValueError("starting_market_trend must lie inside trend_bound")
        if not (self.market.health_min <= self.player.starting_economic_health <= self.market.health_max):
            raise ValueError("starting_economic_health must lie inside [health_min, health_max]")

        if self.market.price_floor <= 0:
            raise ValueError("price_floor must be positive")
        if self.market.history_length < 1:
            raise ValueError("history_length must be at least 1")
        if self.market.trend_bound < 0 or self.market.stock_trend_bound < 0:
            raise ValueError("trend bounds cannot be negative")

        if not (0.0 <= self.events.trigger_probability <= 1.0):
            raise ValueError("trigger_probability must be in [0, 1]")

        brackets = [price for price, _ in self.business.unlock_tiers]
        if brackets != sorted(brackets):
            raise ValueError("unlock_tiers must be sorted by purchase price bracket")

        if self.transactions.quick_money_min_multiplier > self.transactions.quick_money_max_multiplier:
            raise ValueError("quick money multiplier range is inverted")
        if self.catalog.history_points < 0:
            raise ValueError("history_points cannot be negative")


# Global configuration instance
CONFIG = SimulationConfig()


@dataclass
class Settings:
    """Deployment settings read from the environment."""
    db_path: str = "tycoon.db"
    password_pepper: str = ""
    log_level: int = logging.INFO


def load_settings() -> Settings:
    """Read settings from the process environment (and a local .env file)."""
    load_dotenv()
    level_name = os.getenv("TYCOON_LOG_LEVEL", "INFO").upper()
    return Settings(
        db_path=os.getenv("TYCOON_DB_PATH", "tycoon.db"),
        password_pepper=os.getenv("TYCOON_PASSWORD_PEPPER", ""),
        log_level=getattr(logging, level_name, logging.INFO),
    )
