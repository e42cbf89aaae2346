"""
Entity Catalog

Static roster of businesses, stocks, assets and economic events, and the
construction of a fresh GameState from it. Stock starting prices and their
synthetic price history are the only randomized parts and draw from the
injected random source.
"""

import logging
import re
from typing import List, Optional, Tuple

from config import CONFIG, SimulationConfig
from models import (
    Asset,
    Business,
    BusinessStrategy,
    EconomicEvent,
    GameState,
    Player,
    Stock,
    Upgrade,
)
from random_source import RandomSource, default_source, uniform

logger = logging.getLogger(__name__)


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


# (name, type, revenue, cost, employees, purchase_price, upgrade_price,
#  unlocked, icon, quick_money_option, description, special_ability)
BUSINESS_TEMPLATES = (
    ("Lemonade Stand", "LEMONADE_STAND", 100, 50, 0, 500, 200, True, "lemonade", True,
     "A simple roadside lemonade stand. Low investment, modest returns.",
     "Quick Sales: Generate a small immediate cash boost once per day"),
    ("Freelance Gig", "FREELANCE_GIG", 150, 75, 0, 800, 300, True, "freelance", True,
     "Offer your skills as a freelancer. Low overhead with decent income.",
     "Rush Job: Take on an urgent project for double pay but increased stress"),
    ("Online Shop", "ONLINE_SHOP", 200, 100, 1, 1500, 500, False, "shop", True,
     "Sell products online with global reach. Good growth potential.",
     "Flash Sale: Run a promotional sale to quickly generate cash"),
    ("Food Truck", "FOOD_TRUCK", 300, 150, 2, 5000, 1000, False, "foodtruck", True,
     "Mobile food business serving tasty treats. Popular in urban areas.",
     "Special Event Catering: Cater a special event for a large one-time payment"),
    ("Retail Store", "RETAIL_STORE", 500, 250, 5, 15000, 3000, False, "retail", True,
     "Physical store selling products. Established business model.",
     "Inventory Clearance: Sell excess inventory at a discount for quick cash"),
    ("Tech Startup", "TECH_STARTUP", 1000, 600, 10, 50000, 10000, False, "tech", True,
     "Innovative tech company with high risk and high reward potential.",
     "Venture Funding: Secure a round of funding for immediate cash injection"),
    ("Real Estate Agency", "REAL_ESTATE", 2000, 1000, 15, 100000, 20000, False, "realestate", True,
     "Buy, sell, and rent properties. Stable income with growth potential.",
     "Luxury Sale: Broker a high-end property deal for a large commission"),
    ("Restaurant Chain", "FRANCHISE", 5000, 2500, 50, 250000, 50000, False, "franchise", False,
     "Expand your restaurant brand across multiple locations. High overhead but substantial returns.",
     "Celebrity Partnership: Partner with a celebrity for a marketing boost"),
    ("Social Media Influencer", "SOCIAL_MEDIA", 180, 70, 0, 1000, 350, True, "socialMedia", True,
     "Build a following and monetize your content. Low startup costs with viral potential.",
     "Sponsored Post: Create sponsored content for immediate payment"),
    ("Crypto Mining Operation", "CRYPTO_MINING", 250, 150, 1, 2000, 800, False, "crypto", True,
     "Mine cryptocurrency with specialized hardware. Volatile but potentially lucrative.",
     "Market Timing: Sell mined coins during a price spike"),
    ("Dropshipping Business", "DROPSHIPPING", 220, 110, 1, 1800, 600, False, "dropshipping", True,
     "Sell products online without holding inventory. Low overhead with good margins.",
     "Trending Product: Identify and sell a viral product for quick profits"),
    ("Mobile Game Studio", "MOBILE_GAME", 350, 200, 3, 7000, 1200, False, "game", True,
     "Develop and monetize mobile games. High potential returns with the right hit.",
     "In-App Purchase Promotion: Run a special offer for a quick revenue boost"),
    ("Content Creation Studio", "CONTENT_CREATION", 300, 150, 2, 6000, 1000, False, "content", True,
     "Create and monetize digital content across platforms. Scalable with audience growth.",
     "Viral Content: Create trending content for rapid monetization"),
    ("Business Consulting", "CONSULTING", 400, 100, 1, 8000, 1500, False, "consulting", True,
     "Provide expert business advice to clients. High margins with professional expertise.",
     "Emergency Consultation: Provide urgent business advice at premium rates"),
    ("Day Trading Desk", "DAY_TRADING", 500, 300, 1, 10000, 2000, False, "trading", True,
     "Trade financial markets for short-term profits. High risk with potential for significant gains.",
     "Market Arbitrage: Exploit temporary market inefficiencies for quick profits"),
    ("Affiliate Marketing Agency", "AFFILIATE_MARKETING", 250, 125, 2, 4000, 900, False, "affiliate", True,
     "Earn commissions by promoting other companies' products. Performance-based revenue model.",
     "Promotional Campaign: Run a high-conversion campaign for quick commission earnings"),
)

# (name, description, cost factor on the base upgrade price,
#  revenue_multiplier, cost_reduction, icon)
UPGRADE_TEMPLATES = (
    ("Efficiency Optimization", "Streamline operations to increase revenue by 15%.", 1.2, 1.15, 0.0, "chart-up"),
    ("Cost Reduction", "Reduce operational costs by 10%.", 1.5, 1.0, 0.1, "chart-down"),
    ("Premium Offerings", "Introduce premium options to increase revenue by 25%.", 2.0, 1.25, 0.0, "star"),
)

# (name, description, revenue_multiplier, cost_multiplier, risk_level)
STRATEGY_TEMPLATES = (
    ("Aggressive Growth", "Focus on rapid expansion with higher revenue but increased costs.", 1.4, 1.2, 7),
    ("Balanced Approach", "Maintain a balance between growth and stability.", 1.2, 1.1, 4),
    ("Conservative Management", "Focus on stability and cost reduction with slower growth.", 1.1, 0.9, 2),
)

# (name, symbol, min starting price, max starting price, volatility, trend)
STOCK_TEMPLATES = (
    ("Tech Innovations", "TCHN", 10, 30, 3.0, 0.5),
    ("Global Retail", "GRTL", 40, 60, 1.5, 0.2),
    ("Energy Solutions", "ENGY", 20, 50, 2.0, 0.3),
    ("Banking Global", "BNKG", 80, 120, 1.8, 0.1),
    ("Healthcare Plus", "HLTH", 60, 90, 1.2, 0.4),
    ("Auto Manufacturers", "AUTO", 30, 70, 2.2, -0.1),
    ("Real Estate Trust", "REIT", 50, 80, 1.0, 0.2),
    ("Consumer Goods", "CNSG", 25, 45, 1.3, 0.3),
    ("Social Media Co.", "SOCL", 70, 110, 2.8, 0.6),
    ("Aerospace Defense", "AERO", 90, 150, 1.7, 0.2),
)

# (name, type, cost, appreciation per turn, icon, description)
ASSET_TEMPLATES = (
    ("Small Apartment", "PROPERTY", 100000, 0.02, "apartment", "A modest apartment in the city."),
    ("Suburban House", "PROPERTY", 250000, 0.025, "house", "A comfortable family home in the suburbs."),
    ("Luxury Mansion", "PROPERTY", 1000000, 0.03, "mansion", "An impressive mansion with all amenities."),
    ("Luxury Sedan", "VEHICLE", 50000, -0.05, "car", "A high-end luxury sedan."),
    ("Sports Car", "VEHICLE", 200000, -0.03, "sportscar", "A high-performance sports car."),
    ("Yacht", "VEHICLE", 500000, -0.02, "yacht", "A luxury yacht for ocean adventures."),
    ("Luxury Watch", "LUXURY", 20000, 0.01, "watch", "A high-end luxury timepiece."),
    ("Fine Jewelry", "LUXURY", 75000, 0.015, "jewellery", "Exquisite jewelry with precious gems."),
    ("Fine Art", "COLLECTIBLE", 150000, 0.035, "art", "A valuable piece of fine art."),
    ("Rare Coin Collection", "COLLECTIBLE", 80000, 0.025, "coin", "A collection of rare and valuable coins."),
)

ALL_STOCKS = "*"  # affected_stocks placeholder expanded to every stock id

# (title, type, multiplier, duration, affected business types, affected stocks, description)
EVENT_TEMPLATES = (
    ("Economic Boom", "POSITIVE", 1.2, 3, None, None,
     "The economy is experiencing unprecedented growth, boosting all businesses."),
    ("Tech Revolution", "POSITIVE", 1.5, 2, ("TECH_STARTUP",), None,
     "New technology has revolutionized the tech industry, increasing profits."),
    ("Tourism Surge", "POSITIVE", 1.3, 2, ("FOOD_TRUCK", "RETAIL_STORE"), None,
     "A surge in tourism benefits local businesses."),
    ("Stock Market Rally", "POSITIVE", 1.4, 2, None, ALL_STOCKS,
     "The stock market is experiencing a strong rally."),
    ("Real Estate Boom", "POSITIVE", 1.4, 3, ("REAL_ESTATE",), None,
     "Property values are rising rapidly."),
    ("Economic Recession", "NEGATIVE", 0.8, 3, None, None,
     "An economic downturn is affecting all businesses negatively."),
    ("Supply Chain Issues", "NEGATIVE", 0.7, 2, ("RETAIL_STORE", "ONLINE_SHOP"), None,
     "Supply chain disruptions are impacting retail businesses."),
    ("Food Safety Concern", "NEGATIVE", 0.6, 2, ("FOOD_TRUCK", "FRANCHISE"), None,
     "Food safety concerns have reduced customers for food businesses."),
    ("Market Crash", "NEGATIVE", 0.6, 2, None, ALL_STOCKS,
     "The stock market is experiencing a significant crash."),
    ("Interest Rate Hike", "NEGATIVE", 0.7, 3, ("REAL_ESTATE",), None,
     "Rising interest rates are affecting real estate businesses."),
    ("Market Shift", "NEUTRAL", 1.0, 2, None, None,
     "The market is shifting, creating winners and losers."),
    ("Consumer Trends Changing", "NEUTRAL", 1.0, 2, None, None,
     "Consumer preferences are evolving rapidly."),
)


def _build_upgrades(business_id: str, base_upgrade_price: float) -> Tuple[Upgrade, ...]:
    return tuple(
        Upgrade(
            id=f"{business_id}-{_slug(name)}",
            name=name,
            description=description,
            cost=base_upgrade_price * cost_factor,
            revenue_multiplier=revenue_multiplier,
            cost_reduction=cost_reduction,
            icon=icon,
        )
        for name, description, cost_factor, revenue_multiplier, cost_reduction, icon in UPGRADE_TEMPLATES
    )


def _build_strategies(business_id: str) -> Tuple[BusinessStrategy, ...]:
    return tuple(
        BusinessStrategy(
            id=f"{business_id}-{_slug(name)}",
            name=name,
            description=description,
            revenue_multiplier=revenue_multiplier,
            cost_multiplier=cost_multiplier,
            risk_level=risk_level,
        )
        for name, description, revenue_multiplier, cost_multiplier, risk_level in STRATEGY_TEMPLATES
    )


def build_businesses() -> Tuple[Business, ...]:
    """Roster of businesses with their upgrade and strategy menus."""
    businesses = []
    for (name, business_type, revenue, cost, employees, purchase_price, upgrade_price,
         unlocked, icon, quick_money, description, special_ability) in BUSINESS_TEMPLATES:
        business_id = _slug(name)
        businesses.append(Business(
            id=business_id,
            name=name,
            type=business_type,
            icon=icon,
            description=description,
            revenue=revenue,
            cost=cost,
            purchase_price=purchase_price,
            upgrade_price=upgrade_price,
            employees=employees,
            unlocked=unlocked,
            quick_money_option=quick_money,
            special_ability=special_ability,
            upgrades=_build_upgrades(business_id, upgrade_price),
            strategies=_build_strategies(business_id),
        ))
    return tuple(businesses)


def generate_history(
    rng: RandomSource,
    current_price: float,
    volatility: float,
    config: SimulationConfig = CONFIG,
) -> Tuple[float, ...]:
    """
    Synthesize a short price history leading up to ``current_price``.

    The walk starts below the current price and takes steps proportional to
    the stock's volatility. Samples that fall under the price floor are
    re-floored just above it.
    """
    catalog = config.catalog
    floor = config.market.price_floor
    history: List[float] = []
    price = current_price * catalog.history_start_ratio
    for _ in range(catalog.history_points):
        price += (rng.random() - 0.5) * volatility * price
        if price < floor:
            price = floor + rng.random() * catalog.history_refloor_jitter
        history.append(round(price, 2))
    return tuple(history)


def build_stocks(rng: RandomSource, config: SimulationConfig = CONFIG) -> Tuple[Stock, ...]:
    """Stocks with randomized starting prices inside each template's band."""
    stocks = []
    for name, symbol, low, high, volatility, trend in STOCK_TEMPLATES:
        price = round(uniform(rng, low, high), 2)
        stocks.append(Stock(
            id=symbol.lower(),
            name=name,
            symbol=symbol,
            price=price,
            volatility=volatility,
            trend=trend,
            history=generate_history(rng, price, volatility, config),
        ))
    return tuple(stocks)


def build_assets() -> Tuple[Asset, ...]:
    return tuple(
        Asset(
            id=_slug(name),
            name=name,
            type=asset_type,
            cost=cost,
            value=cost,
            appreciation=appreciation,
            description=description,
            icon=icon,
        )
        for name, asset_type, cost, appreciation, icon, description in ASSET_TEMPLATES
    )


def build_events(stock_ids: Tuple[str, ...]) -> Tuple[EconomicEvent, ...]:
    """Event pool; market-wide stock events target every listed stock."""
    events = []
    for title, event_type, multiplier, duration, business_types, stocks, description in EVENT_TEMPLATES:
        events.append(EconomicEvent(
            id=_slug(title),
            title=title,
            type=event_type,
            multiplier=multiplier,
            duration=duration,
            description=description,
            affected_business_types=business_types,
            affected_stocks=stock_ids if stocks == ALL_STOCKS else stocks,
        ))
    return tuple(events)


def new_game(
    player_name: Optional[str] = None,
    rng: Optional[RandomSource] = None,
    config: SimulationConfig = CONFIG,
) -> GameState:
    """
    Build the starting state of a new game.

    Args:
        player_name: Optional display name
        rng: Random source for stock prices (a fresh unseeded one if omitted)
        config: Simulation configuration

    Returns:
        GameState at turn 1 with only starting cash and no holdings
    """
    rng = rng or default_source()
    starting = config.player
    stocks = build_stocks(rng, config)
    state = GameState(
        player=Player(
            cash=starting.starting_cash,
            net_worth=starting.starting_cash,
            name=player_name,
        ),
        turn=starting.starting_turn,
        businesses=build_businesses(),
        stocks=stocks,
        assets=build_assets(),
        events=build_events(tuple(s.id for s in stocks)),
        active_events=(),
        market_trend=starting.starting_market_trend,
        economic_health=starting.starting_economic_health,
        unlock_progress=0.0,
    )
    logger.info(f"New game started for {player_name or 'anonymous player'} with ${starting.starting_cash:,.0f}")
    return state
