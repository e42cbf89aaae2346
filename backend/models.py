"""
Tycoon State Model

Value types for a single game: the player, the business roster, the stock
market, collectible assets and economic events, aggregated in GameState.

All types are frozen. Engines and transactions never mutate a state in place;
they build a new one with dataclasses.replace, copying only the sub-trees they
touch, so the caller's previous state stays valid.

Documents produced by to_dict use the camelCase keys of the saved-game format.
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

BUSINESS_TYPES = (
    "LEMONADE_STAND",
    "FREELANCE_GIG",
    "ONLINE_SHOP",
    "FOOD_TRUCK",
    "RETAIL_STORE",
    "TECH_STARTUP",
    "REAL_ESTATE",
    "FRANCHISE",
    "SOCIAL_MEDIA",
    "CRYPTO_MINING",
    "DROPSHIPPING",
    "MOBILE_GAME",
    "CONTENT_CREATION",
    "CONSULTING",
    "DAY_TRADING",
    "AFFILIATE_MARKETING",
)
ASSET_TYPES = ("PROPERTY", "VEHICLE", "LUXURY", "COLLECTIBLE")
EVENT_TYPES = ("POSITIVE", "NEGATIVE", "NEUTRAL")


def replace_at(items: Tuple[T, ...], index: int, item: T) -> Tuple[T, ...]:
    """Copy of ``items`` with position ``index`` swapped for ``item``."""
    return items[:index] + (item,) + items[index + 1:]


def index_of(items: Sequence, item_id: str) -> Optional[int]:
    """Position of the entity with ``id == item_id``, or None."""
    for idx, item in enumerate(items):
        if item.id == item_id:
            return idx
    return None


@dataclass(frozen=True, slots=True)
class Player:
    """The single player of a game and their lifetime counters."""

    cash: float
    net_worth: float
    businesses_sold: int = 0
    upgrades_purchased: int = 0
    stocks_traded: int = 0
    name: Optional[str] = None

    def __post_init__(self):
        for counter in ("businesses_sold", "upgrades_purchased", "stocks_traded"):
            if getattr(self, counter) < 0:
                raise ValueError(f"{counter} cannot be negative, got {getattr(self, counter)}")

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "cash": self.cash,
            "netWorth": self.net_worth,
            "businessesSold": self.businesses_sold,
            "upgradesPurchased": self.upgrades_purchased,
            "stocksTraded": self.stocks_traded,
        }
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Player":
        return cls(
            cash=data["cash"],
            net_worth=data["netWorth"],
            businesses_sold=data.get("businessesSold", 0),
            upgrades_purchased=data.get("upgradesPurchased", 0),
            stocks_traded=data.get("stocksTraded", 0),
            name=data.get("name"),
        )


@dataclass(frozen=True, slots=True)
class Upgrade:
    """
    One-shot purchasable modifier for a business.

    Once purchased the revenue multiplier and cost reduction are folded into
    the business permanently; ``purchased`` never reverts.
    """

    id: str
    name: str
    cost: float
    revenue_multiplier: float = 1.0
    cost_reduction: float = 0.0
    unlocked: bool = True
    purchased: bool = False
    description: str = ""
    icon: str = ""

    def __post_init__(self):
        if self.revenue_multiplier < 1.0:
            raise ValueError(f"revenue_multiplier must be >= 1, got {self.revenue_multiplier}")
        if not (0.0 <= self.cost_reduction < 1.0):
            raise ValueError(f"cost_reduction must be in [0,1), got {self.cost_reduction}")
        if self.cost < 0:
            raise ValueError(f"cost cannot be negative, got {self.cost}")

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "cost": self.cost,
            "revenueMultiplier": self.revenue_multiplier,
            "costReduction": self.cost_reduction,
            "unlocked": self.unlocked,
            "purchased": self.purchased,
            "icon": self.icon,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Upgrade":
        return cls(
            id=data["id"],
            name=data["name"],
            cost=data["cost"],
            revenue_multiplier=data.get("revenueMultiplier", 1.0),
            cost_reduction=data.get("costReduction", 0.0),
            unlocked=data.get("unlocked", True),
            purchased=data.get("purchased", False),
            description=data.get("description", ""),
            icon=data.get("icon", ""),
        )


@dataclass(frozen=True, slots=True)
class BusinessStrategy:
    """Operating mode of a business. At most one per business is active."""

    id: str
    name: str
    revenue_multiplier: float
    cost_multiplier: float
    risk_level: int
    unlocked: bool = True
    active: bool = False
    description: str = ""

    def __post_init__(self):
        if not (1 <= self.risk_level <= 10):
            raise ValueError(f"risk_level must be in [1,10], got {self.risk_level}")

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "revenueMultiplier": self.revenue_multiplier,
            "costMultiplier": self.cost_multiplier,
            "riskLevel": self.risk_level,
            "unlocked": self.unlocked,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "BusinessStrategy":
        return cls(
            id=data["id"],
            name=data["name"],
            revenue_multiplier=data["revenueMultiplier"],
            cost_multiplier=data["costMultiplier"],
            risk_level=data["riskLevel"],
            unlocked=data.get("unlocked", True),
            active=data.get("active", False),
            description=data.get("description", ""),
        )


@dataclass(frozen=True, slots=True)
class Resource:
    """Stockpiled input held by a business (carried through saves)."""

    id: str
    name: str
    quantity: float = 0.0
    unit_value: float = 0.0

    def __post_init__(self):
        if self.quantity < 0:
            raise ValueError(f"quantity cannot be negative, got {self.quantity}")

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "unitValue": self.unit_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Resource":
        return cls(
            id=data["id"],
            name=data["name"],
            quantity=data.get("quantity", 0.0),
            unit_value=data.get("unitValue", 0.0),
        )


@dataclass(frozen=True, slots=True)
class Business:
    """
    A business on the roster.

    Created once at game start; never destroyed. Selling resets ownership
    and level but keeps purchased upgrades and the revenue they compounded.
    """

    # Identification
    id: str
    name: str
    type: str
    icon: str = ""
    description: str = ""

    # Economics
    revenue: float = 0.0
    cost: float = 0.0
    purchase_price: float = 0.0
    upgrade_price: float = 0.0
    level: int = 1
    cash: float = 0.0  # Lifetime revenue credited to this business
    employees: int = 0

    # State flags
    unlocked: bool = False
    owned: bool = False
    boost_active: bool = False
    quick_money_option: bool = False
    auto_sell: bool = False
    special_ability: str = ""
    management_level: int = 1

    # Owned collections
    upgrades: Tuple[Upgrade, ...] = ()
    strategies: Tuple[BusinessStrategy, ...] = ()
    resources: Tuple[Resource, ...] = ()

    def __post_init__(self):
        if self.type not in BUSINESS_TYPES:
            raise ValueError(f"unknown business type {self.type!r}")
        if self.level < 1:
            raise ValueError(f"level must be at least 1, got {self.level}")
        if self.purchase_price < 0 or self.upgrade_price < 0:
            raise ValueError("prices cannot be negative")
        if sum(1 for s in self.strategies if s.active) > 1:
            raise ValueError(f"business {self.id} has more than one active strategy")

    @property
    def active_strategy(self) -> Optional[BusinessStrategy]:
        return next((s for s in self.strategies if s.active), None)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "icon": self.icon,
            "description": self.description,
            "revenue": self.revenue,
            "cost": self.cost,
            "purchasePrice": self.purchase_price,
            "upgradePrice": self.upgrade_price,
            "level": self.level,
            "cash": self.cash,
            "employees": self.employees,
            "unlocked": self.unlocked,
            "owned": self.owned,
            "boostActive": self.boost_active,
            "quickMoneyOption": self.quick_money_option,
            "autoSell": self.auto_sell,
            "specialAbility": self.special_ability,
            "managementLevel": self.management_level,
            "upgrades": [u.to_dict() for u in self.upgrades],
            "strategies": [s.to_dict() for s in self.strategies],
            "resources": [r.to_dict() for r in self.resources],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Business":
        return cls(
            id=data["id"],
            name=data["name"],
            type=data["type"],
            icon=data.get("icon", ""),
            description=data.get("description", ""),
            revenue=data["revenue"],
            cost=data["cost"],
            purchase_price=data["purchasePrice"],
            upgrade_price=data["upgradePrice"],
            level=data["level"],
            cash=data.get("cash", 0.0),
            employees=data.get("employees", 0),
            unlocked=data.get("unlocked", False),
            owned=data.get("owned", False),
            boost_active=data.get("boostActive", False),
            quick_money_option=data.get("quickMoneyOption", False),
            auto_sell=data.get("autoSell", False),
            special_ability=data.get("specialAbility", ""),
            management_level=data.get("managementLevel", 1),
            upgrades=tuple(Upgrade.from_dict(u) for u in data.get("upgrades", [])),
            strategies=tuple(BusinessStrategy.from_dict(s) for s in data.get("strategies", [])),
            resources=tuple(Resource.from_dict(r) for r in data.get("resources", []) or []),
        )


@dataclass(frozen=True, slots=True)
class Stock:
    """
    A listed stock and the player's position in it.

    ``purchase_price`` is the volume-weighted average cost of the shares held,
    or None while no shares are held.
    """

    id: str
    name: str
    symbol: str
    price: float
    volatility: float
    trend: float
    history: Tuple[float, ...] = ()
    owned: int = 0
    purchase_price: Optional[float] = None

    def __post_init__(self):
        if self.price <= 0:
            raise ValueError(f"price must be positive, got {self.price}")
        if self.volatility < 0:
            raise ValueError(f"volatility cannot be negative, got {self.volatility}")
        if self.owned < 0:
            raise ValueError(f"owned cannot be negative, got {self.owned}")

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "price": self.price,
            "volatility": self.volatility,
            "trend": self.trend,
            "history": list(self.history),
            "owned": self.owned,
        }
        if self.purchase_price is not None:
            data["purchasePrice"] = self.purchase_price
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Stock":
        return cls(
            id=data["id"],
            name=data["name"],
            symbol=data["symbol"],
            price=data["price"],
            volatility=data["volatility"],
            trend=data["trend"],
            history=tuple(data.get("history", [])),
            owned=data.get("owned", 0),
            purchase_price=data.get("purchasePrice"),
        )


@dataclass(frozen=True, slots=True)
class Asset:
    """Collectible or property whose value drifts by ``appreciation`` each turn."""

    id: str
    name: str
    type: str
    cost: float
    value: float
    appreciation: float
    owned: bool = False
    description: str = ""
    icon: str = ""

    def __post_init__(self):
        if self.type not in ASSET_TYPES:
            raise ValueError(f"unknown asset type {self.type!r}")
        if self.cost < 0:
            raise ValueError(f"cost cannot be negative, got {self.cost}")

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "cost": self.cost,
            "value": self.value,
            "appreciation": self.appreciation,
            "owned": self.owned,
            "description": self.description,
            "icon": self.icon,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Asset":
        return cls(
            id=data["id"],
            name=data["name"],
            type=data["type"],
            cost=data["cost"],
            value=data["value"],
            appreciation=data["appreciation"],
            owned=data.get("owned", False),
            description=data.get("description", ""),
            icon=data.get("icon", ""),
        )


@dataclass(frozen=True, slots=True)
class EconomicEvent:
    """
    An economic event.

    Catalog entries carry ``turns_left=None`` and flip ``applied`` once they
    have fired. Active instances are copies of a catalog entry with a
    countdown in ``turns_left``.
    """

    id: str
    title: str
    type: str
    multiplier: float
    duration: int
    description: str = ""
    affected_business_types: Optional[Tuple[str, ...]] = None
    affected_stocks: Optional[Tuple[str, ...]] = None
    applied: bool = False
    turns_left: Optional[int] = None

    def __post_init__(self):
        if self.type not in EVENT_TYPES:
            raise ValueError(f"unknown event type {self.type!r}")
        if self.duration < 1:
            raise ValueError(f"duration must be at least 1, got {self.duration}")
        for business_type in self.affected_business_types or ():
            if business_type not in BUSINESS_TYPES:
                raise ValueError(f"unknown business type {business_type!r}")

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "multiplier": self.multiplier,
            "duration": self.duration,
            "applied": self.applied,
        }
        if self.affected_business_types is not None:
            data["affectedBusinessTypes"] = list(self.affected_business_types)
        if self.affected_stocks is not None:
            data["affectedStocks"] = list(self.affected_stocks)
        if self.turns_left is not None:
            data["turnsLeft"] = self.turns_left
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "EconomicEvent":
        business_types = data.get("affectedBusinessTypes")
        stocks = data.get("affectedStocks")
        return cls(
            id=data["id"],
            title=data["title"],
            type=data["type"],
            multiplier=data["multiplier"],
            duration=data["duration"],
            description=data.get("description", ""),
            affected_business_types=tuple(business_types) if business_types is not None else None,
            affected_stocks=tuple(stocks) if stocks is not None else None,
            applied=data.get("applied", False),
            turns_left=data.get("turnsLeft"),
        )


@dataclass(frozen=True, slots=True)
class GameState:
    """
    Root aggregate of one game.

    ``player.net_worth`` is a cached valuation of the rest of the state and is
    refreshed after every transaction and turn.
    """

    player: Player
    turn: int
    businesses: Tuple[Business, ...] = ()
    stocks: Tuple[Stock, ...] = ()
    assets: Tuple[Asset, ...] = ()
    events: Tuple[EconomicEvent, ...] = ()
    active_events: Tuple[EconomicEvent, ...] = ()
    market_trend: float = 0.0
    economic_health: float = 50.0
    unlock_progress: float = 0.0

    def __post_init__(self):
        if self.turn < 1:
            raise ValueError(f"turn must be at least 1, got {self.turn}")
        if not (0.0 <= self.economic_health <= 100.0):
            raise ValueError(f"economic_health must be in [0,100], got {self.economic_health}")

    def with_business(self, index: int, business: Business) -> "GameState":
        return replace(self, businesses=replace_at(self.businesses, index, business))

    def with_stock(self, index: int, stock: Stock) -> "GameState":
        return replace(self, stocks=replace_at(self.stocks, index, stock))

    def with_asset(self, index: int, asset: Asset) -> "GameState":
        return replace(self, assets=replace_at(self.assets, index, asset))

    def to_dict(self) -> Dict[str, object]:
        """
        Serialize to the saved-game document.

        Returns:
            JSON-compatible dictionary (plain numbers, strings, lists, dicts)
        """
        return {
            "player": self.player.to_dict(),
            "turn": self.turn,
            "businesses": [b.to_dict() for b in self.businesses],
            "stocks": [s.to_dict() for s in self.stocks],
            "assets": [a.to_dict() for a in self.assets],
            "events": [e.to_dict() for e in self.events],
            "activeEvents": [e.to_dict() for e in self.active_events],
            "marketTrend": self.market_trend,
            "economicHealth": self.economic_health,
            "unlockProgress": self.unlock_progress,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "GameState":
        return cls(
            player=Player.from_dict(data["player"]),
            turn=data["turn"],
            businesses=tuple(Business.from_dict(b) for b in data.get("businesses", [])),
            stocks=tuple(Stock.from_dict(s) for s in data.get("stocks", [])),
            assets=tuple(Asset.from_dict(a) for a in data.get("assets", [])),
            events=tuple(EconomicEvent.from_dict(e) for e in data.get("events", [])),
            active_events=tuple(EconomicEvent.from_dict(e) for e in data.get("activeEvents", [])),
            market_trend=data["marketTrend"],
            economic_health=data["economicHealth"],
            unlock_progress=data.get("unlockProgress", 0.0),
        )
