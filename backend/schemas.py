"""
Saved-game document schema and HTTP payload models.

A loaded save is validated wholesale against GameStateDocument before it is
turned back into a GameState; a document that fails is rejected without any
partial load.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from models import GameState

BusinessType = Literal[
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
]
AssetType = Literal["PROPERTY", "VEHICLE", "LUXURY", "COLLECTIBLE"]
EventType = Literal["POSITIVE", "NEGATIVE", "NEUTRAL"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerDocument(CamelModel):
    cash: float
    net_worth: float
    businesses_sold: int = Field(default=0, ge=0)
    upgrades_purchased: int = Field(default=0, ge=0)
    stocks_traded: int = Field(default=0, ge=0)
    name: Optional[str] = None


class UpgradeDocument(CamelModel):
    id: str
    name: str
    description: str = ""
    cost: float = Field(ge=0)
    revenue_multiplier: float = Field(default=1.0, ge=1.0)
    cost_reduction: float = Field(default=0.0, ge=0.0, lt=1.0)
    unlocked: bool = True
    purchased: bool = False
    icon: str = ""


class StrategyDocument(CamelModel):
    id: str
    name: str
    description: str = ""
    revenue_multiplier: float
    cost_multiplier: float
    risk_level: int = Field(ge=1, le=10)
    unlocked: bool = True
    active: bool = False


class ResourceDocument(CamelModel):
    id: str
    name: str
    quantity: float = Field(default=0.0, ge=0)
    unit_value: float = 0.0


class BusinessDocument(CamelModel):
    id: str
    name: str
    type: BusinessType
    icon: str = ""
    description: str = ""
    revenue: float
    cost: float
    purchase_price: float = Field(ge=0)
    upgrade_price: float = Field(ge=0)
    level: int = Field(ge=1)
    cash: float = 0.0
    employees: int = 0
    unlocked: bool = False
    owned: bool = False
    boost_active: bool = False
    quick_money_option: bool = False
    auto_sell: bool = False
    special_ability: str = ""
    management_level: int = 1
    upgrades: List[UpgradeDocument] = []
    strategies: List[StrategyDocument] = []
    resources: List[ResourceDocument] = []


class StockDocument(CamelModel):
    id: str
    name: str
    symbol: str
    price: float = Field(ge=1)
    volatility: float = Field(ge=0)
    trend: float = Field(ge=-2, le=2)
    history: List[float] = Field(default_factory=list, max_length=30)
    owned: int = Field(default=0, ge=0)
    purchase_price: Optional[float] = None


class AssetDocument(CamelModel):
    id: str
    name: str
    type: AssetType
    cost: float = Field(ge=0)
    value: float
    appreciation: float
    owned: bool = False
    description: str = ""
    icon: str = ""


class EventDocument(CamelModel):
    id: str
    title: str
    description: str = ""
    type: EventType
    multiplier: float
    duration: int = Field(ge=1)
    affected_business_types: Optional[List[BusinessType]] = None
    affected_stocks: Optional[List[str]] = None
    applied: bool = False
    turns_left: Optional[int] = Field(default=None, ge=1)


class GameStateDocument(CamelModel):
    player: PlayerDocument
    turn: int = Field(ge=1)
    businesses: List[BusinessDocument]
    stocks: List[StockDocument]
    assets: List[AssetDocument]
    events: List[EventDocument]
    active_events: List[EventDocument]
    market_trend: float = Field(ge=-0.5, le=0.5)
    economic_health: float = Field(ge=0, le=100)
    unlock_progress: float = 0.0


class InvalidSaveDocument(ValueError):
    """A saved-game document failed validation."""


def parse_game_state(document: dict) -> GameState:
    """
    Validate a saved-game document and build the GameState it describes.

    Raises:
        InvalidSaveDocument: if the document does not describe a valid game
    """
    try:
        validated = GameStateDocument.model_validate(document)
        return GameState.from_dict(validated.model_dump(by_alias=True, exclude_none=True))
    except (ValidationError, ValueError, KeyError, TypeError) as e:
        raise InvalidSaveDocument(str(e)) from e


# ---------------------------------------------------------------------------
# HTTP payloads
# ---------------------------------------------------------------------------

class Credentials(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    id: int
    username: str


class NewGameRequest(BaseModel):
    player_name: Optional[str] = None
    seed: Optional[int] = None


class SaveRequest(BaseModel):
    user_id: int
    name: str = Field(min_length=1, max_length=128)


class SaveDocumentRequest(BaseModel):
    user_id: int
    name: str = Field(min_length=1, max_length=128)
    game_state: dict


class SaveUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    game_state: Optional[dict] = None


class SaveSummary(BaseModel):
    id: int
    user_id: int
    name: str
    created_at: str
    updated_at: str


class QuantityRequest(BaseModel):
    quantity: int = Field(gt=0)


class TransactionOut(BaseModel):
    accepted: bool
    reason: Optional[str] = None
    amount: float = 0.0
    game_state: dict
