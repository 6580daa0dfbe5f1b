from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Dict, Optional, Union, Literal
from datetime import datetime
import random

from . import utils

# --- Catalog constants ---
MaterialType = Literal["patty", "cheese", "bun", "potato"]
InventoryCategory = Literal["patty", "cheese", "bun", "potato", "finished_goods"]

MATERIAL_TYPES = ("patty", "cheese", "bun", "potato")
FINISHED_GOODS = "finished_goods"
INVENTORY_CATEGORIES = MATERIAL_TYPES + (FINISHED_GOODS,)

# Raw material units consumed per finished meal
MEAL_RECIPE: Dict[str, int] = {"patty": 1, "cheese": 3, "bun": 2, "potato": 4}

DEFAULT_HOLDING_COST_RATE = 0.25  # annual, applied per day as rate / 365
LATENESS_PENALTY_RATE = 0.4  # share of the customer's unit price charged per missed unit


class Inventory(BaseModel):
    patty: int = Field(0, ge=0)
    cheese: int = Field(0, ge=0)
    bun: int = Field(0, ge=0)
    potato: int = Field(0, ge=0)
    finished_goods: int = Field(0, ge=0)

    def get(self, category: str) -> int:
        return getattr(self, category)

    def set(self, category: str, quantity: int) -> None:
        setattr(self, category, max(0, int(quantity)))

    def add(self, category: str, quantity: int) -> None:
        self.set(category, self.get(category) + quantity)

    def as_dict(self) -> Dict[str, int]:
        return {category: self.get(category) for category in INVENTORY_CATEGORIES}


# --- FIFO lots ---
class InventoryTransaction(BaseModel):
    id: str = Field(default_factory=utils.generate_id, description="Unique lot ID")
    material_type: MaterialType
    quantity: int = Field(..., description="Units still on hand from this lot; shrinks as the lot is consumed")
    unit_cost: float
    day: int
    supplier_id: Optional[int] = None
    delivery_option_id: Optional[int] = None
    timestamp: datetime = Field(default_factory=utils.get_current_utc_timestamp)

    @property
    def total_cost(self) -> float:
        return self.quantity * self.unit_cost


class FinishedGoodsBatch(BaseModel):
    id: str = Field(default_factory=utils.generate_id, description="Unique batch ID")
    quantity: int
    unit_cost: float
    day: int
    raw_material_costs: Dict[str, float] = Field({}, description="FIFO cost of each raw material consumed by this batch")
    production_cost: float = 0.0
    timestamp: datetime = Field(default_factory=utils.get_current_utc_timestamp)

    @property
    def total_cost(self) -> float:
        return self.quantity * self.unit_cost


# --- Pending transfers ---
class PendingOrder(BaseModel):
    material_type: MaterialType
    quantity: int
    days_remaining: int
    total_cost: float
    supplier_id: int
    delivery_option_id: Optional[int] = None
    supplier_name: Optional[str] = None
    actual_lead_time: Optional[int] = None


class PendingCustomerOrder(BaseModel):
    customer_id: int
    quantity: int
    days_remaining: int
    total_revenue: float = 0.0
    transport_cost: float = 0.0
    net_revenue: float
    actual_lead_time: Optional[int] = None


# --- Penalty events ---
class LatenessPenalty(BaseModel):
    customer_id: int
    customer_name: str
    day: int
    missed_amount: int
    penalty_amount: float


class OverstockPenaltyEvent(BaseModel):
    day: int
    penalty: float
    details: Dict[str, float] = {}


# --- Daily snapshots ---
class DailyDemand(BaseModel):
    quantity: int = 0
    price_per_unit: float = 0.0


class DailyInventoryValuation(BaseModel):
    day: int
    values: Dict[str, float] = Field({}, description="Acquisition value held per inventory category")
    quantities: Dict[str, int] = {}
    total_value: float = 0.0


class InventoryHoldingCosts(BaseModel):
    by_category: Dict[str, float] = {}
    total: float = 0.0


class DailyCosts(BaseModel):
    purchases: float = 0.0
    production: float = 0.0
    holding: float = 0.0
    overstock: float = 0.0
    lateness: float = 0.0
    transport: float = 0.0
    total: float = 0.0


class CustomerDeliverySummary(BaseModel):
    quantity: int = 0
    revenue: float = 0.0


class DailyResult(BaseModel):
    day: int
    cash: float
    inventory: Inventory
    inventory_valuation: DailyInventoryValuation
    holding_costs: InventoryHoldingCosts
    patty_purchased: int = 0
    cheese_purchased: int = 0
    bun_purchased: int = 0
    potato_purchased: int = 0
    production: int = 0
    sales: int = Field(0, description="Meals sold directly at the daily demand price")
    customer_sales: int = Field(0, description="Meals shipped to customers on this day")
    revenue: float = 0.0
    cogs: float = Field(0.0, description="FIFO cost of finished goods sold or shipped; tracked, not paid")
    costs: DailyCosts = Field(default_factory=DailyCosts)
    profit: float = 0.0
    cumulative_profit: float = 0.0
    score: int = 0
    delivery_option_id: Optional[int] = None
    customer_deliveries: Dict[int, CustomerDeliverySummary] = {}
    lateness_penalties: List[LatenessPenalty] = []
    overstock_penalty: float = 0.0
    overstock_penalty_details: Dict[str, float] = {}


# --- Level catalog (read-only) ---
def _normalize_capacity(value: Union[None, int, float, Dict[str, int]]) -> Optional[Dict[str, int]]:
    # A flat number applies to every material; a map leaves unlisted materials at 0.
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return {material: int(value) for material in MATERIAL_TYPES}
    if isinstance(value, dict):
        unknown = set(value) - set(MATERIAL_TYPES)
        if unknown:
            raise ValueError(f"Unknown materials in capacity: {sorted(unknown)}")
        return {material: int(value.get(material, 0)) for material in MATERIAL_TYPES}
    raise ValueError(f"Capacity must be a number or a per-material map, got {type(value).__name__}")


def _check_lead_time_range(random_lead_time: bool, lead_time_range: List[int], owner: str) -> None:
    if random_lead_time and not lead_time_range:
        raise ValueError(f"{owner} uses a random lead time but has no lead_time_range")
    if any(days < 0 for days in lead_time_range):
        raise ValueError(f"{owner} has a negative value in lead_time_range")


class Supplier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: Optional[str] = None
    lead_time: int = Field(0, ge=0)
    capacity_per_game: Optional[Dict[MaterialType, int]] = Field(None, description="Lifetime units per material; None is unlimited")
    capacity_per_day: Optional[Dict[MaterialType, int]] = Field(None, description="Units per material per day; None is unlimited")
    material_prices: Dict[MaterialType, float] = Field({}, description="Overrides the level's base price per material")
    cost_multiplier: float = Field(1.0, ge=0)
    shipment_prices: Dict[MaterialType, Dict[int, float]] = Field({}, description="Shipment fee per material and shipment size")
    random_lead_time: bool = False
    lead_time_range: List[int] = []

    @field_validator("capacity_per_game", "capacity_per_day", mode="before")
    @classmethod
    def normalize_capacity(cls, value):
        return _normalize_capacity(value)

    @field_validator("material_prices")
    @classmethod
    def check_prices(cls, value: Dict[str, float]) -> Dict[str, float]:
        negative = [material for material, price in value.items() if price < 0]
        if negative:
            raise ValueError(f"Negative material prices: {negative}")
        return value

    @model_validator(mode="after")
    def check_lead_times(self):
        _check_lead_time_range(self.random_lead_time, self.lead_time_range, f"Supplier {self.id}")
        return self


class DeliveryOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    lead_time: int = Field(0, ge=0)
    cost_multiplier: float = Field(1.0, ge=0)
    description: Optional[str] = None


class DeliveryMilestone(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int = Field(..., ge=1)
    required_amount: int = Field(..., ge=0)


class Customer(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: Optional[str] = None
    lead_time: int = Field(0, ge=0)
    total_requirement: int = 0
    delivery_schedule: List[DeliveryMilestone] = []
    price_per_unit: float = Field(..., ge=0)
    transport_costs: Dict[int, float] = Field({}, description="Transport cost per shipment size")
    allowed_shipment_sizes: List[int] = Field([], description="Only these shipment sizes are accepted")
    minimum_delivery_amount: int = 0
    random_lead_time: bool = False
    lead_time_range: List[int] = []
    active: bool = True

    @model_validator(mode="after")
    def check_lead_times(self):
        _check_lead_time_range(self.random_lead_time, self.lead_time_range, f"Customer {self.id}")
        return self


class DemandModel(BaseModel):
    """Daily direct-sales quote: base quantity, +/- variation and a periodic boost.

    The variation is drawn from a generator seeded by ``seed`` and the day, so
    the quote for a given day never changes.
    """
    model_config = ConfigDict(frozen=True)

    base_quantity: int = Field(0, ge=0)
    variation: int = Field(0, ge=0)
    weekly_boost: int = 0
    weekly_boost_period: int = Field(7, ge=1)
    price_per_unit: float = Field(0.0, ge=0)
    seed: int = 0

    def quote(self, day: int) -> DailyDemand:
        jitter = 0
        if self.variation:
            jitter = random.Random(self.seed * 1_000_003 + day).randint(-self.variation, self.variation)
        boost = self.weekly_boost if day % self.weekly_boost_period == 1 else 0
        quantity = max(0, self.base_quantity + jitter + boost)
        return DailyDemand(quantity=quantity, price_per_unit=self.price_per_unit)


class OverstockRule(BaseModel):
    model_config = ConfigDict(frozen=True, ser_json_inf_nan="constants")

    threshold: float = Field(..., ge=0, description="May be infinite to disable the rule")
    penalty_per_unit: float = Field(..., ge=0)


class LevelConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    initial_cash: float
    initial_inventory: Inventory = Field(default_factory=Inventory)
    days_to_complete: int = Field(..., ge=1)
    production_cost_per_unit: float = Field(..., ge=0)
    production_capacity: Optional[int] = Field(None, ge=0, description="Meals per day; None is unlimited")
    holding_cost_rate: float = Field(DEFAULT_HOLDING_COST_RATE, ge=0, description="Annual rate on inventory value")
    material_base_prices: Dict[MaterialType, float] = {}
    recipe: Dict[MaterialType, int] = Field(default_factory=lambda: dict(MEAL_RECIPE))
    suppliers: List[Supplier] = []
    delivery_options: List[DeliveryOption] = []
    customers: List[Customer] = []
    demand_model: DemandModel = Field(default_factory=DemandModel)
    max_score: int = Field(..., ge=0)
    overstock: Dict[InventoryCategory, OverstockRule] = {}

    @field_validator("recipe")
    @classmethod
    def check_recipe(cls, value: Dict[str, int]) -> Dict[str, int]:
        missing = [material for material in MATERIAL_TYPES if value.get(material, 0) <= 0]
        if missing:
            raise ValueError(f"Recipe needs a positive amount of every material, missing: {missing}")
        return value

    @model_validator(mode="after")
    def check_unique_ids(self):
        for label, items in (("supplier", self.suppliers), ("customer", self.customers),
                             ("delivery option", self.delivery_options)):
            ids = [item.id for item in items]
            if len(ids) != len(set(ids)):
                raise ValueError(f"Duplicate {label} IDs in level {self.id}: {ids}")
        return self

    def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        return next((s for s in self.suppliers if s.id == supplier_id), None)

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return next((c for c in self.customers if c.id == customer_id), None)

    def get_delivery_option(self, option_id: Optional[int]) -> Optional[DeliveryOption]:
        return next((o for o in self.delivery_options if o.id == option_id), None)


# --- Player input ---
class SupplierOrder(BaseModel):
    supplier_id: int
    patty_purchase: int = 0
    cheese_purchase: int = 0
    bun_purchase: int = 0
    potato_purchase: int = 0

    def quantities(self) -> Dict[str, int]:
        return {material: getattr(self, f"{material}_purchase") for material in MATERIAL_TYPES}


class CustomerOrderAction(BaseModel):
    customer_id: int
    quantity: int


class GameAction(BaseModel):
    supplier_orders: List[SupplierOrder] = []
    production: int = 0
    sales_attempt: int = 0
    delivery_option_id: Optional[int] = None
    customer_orders: List[CustomerOrderAction] = []


# --- Game state ---
class GameState(BaseModel):
    day: int = Field(1, ge=1)
    cash: float
    inventory: Inventory
    inventory_transactions: List[InventoryTransaction] = Field([], description="Raw material FIFO lots, oldest first")
    finished_goods_batches: List[FinishedGoodsBatch] = Field([], description="Finished goods FIFO lots, oldest first")
    daily_inventory_valuations: List[DailyInventoryValuation] = []
    pending_orders: List[PendingOrder] = []
    pending_customer_orders: List[PendingCustomerOrder] = []
    customer_deliveries: Dict[int, int] = Field({}, description="Lifetime units delivered per customer")
    supplier_deliveries: Dict[int, Dict[str, int]] = Field({}, description="Lifetime units ordered per supplier and material")
    daily_demand: DailyDemand = Field(default_factory=DailyDemand)
    cumulative_profit: float = 0.0
    score: int = 0
    history: List[DailyResult] = []
    selected_delivery_option: Optional[int] = None
    game_over: bool = False
    lateness_penalties: List[LatenessPenalty] = []
    overstock_penalties: List[OverstockPenaltyEvent] = []
    rng_seed: int = 0


# --- Read-only projections ---
class GameResult(BaseModel):
    level_id: int
    user_id: str
    final_day: int
    final_cash: float
    final_inventory: Inventory
    cumulative_profit: float
    score: int
    history: List[DailyResult]


class CostBreakdown(BaseModel):
    purchase_cost: float = 0.0
    supplier_transport_cost: float = 0.0
    production_cost: float = 0.0
    holding_cost: float = 0.0
    overstock_cost: float = 0.0
    restaurant_delivery_cost: float = 0.0


class AffordabilityResult(BaseModel):
    valid: bool
    message: Optional[str] = None
    total_cost: float
    holding_cost: float
    available_cash: float
    cost_breakdown: CostBreakdown = Field(default_factory=CostBreakdown)
