"""Built-in level catalog.

Every level shares the same three suppliers and three restaurant customers;
levels differ in lead times, delivery schedules, delivery options and
overstock rules.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .models import DeliveryMilestone, LevelConfig

MILESTONE_FRACTIONS = (0.2, 0.4, 0.6, 0.8, 1.0)

INFINITY = float("inf")

STARTING_INVENTORY = {"patty": 100, "cheese": 250, "bun": 150, "potato": 300, "finished_goods": 0}
BASE_MATERIAL_PRICES = {"patty": 10, "cheese": 5, "bun": 3, "potato": 2}

_SUPPLIER_CATALOG = [
    {
        "id": 1,
        "name": "Pink Patty",
        "capacity_per_game": {"patty": 150, "cheese": 500, "bun": 200, "potato": 0},
        "material_prices": {"patty": 10, "cheese": 1.5, "bun": 3, "potato": 0},
        "shipment_prices": {
            "patty": {50: 116, 100: 134},
            "bun": {50: 89, 100: 98, 200: 134},
            "cheese": {50: 65, 100: 89, 200: 116},
            "potato": {50: 98, 100: 134, 200: 134},
        },
    },
    {
        "id": 2,
        "name": "Brown Sauce",
        "capacity_per_game": {"patty": 200, "cheese": 0, "bun": 200, "potato": 850},
        "material_prices": {"patty": 13, "cheese": 0, "bun": 2.7, "potato": 1.6},
        "shipment_prices": {
            "patty": {50: 121, 100: 139, 200: 186},
            "bun": {50: 92, 100: 102, 200: 139},
            "cheese": {50: 68, 100: 92, 200: 121},
            "potato": {50: 102, 100: 139, 200: 139},
        },
    },
    {
        "id": 3,
        "name": "Firehouse Foods",
        "capacity_per_game": {"patty": 0, "cheese": 500, "bun": 250, "potato": 700},
        "material_prices": {"patty": 0, "cheese": 1.8, "bun": 3.4, "potato": 1.2},
        "shipment_prices": {
            "patty": {50: 126, 100: 145, 150: 175},
            "bun": {50: 96, 100: 106, 150: 126},
            "cheese": {50: 71, 100: 96, 150: 106},
            "potato": {50: 106, 100: 145, 150: 145},
        },
    },
]

_CUSTOMER_CATALOG = [
    {
        "id": 1,
        "name": "Yummy Zone",
        "description": "A local restaurant chain with specific delivery requirements.",
        "price_per_unit": 49,
        "transport_costs": {20: 134, 40: 179, 100: 204},
        "allowed_shipment_sizes": [20, 40, 100],
    },
    {
        "id": 2,
        "name": "Toast-to-go",
        "description": "A quick-service restaurant requiring regular deliveries.",
        "price_per_unit": 46,
        "transport_costs": {20: 139, 40: 186, 100: 213},
        "allowed_shipment_sizes": [20, 40, 100],
    },
    {
        "id": 3,
        "name": "StudyFuel",
        "description": "A campus food service catering to university students.",
        "price_per_unit": 47,
        "transport_costs": {20: 145, 40: 194, 100: 222},
        "allowed_shipment_sizes": [20, 40, 100],
    },
]

_STANDARD_OVERSTOCK = {
    "patty": {"threshold": 100, "penalty_per_unit": 2},
    "bun": {"threshold": INFINITY, "penalty_per_unit": 1},
    "cheese": {"threshold": 250, "penalty_per_unit": 1},
    "potato": {"threshold": 300, "penalty_per_unit": 0.5},
    "finished_goods": {"threshold": 50, "penalty_per_unit": 3},
}


def generate_delivery_schedule(total_requirement: int, total_days: int) -> List[DeliveryMilestone]:
    """Five milestones at 20/40/60/80/100 % of the horizon, each delivering its share.

    Milestones that round onto the same day are merged.
    """
    if total_requirement <= 0 or total_days <= 0:
        logger.warning(f"Cannot build a delivery schedule for requirement={total_requirement}, days={total_days}")
        return []

    by_day: Dict[int, int] = {}
    previous_target = 0
    for fraction in MILESTONE_FRACTIONS:
        day = max(1, round(total_days * fraction))
        target = round(total_requirement * fraction)
        amount = target - previous_target
        if amount > 0:
            by_day[day] = by_day.get(day, 0) + amount
            previous_target = target
    return [DeliveryMilestone(day=day, required_amount=amount) for day, amount in sorted(by_day.items())]


def has_missed_milestone(schedule: Optional[Sequence[DeliveryMilestone]], delivered: int, current_day: int) -> bool:
    """True when less than the cumulative requirement of the last passed milestone has been delivered."""
    if not schedule or current_day <= 0:
        return False
    passed = [m for m in schedule if m.day <= current_day]
    if not passed:
        return False
    last_day = max(m.day for m in passed)
    required = sum(m.required_amount for m in schedule if m.day <= last_day)
    return delivered < required


def _suppliers(lead_times: Sequence[int], lead_time_ranges: Optional[Dict[int, List[int]]] = None) -> List[dict]:
    suppliers = []
    for base, lead_time in zip(_SUPPLIER_CATALOG, lead_times):
        supplier = dict(base, lead_time=lead_time)
        if lead_time_ranges and base["id"] in lead_time_ranges:
            supplier.update(random_lead_time=True, lead_time_range=lead_time_ranges[base["id"]])
        suppliers.append(supplier)
    return suppliers


def _increments(targets: Sequence[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Turns cumulative (day, delivered-by-day) targets into per-milestone amounts."""
    amounts = []
    previous = 0
    for day, target in targets:
        amounts.append((day, max(0, target - previous)))
        previous = max(previous, target)
    return amounts


def _customers(overrides: Sequence[dict], cumulative: bool = False) -> List[dict]:
    customers = []
    for base, override in zip(_CUSTOMER_CATALOG, overrides):
        customer = dict(base)
        customer.update(override)
        schedule = override["delivery_schedule"]
        if cumulative:
            schedule = _increments(schedule)
        customer["delivery_schedule"] = [{"day": day, "required_amount": amount} for day, amount in schedule]
        customers.append(customer)
    return customers


def _demand_model(seed: int) -> dict:
    return {"base_quantity": 10, "variation": 2, "weekly_boost": 5, "weekly_boost_period": 7,
            "price_per_unit": 30, "seed": seed}


def _level(**fields) -> LevelConfig:
    base = {
        "initial_cash": 2500,
        "initial_inventory": STARTING_INVENTORY,
        "production_cost_per_unit": 4,
        "material_base_prices": BASE_MATERIAL_PRICES,
        "overstock": _STANDARD_OVERSTOCK,
    }
    base.update(fields)
    return LevelConfig.model_validate(base)


LEVELS: Dict[int, LevelConfig] = {
    0: _level(
        id=0,
        name="The First Spark",
        description="Learn the fundamentals of inventory management and supply chain",
        days_to_complete=20,
        max_score=1000,
        suppliers=_suppliers([0, 0, 0]),
        delivery_options=[{"id": 1, "name": "Instant Delivery", "lead_time": 0,
                           "description": "Immediate delivery with no waiting time"}],
        customers=_customers([
            {"lead_time": 0, "total_requirement": 80, "delivery_schedule": [(3, 20), (20, 60)]},
            {"lead_time": 0, "total_requirement": 120, "delivery_schedule": [(6, 40), (20, 80)]},
            {"lead_time": 0, "total_requirement": 100, "delivery_schedule": [(8, 60), (20, 40)]},
        ]),
        demand_model=_demand_model(0),
        overstock={category: {"threshold": rule["threshold"], "penalty_per_unit": 2.5}
                   for category, rule in _STANDARD_OVERSTOCK.items()},
    ),
    1: _level(
        id=1,
        name="Timing is Everything",
        description="Manage your burger restaurant supply chain with fixed supplier lead times",
        days_to_complete=20,
        max_score=1200,
        suppliers=_suppliers([1, 2, 3]),
        customers=_customers([
            {"lead_time": 2, "total_requirement": 80, "delivery_schedule": [(3, 20), (30, 60)]},
            {"lead_time": 3, "total_requirement": 120, "delivery_schedule": [(6, 40), (30, 80)]},
            {"lead_time": 1, "total_requirement": 100, "delivery_schedule": [(8, 60), (30, 40)]},
        ]),
        demand_model=_demand_model(1),
    ),
    2: _level(
        id=2,
        name="Advanced Supply Chain",
        description="Manage your restaurant with multiple suppliers, longer lead times, and more demand variation.",
        days_to_complete=20,
        max_score=1500,
        suppliers=_suppliers([0, 0, 0]),
        delivery_options=[
            {"id": 1, "name": "Standard Delivery", "lead_time": 3, "description": "Standard delivery (3 days)"},
            {"id": 2, "name": "Express Delivery", "lead_time": 1, "description": "Faster delivery (1 day)"},
        ],
        customers=_customers([
            {"lead_time": 2, "total_requirement": 120, "delivery_schedule": [(3, 20), (11, 60), (20, 120)],
             "transport_costs": {20: 140, 40: 185, 100: 210}},
            {"lead_time": 2, "total_requirement": 160, "delivery_schedule": [(6, 40), (20, 160)],
             "transport_costs": {20: 145, 40: 192, 100: 220}},
            {"lead_time": 2, "total_requirement": 140, "delivery_schedule": [(8, 60), (12, 100), (20, 140)],
             "transport_costs": {20: 150, 40: 200, 100: 225}},
        ], cumulative=True),
        demand_model=_demand_model(2),
    ),
    3: _level(
        id=3,
        name="Uncertainty Unleashed",
        description="Navigate complex supply chains with variable market conditions.",
        days_to_complete=30,
        max_score=1400,
        suppliers=_suppliers([1, 2, 3], lead_time_ranges={2: [1, 2, 3]}),
        customers=_customers([
            {"lead_time": 2, "total_requirement": 80, "delivery_schedule": [(3, 20), (11, 60), (20, 80)],
             "random_lead_time": True, "lead_time_range": [1, 2, 3]},
            {"lead_time": 3, "total_requirement": 120, "delivery_schedule": [(6, 40), (20, 120)]},
            {"lead_time": 1, "total_requirement": 100, "delivery_schedule": [(8, 60), (12, 100), (20, 100)]},
        ], cumulative=True),
        demand_model=_demand_model(3),
    ),
}


def get_level_config(level_id: int) -> LevelConfig:
    try:
        return LEVELS[level_id]
    except KeyError:
        raise ValueError(f"Unknown level {level_id}. Available levels: {sorted(LEVELS)}") from None


def list_levels() -> List[LevelConfig]:
    return [LEVELS[level_id] for level_id in sorted(LEVELS)]
