"""FIFO valuation ledger for raw materials and finished goods.

Starting inventory carries zero acquisition cost: only units that arrived
through a recorded purchase lot or production batch have a unit cost. Any
quantity on hand above the sum of the recorded lots is free starting stock.

Valuation and consumption walk the lots in opposite directions:

* ``value_of`` presumes the units still on hand are the newest ones, so it
  walks lots from newest to oldest.
* ``consume_fifo`` uses the free starting stock first, then the oldest lots.

Both rules feed the holding-cost and profit figures and must stay as they are.
"""
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from loguru import logger

from .models import (
    FINISHED_GOODS, INVENTORY_CATEGORIES,
    DailyInventoryValuation, FinishedGoodsBatch, GameState, Inventory,
    InventoryHoldingCosts, InventoryTransaction, OverstockRule,
    DEFAULT_HOLDING_COST_RATE,
)
from . import utils

Lot = Union[InventoryTransaction, FinishedGoodsBatch]

DAYS_IN_YEAR = 365


class ConsumptionResult(NamedTuple):
    lots: List[Lot]  # remaining lots, exhausted ones pruned
    cost: float  # FIFO cost of the consumed units
    from_starting_stock: int
    from_lots: int


def fifo_order(lots: Sequence[Lot]) -> List[Lot]:
    """Oldest lot first, by (day, timestamp). Ties keep their list order."""
    return sorted(lots, key=lambda lot: (lot.day, lot.timestamp))


def material_lots(transactions: Sequence[InventoryTransaction], material_type: str) -> List[InventoryTransaction]:
    return fifo_order([t for t in transactions if t.material_type == material_type])


def tracked_quantity(lots: Sequence[Lot]) -> int:
    return sum(max(0, lot.quantity) for lot in lots)


def value_of(current_quantity: int, lots: Sequence[Lot]) -> float:
    """Acquisition value of ``current_quantity`` units on hand, newest lots first."""
    if current_quantity <= 0:
        return 0.0
    ordered = fifo_order(lots)
    purchased = tracked_quantity(ordered)

    # Everything above the purchased total is free starting stock
    if current_quantity > purchased:
        return sum(lot.quantity * lot.unit_cost for lot in ordered if lot.quantity > 0)

    remaining = current_quantity
    value = 0.0
    for lot in reversed(ordered):
        if remaining <= 0:
            break
        take = min(max(0, lot.quantity), remaining)
        value += take * lot.unit_cost
        remaining -= take
    return value


def value_of_material(material_type: str, current_quantity: int,
                      transactions: Sequence[InventoryTransaction]) -> float:
    return value_of(current_quantity, material_lots(transactions, material_type))


def consume_fifo(lots: Sequence[Lot], current_quantity: int, quantity: int) -> ConsumptionResult:
    """Takes ``quantity`` units out of stock: free starting stock first, then oldest lots.

    Returns a new lot list; the input lots are never modified. ``quantity`` is
    clamped to what is on hand.
    """
    ordered = fifo_order(lots)
    quantity = max(0, min(int(quantity), int(current_quantity)))
    starting_stock = max(0, current_quantity - tracked_quantity(ordered))

    from_starting = min(starting_stock, quantity)
    remaining = quantity - from_starting
    cost = 0.0
    kept: List[Lot] = []

    for lot in ordered:
        if lot.quantity <= 0:
            continue  # prune exhausted lots
        if remaining <= 0:
            kept.append(lot)
            continue
        take = min(lot.quantity, remaining)
        cost += take * lot.unit_cost
        remaining -= take
        if lot.quantity - take > 0:
            kept.append(lot.model_copy(update={"quantity": lot.quantity - take}))

    return ConsumptionResult(
        lots=kept, cost=cost, from_starting_stock=from_starting, from_lots=quantity - from_starting - remaining
    )


def consume_material(transactions: Sequence[InventoryTransaction], material_type: str,
                     current_quantity: int, quantity: int) -> Tuple[List[InventoryTransaction], ConsumptionResult]:
    """Consumes one material and returns the full transaction list with that material's lots replaced."""
    result = consume_fifo(material_lots(transactions, material_type), current_quantity, quantity)
    others = [t for t in transactions if t.material_type != material_type]
    return others + list(result.lots), result


def new_purchase_lot(material_type: str, quantity: int, total_cost: float, day: int,
                     supplier_id: Optional[int] = None,
                     delivery_option_id: Optional[int] = None) -> InventoryTransaction:
    return InventoryTransaction(
        material_type=material_type,
        quantity=quantity,
        unit_cost=total_cost / quantity,
        day=day,
        supplier_id=supplier_id,
        delivery_option_id=delivery_option_id,
    )


def new_finished_goods_batch(quantity: int, raw_material_costs: Dict[str, float],
                             production_cost_per_unit: float, day: int) -> FinishedGoodsBatch:
    production_cost = quantity * production_cost_per_unit
    unit_cost = (sum(raw_material_costs.values()) + production_cost) / quantity
    return FinishedGoodsBatch(
        quantity=quantity,
        unit_cost=unit_cost,
        day=day,
        raw_material_costs=dict(raw_material_costs),
        production_cost=production_cost,
    )


def record_purchase(state: GameState, material_type: str, quantity: int, total_cost: float,
                    supplier_id: Optional[int] = None, delivery_option_id: Optional[int] = None) -> None:
    """Adds received material to inventory together with its FIFO lot."""
    if quantity <= 0:
        return
    state.inventory.add(material_type, quantity)
    state.inventory_transactions.append(
        new_purchase_lot(material_type, quantity, total_cost, state.day, supplier_id, delivery_option_id)
    )


# --- Valuation & holding cost ---

def category_value(state: GameState, category: str) -> float:
    quantity = state.inventory.get(category)
    if category == FINISHED_GOODS:
        return value_of(quantity, state.finished_goods_batches)
    return value_of_material(category, quantity, state.inventory_transactions)


def inventory_valuation(state: GameState) -> DailyInventoryValuation:
    values = {category: category_value(state, category) for category in INVENTORY_CATEGORIES}
    return DailyInventoryValuation(
        day=state.day,
        values=values,
        quantities=state.inventory.as_dict(),
        total_value=sum(values.values()),
    )


def daily_holding_rate(annual_rate: float = DEFAULT_HOLDING_COST_RATE) -> float:
    return annual_rate / DAYS_IN_YEAR


def holding_costs(valuation: DailyInventoryValuation,
                  annual_rate: float = DEFAULT_HOLDING_COST_RATE) -> InventoryHoldingCosts:
    rate = daily_holding_rate(annual_rate)
    by_category = {category: valuation.values.get(category, 0.0) * rate for category in INVENTORY_CATEGORIES}
    return InventoryHoldingCosts(by_category=by_category, total=sum(by_category.values()))


def overstock_penalties(inventory: Inventory, rules: Dict[str, OverstockRule]) -> Tuple[float, Dict[str, float]]:
    """Charges (quantity - threshold) * penalty_per_unit for each category above its threshold."""
    details: Dict[str, float] = {}
    for category in INVENTORY_CATEGORIES:
        rule = rules.get(category)
        if rule is None:
            continue
        excess = inventory.get(category) - rule.threshold
        if excess > 0:
            details[category] = utils.round_currency(excess * rule.penalty_per_unit)
    total = utils.round_currency(sum(details.values()))
    if total > 0:
        logger.debug(f"Overstock above thresholds: {details}")
    return total, details
