"""Pre-flight checks run before a day is processed. None of them modify the state."""
from typing import Dict, Optional, Tuple

from loguru import logger

from .models import AffordabilityResult, CostBreakdown, GameAction, GameState, LevelConfig
from .simulation import calculate_max_production
from . import ledger, pricing, utils

__all__ = [
    "calculate_max_production", "is_only_sales", "validate_action",
    "validate_affordability", "validate_supplier_capacity",
]


def is_only_sales(action: GameAction) -> bool:
    """True when the action sells stock and buys or produces nothing."""
    no_purchases = all(qty <= 0 for order in action.supplier_orders for qty in order.quantities().values())
    customer_units = sum(max(0, line.quantity) for line in action.customer_orders)
    return no_purchases and action.production <= 0 and (customer_units > 0 or action.sales_attempt > 0)


def _ordered_totals(action: GameAction) -> Dict[int, Dict[str, int]]:
    # Lines to the same supplier count as one order
    totals: Dict[int, Dict[str, int]] = {}
    for order in action.supplier_orders:
        per_material = totals.setdefault(order.supplier_id, {})
        for material, quantity in order.quantities().items():
            if quantity > 0:
                per_material[material] = per_material.get(material, 0) + quantity
    return totals


def validate_supplier_capacity(state: GameState, action: GameAction,
                               level_config: LevelConfig) -> Tuple[bool, Optional[str]]:
    for supplier_id, quantities in _ordered_totals(action).items():
        supplier = level_config.get_supplier(supplier_id)
        if supplier is None:
            continue
        already = state.supplier_deliveries.get(supplier.id, {})
        for material, quantity in quantities.items():
            if supplier.capacity_per_day is not None and quantity > supplier.capacity_per_day[material]:
                return False, (f"{supplier.name}: {material} order exceeds daily capacity "
                               f"({quantity}/{supplier.capacity_per_day[material]})")
            if supplier.capacity_per_game is not None:
                new_total = already.get(material, 0) + quantity
                capacity = supplier.capacity_per_game[material]
                if new_total > capacity:
                    return False, f"{supplier.name}: {material} order would exceed game capacity ({new_total}/{capacity})"
    return True, None


def validate_affordability(state: GameState, action: GameAction, level_config: LevelConfig) -> AffordabilityResult:
    delivery_option = pricing.resolve_delivery_option(level_config, action.delivery_option_id)

    purchase_cost = 0.0
    material_cost = 0.0
    for order in action.supplier_orders:
        supplier = level_config.get_supplier(order.supplier_id)
        if supplier is None:
            continue
        for material, quantity in order.quantities().items():
            if quantity <= 0:
                continue
            unit_cost = pricing.calculate_unit_cost(quantity, material, supplier, level_config, delivery_option)
            purchase_cost += quantity * unit_cost
            material_cost += quantity * pricing.material_price(material, supplier, level_config, delivery_option)

    production_cost = max(0, action.production) * level_config.production_cost_per_unit

    delivery_cost = 0.0
    for line in action.customer_orders:
        customer = level_config.get_customer(line.customer_id)
        if customer is None or line.quantity <= 0:
            continue
        delivery_cost += pricing.calculate_transport_cost(customer, line.quantity)

    holding_cost = ledger.holding_costs(ledger.inventory_valuation(state), level_config.holding_cost_rate).total
    overstock_cost, _ = ledger.overstock_penalties(state.inventory, level_config.overstock)

    total_cost = purchase_cost + production_cost + delivery_cost + holding_cost + overstock_cost
    breakdown = CostBreakdown(
        purchase_cost=utils.round_currency(material_cost),
        supplier_transport_cost=utils.round_currency(purchase_cost - material_cost),
        production_cost=utils.round_currency(production_cost),
        holding_cost=utils.round_currency(holding_cost),
        overstock_cost=utils.round_currency(overstock_cost),
        restaurant_delivery_cost=utils.round_currency(delivery_cost),
    )
    result = AffordabilityResult(
        valid=True,
        total_cost=total_cost,
        holding_cost=holding_cost,
        available_cash=state.cash,
        cost_breakdown=breakdown,
    )

    # Selling off stock is never blocked by an empty till
    if state.cash == 0 and is_only_sales(action):
        return result

    if total_cost > state.cash:
        result.valid = False
        result.message = (f"Insufficient funds. Total cost: {total_cost:.2f} kr, "
                          f"Available cash: {state.cash:.2f} kr")
        logger.debug(f"[Day {state.day}] {result.message}")
    return result


def validate_action(state: GameState, action: GameAction, level_config: LevelConfig) -> Tuple[bool, Optional[str]]:
    """Capacity first, then affordability. Returns (valid, reason)."""
    ok, message = validate_supplier_capacity(state, action, level_config)
    if not ok:
        return False, message
    affordability = validate_affordability(state, action, level_config)
    if not affordability.valid:
        return False, affordability.message
    return True, None
