from typing import Dict, List, Optional
import random
from loguru import logger

from .models import (
    FINISHED_GOODS, LATENESS_PENALTY_RATE, MATERIAL_TYPES,
    CustomerDeliverySummary, CustomerOrderAction, DailyCosts, DailyInventoryValuation, DailyResult,
    GameAction, GameState, Inventory, InventoryHoldingCosts, LatenessPenalty, LevelConfig,
    OverstockPenaltyEvent, PendingCustomerOrder, PendingOrder, SupplierOrder,
)
from . import config, ledger, pricing, scoring, transfers, utils


def initialize_game_state(level_config: LevelConfig, rng_seed: Optional[int] = None) -> GameState:
    """Day 1 of a level: configured cash and zero-cost starting stock, empty queues and history."""
    state = GameState(
        day=1,
        cash=level_config.initial_cash,
        inventory=level_config.initial_inventory.model_copy(deep=True),
        daily_demand=level_config.demand_model.quote(1),
        selected_delivery_option=level_config.delivery_options[0].id if level_config.delivery_options else None,
        rng_seed=rng_seed if rng_seed is not None else config.get_default_rng_seed(),
    )
    logger.info(f"Initialized level {level_config.id} ({level_config.name}) with {state.cash:.2f} kr "
                f"and inventory {state.inventory.as_dict()}")
    return state


def is_game_over(state: GameState, level_config: LevelConfig) -> bool:
    return state.game_over or state.day > level_config.days_to_complete


def calculate_max_production(inventory: Inventory, level_config: LevelConfig) -> int:
    """Meals the materials on hand (and the daily capacity, if any) allow."""
    limits = [inventory.get(material) // level_config.recipe[material] for material in MATERIAL_TYPES]
    if level_config.production_capacity is not None:
        limits.append(level_config.production_capacity)
    return max(0, min(limits))


def tick_rng(state: GameState) -> random.Random:
    # Same seed and day always replay the same random lead times
    return random.Random(state.rng_seed * 1_000_003 + state.day)


class DaySimulation:
    """Runs one day on a private copy of the state; the caller's state is never touched."""

    def __init__(self, state: GameState, level_config: LevelConfig, rng: Optional[random.Random] = None):
        self.state = state.model_copy(deep=True)
        self.level_config = level_config
        self.rng = rng if rng is not None else tick_rng(state)
        self.cash_at_start = self.state.cash
        self.delivery_option = pricing.DIRECT_DELIVERY
        self.delivery_option_id: Optional[int] = None

        # Tallies for today's history entry
        self.purchased: Dict[str, int] = {material: 0 for material in MATERIAL_TYPES}
        self.purchase_cost = 0.0
        self.produced = 0
        self.production_cost = 0.0
        self.sold = 0
        self.sales_revenue = 0.0
        self.customer_sales = 0
        self.customer_revenue = 0.0
        self.transport_cost = 0.0
        self.cogs = 0.0
        self.customer_summary: Dict[int, CustomerDeliverySummary] = {}
        self.lateness: List[LatenessPenalty] = []
        self.overstock_cost = 0.0
        self.overstock_details: Dict[str, float] = {}
        self.valuation: Optional[DailyInventoryValuation] = None
        self.holding = InventoryHoldingCosts()

    def _pay(self, amount: float) -> None:
        self.state.cash = utils.round_currency(self.state.cash - amount)

    def _receive(self, amount: float) -> None:
        self.state.cash = utils.round_currency(self.state.cash + amount)

    def run_day(self, action: GameAction) -> GameState:
        day = self.state.day
        logger.info(f"--- Starting Simulation Day {day} --- Cash: {self.state.cash:.2f} kr")

        self.delivery_option = pricing.resolve_delivery_option(self.level_config, action.delivery_option_id)
        if self.level_config.delivery_options:
            self.delivery_option_id = self.delivery_option.id
        self.state.selected_delivery_option = self.delivery_option_id

        # Order is load-bearing: each step reads cash/inventory left by the previous one
        transfers.receive_shipments(self.state)
        transfers.settle_deliveries(self.state)
        self.apply_purchases(action.supplier_orders)
        self.apply_production(action.production)
        self.apply_direct_sales(action.sales_attempt)
        self.apply_customer_orders(action.customer_orders)
        self.assess_lateness()
        self.assess_overstock()
        self.apply_holding_cost()

        daily_profit = utils.round_currency(self.state.cash - self.cash_at_start)
        self.state.cumulative_profit = utils.round_currency(self.state.cumulative_profit + daily_profit)
        self.state.score = scoring.calculate_score(self.state.cumulative_profit, self.level_config.max_score)
        self.record_history(daily_profit)

        self.check_bankruptcy()
        self.advance_clock()

        logger.info(f"--- Ending Simulation Day {day} --- Cash: {self.state.cash:.2f} kr, "
                    f"profit {daily_profit:.2f} kr, score {self.state.score}")
        return self.state

    # --- Step 3 ---
    def apply_purchases(self, supplier_orders: List[SupplierOrder]) -> None:
        state = self.state
        for order in supplier_orders:
            quantities = {material: qty for material, qty in order.quantities().items() if qty > 0}
            if not quantities:
                continue
            supplier = self.level_config.get_supplier(order.supplier_id)
            if supplier is None:
                logger.warning(f"[Day {state.day}] Ignoring order for unknown supplier {order.supplier_id}")
                continue

            # One lead time per supplier order, drawn now and never re-rolled
            lead_time = pricing.supplier_lead_time(supplier, self.delivery_option, self.rng)

            for material, quantity in quantities.items():
                unit_cost = pricing.calculate_unit_cost(
                    quantity, material, supplier, self.level_config, self.delivery_option
                )
                total_cost = quantity * unit_cost
                self._pay(total_cost)  # paid at order time whatever the lead time
                self.purchase_cost += total_cost
                self.purchased[material] += quantity

                deliveries = state.supplier_deliveries.setdefault(supplier.id, {})
                deliveries[material] = deliveries.get(material, 0) + quantity

                if lead_time == 0:
                    ledger.record_purchase(state, material, quantity, total_cost,
                                           supplier_id=supplier.id, delivery_option_id=self.delivery_option_id)
                else:
                    state.pending_orders.append(PendingOrder(
                        material_type=material,
                        quantity=quantity,
                        days_remaining=lead_time,
                        total_cost=total_cost,
                        supplier_id=supplier.id,
                        delivery_option_id=self.delivery_option_id,
                        supplier_name=supplier.name,
                        actual_lead_time=lead_time,
                    ))
                logger.info(f"[Day {state.day}] Purchased {quantity}x {material} from {supplier.name} "
                            f"at {unit_cost:.2f} kr/unit ({total_cost:.2f} kr), lead time {lead_time} days")

    # --- Step 4 ---
    def apply_production(self, requested: int) -> None:
        state = self.state
        if requested <= 0:
            return
        amount = min(requested, calculate_max_production(state.inventory, self.level_config))
        if amount <= 0:
            logger.info(f"[Day {state.day}] Production of {requested} meals skipped: not enough material")
            return

        raw_material_costs: Dict[str, float] = {}
        for material in MATERIAL_TYPES:
            needed = amount * self.level_config.recipe[material]
            state.inventory_transactions, consumed = ledger.consume_material(
                state.inventory_transactions, material, state.inventory.get(material), needed
            )
            state.inventory.add(material, -needed)
            raw_material_costs[material] = consumed.cost

        batch = ledger.new_finished_goods_batch(
            amount, raw_material_costs, self.level_config.production_cost_per_unit, state.day
        )
        state.finished_goods_batches.append(batch)
        state.inventory.add(FINISHED_GOODS, amount)

        self._pay(batch.production_cost)
        self.produced = amount
        self.production_cost = batch.production_cost
        logger.info(f"[Day {state.day}] Produced {amount} meals (requested {requested}) "
                    f"at {batch.unit_cost:.2f} kr/meal")

    def _take_finished_goods(self, quantity: int) -> float:
        state = self.state
        consumed = ledger.consume_fifo(state.finished_goods_batches, state.inventory.finished_goods, quantity)
        state.finished_goods_batches = list(consumed.lots)
        state.inventory.add(FINISHED_GOODS, -quantity)
        self.cogs += consumed.cost
        return consumed.cost

    # --- Step 5 ---
    def apply_direct_sales(self, attempt: int) -> None:
        state = self.state
        quantity = min(max(0, attempt), state.inventory.finished_goods)
        if quantity <= 0:
            return
        self._take_finished_goods(quantity)
        revenue = quantity * state.daily_demand.price_per_unit
        self._receive(revenue)
        self.sold += quantity
        self.sales_revenue += revenue
        logger.info(f"[Day {state.day}] Sold {quantity} meals directly for {revenue:.2f} kr")

    # --- Step 6 ---
    def apply_customer_orders(self, customer_orders: List[CustomerOrderAction]) -> None:
        state = self.state
        for line in customer_orders:
            quantity = line.quantity
            if quantity <= 0:
                continue
            customer = self.level_config.get_customer(line.customer_id)
            if customer is None or not customer.active:
                logger.warning(f"[Day {state.day}] Ignoring order for unknown or inactive customer {line.customer_id}")
                continue
            if quantity > state.inventory.finished_goods:
                logger.info(f"[Day {state.day}] Rejected {quantity} meals for {customer.name}: "
                            f"only {state.inventory.finished_goods} in stock")
                continue
            if quantity not in customer.allowed_shipment_sizes:
                logger.info(f"[Day {state.day}] Rejected {quantity} meals for {customer.name}: "
                            f"allowed sizes are {customer.allowed_shipment_sizes}")
                continue
            if quantity < customer.minimum_delivery_amount:
                logger.info(f"[Day {state.day}] Rejected {quantity} meals for {customer.name}: "
                            f"minimum is {customer.minimum_delivery_amount}")
                continue

            self._take_finished_goods(quantity)
            revenue = quantity * customer.price_per_unit
            transport_cost = pricing.calculate_transport_cost(customer, quantity)
            net_revenue = revenue - transport_cost
            lead_time = pricing.customer_lead_time(customer, self.rng)

            if lead_time == 0:
                self._receive(net_revenue)
                state.customer_deliveries[customer.id] = state.customer_deliveries.get(customer.id, 0) + quantity
            else:
                state.pending_customer_orders.append(PendingCustomerOrder(
                    customer_id=customer.id,
                    quantity=quantity,
                    days_remaining=lead_time,
                    total_revenue=revenue,
                    transport_cost=transport_cost,
                    net_revenue=net_revenue,
                    actual_lead_time=lead_time,
                ))

            summary = self.customer_summary.setdefault(customer.id, CustomerDeliverySummary())
            summary.quantity += quantity
            summary.revenue += revenue
            self.customer_sales += quantity
            self.customer_revenue += revenue
            self.transport_cost += transport_cost
            logger.info(f"[Day {state.day}] Shipped {quantity} meals to {customer.name}, "
                        f"net {net_revenue:.2f} kr, arriving in {lead_time} days")

    # --- Step 7 ---
    def assess_lateness(self) -> None:
        state = self.state
        for customer in self.level_config.customers:
            if not customer.active:
                continue
            # Fires only on a milestone's own day, never again afterwards
            if not any(milestone.day == state.day for milestone in customer.delivery_schedule):
                continue
            required = sum(m.required_amount for m in customer.delivery_schedule if m.day <= state.day)
            delivered = state.customer_deliveries.get(customer.id, 0)
            if delivered >= required:
                continue

            missed = required - delivered
            penalty = utils.round_currency(LATENESS_PENALTY_RATE * missed * customer.price_per_unit)
            self._pay(penalty)
            event = LatenessPenalty(
                customer_id=customer.id,
                customer_name=customer.name,
                day=state.day,
                missed_amount=missed,
                penalty_amount=penalty,
            )
            self.lateness.append(event)
            logger.warning(f"[Day {state.day}] Missed milestone for {customer.name}: "
                           f"{delivered}/{required} delivered, penalty {penalty:.2f} kr")
        state.lateness_penalties.extend(self.lateness)

    # --- Step 8 ---
    def assess_overstock(self) -> None:
        state = self.state
        total, details = ledger.overstock_penalties(state.inventory, self.level_config.overstock)
        self.overstock_cost = total
        self.overstock_details = details
        if total > 0:
            self._pay(total)
            state.overstock_penalties.append(OverstockPenaltyEvent(day=state.day, penalty=total, details=details))
            logger.warning(f"[Day {state.day}] Overstock penalty {total:.2f} kr: {details}")

    # --- Step 9 ---
    def apply_holding_cost(self) -> None:
        self.valuation = ledger.inventory_valuation(self.state)
        self.holding = ledger.holding_costs(self.valuation, self.level_config.holding_cost_rate)
        self._pay(self.holding.total)
        self.state.daily_inventory_valuations.append(self.valuation)
        logger.debug(f"[Day {self.state.day}] Inventory value {self.valuation.total_value:.2f} kr, "
                     f"holding cost {self.holding.total:.2f} kr")

    # --- Step 12 ---
    def record_history(self, daily_profit: float) -> None:
        state = self.state
        lateness_cost = sum(event.penalty_amount for event in self.lateness)
        costs = DailyCosts(
            purchases=self.purchase_cost,
            production=self.production_cost,
            holding=self.holding.total,
            overstock=self.overstock_cost,
            lateness=lateness_cost,
            transport=self.transport_cost,
        )
        costs.total = (costs.purchases + costs.production + costs.holding + costs.overstock
                       + costs.lateness + costs.transport)

        state.history.append(DailyResult(
            day=state.day,
            cash=state.cash,
            inventory=state.inventory.model_copy(),
            inventory_valuation=self.valuation,
            holding_costs=self.holding,
            patty_purchased=self.purchased["patty"],
            cheese_purchased=self.purchased["cheese"],
            bun_purchased=self.purchased["bun"],
            potato_purchased=self.purchased["potato"],
            production=self.produced,
            sales=self.sold,
            customer_sales=self.customer_sales,
            revenue=self.sales_revenue + self.customer_revenue,
            cogs=self.cogs,
            costs=costs,
            profit=daily_profit,
            cumulative_profit=state.cumulative_profit,
            score=state.score,
            delivery_option_id=self.delivery_option_id,
            customer_deliveries=self.customer_summary,
            lateness_penalties=list(self.lateness),
            overstock_penalty=self.overstock_cost,
            overstock_penalty_details=self.overstock_details,
        ))

    # --- Step 13 ---
    def check_bankruptcy(self) -> None:
        state = self.state
        # Finished goods on hand can still be sold, so they keep the game alive
        if state.cash <= 0 and state.inventory.finished_goods == 0:
            state.game_over = True
            logger.warning(f"[Day {state.day}] Bankrupt with {state.cash:.2f} kr and no meals to sell. Game over.")

    # --- Step 14 ---
    def advance_clock(self) -> None:
        state = self.state
        if state.game_over:
            return
        if state.day >= self.level_config.days_to_complete:
            state.game_over = True
            logger.info(f"[Day {state.day}] Level {self.level_config.id} complete. "
                        f"Cumulative profit {state.cumulative_profit:.2f} kr, score {state.score}")
            return
        state.day += 1
        state.daily_demand = self.level_config.demand_model.quote(state.day)


def process_day(state: GameState, action: GameAction, level_config: LevelConfig,
                rng: Optional[random.Random] = None) -> GameState:
    """Advances the game by one day and returns the new state.

    ``state`` is not modified. A state that is already over comes back as an
    unchanged copy.
    """
    if state.game_over:
        logger.warning(f"[Day {state.day}] Game is over; no further days are processed.")
        return state.model_copy(deep=True)
    return DaySimulation(state, level_config, rng).run_day(action)
