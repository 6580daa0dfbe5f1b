"""Incoming shipments and outgoing customer deliveries that age one day per tick."""
from typing import List, NamedTuple, Sequence, TypeVar, Union

from loguru import logger

from .models import GameState, PendingCustomerOrder, PendingOrder
from . import ledger, utils

Transfer = TypeVar("Transfer", PendingOrder, PendingCustomerOrder)


class QueueAdvance(NamedTuple):
    arrived: List[Union[PendingOrder, PendingCustomerOrder]]
    remaining: List[Union[PendingOrder, PendingCustomerOrder]]


def advance(queue: Sequence[Transfer]) -> QueueAdvance:
    """Ages every entry by one day.

    Entries with ``days_remaining <= 1`` arrive today (returned with 0 days
    remaining); the rest come back with one day less. Must run before any new
    entry is enqueued in the same tick.
    """
    arrived: List[Transfer] = []
    remaining: List[Transfer] = []
    for entry in queue:
        if entry.days_remaining <= 1:
            arrived.append(entry.model_copy(update={"days_remaining": 0}))
        else:
            remaining.append(entry.model_copy(update={"days_remaining": entry.days_remaining - 1}))
    return QueueAdvance(arrived, remaining)


def receive_shipments(state: GameState) -> List[PendingOrder]:
    """Moves arriving material into inventory, each shipment as a new FIFO lot."""
    arrived, remaining = advance(state.pending_orders)
    for order in arrived:
        if order.quantity <= 0:
            continue
        ledger.record_purchase(
            state, order.material_type, order.quantity, order.total_cost,
            supplier_id=order.supplier_id, delivery_option_id=order.delivery_option_id,
        )
        logger.info(f"[Day {state.day}] Shipment arrived: {order.quantity}x {order.material_type} "
                    f"from supplier {order.supplier_id} (cost {order.total_cost:.2f} kr)")
    state.pending_orders = remaining
    return arrived


def settle_deliveries(state: GameState) -> List[PendingCustomerOrder]:
    """Credits revenue for customer deliveries arriving today.

    Inventory was already taken out and costed when the order was placed; only
    the revenue and the lifetime delivery counter move here.
    """
    arrived, remaining = advance(state.pending_customer_orders)
    for order in arrived:
        if order.quantity <= 0:
            continue
        state.cash = utils.round_currency(state.cash + order.net_revenue)
        state.customer_deliveries[order.customer_id] = state.customer_deliveries.get(order.customer_id, 0) + order.quantity
        logger.info(f"[Day {state.day}] Delivered {order.quantity} meals to customer {order.customer_id}, "
                    f"net revenue {order.net_revenue:.2f} kr")
    state.pending_customer_orders = remaining
    return arrived
