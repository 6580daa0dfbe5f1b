import math

import pytest

from burgerchain import ledger
from burgerchain.models import FinishedGoodsBatch, Inventory, InventoryTransaction, OverstockRule


def test_consumption_uses_starting_stock_then_oldest_lot(patty_lots):
    result = ledger.consume_fifo(patty_lots, current_quantity=25, quantity=12)

    assert result.from_starting_stock == 5
    assert result.from_lots == 7
    assert result.cost == 35
    assert [(lot.day, lot.quantity) for lot in result.lots] == [(1, 3), (2, 10)]


def test_consumption_returns_new_lots_and_leaves_input_alone(patty_lots):
    ledger.consume_fifo(patty_lots, current_quantity=25, quantity=12)
    assert [lot.quantity for lot in patty_lots] == [10, 10]


def test_exhausted_lots_are_pruned(patty_lots):
    result = ledger.consume_fifo(patty_lots, current_quantity=25, quantity=15)
    assert [lot.day for lot in result.lots] == [2]
    assert result.cost == 50


def test_consumption_is_clamped_to_stock_on_hand(patty_lots):
    result = ledger.consume_fifo(patty_lots, current_quantity=20, quantity=100)
    assert result.from_lots == 20
    assert result.lots == []
    assert result.cost == 10 * 5 + 10 * 7


def test_lots_are_consumed_in_day_order_regardless_of_list_order(patty_lots):
    result = ledger.consume_fifo(list(reversed(patty_lots)), current_quantity=20, quantity=4)
    assert result.cost == 20


def test_valuation_walks_newest_lots_first(patty_lots):
    assert ledger.value_of(10, patty_lots) == 70
    assert ledger.value_of(15, patty_lots) == 70 + 25


def test_valuation_above_purchased_total_counts_every_lot(patty_lots):
    assert ledger.value_of(25, patty_lots) == 120


def test_valuation_of_empty_stock_is_zero(patty_lots):
    assert ledger.value_of(0, patty_lots) == 0
    assert ledger.value_of(10, []) == 0


def test_consume_material_only_touches_that_material(patty_lots):
    bun_lot = InventoryTransaction(material_type="bun", quantity=4, unit_cost=2, day=1)
    transactions = patty_lots + [bun_lot]

    new_transactions, result = ledger.consume_material(transactions, "patty", 20, 10)

    assert result.cost == 50
    assert bun_lot in new_transactions
    assert sum(t.quantity for t in new_transactions if t.material_type == "patty") == 10


def test_record_purchase_adds_stock_and_lot(state):
    ledger.record_purchase(state, "patty", 100, 1000, supplier_id=1)

    assert state.inventory.patty == 100
    assert len(state.inventory_transactions) == 1
    lot = state.inventory_transactions[0]
    assert (lot.quantity, lot.unit_cost, lot.day, lot.supplier_id) == (100, 10, 1, 1)


def test_record_purchase_ignores_empty_shipments(state):
    ledger.record_purchase(state, "patty", 0, 0)
    assert state.inventory.patty == 0
    assert state.inventory_transactions == []


def test_finished_goods_batch_cost_includes_production():
    batch = ledger.new_finished_goods_batch(10, {"patty": 50, "cheese": 10}, 4, day=3)
    assert batch.production_cost == 40
    assert batch.unit_cost == pytest.approx(10.0)


def test_inventory_valuation_and_holding_cost(state):
    ledger.record_purchase(state, "patty", 100, 1000)
    state.inventory.finished_goods = 2
    state.finished_goods_batches.append(FinishedGoodsBatch(quantity=2, unit_cost=25, day=1))

    valuation = ledger.inventory_valuation(state)
    assert valuation.values["patty"] == 1000
    assert valuation.values["finished_goods"] == 50
    assert valuation.total_value == 1050
    assert valuation.quantities["patty"] == 100

    holding = ledger.holding_costs(valuation, 0.25)
    assert holding.total == pytest.approx(1050 * 0.25 / 365)
    assert holding.by_category["cheese"] == 0


def test_overstock_penalty_charges_units_above_threshold():
    rules = {
        "patty": OverstockRule(threshold=100, penalty_per_unit=2),
        "bun": OverstockRule(threshold=math.inf, penalty_per_unit=1),
    }
    total, details = ledger.overstock_penalties(Inventory(patty=130, bun=10_000), rules)
    assert total == 60
    assert details == {"patty": 60}
