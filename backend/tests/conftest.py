import pytest

from burgerchain.models import (
    Customer, DemandModel, GameState, Inventory, InventoryTransaction, LevelConfig, Supplier,
)
from burgerchain.simulation import initialize_game_state


def build_level(**overrides) -> LevelConfig:
    """Small single-supplier, single-customer level; any field can be overridden."""
    fields = dict(
        id=99,
        name="Test Kitchen",
        initial_cash=10000,
        initial_inventory=Inventory(),
        days_to_complete=20,
        production_cost_per_unit=4,
        max_score=1000,
        suppliers=[
            Supplier(
                id=1,
                name="Acme Meats",
                lead_time=0,
                material_prices={"patty": 10, "cheese": 1, "bun": 2, "potato": 1},
            )
        ],
        customers=[
            Customer(
                id=1,
                name="Diner",
                lead_time=0,
                price_per_unit=50,
                transport_costs={20: 100, 40: 150},
                allowed_shipment_sizes=[20, 40],
            )
        ],
        demand_model=DemandModel(base_quantity=10, price_per_unit=30),
    )
    fields.update(overrides)
    return LevelConfig(**fields)


@pytest.fixture
def make_level():
    return build_level


@pytest.fixture
def level():
    return build_level()


@pytest.fixture
def state(level) -> GameState:
    return initialize_game_state(level, rng_seed=7)


@pytest.fixture
def patty_lots():
    # Two purchased lots on top of 5 units of free starting stock
    return [
        InventoryTransaction(material_type="patty", quantity=10, unit_cost=5, day=1),
        InventoryTransaction(material_type="patty", quantity=10, unit_cost=7, day=2),
    ]
