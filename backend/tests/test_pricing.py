import random

import pytest

from burgerchain import pricing
from burgerchain.models import Customer, DeliveryOption, Supplier


@pytest.fixture
def supplier():
    return Supplier(
        id=5,
        name="Pink Patty",
        lead_time=1,
        material_prices={"patty": 10},
        cost_multiplier=1.5,
        shipment_prices={"patty": {100: 134}},
    )


def test_delivery_option_falls_back_to_first_published(make_level):
    options = [DeliveryOption(id=1, name="Standard", lead_time=3), DeliveryOption(id=2, name="Express", lead_time=1)]
    level = make_level(delivery_options=options)

    assert pricing.resolve_delivery_option(level, 2).name == "Express"
    assert pricing.resolve_delivery_option(level, 42).name == "Standard"
    assert pricing.resolve_delivery_option(level, None).name == "Standard"


def test_level_without_options_uses_direct_delivery(level):
    assert pricing.resolve_delivery_option(level, 1) is pricing.DIRECT_DELIVERY


def test_price_falls_back_to_level_base_price(make_level, supplier):
    level = make_level(material_base_prices={"bun": 3})
    assert pricing.material_base_price("patty", supplier, level) == 10
    assert pricing.material_base_price("bun", supplier, level) == 3
    assert pricing.material_base_price("cheese", supplier, level) == 0


def test_multipliers_apply_to_material_price(level, supplier):
    express = DeliveryOption(id=2, name="Express", lead_time=1, cost_multiplier=2.0)
    assert pricing.material_price("patty", supplier, level, express) == pytest.approx(30)


def test_shipment_fee_is_spread_over_units(level, supplier):
    assert pricing.calculate_unit_cost(100, "patty", supplier, level) == pytest.approx(15 + 1.34)
    # No published fee for this size
    assert pricing.calculate_unit_cost(60, "patty", supplier, level) == pytest.approx(15)
    assert pricing.calculate_unit_cost(0, "patty", supplier, level) == 0


def test_transport_cost_lookup():
    customer = Customer(id=1, name="Diner", price_per_unit=50, transport_costs={20: 134})
    assert pricing.calculate_transport_cost(customer, 20) == 134
    assert pricing.calculate_transport_cost(customer, 30) == 0


def test_fixed_supplier_lead_time_adds_delivery_option(supplier):
    option = DeliveryOption(id=1, name="Standard", lead_time=3)
    assert pricing.supplier_lead_time(supplier, option, random.Random(0)) == 4


def test_random_supplier_lead_time_ignores_delivery_option():
    supplier = Supplier(id=2, name="Brown Sauce", lead_time=2, random_lead_time=True, lead_time_range=[1, 2, 3])
    option = DeliveryOption(id=1, name="Standard", lead_time=10)

    draws = {pricing.supplier_lead_time(supplier, option, random.Random(seed)) for seed in range(50)}

    assert draws <= {1, 2, 3}
    assert pricing.supplier_lead_time(supplier, option, random.Random(9)) == \
        pricing.supplier_lead_time(supplier, option, random.Random(9))


def test_customer_lead_time():
    fixed = Customer(id=1, name="Diner", price_per_unit=50, lead_time=2)
    assert pricing.customer_lead_time(fixed, random.Random(0)) == 2

    variable = Customer(id=2, name="Cafe", price_per_unit=50, random_lead_time=True, lead_time_range=[4])
    assert pricing.customer_lead_time(variable, random.Random(0)) == 4
