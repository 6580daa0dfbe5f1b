import random
from typing import Optional, Sequence

from .models import Customer, DeliveryOption, LevelConfig, Supplier

# Used when a level publishes no delivery options
DIRECT_DELIVERY = DeliveryOption(id=0, name="Direct", lead_time=0, cost_multiplier=1.0)


def resolve_delivery_option(level_config: LevelConfig, option_id: Optional[int]) -> DeliveryOption:
    option = level_config.get_delivery_option(option_id)
    if option is not None:
        return option
    if level_config.delivery_options:
        return level_config.delivery_options[0]
    return DIRECT_DELIVERY


def material_base_price(material_type: str, supplier: Supplier, level_config: LevelConfig) -> float:
    if material_type in supplier.material_prices:
        return supplier.material_prices[material_type]
    return level_config.material_base_prices.get(material_type, 0.0)


def material_price(material_type: str, supplier: Supplier, level_config: LevelConfig,
                   delivery_option: DeliveryOption = DIRECT_DELIVERY) -> float:
    """Per-unit material price before any shipment fee."""
    return (material_base_price(material_type, supplier, level_config)
            * supplier.cost_multiplier * delivery_option.cost_multiplier)


def shipment_fee(quantity: int, material_type: str, supplier: Supplier) -> float:
    """Flat fee the supplier publishes for this exact shipment size, 0 when it has none."""
    return supplier.shipment_prices.get(material_type, {}).get(quantity, 0.0)


def calculate_unit_cost(quantity: int, material_type: str, supplier: Supplier, level_config: LevelConfig,
                        delivery_option: DeliveryOption = DIRECT_DELIVERY) -> float:
    if quantity <= 0:
        return 0.0
    unit_cost = material_price(material_type, supplier, level_config, delivery_option)
    # Shipment-size pricing spreads the published fee over the units shipped
    return unit_cost + shipment_fee(quantity, material_type, supplier) / quantity


def calculate_transport_cost(customer: Customer, quantity: int) -> float:
    return customer.transport_costs.get(quantity, 0.0)


def draw_lead_time(lead_time_range: Sequence[int], rng: random.Random) -> int:
    return lead_time_range[rng.randrange(len(lead_time_range))]


def supplier_lead_time(supplier: Supplier, delivery_option: DeliveryOption, rng: random.Random) -> int:
    # Randomized suppliers ignore the delivery option's lead time
    if supplier.random_lead_time:
        return draw_lead_time(supplier.lead_time_range, rng)
    return supplier.lead_time + delivery_option.lead_time


def customer_lead_time(customer: Customer, rng: random.Random) -> int:
    if customer.random_lead_time:
        return draw_lead_time(customer.lead_time_range, rng)
    return customer.lead_time
