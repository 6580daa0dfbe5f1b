import uuid
from datetime import datetime, timezone

def generate_id():
    """Generates a unique string ID."""
    return str(uuid.uuid4())

def get_current_utc_timestamp():
    """Returns the current UTC timestamp."""
    return datetime.now(timezone.utc)

def round_currency(amount: float) -> float:
    """Rounds a money amount to whole cents (kr, 2 decimals)."""
    return round(float(amount), 2)
