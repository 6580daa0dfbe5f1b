from .levels import LEVELS, generate_delivery_schedule, get_level_config, has_missed_milestone, list_levels
from .models import GameAction, GameState, LevelConfig
from .scoring import calculate_game_result, calculate_score
from .simulation import initialize_game_state, is_game_over, process_day
from .validation import calculate_max_production, validate_action, validate_affordability

__all__ = [
    "LEVELS", "GameAction", "GameState", "LevelConfig",
    "calculate_game_result", "calculate_max_production", "calculate_score",
    "generate_delivery_schedule", "get_level_config", "has_missed_milestone",
    "initialize_game_state", "is_game_over", "list_levels", "process_day",
    "validate_action", "validate_affordability",
]
