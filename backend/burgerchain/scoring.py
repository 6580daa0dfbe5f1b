import math

from .models import GameResult, GameState, LevelConfig

PROFIT_PER_POINT = 100  # kr of cumulative profit per score point


def calculate_score(cumulative_profit: float, max_score: int) -> int:
    """floor(profit / 100), clamped to [0, max_score]."""
    score = math.floor(cumulative_profit / PROFIT_PER_POINT)
    return max(0, min(score, max_score))


def calculate_game_result(state: GameState, level_config: LevelConfig, user_id: str) -> GameResult:
    return GameResult(
        level_id=level_config.id,
        user_id=user_id,
        final_day=state.day,
        final_cash=state.cash,
        final_inventory=state.inventory.model_copy(),
        cumulative_profit=state.cumulative_profit,
        score=state.score,
        history=[entry.model_copy(deep=True) for entry in state.history],
    )
