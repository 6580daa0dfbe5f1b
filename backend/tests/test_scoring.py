import pytest

from burgerchain.models import GameAction
from burgerchain.scoring import calculate_game_result, calculate_score
from burgerchain.simulation import process_day


@pytest.mark.parametrize("profit, expected", [
    (0, 0),
    (99.99, 0),
    (12345, 123),
    (-500, 0),
    (1_000_000, 1000),
])
def test_score_is_clamped_floor_of_profit(profit, expected):
    assert calculate_score(profit, 1000) == expected


def test_game_result_projects_final_state(state, level):
    state = process_day(state, GameAction(), level)

    result = calculate_game_result(state, level, user_id="student-7")

    assert result.level_id == level.id
    assert result.user_id == "student-7"
    assert result.final_day == 2
    assert result.final_cash == state.cash
    assert result.final_inventory == state.inventory
    assert result.score == state.score
    assert len(result.history) == 1
    # Result is a snapshot, not a view on the state
    result.history[0].profit = 123
    assert state.history[0].profit == 0
