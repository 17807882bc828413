"""
Bone Ritual - Opponent Decision Engine

Picks a column for an automated persona. Strategy levels are cumulative
gates evaluated top-down:

- Level 0: uniform random among open columns
- Level 1+: destroy matching enemy dice, 70% of the time
- Level 2+: stack onto an own column already holding the value
- Level 3: one-ply greedy on own gain plus enemy loss

Higher levels still roll for the destruction branch first, so even the
strongest persona stays beatable.
"""

import random
from typing import Callable, Sequence

from bone_ritual.engine.knucklebones import BoardState, KnuckleboneEngine

# Chance that a level 1+ persona skips an available destruction
DESTRUCTION_SKIP_CHANCE = 0.3


def _pick(columns: Sequence[int], rng: Callable[[], float]) -> int:
    """Uniformly pick one of the given columns."""
    return columns[int(rng() * len(columns))]


def evaluate_column(
    own_board: BoardState,
    opponent_board: BoardState,
    die_value: int,
    column_index: int,
) -> tuple[int, int]:
    """
    Score a hypothetical placement.

    Args:
        own_board: Board of the deciding side
        opponent_board: Board of the other side
        die_value: Die about to be placed
        column_index: Candidate column

    Returns:
        (gain, loss): the deciding side's column score increase and the
        opponent's column score decrease caused by destruction
    """
    own_column = own_board.columns[column_index]
    opponent_column = opponent_board.columns[column_index]
    score = KnuckleboneEngine.calculate_column_score

    gain = score(own_column + (die_value,)) - score(own_column)
    loss = score(opponent_column) - score(tuple(v for v in opponent_column if v != die_value))
    return gain, loss


def choose_column(
    own_board: BoardState,
    opponent_board: BoardState,
    die_value: int,
    strategy_level: int,
    rng: Callable[[], float] = random.random,
) -> int:
    """
    Choose the column an automated persona places its die in.

    Args:
        own_board: Board of the deciding side
        opponent_board: Board of the other side
        die_value: The rolled value (1-6)
        strategy_level: Persona strategy level (0-3)
        rng: Source of floats in [0, 1), injectable for deterministic tests

    Returns:
        Index of a non-full column, or 0 if every column is full
    """
    valid_columns = KnuckleboneEngine.get_available_columns(own_board)
    if not valid_columns:
        return 0

    if strategy_level <= 0:
        return _pick(valid_columns, rng)

    destruction_columns = [
        col for col in valid_columns if die_value in opponent_board.columns[col]
    ]
    if destruction_columns and rng() >= DESTRUCTION_SKIP_CHANCE:
        return _pick(destruction_columns, rng)

    if strategy_level >= 2:
        for col in valid_columns:
            if die_value in own_board.columns[col]:
                return col

    if strategy_level >= 3:
        best_column = valid_columns[0]
        best_advantage = None
        for col in valid_columns:
            gain, loss = evaluate_column(own_board, opponent_board, die_value, col)
            if best_advantage is None or gain + loss > best_advantage:
                best_advantage = gain + loss
                best_column = col
        return best_column

    return _pick(valid_columns, rng)
