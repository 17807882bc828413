"""
Bone Ritual - Input Validation Utilities

Validation for data handed to engine constructors. Validators either return
the validated value or raise a descriptive ValueError. Engine operations do
not use these to reject moves; they decline invalid moves with predicates
like is_valid_column_index instead.
"""

from typing import Sequence

DIE_FACES = 6
BOARD_COLUMNS = 3
COLUMN_HEIGHT = 3
MAX_STRATEGY_LEVEL = 3
MAX_NAME_LENGTH = 30


def is_valid_die_value(value: object) -> bool:
    """True if value is an int face in 1-6."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= DIE_FACES


def is_valid_column_index(index: object) -> bool:
    """True if index addresses one of the three columns."""
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < BOARD_COLUMNS


def validate_die_value(value: int) -> int:
    """
    Validate a single die face.

    Raises:
        ValueError: If value is not an integer in 1-6
    """
    if not is_valid_die_value(value):
        raise ValueError(f"Die value must be 1-{DIE_FACES}, got {value!r}.")
    return value


def validate_column(values: Sequence[int], column_index: int) -> tuple[int, ...]:
    """
    Validate and normalize one board column.

    Args:
        values: Dice in the column, in placement order
        column_index: Position of the column (for error messages)

    Returns:
        The column as a tuple

    Raises:
        ValueError: If the column holds more than 3 dice or an invalid face
    """
    column = tuple(values)
    if len(column) > COLUMN_HEIGHT:
        raise ValueError(f"Column {column_index} has {len(column)} dice (max {COLUMN_HEIGHT})")
    for die_value in column:
        if not is_valid_die_value(die_value):
            raise ValueError(f"Invalid die value {die_value!r} in column {column_index}")
    return column


def validate_strategy_level(level: int) -> int:
    """
    Validate an opponent strategy level.

    Raises:
        ValueError: If level is not an integer in 0-3
    """
    if not isinstance(level, int) or isinstance(level, bool):
        raise ValueError(f"Strategy level must be an integer, got {type(level).__name__}.")
    if not (0 <= level <= MAX_STRATEGY_LEVEL):
        raise ValueError(f"Strategy level must be 0-{MAX_STRATEGY_LEVEL}, got {level}.")
    return level


def validate_delay(seconds: float) -> float:
    """Validate a presentation delay in seconds."""
    if seconds < 0:
        raise ValueError(f"Delay cannot be negative, got {seconds}.")
    return seconds


def normalize_name(raw: str | None, default: str) -> str:
    """Trim and uppercase a display name. Blank input falls back to default."""
    name = (raw or "").strip().upper()[:MAX_NAME_LENGTH]
    return name or default
