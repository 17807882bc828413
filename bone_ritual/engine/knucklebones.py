"""
Bone Ritual - Knucklebones Game Engine

A 2-player dice placement game on two 3x3 boards.

Game Rules:
- Each side owns a board of 3 columns, each holding up to 3 dice
- Roll a single D6, place it in any non-full column of your own board
- Destruction: placing a die removes every matching die from the
  opponent's column with the same index
- Column scoring: each face value v appearing c times scores v * c * c
- The match ends as soon as either board is full; higher total wins
"""

import random
from collections import Counter
from dataclasses import dataclass
from typing import Callable, ClassVar, Sequence

from bone_ritual.engine.base import MatchResult
from bone_ritual.engine.validators import (
    BOARD_COLUMNS,
    COLUMN_HEIGHT,
    DIE_FACES,
    is_valid_column_index,
    is_valid_die_value,
    validate_column,
)


@dataclass(frozen=True)
class BoardState:
    """
    Immutable representation of one side's 3x3 board.

    Attributes:
        columns: Tuple of 3 columns, each containing 0-3 dice values in
                 placement order.
                 Example: ((4, 6), (1,), (4, 4, 2)) represents:
                 Column 0: [4, 6]
                 Column 1: [1]
                 Column 2: [4, 4, 2]
    """
    columns: tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]]

    def __post_init__(self) -> None:
        """Validate board structure."""
        if len(self.columns) != BOARD_COLUMNS:
            raise ValueError(f"Board must have exactly {BOARD_COLUMNS} columns")

        normalized = tuple(validate_column(col, i) for i, col in enumerate(self.columns))
        object.__setattr__(self, "columns", normalized)

    @classmethod
    def empty(cls) -> "BoardState":
        """Create an empty board."""
        return cls(columns=((), (), ()))

    @classmethod
    def from_lists(cls, columns: Sequence[Sequence[int]]) -> "BoardState":
        """Create a board from any nested sequence, e.g. [[4], [], []]."""
        return cls(columns=tuple(tuple(col) for col in columns))

    @classmethod
    def from_dict(cls, data: dict) -> "BoardState":
        """Create BoardState from its dictionary format."""
        return cls.from_lists(data.get("columns", [[], [], []]))

    def to_dict(self) -> dict:
        """Convert to dictionary format."""
        return {"columns": [list(col) for col in self.columns]}

    def is_full(self) -> bool:
        """Check if all columns are full (3 dice each)."""
        return all(len(col) == COLUMN_HEIGHT for col in self.columns)

    def is_column_full(self, column_index: int) -> bool:
        """Check if a specific column is full."""
        if not is_valid_column_index(column_index):
            raise ValueError(f"Column index must be 0-{BOARD_COLUMNS - 1}, got {column_index}")
        return len(self.columns[column_index]) == COLUMN_HEIGHT

    def with_column(self, column_index: int, column: tuple[int, ...]) -> "BoardState":
        """Return a copy with one column replaced."""
        columns = list(self.columns)
        columns[column_index] = column
        return BoardState(columns=tuple(columns))


@dataclass(frozen=True)
class BoardScore:
    """
    Scores of one board.

    Attributes:
        column_scores: Score of each of the 3 columns
        total: Sum of the column scores
    """
    column_scores: tuple[int, int, int]
    total: int


@dataclass(frozen=True)
class PlacementResult:
    """
    Result of placing a die.

    Attributes:
        active_board: Board of the side that placed, after placement
        opponent_board: Opposing board after destruction
        destroyed_count: Number of opponent dice destroyed
        column_index: Column the die was placed in
        placed: False when the placement was declined and both boards are
                returned unchanged
    """
    active_board: BoardState
    opponent_board: BoardState
    destroyed_count: int
    column_index: int
    placed: bool = True


class KnuckleboneEngine:
    """Stateless engine for Knucklebones game logic."""

    GRID_COLUMNS: ClassVar[int] = BOARD_COLUMNS
    GRID_ROWS: ClassVar[int] = COLUMN_HEIGHT
    DIE_FACES: ClassVar[int] = DIE_FACES

    @classmethod
    def roll_die(cls, rng: Callable[[], float] = random.random) -> int:
        """
        Roll a single D6.

        Args:
            rng: Source of floats in [0, 1)

        Returns:
            A face value 1-6
        """
        return int(rng() * cls.DIE_FACES) + 1

    @classmethod
    def calculate_column_score(cls, column: Sequence[int]) -> int:
        """
        Calculate score for a single column.

        Each distinct face value v appearing c times contributes v * c * c:
        - Single die: face value (e.g., [4] = 4 pts)
        - Pair: 4 × face (e.g., [4, 4] = 16 pts)
        - Triple: 9 × face (e.g., [4, 4, 4] = 36 pts)
        - Mixed values: plain sum (e.g., [4, 6] = 10 pts)

        Args:
            column: Sequence of 0-3 dice values

        Returns:
            Total points for the column
        """
        counts = Counter(column)
        return sum(face_value * count * count for face_value, count in counts.items())

    @classmethod
    def calculate_board_score(cls, board: BoardState) -> BoardScore:
        """
        Calculate column scores and total for a board.

        Args:
            board: The board to score

        Returns:
            BoardScore with per-column scores and their sum
        """
        column_scores = tuple(cls.calculate_column_score(col) for col in board.columns)
        return BoardScore(column_scores=column_scores, total=sum(column_scores))

    @classmethod
    def place_die(
        cls,
        die_value: int,
        column_index: int,
        active_board: BoardState,
        opponent_board: BoardState
    ) -> PlacementResult:
        """
        Place a die in a column and destroy matching opponent dice.

        Steps:
        1. Add die to the end of the active side's column
        2. Remove every opponent die of the same value from the same column

        An invalid die value, a column index outside 0-2, a full target
        column, or a match that is already over (either board full) declines
        the placement: both boards come back unchanged with placed=False.

        Args:
            die_value: Value of the die to place (1-6)
            column_index: Column to place in (0-2)
            active_board: Board of the side placing the die
            opponent_board: Board of the other side

        Returns:
            PlacementResult with updated boards
        """
        if (
            not is_valid_die_value(die_value)
            or not is_valid_column_index(column_index)
            or active_board.is_column_full(column_index)
            or cls.is_game_over(active_board, opponent_board)
        ):
            return PlacementResult(
                active_board=active_board,
                opponent_board=opponent_board,
                destroyed_count=0,
                column_index=column_index,
                placed=False,
            )

        new_active_board = active_board.with_column(
            column_index, active_board.columns[column_index] + (die_value,)
        )

        opponent_column = opponent_board.columns[column_index]
        destroyed_count = opponent_column.count(die_value)
        new_opponent_board = opponent_board
        if destroyed_count:
            new_opponent_board = opponent_board.with_column(
                column_index, tuple(v for v in opponent_column if v != die_value)
            )

        return PlacementResult(
            active_board=new_active_board,
            opponent_board=new_opponent_board,
            destroyed_count=destroyed_count,
            column_index=column_index,
        )

    @classmethod
    def is_board_full(cls, board: BoardState) -> bool:
        """True iff every column holds exactly 3 dice."""
        return board.is_full()

    @classmethod
    def is_game_over(cls, player_board: BoardState, opponent_board: BoardState) -> bool:
        """Check if the match is over (either board is full)."""
        return player_board.is_full() or opponent_board.is_full()

    @classmethod
    def resolve_result(
        cls,
        player_board: BoardState,
        opponent_board: BoardState
    ) -> MatchResult | None:
        """
        Determine the match result.

        Args:
            player_board: PLAYER's board
            opponent_board: OPPONENT's board

        Returns:
            None while neither board is full, otherwise the side with the
            strictly higher total, or DRAW on equal totals
        """
        if not cls.is_game_over(player_board, opponent_board):
            return None

        player_total = cls.calculate_board_score(player_board).total
        opponent_total = cls.calculate_board_score(opponent_board).total

        if player_total > opponent_total:
            return MatchResult.PLAYER
        elif opponent_total > player_total:
            return MatchResult.OPPONENT
        return MatchResult.DRAW

    @classmethod
    def get_available_columns(cls, board: BoardState) -> list[int]:
        """
        Get list of column indices that are not full.

        Args:
            board: The board to check

        Returns:
            List of available column indices (0-2)
        """
        return [i for i in range(cls.GRID_COLUMNS) if not board.is_column_full(i)]
