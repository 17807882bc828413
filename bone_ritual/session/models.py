"""
Bone Ritual - Snapshot Models

Pydantic models handed to the presentation layer after every change.
"""

from pydantic import BaseModel, Field

from bone_ritual.engine.base import MatchPhase, MatchResult, Side
from bone_ritual.engine.match import MatchState


class BoardView(BaseModel):
    """One side's board with its scores."""

    name: str
    columns: list[list[int]] = Field(default_factory=lambda: [[], [], []])
    column_scores: list[int] = Field(default_factory=lambda: [0, 0, 0])
    total: int = 0


class MatchSnapshot(BaseModel):
    """Everything the presentation layer needs to render a match."""

    match_id: int
    mode: str
    phase: str
    active_side: str
    rolled_value: int | None = None
    is_rolling: bool = False
    result: str | None = None
    persona_id: str | None = None
    persona_difficulty: str | None = None
    strategy_level: int | None = None
    player: BoardView
    opponent: BoardView
    message: str

    @classmethod
    def from_state(cls, state: MatchState, is_rolling: bool = False) -> "MatchSnapshot":
        """Build a snapshot from a match state."""
        persona = state.persona
        return cls(
            match_id=state.match_id,
            mode=state.mode.value,
            phase=state.phase.value,
            active_side=state.active_side.value,
            rolled_value=state.rolled_value,
            is_rolling=is_rolling,
            result=state.result.value if state.result else None,
            persona_id=persona.id if persona else None,
            persona_difficulty=persona.difficulty.value if persona else None,
            strategy_level=persona.strategy_level if persona else None,
            player=_board_view(state, Side.PLAYER),
            opponent=_board_view(state, Side.OPPONENT),
            message=status_message(state, is_rolling),
        )


def _board_view(state: MatchState, side: Side) -> BoardView:
    scores = state.player_scores if side is Side.PLAYER else state.opponent_scores
    return BoardView(
        name=state.name_for(side),
        columns=state.board_for(side).to_dict()["columns"],
        column_scores=list(scores.column_scores),
        total=scores.total,
    )


def status_message(state: MatchState, is_rolling: bool = False) -> str:
    """Status line shown above the table."""
    if state.result is MatchResult.DRAW:
        return "DRAW!"
    if state.result is not None:
        winner = Side.PLAYER if state.result is MatchResult.PLAYER else Side.OPPONENT
        return f"{state.name_for(winner)} WINS"

    side = state.active_side
    name = state.name_for(side)
    if is_rolling:
        return f"{name} IS ROLLING..."
    if state.phase is MatchPhase.ROLLED:
        if state.is_automated(side):
            return f"{name} IS THINKING..."
        return f"{name}: CHOOSE A COLUMN"

    empty = not any(state.player_board.columns) and not any(state.opponent_board.columns)
    if empty and side is Side.PLAYER:
        return f"{name} ROLLS FIRST"
    return f"{name}'S TURN"
