"""
Bone Ritual - Match State Machine

A match is an immutable MatchState value advanced by a pure reducer:

    AWAITING_ROLL(side) -> ROLLED(side, value) -> AWAITING_ROLL(other side)
    ... -> TERMINAL(result)

PLAYER always rolls first. TERMINAL is absorbing until a ResetMatch.
Every action that arrives in the wrong phase, targets a full column, or
carries a stale match_id is declined: reduce() returns the very same
state object instead of raising.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Union

from bone_ritual.engine.base import (
    DEFAULT_PERSONA_ID,
    GameMode,
    MatchPhase,
    MatchResult,
    Persona,
    Side,
    get_persona,
)
from bone_ritual.engine.knucklebones import BoardScore, BoardState, KnuckleboneEngine
from bone_ritual.engine.validators import is_valid_die_value

DEFAULT_PLAYER_NAME = "LAMB"
DEFAULT_PLAYER2_NAME = "HERETIC"


@dataclass(frozen=True)
class MatchState:
    """
    Complete, serializable state of one match.

    Attributes:
        match_id: Identity of the match; changes on every reset so deferred
                  actions computed for an older match can be recognized
        mode: AI (persona opponent) or LOCAL (second human)
        persona: Bound opponent persona, None in LOCAL mode
        player_name: Display name of PLAYER
        opponent_name: Display name of OPPONENT
        player_board: PLAYER's board
        opponent_board: OPPONENT's board
        active_side: Side whose turn it is
        rolled_value: Die waiting to be placed, None if not rolled yet
        result: Terminal result, None while the match is running
    """
    match_id: int = 0
    mode: GameMode = GameMode.AI
    persona: Persona | None = None
    player_name: str = DEFAULT_PLAYER_NAME
    opponent_name: str = DEFAULT_PLAYER2_NAME
    player_board: BoardState = field(default_factory=BoardState.empty)
    opponent_board: BoardState = field(default_factory=BoardState.empty)
    active_side: Side = Side.PLAYER
    rolled_value: int | None = None
    result: MatchResult | None = None

    @property
    def phase(self) -> MatchPhase:
        """Current turn phase."""
        if self.result is not None:
            return MatchPhase.TERMINAL
        if self.rolled_value is None:
            return MatchPhase.AWAITING_ROLL
        return MatchPhase.ROLLED

    @property
    def is_terminal(self) -> bool:
        return self.result is not None

    @property
    def player_scores(self) -> BoardScore:
        return KnuckleboneEngine.calculate_board_score(self.player_board)

    @property
    def opponent_scores(self) -> BoardScore:
        return KnuckleboneEngine.calculate_board_score(self.opponent_board)

    @property
    def strategy_level(self) -> int | None:
        """Strategy level of the bound persona, None without one."""
        return self.persona.strategy_level if self.persona else None

    def board_for(self, side: Side) -> BoardState:
        """Board owned by the given side."""
        return self.player_board if side is Side.PLAYER else self.opponent_board

    def name_for(self, side: Side) -> str:
        """Display name of the given side."""
        return self.player_name if side is Side.PLAYER else self.opponent_name

    def is_automated(self, side: Side) -> bool:
        """True if the given side's moves come from a persona."""
        return side is Side.OPPONENT and self.mode is GameMode.AI and self.persona is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return {
            "match_id": self.match_id,
            "mode": self.mode.value,
            "persona_id": self.persona.id if self.persona else None,
            "player_name": self.player_name,
            "opponent_name": self.opponent_name,
            "player_board": self.player_board.to_dict(),
            "opponent_board": self.opponent_board.to_dict(),
            "active_side": self.active_side.value,
            "rolled_value": self.rolled_value,
            "result": self.result.value if self.result else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchState:
        """
        Create MatchState from its dictionary format.

        Raises:
            ValueError: If the data does not describe a valid match
        """
        persona_id = data.get("persona_id")
        try:
            persona = get_persona(persona_id) if persona_id else None
        except KeyError as exc:
            raise ValueError(str(exc)) from exc

        mode = GameMode(data.get("mode", GameMode.AI.value))
        if mode is GameMode.AI and persona is None:
            raise ValueError("AI match requires a persona_id")

        rolled_value = data.get("rolled_value")
        if rolled_value is not None and not is_valid_die_value(rolled_value):
            raise ValueError(f"Invalid rolled value {rolled_value!r}")

        result = data.get("result")
        return cls(
            match_id=int(data.get("match_id", 0)),
            mode=mode,
            persona=persona,
            player_name=data.get("player_name", DEFAULT_PLAYER_NAME),
            opponent_name=data.get("opponent_name", DEFAULT_PLAYER2_NAME),
            player_board=BoardState.from_dict(data.get("player_board", {})),
            opponent_board=BoardState.from_dict(data.get("opponent_board", {})),
            active_side=Side(data.get("active_side", Side.PLAYER.value)),
            rolled_value=rolled_value,
            result=MatchResult(result) if result else None,
        )


# === Actions ===


@dataclass(frozen=True)
class RollDice:
    """
    Roll the die for the active side.

    value: pre-drawn face (e.g. drawn when a roll animation started);
           None lets the reducer draw one.
    match_id: match the roll was requested for; None skips the check.
    """
    value: int | None = None
    match_id: int | None = None


@dataclass(frozen=True)
class PlaceDie:
    """Place the rolled die in one of the active side's columns."""
    column_index: int
    match_id: int | None = None


@dataclass(frozen=True)
class ResetMatch:
    """
    Start a fresh match.

    Fields left as None keep their current value. Choosing a persona
    switches to AI mode; choosing LOCAL mode unbinds the persona.
    """
    persona: Persona | None = None
    mode: GameMode | None = None
    player_name: str | None = None
    opponent_name: str | None = None


Action = Union[RollDice, PlaceDie, ResetMatch]


def new_match(
    persona: Persona | None = None,
    mode: GameMode = GameMode.AI,
    player_name: str = DEFAULT_PLAYER_NAME,
    opponent_name: str | None = None,
    match_id: int = 0,
) -> MatchState:
    """
    Create the initial state of a match.

    In AI mode without an explicit persona the default persona is bound,
    and the opponent is named after the persona unless a name is given.
    """
    if mode is GameMode.LOCAL:
        persona = None
        opponent_name = opponent_name or DEFAULT_PLAYER2_NAME
    else:
        persona = persona or get_persona(DEFAULT_PERSONA_ID)
        opponent_name = opponent_name or persona.name

    return MatchState(
        match_id=match_id,
        mode=mode,
        persona=persona,
        player_name=player_name,
        opponent_name=opponent_name,
    )


def _is_stale(state: MatchState, match_id: int | None) -> bool:
    return match_id is not None and match_id != state.match_id


def _roll(state: MatchState, action: RollDice, rng: Callable[[], float]) -> MatchState:
    if state.phase is not MatchPhase.AWAITING_ROLL or _is_stale(state, action.match_id):
        return state

    value = action.value
    if value is None:
        value = KnuckleboneEngine.roll_die(rng)
    elif not is_valid_die_value(value):
        return state

    return replace(state, rolled_value=value)


def _place(state: MatchState, action: PlaceDie) -> MatchState:
    if state.phase is not MatchPhase.ROLLED or _is_stale(state, action.match_id):
        return state

    side = state.active_side
    placement = KnuckleboneEngine.place_die(
        state.rolled_value,
        action.column_index,
        state.board_for(side),
        state.board_for(side.other),
    )
    if not placement.placed:
        return state

    if side is Side.PLAYER:
        player_board, opponent_board = placement.active_board, placement.opponent_board
    else:
        player_board, opponent_board = placement.opponent_board, placement.active_board

    return replace(
        state,
        player_board=player_board,
        opponent_board=opponent_board,
        active_side=side.other,
        rolled_value=None,
        result=KnuckleboneEngine.resolve_result(player_board, opponent_board),
    )


def _reset(state: MatchState, action: ResetMatch) -> MatchState:
    mode = action.mode
    if mode is None:
        mode = GameMode.AI if action.persona is not None else state.mode

    persona = action.persona or state.persona
    opponent_name = action.opponent_name
    if opponent_name is None:
        if mode is GameMode.AI and persona is not None and persona != state.persona:
            opponent_name = persona.name
        elif mode is state.mode:
            opponent_name = state.opponent_name

    return new_match(
        persona=persona,
        mode=mode,
        player_name=action.player_name or state.player_name,
        opponent_name=opponent_name,
        match_id=state.match_id + 1,
    )


def reduce(
    state: MatchState,
    action: Action,
    rng: Callable[[], float] = random.random,
) -> MatchState:
    """
    Apply one action to a match.

    Args:
        state: Current match state
        action: RollDice, PlaceDie or ResetMatch
        rng: Source of floats in [0, 1) used for die rolls

    Returns:
        The next state, or the unchanged state object when the action is
        not allowed right now
    """
    if isinstance(action, ResetMatch):
        return _reset(state, action)
    if isinstance(action, RollDice):
        return _roll(state, action, rng)
    if isinstance(action, PlaceDie):
        return _place(state, action)
    return state
