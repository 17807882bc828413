"""
Bone Ritual Game Engine.

Pure Python game logic with zero UI dependencies.
Handles scoring, placement and destruction, the opponent personas and the
match state machine.
"""

from bone_ritual.engine.base import (
    PERSONAS,
    Difficulty,
    GameMode,
    MatchPhase,
    MatchResult,
    Persona,
    Side,
    get_persona,
)
from bone_ritual.engine.knucklebones import (
    BoardScore,
    BoardState,
    KnuckleboneEngine,
    PlacementResult,
)
from bone_ritual.engine.match import (
    MatchState,
    PlaceDie,
    ResetMatch,
    RollDice,
    new_match,
    reduce,
)
from bone_ritual.engine.opponent import choose_column, evaluate_column

__all__ = [
    # Data Classes
    "BoardScore",
    "BoardState",
    "MatchState",
    "Persona",
    "PlacementResult",
    # Actions
    "PlaceDie",
    "ResetMatch",
    "RollDice",
    # Enums
    "Difficulty",
    "GameMode",
    "MatchPhase",
    "MatchResult",
    "Side",
    # Engines
    "KnuckleboneEngine",
    "choose_column",
    "evaluate_column",
    "new_match",
    "reduce",
    # Personas
    "PERSONAS",
    "get_persona",
]
