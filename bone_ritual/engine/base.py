"""
Bone Ritual - Game Engine Base Classes

Enums and immutable value records shared across the engine: sides, game
modes, match results and the opponent personas.
"""

from dataclasses import dataclass
from enum import Enum

from bone_ritual.engine.validators import validate_strategy_level


class Side(Enum):
    """The two seats at the table."""
    PLAYER = "player"
    OPPONENT = "opponent"

    @property
    def other(self) -> "Side":
        """The side that acts after this one."""
        return Side.OPPONENT if self is Side.PLAYER else Side.PLAYER


class GameMode(Enum):
    """Who supplies the opponent's moves."""
    AI = "ai"        # Automated persona
    LOCAL = "local"  # Second human on the same device


class MatchResult(Enum):
    """Terminal result of a match."""
    PLAYER = "player"
    OPPONENT = "opponent"
    DRAW = "draw"


class MatchPhase(Enum):
    """Turn phase of a match."""
    AWAITING_ROLL = "awaiting_roll"
    ROLLED = "rolled"
    TERMINAL = "terminal"


class Difficulty(Enum):
    """Display label for a persona's strength."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    MASTER = "Master"


@dataclass(frozen=True)
class Persona:
    """
    An automated opponent.

    Attributes:
        id: Stable identifier used in settings and the picker
        name: Display name
        difficulty: Difficulty label shown to the player
        strategy_level: Decision policy tier (0 random .. 3 greedy)
    """
    id: str
    name: str
    difficulty: Difficulty
    strategy_level: int

    def __post_init__(self) -> None:
        """Validate the strategy level."""
        validate_strategy_level(self.strategy_level)


PERSONAS: tuple[Persona, ...] = (
    Persona(id="ratoo", name="RATOO", difficulty=Difficulty.EASY, strategy_level=0),
    Persona(id="klunko", name="KLUNKO AND BOP", difficulty=Difficulty.MEDIUM, strategy_level=1),
    Persona(id="shroomy", name="SHROOMY", difficulty=Difficulty.HARD, strategy_level=2),
    Persona(id="toww", name="THE ONE WHO WAITS", difficulty=Difficulty.MASTER, strategy_level=3),
)

DEFAULT_PERSONA_ID = "klunko"


def get_persona(persona_id: str) -> Persona:
    """
    Look up a built-in persona by id.

    Raises:
        KeyError: If no persona has that id
    """
    for persona in PERSONAS:
        if persona.id == persona_id:
            return persona
    raise KeyError(f"Unknown persona '{persona_id}'")
