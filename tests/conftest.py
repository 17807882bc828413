"""
Bone Ritual - Test Configuration and Fixtures

Common fixtures and test data for all test modules.
"""

from typing import Callable, Sequence

import pytest

from bone_ritual.config.settings import Settings
from bone_ritual.engine.knucklebones import BoardState
from bone_ritual.session.controller import DeferredScheduler


class ScriptedRandom:
    """
    Deterministic stand-in for random.random.

    Returns the scripted floats in order, then keeps repeating the last one.
    """

    def __init__(self, values: Sequence[float]) -> None:
        self._values = list(values)
        self._index = 0
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        value = self._values[min(self._index, len(self._values) - 1)]
        self._index += 1
        return value


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# RANDOMNESS
# =============================================================================

@pytest.fixture
def scripted() -> Callable[..., ScriptedRandom]:
    """Factory: scripted(0.5, 0.0) -> rng returning 0.5 then 0.0."""
    return lambda *values: ScriptedRandom(values)


# =============================================================================
# BOARDS
# =============================================================================

@pytest.fixture
def empty_board() -> BoardState:
    return BoardState.empty()


@pytest.fixture
def boards_forty_vs_thirty_five() -> tuple[BoardState, BoardState]:
    """
    Full boards scoring 40 and 35.

    40: [1,2,3]=6 + [4,5,6]=15 + [4,4,3]=19
    35: [1,2,3]=6 + [4,5,6]=15 + [2,2,6]=14
    """
    return (
        BoardState(columns=((1, 2, 3), (4, 5, 6), (4, 4, 3))),
        BoardState(columns=((1, 2, 3), (4, 5, 6), (2, 2, 6))),
    )


# =============================================================================
# SESSION
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment, with the default delays."""
    return Settings(_env_file=None, player_name="LAMB", player2_name="HERETIC",
                    default_persona="klunko", debug=False, log_level="INFO",
                    roll_animation_delay=0.8, opponent_roll_delay=1.0,
                    opponent_move_delay=1.2)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> DeferredScheduler:
    return DeferredScheduler(clock=clock)
