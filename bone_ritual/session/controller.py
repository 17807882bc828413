"""
Bone Ritual - Match Session

Owns a single match and is its only writer. Runs the roll animation window,
drives the automated opponent with presentation delays, and notifies
listeners with events after every accepted change.

Deferred work (roll commits, opponent rolls and placements) is always tagged
with the match_id it was computed for. A reset bumps the match_id and
cancels pending handles, so anything that still fires afterwards is dropped.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from bone_ritual.config.settings import Settings, get_settings
from bone_ritual.engine.base import GameMode, MatchPhase, MatchResult, Persona, get_persona
from bone_ritual.engine.match import (
    Action,
    MatchState,
    PlaceDie,
    ResetMatch,
    RollDice,
    new_match,
    reduce,
)
from bone_ritual.engine.knucklebones import KnuckleboneEngine
from bone_ritual.engine.opponent import choose_column
from bone_ritual.session.events import EventPayload, MatchEvent, classify_transition
from bone_ritual.session.models import MatchSnapshot

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


class TimerScheduler:
    """Runs each callback on a daemon threading.Timer."""

    def __call__(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class _Deferred:
    """Handle for a callback queued on a DeferredScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class DeferredScheduler:
    """Queues callbacks with due times; the host decides when to run them.

    Used where no background thread may touch the session, e.g. a Streamlit
    script that sleeps until the next due time and reruns, and in tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, _Deferred]] = []
        self._counter = itertools.count()

    def __call__(self, delay: float, callback: Callable[[], None]) -> _Deferred:
        handle = _Deferred(self._clock() + delay, callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def _prune(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    @property
    def pending(self) -> int:
        """Number of queued, not cancelled callbacks."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def next_due_in(self) -> float | None:
        """Seconds until the next callback is due, None if nothing is queued."""
        self._prune()
        if not self._queue:
            return None
        return max(0.0, self._queue[0][0] - self._clock())

    def run_due(self) -> int:
        """Run every callback whose due time has passed. Returns how many ran."""
        ran = 0
        while True:
            self._prune()
            if not self._queue or self._queue[0][0] > self._clock():
                return ran
            _, _, handle = heapq.heappop(self._queue)
            handle.callback()
            ran += 1

    def run_all(self, limit: int = 1000) -> int:
        """Run queued callbacks in due order, ignoring the clock.

        Callbacks may queue further callbacks; those run too, up to limit.
        """
        ran = 0
        while ran < limit:
            self._prune()
            if not self._queue:
                break
            _, _, handle = heapq.heappop(self._queue)
            handle.callback()
            ran += 1
        return ran


@dataclass(frozen=True)
class MatchOutcome:
    """What rank tracking needs from a finished match."""

    result: MatchResult
    strategy_level: int | None


class MatchSession:
    """Single-writer controller around a MatchState.

    Human input arrives through roll() and place(); the automated opponent
    acts through the scheduler. Every change is applied with the pure
    reducer under a lock and then broadcast to listeners.
    """

    def __init__(
        self,
        state: MatchState | None = None,
        *,
        settings: Settings | None = None,
        rng: Callable[[], float] = random.random,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._rng = rng
        self._scheduler = scheduler or TimerScheduler()
        self._lock = threading.RLock()
        self._listeners: list[Callable[[EventPayload], None]] = []
        self._pending: list[Cancellable] = []
        self._rolling = False
        self._state = state or self._initial_state()
        self._schedule_opponent()

    def _initial_state(self) -> MatchState:
        try:
            persona = get_persona(self._settings.default_persona)
        except KeyError:
            logger.warning("Unknown default persona %r, using built-in default",
                           self._settings.default_persona)
            persona = None
        return new_match(persona=persona, player_name=self._settings.player_name)

    # -- Read access -----------------------------------------------------

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def is_rolling(self) -> bool:
        """True while a roll animation is running."""
        return self._rolling

    def is_human_turn(self) -> bool:
        """True if the side to act takes its input from a person."""
        state = self._state
        return not state.is_terminal and not state.is_automated(state.active_side)

    def can_roll(self) -> bool:
        return (
            self.is_human_turn()
            and not self._rolling
            and self._state.phase is MatchPhase.AWAITING_ROLL
        )

    def available_columns(self) -> list[int]:
        """Columns the active side may place into right now."""
        state = self._state
        if state.phase is not MatchPhase.ROLLED:
            return []
        return KnuckleboneEngine.get_available_columns(state.board_for(state.active_side))

    def outcome(self) -> MatchOutcome | None:
        """Result and persona strategy level once the match is over."""
        state = self._state
        if state.result is None:
            return None
        return MatchOutcome(result=state.result, strategy_level=state.strategy_level)

    def snapshot(self) -> MatchSnapshot:
        return MatchSnapshot.from_state(self._state, is_rolling=self._rolling)

    @property
    def pending_actions(self) -> int:
        """Deferred actions scheduled for this match that have not fired yet."""
        return len(self._pending)

    # -- Listeners -------------------------------------------------------

    def add_listener(self, on_event: Callable[[EventPayload], None]) -> None:
        self._listeners.append(on_event)

    def remove_listener(self, on_event: Callable[[EventPayload], None]) -> None:
        if on_event in self._listeners:
            self._listeners.remove(on_event)

    def _emit(self, payload: EventPayload) -> None:
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener failed handling %s", payload.event.name)

    # -- Human input -----------------------------------------------------

    def roll(self) -> bool:
        """Start a roll for a human side. Returns False if not allowed now."""
        with self._lock:
            if not self.can_roll():
                logger.debug("Roll declined in phase %s", self._state.phase.value)
                return False
            self._start_roll()
            return True

    def place(self, column_index: int) -> bool:
        """Place the rolled die for a human side. Returns False if declined."""
        with self._lock:
            if not self.is_human_turn():
                logger.debug("Placement declined: not a human turn")
                return False
            return self._dispatch(PlaceDie(column_index, match_id=self._state.match_id))

    def reset(
        self,
        persona: Persona | None = None,
        mode: GameMode | None = None,
        player_name: str | None = None,
        opponent_name: str | None = None,
    ) -> None:
        """Discard the current match and start a new one.

        Names and the bound persona carry over unless overridden. Switching
        to LOCAL mode names the second human from settings.
        """
        with self._lock:
            self._cancel_pending()
            self._rolling = False
            if mode is GameMode.LOCAL and opponent_name is None:
                opponent_name = self._settings.player2_name
            self._dispatch(
                ResetMatch(
                    persona=persona,
                    mode=mode,
                    player_name=player_name,
                    opponent_name=opponent_name,
                )
            )
            logger.info(
                "Match %d started (%s mode, opponent %s)",
                self._state.match_id,
                self._state.mode.value,
                self._state.opponent_name,
            )

    # -- Internals -------------------------------------------------------

    def _dispatch(self, action: Action) -> bool:
        old = self._state
        new = reduce(old, action, self._rng)
        if new is old:
            logger.debug("Declined %s for match %d", type(action).__name__, old.match_id)
            return False

        self._state = new
        if new.result is not None:
            logger.info(
                "Match %d finished: %s (%d-%d)",
                new.match_id,
                new.result.value,
                new.player_scores.total,
                new.opponent_scores.total,
            )
        for payload in classify_transition(old, new):
            self._emit(payload)
        self._schedule_opponent()
        return True

    def _defer(self, delay: float, match_id: int, action: Callable[[], None]) -> None:
        handle: Cancellable | None = None

        def fire() -> None:
            with self._lock:
                if handle in self._pending:
                    self._pending.remove(handle)
                if self._state.match_id != match_id:
                    logger.debug("Discarding deferred action for stale match %d", match_id)
                    return
                action()

        # fire() needs the lock, so it cannot run before the handle is recorded
        with self._lock:
            handle = self._scheduler(delay, fire)
            self._pending.append(handle)

    def _cancel_pending(self) -> None:
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()

    def _start_roll(self) -> None:
        state = self._state
        value = KnuckleboneEngine.roll_die(self._rng)
        self._rolling = True
        self._emit(
            EventPayload(MatchEvent.ROLL_STARTED, state.match_id, state.active_side.value)
        )

        def commit() -> None:
            self._rolling = False
            self._dispatch(RollDice(value=value, match_id=state.match_id))

        self._defer(self._settings.roll_animation_delay, state.match_id, commit)

    def _schedule_opponent(self) -> None:
        state = self._state
        if state.is_terminal or not state.is_automated(state.active_side) or self._rolling:
            return

        if state.phase is MatchPhase.AWAITING_ROLL:
            self._defer(self._settings.opponent_roll_delay, state.match_id, self._start_roll)
            return

        column = choose_column(
            state.opponent_board,
            state.player_board,
            state.rolled_value,
            state.persona.strategy_level,
            self._rng,
        )
        self._defer(
            self._settings.opponent_move_delay,
            state.match_id,
            lambda: self._dispatch(PlaceDie(column, match_id=state.match_id)),
        )
