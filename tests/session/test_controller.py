"""
Tests for MatchSession and its schedulers.
"""

import random
import threading
from dataclasses import replace

import pytest

from bone_ritual.engine.base import GameMode, MatchPhase, MatchResult, Side, get_persona
from bone_ritual.engine.knucklebones import BoardState
from bone_ritual.engine.match import new_match
from bone_ritual.session.controller import DeferredScheduler, MatchSession, TimerScheduler
from bone_ritual.session.events import MatchEvent


class _IgnoredCancel:
    def cancel(self) -> None:
        pass


class LeakyScheduler:
    """Scheduler whose handles cannot be cancelled."""

    def __init__(self) -> None:
        self.callbacks = []

    def __call__(self, delay, callback):
        self.callbacks.append(callback)
        return _IgnoredCancel()

    def run_all(self) -> None:
        while self.callbacks:
            self.callbacks.pop(0)()


@pytest.fixture
def session(settings, scheduler) -> MatchSession:
    return MatchSession(settings=settings, rng=random.Random(7).random, scheduler=scheduler)


def first_open_column(session: MatchSession) -> int:
    return session.available_columns()[0]


class TestDeferredScheduler:
    """Tests for DeferredScheduler."""

    def test_runs_only_due_callbacks(self, scheduler, clock):
        ran = []
        scheduler(1.0, lambda: ran.append("a"))
        scheduler(2.0, lambda: ran.append("b"))

        assert scheduler.run_due() == 0
        clock.advance(1.0)
        assert scheduler.run_due() == 1
        assert ran == ["a"]
        assert scheduler.next_due_in() == pytest.approx(1.0)

    def test_cancelled_callbacks_never_run(self, scheduler, clock):
        ran = []
        handle = scheduler(0.5, lambda: ran.append("a"))
        handle.cancel()
        clock.advance(1.0)

        assert scheduler.run_due() == 0
        assert scheduler.pending == 0
        assert scheduler.next_due_in() is None

    def test_run_all_follows_chained_callbacks(self, scheduler):
        ran = []
        scheduler(5.0, lambda: scheduler(5.0, lambda: ran.append("second")))
        assert scheduler.run_all() == 2
        assert ran == ["second"]


class TestHumanTurn:
    """Tests for roll() and place() on a human turn."""

    def test_initial_state_from_settings(self, session):
        state = session.state
        assert state.player_name == "LAMB"
        assert state.persona == get_persona("klunko")
        assert session.is_human_turn()
        assert session.can_roll()

    def test_roll_runs_animation_then_commits(self, session, scheduler, clock):
        assert session.roll()
        assert session.is_rolling
        assert session.state.phase is MatchPhase.AWAITING_ROLL

        clock.advance(0.8)
        scheduler.run_due()

        assert not session.is_rolling
        assert session.state.phase is MatchPhase.ROLLED
        assert 1 <= session.state.rolled_value <= 6

    def test_second_roll_during_animation_is_ignored(self, session, scheduler):
        assert session.roll()
        assert not session.roll()
        scheduler.run_all()
        value = session.state.rolled_value

        assert not session.roll()
        assert session.state.rolled_value == value

    def test_value_is_drawn_when_roll_starts(self, settings, scheduler, scripted):
        rng = scripted(0.5)
        session = MatchSession(settings=settings, rng=rng, scheduler=scheduler)

        session.roll()
        assert rng.calls == 1
        scheduler.run_all()

        assert rng.calls == 1
        assert session.state.rolled_value == 4

    def test_place_before_roll_is_declined(self, session):
        assert not session.place(0)
        assert session.state.player_board == BoardState.empty()

    def test_place_hands_turn_to_persona(self, session, scheduler):
        session.roll()
        scheduler.run_all()
        assert session.place(0)

        assert session.state.active_side is Side.OPPONENT
        assert not session.is_human_turn()
        assert not session.can_roll()
        assert scheduler.pending == 1


class TestAutomatedOpponent:
    """Tests for the persona's deferred turn."""

    def test_opponent_rolls_and_places(self, session, scheduler, clock):
        session.roll()
        scheduler.run_all()
        session.place(0)

        clock.advance(1.0)
        scheduler.run_due()
        assert session.is_rolling

        clock.advance(0.8)
        scheduler.run_due()
        assert session.state.phase is MatchPhase.ROLLED
        assert session.state.active_side is Side.OPPONENT

        clock.advance(1.2)
        scheduler.run_due()
        state = session.state
        assert state.active_side is Side.PLAYER
        assert sum(len(col) for col in state.opponent_board.columns) == 1

    def test_human_cannot_act_for_persona(self, session, scheduler):
        session.roll()
        scheduler.run_all()
        session.place(0)

        assert not session.roll()
        assert not session.place(1)

    def test_session_resumes_persona_turn(self, settings, scheduler):
        state = replace(new_match(), active_side=Side.OPPONENT)
        session = MatchSession(state, settings=settings, scheduler=scheduler)
        assert scheduler.pending == 1

        scheduler.run_all()
        assert session.state.active_side is Side.PLAYER


class TestReset:
    """Tests for reset() and stale deferred work."""

    def test_reset_cancels_pending_opponent_turn(self, session, scheduler):
        session.roll()
        scheduler.run_all()
        session.place(0)
        old_id = session.state.match_id

        session.reset()

        assert scheduler.run_all() == 0
        state = session.state
        assert state.match_id == old_id + 1
        assert state.player_board == BoardState.empty()
        assert state.opponent_board == BoardState.empty()
        assert state.active_side is Side.PLAYER

    def test_reset_during_roll_animation(self, session, scheduler):
        session.roll()
        session.reset()

        assert not session.is_rolling
        scheduler.run_all()
        assert session.state.rolled_value is None

    def test_stale_actions_are_discarded_even_if_they_fire(self, settings):
        scheduler = LeakyScheduler()
        session = MatchSession(settings=settings, scheduler=scheduler)
        session.roll()
        scheduler.run_all()
        session.place(0)
        assert scheduler.callbacks

        session.reset()
        scheduler.run_all()

        assert session.state.opponent_board == BoardState.empty()
        assert session.state.phase is MatchPhase.AWAITING_ROLL
        assert session.state.active_side is Side.PLAYER

    def test_change_persona(self, session):
        session.reset(persona=get_persona("toww"))
        assert session.state.strategy_level == 3
        assert session.state.opponent_name == "THE ONE WHO WAITS"

    def test_local_mode_uses_second_player_name(self, session, scheduler):
        session.reset(mode=GameMode.LOCAL)
        assert session.state.opponent_name == "HERETIC"

        session.roll()
        scheduler.run_all()
        session.place(0)

        assert scheduler.pending == 0
        assert session.is_human_turn()
        assert session.roll()


class TestEventsAndOutcome:
    """Tests for listeners and outcome()."""

    def test_listener_sees_turn(self, session, scheduler):
        seen = []
        session.add_listener(lambda payload: seen.append(payload.event))

        session.roll()
        scheduler.run_all()
        session.place(0)

        assert seen[:4] == [
            MatchEvent.ROLL_STARTED,
            MatchEvent.DICE_ROLLED,
            MatchEvent.DIE_PLACED,
            MatchEvent.TURN_ADVANCED,
        ]

    def test_failing_listener_does_not_break_session(self, session, scheduler):
        def broken(payload):
            raise RuntimeError("boom")

        seen = []
        session.add_listener(broken)
        session.add_listener(lambda payload: seen.append(payload.event))

        assert session.roll()
        assert seen == [MatchEvent.ROLL_STARTED]

    def test_removed_listener_is_silent(self, session):
        seen = []
        listener = seen.append
        session.add_listener(listener)
        session.remove_listener(listener)
        session.roll()
        assert seen == []

    def test_outcome_for_rank_tracking(self, settings, scheduler):
        state = replace(
            new_match(persona=get_persona("klunko")),
            player_board=BoardState.from_lists([[1, 2, 3], [4, 5, 6], [4, 4]]),
            opponent_board=BoardState.from_lists([[1, 2, 3], [4, 5, 6], [2, 2, 6]]),
            rolled_value=3,
        )
        session = MatchSession(state, settings=settings, scheduler=scheduler)
        assert session.outcome() is None

        session.place(2)

        outcome = session.outcome()
        assert outcome.result is MatchResult.PLAYER
        assert outcome.strategy_level == 1
        assert not session.is_human_turn()
        assert scheduler.pending == 0

    def test_full_match_against_master(self, settings, scheduler):
        session = MatchSession(settings=settings, rng=random.Random(2024).random,
                               scheduler=scheduler)
        session.reset(persona=get_persona("toww"))

        for _ in range(100):
            if session.state.is_terminal:
                break
            if session.can_roll():
                session.roll()
            scheduler.run_all()
            if session.is_human_turn() and session.state.phase is MatchPhase.ROLLED:
                session.place(first_open_column(session))
            scheduler.run_all()

        state = session.state
        assert state.is_terminal
        assert state.player_board.is_full() or state.opponent_board.is_full()
        player_total = state.player_scores.total
        opponent_total = state.opponent_scores.total
        if player_total > opponent_total:
            assert state.result is MatchResult.PLAYER
        elif opponent_total > player_total:
            assert state.result is MatchResult.OPPONENT
        else:
            assert state.result is MatchResult.DRAW


class RecordingTimerScheduler(TimerScheduler):
    """TimerScheduler that keeps its timers so a test can wait for them."""

    def __init__(self) -> None:
        self.timers = []

    def __call__(self, delay, callback):
        timer = super().__call__(delay, callback)
        self.timers.append(timer)
        return timer

    def join_all(self, timeout: float = 5.0) -> None:
        """Wait for every timer, including ones started by earlier callbacks."""
        while self.timers:
            timer = self.timers.pop(0)
            timer.join(timeout)
            assert not timer.is_alive()


@pytest.fixture
def fast_settings(settings):
    return settings.model_copy(
        update={"roll_animation_delay": 0.01, "opponent_roll_delay": 0.01}
    )


class TestTimerScheduler:
    """Tests for MatchSession on real timer threads."""

    def test_persona_turn_completes(self, fast_settings):
        timers = RecordingTimerScheduler()
        settings = fast_settings.model_copy(update={"opponent_move_delay": 0.01})
        session = MatchSession(settings=settings, rng=random.Random(7).random, scheduler=timers)

        assert session.roll()
        timers.join_all()
        assert session.state.phase is MatchPhase.ROLLED

        assert session.place(0)
        timers.join_all()

        state = session.state
        assert state.active_side is Side.PLAYER
        assert state.phase is MatchPhase.AWAITING_ROLL
        assert sum(len(col) for col in state.opponent_board.columns) == 1
        assert session.pending_actions == 0

    def test_reset_during_move_delay_leaves_new_match_untouched(self, fast_settings):
        timers = RecordingTimerScheduler()
        settings = fast_settings.model_copy(update={"opponent_move_delay": 0.3})
        session = MatchSession(settings=settings, rng=random.Random(7).random, scheduler=timers)
        opponent_rolled = threading.Event()

        def on_event(payload):
            if payload.event is MatchEvent.DICE_ROLLED and payload.side == Side.OPPONENT.value:
                opponent_rolled.set()

        session.add_listener(on_event)
        session.roll()
        timers.join_all()
        session.place(0)

        assert opponent_rolled.wait(5.0)
        old_id = session.state.match_id
        session.reset()
        timers.join_all()

        state = session.state
        assert state.match_id == old_id + 1
        assert state.opponent_board == BoardState.empty()
        assert state.active_side is Side.PLAYER
        assert state.phase is MatchPhase.AWAITING_ROLL
        assert session.pending_actions == 0


class TestPendingActions:
    """Tests for tracking of scheduled deferred actions."""

    def test_fired_actions_are_forgotten(self, session, scheduler, clock):
        session.roll()
        assert session.pending_actions == 1

        clock.advance(0.8)
        scheduler.run_due()
        assert session.pending_actions == 0

        session.place(0)
        assert session.pending_actions == 1
        scheduler.run_all()
        assert session.pending_actions == 0

    def test_reset_clears_pending_actions(self, session):
        session.roll()
        session.reset()
        assert session.pending_actions == 0
