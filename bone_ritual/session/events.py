"""
Bone Ritual - Match Event Definitions

Event types and payloads emitted by a session after each state change.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from bone_ritual.engine.match import MatchState


class MatchEvent(Enum):
    """Events that can occur during a match."""

    MATCH_RESET = auto()
    PERSONA_CHANGED = auto()
    ROLL_STARTED = auto()
    DICE_ROLLED = auto()
    DIE_PLACED = auto()
    DICE_DESTROYED = auto()
    TURN_ADVANCED = auto()
    MATCH_FINISHED = auto()


@dataclass
class EventPayload:
    """Wrapper for event data."""

    event: MatchEvent
    match_id: int
    side: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


def classify_transition(old: MatchState, new: MatchState) -> list[EventPayload]:
    """Determine the events produced by moving from one state to the next."""
    if old is new:
        return []

    if new.match_id != old.match_id:
        events = [EventPayload(MatchEvent.MATCH_RESET, new.match_id)]
        if new.persona != old.persona:
            events.append(
                EventPayload(
                    MatchEvent.PERSONA_CHANGED,
                    new.match_id,
                    data={"persona_id": new.persona.id if new.persona else None},
                )
            )
        return events

    events: list[EventPayload] = []
    actor = old.active_side

    if old.rolled_value is None and new.rolled_value is not None:
        events.append(
            EventPayload(
                MatchEvent.DICE_ROLLED, new.match_id, actor.value, {"value": new.rolled_value}
            )
        )
        return events

    if old.rolled_value is not None and new.rolled_value is None:
        column_index = next(
            i
            for i, (before, after) in enumerate(
                zip(old.board_for(actor).columns, new.board_for(actor).columns)
            )
            if before != after
        )
        events.append(
            EventPayload(
                MatchEvent.DIE_PLACED,
                new.match_id,
                actor.value,
                {"value": old.rolled_value, "column": column_index},
            )
        )

        target = actor.other
        destroyed = len(old.board_for(target).columns[column_index]) - len(
            new.board_for(target).columns[column_index]
        )
        if destroyed:
            events.append(
                EventPayload(
                    MatchEvent.DICE_DESTROYED,
                    new.match_id,
                    actor.value,
                    {"column": column_index, "count": destroyed, "target": target.value},
                )
            )

        if new.result is not None:
            events.append(
                EventPayload(
                    MatchEvent.MATCH_FINISHED,
                    new.match_id,
                    data={
                        "result": new.result.value,
                        "strategy_level": new.strategy_level,
                        "player_score": new.player_scores.total,
                        "opponent_score": new.opponent_scores.total,
                    },
                )
            )
        else:
            events.append(
                EventPayload(MatchEvent.TURN_ADVANCED, new.match_id, new.active_side.value)
            )

    return events
