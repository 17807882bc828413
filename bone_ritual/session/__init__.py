"""
Bone Ritual Match Session.

Single-writer match controller, opponent pacing, events and snapshots for
the presentation layer.
"""

from bone_ritual.session.controller import (
    DeferredScheduler,
    MatchOutcome,
    MatchSession,
    TimerScheduler,
)
from bone_ritual.session.events import EventPayload, MatchEvent, classify_transition
from bone_ritual.session.models import BoardView, MatchSnapshot, status_message

__all__ = [
    "BoardView",
    "DeferredScheduler",
    "EventPayload",
    "MatchEvent",
    "MatchOutcome",
    "MatchSession",
    "MatchSnapshot",
    "TimerScheduler",
    "classify_transition",
    "status_message",
]
