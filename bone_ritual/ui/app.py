"""Bone Ritual - Streamlit Application Entrypoint."""

from __future__ import annotations

import streamlit as st

from bone_ritual.config import configure_logging, get_settings
from bone_ritual.engine.base import PERSONAS, GameMode
from bone_ritual.engine.validators import MAX_NAME_LENGTH, normalize_name
from bone_ritual.session import MatchSession

_RULES = """\
**Goal:** Highest score when any board fills!

**Gameplay:**
- Each side has a 3×3 board
- Roll 1 D6 → place it in any of your columns that is not full
- **Destruction:** every opponent die of the same value in the same column is removed
- Turn passes after placement

**Scoring (per column):**
| Dice of one value | Points |
|---|---|
| One | Face value |
| Two | Face × 4 |
| Three | Face × 9 |

**Example:** Column with [4, 4, 6] scores 4×4 + 6 = 22

The match ends as soon as either board is full.
"""


def _render_name_form(session: MatchSession) -> None:
    """Name entry. Saving a name starts a new match under that name."""
    state = session.state
    is_local = state.mode is GameMode.LOCAL

    with st.form("player_name_form"):
        player_name = st.text_input(
            "Your Name",
            value=state.player_name,
            max_chars=MAX_NAME_LENGTH,
            placeholder="Enter your name...",
        )
        opponent_name = None
        if is_local:
            opponent_name = st.text_input(
                "Second Player",
                value=state.opponent_name,
                max_chars=MAX_NAME_LENGTH,
                placeholder="Enter a name...",
            )
        submitted = st.form_submit_button("Save", use_container_width=True)

    if submitted:
        settings = get_settings()
        session.reset(
            player_name=normalize_name(player_name, settings.player_name),
            opponent_name=normalize_name(opponent_name, settings.player2_name) if is_local else None,
        )
        st.rerun()


def _render_sidebar() -> None:
    """Opponent picker, mode switch and rules."""
    from bone_ritual.ui.views.game import get_session

    session, _ = get_session()
    state = session.state

    with st.sidebar:
        _render_name_form(session)

        st.markdown("### Choose your opponent")
        for persona in PERSONAS:
            pips = "☠" * (persona.strategy_level + 1)
            label = f"{persona.name} · {persona.difficulty.value} {pips}"
            is_current = state.mode is GameMode.AI and state.persona == persona
            if st.button(label, key=f"persona_{persona.id}", disabled=is_current,
                         use_container_width=True):
                session.reset(persona=persona)
                st.rerun()

        if st.button("👥 Local match", key="mode_local",
                     disabled=state.mode is GameMode.LOCAL, use_container_width=True):
            session.reset(mode=GameMode.LOCAL)
            st.rerun()

        if st.button("↺ Restart", key="restart", use_container_width=True):
            session.reset()
            st.rerun()

        st.divider()
        st.markdown("### Rules")
        st.markdown(_RULES)


def main() -> None:
    """Application entrypoint. Must call ``st.set_page_config`` first."""
    st.set_page_config(
        page_title="Bone Ritual",
        page_icon="🎲",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    configure_logging()

    from bone_ritual.ui.views.game import render_game_page

    _render_sidebar()
    render_game_page()


if __name__ == "__main__":
    main()
