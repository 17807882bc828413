"""Game page: the table with both boards, the die and the controls."""

from __future__ import annotations

import time

import streamlit as st

from bone_ritual.config import get_settings
from bone_ritual.engine.base import GameMode
from bone_ritual.session import DeferredScheduler, MatchSession
from bone_ritual.ui.components.board import render_board

# Longest single sleep before rerunning while deferred work is pending
_MAX_WAIT = 0.5


def get_session() -> tuple[MatchSession, DeferredScheduler]:
    """Session and scheduler for this browser tab, created on first use."""
    ss = st.session_state
    if "match_session" not in ss:
        scheduler = DeferredScheduler()
        ss["match_scheduler"] = scheduler
        ss["match_session"] = MatchSession(settings=get_settings(), scheduler=scheduler)
    return ss["match_session"], ss["match_scheduler"]


def render_game_page() -> None:
    """Render the main game page."""
    session, scheduler = get_session()
    scheduler.run_due()

    snapshot = session.snapshot()
    st.subheader(snapshot.message)

    board_col, controls_col = st.columns([3, 1])

    with controls_col:
        if snapshot.persona_difficulty:
            st.caption(f"Opponent: **{snapshot.opponent.name}** ({snapshot.persona_difficulty})")
        else:
            st.caption("Local match")

        st.markdown("### 📊 Scores")
        st.markdown(f"**{snapshot.player.name}:** {snapshot.player.total}")
        st.markdown(f"**{snapshot.opponent.name}:** {snapshot.opponent.total}")
        st.divider()

        if snapshot.is_rolling:
            st.markdown("### 🎲 Rolling...")
        elif snapshot.rolled_value is not None:
            st.markdown("### 🎲 Rolled Die")
            st.markdown(
                f'<div class="dice-tray"><div class="die">{snapshot.rolled_value}</div></div>',
                unsafe_allow_html=True,
            )

        column_clicked = None
        if snapshot.result is not None:
            if st.button("🔁 Play Again", key="play_again", type="primary", use_container_width=True):
                session.reset()
                st.rerun()
        elif session.can_roll():
            if st.button("🎲 Roll Die", key="roll_kb", type="primary", use_container_width=True):
                session.roll()
                st.rerun()
        elif session.is_human_turn() and snapshot.rolled_value is not None:
            st.markdown("**Place in column:**")
            available = session.available_columns()
            for col_idx in range(3):
                is_full = col_idx not in available
                if st.button(
                    "FULL" if is_full else f"Column {col_idx + 1}",
                    key=f"place_col_{col_idx}",
                    disabled=is_full,
                    use_container_width=True,
                    type="secondary" if is_full else "primary",
                ):
                    column_clicked = col_idx
        elif session.state.mode is GameMode.AI:
            st.info(f"{snapshot.opponent.name} is taking their turn...")

        if column_clicked is not None:
            session.place(column_clicked)
            st.rerun()

    with board_col:
        render_board(snapshot.opponent, flipped=True, active=snapshot.active_side == "opponent")
        st.markdown(
            '<div style="margin: 8px 0; border-top: 1px solid; opacity: 0.3;"></div>',
            unsafe_allow_html=True,
        )
        render_board(snapshot.player, active=snapshot.active_side == "player")

    wait = scheduler.next_due_in()
    if wait is not None:
        time.sleep(min(wait, _MAX_WAIT))
        st.rerun()
