"""
Knucklebones board component.

Displays one side's 3×3 board with its column scores.
"""

import streamlit as st

from bone_ritual.session.models import BoardView


def render_board(board: BoardView, flipped: bool = False, active: bool = False) -> None:
    """
    Render a single board with column scores.

    Args:
        board: Board view from a match snapshot
        flipped: If True, show as the far side of the table (scores on top,
                 dice growing downward)
        active: Highlight the board of the side to act
    """
    marker = "🎲 " if active else ""
    st.markdown(f"#### {marker}{board.name} (Score: {board.total})")

    score_row = '<tr class="column-scores">' + "".join(
        f"<td><strong>{score} pts</strong></td>" for score in board.column_scores
    ) + "</tr>"

    html = '<div class="knucklebones-grid"><table>'
    if flipped:
        html += score_row

    rows = range(3) if flipped else range(2, -1, -1)
    for row in rows:
        html += "<tr>"
        for column in board.columns:
            if row < len(column):
                html += f'<td><div class="die grid-die">{column[row]}</div></td>'
            else:
                html += '<td><div class="die grid-die empty">-</div></td>'
        html += "</tr>"

    if not flipped:
        html += score_row
    html += "</table></div>"

    st.markdown(html, unsafe_allow_html=True)
