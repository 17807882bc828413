"""UI components for Bone Ritual."""

from bone_ritual.ui.components.board import render_board

__all__ = ["render_board"]
