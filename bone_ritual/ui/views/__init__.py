"""Page views for Bone Ritual."""

from bone_ritual.ui.views.game import render_game_page

__all__ = ["render_game_page"]
