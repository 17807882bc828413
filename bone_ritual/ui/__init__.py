"""Streamlit presentation layer for Bone Ritual."""
