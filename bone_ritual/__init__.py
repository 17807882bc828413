"""Bone Ritual - a Knucklebones dice placement game."""

__version__ = "0.1.0"
