"""Chkobba game engine: rooms, turns, captures and scoring."""

__version__ = "1.0.0"
