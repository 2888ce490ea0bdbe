"""Vanishing tic-tac-toe: local play against a heuristic opponent and an
authoritative two-player session server."""

__version__ = "0.1.0"
