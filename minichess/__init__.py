"""MiniChess: a 6x5 chess variant rules engine and search AI."""

__version__ = "1.0.0"
