"""Two-player tic-tac-toe: game rules and the board view model.

The web application lives in :mod:`tictactoe.ui` and is imported on demand,
so the rules stay importable whatever the server settings are.
"""

from .game import GameSession, GameStatus, WinnerInfo
from .view import render_board

__all__ = [
    "GameSession",
    "GameStatus",
    "WinnerInfo",
    "render_board",
]
