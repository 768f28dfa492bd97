"""Presentation model for the board page.

``render_board`` turns a :class:`GameSession` into the plain data the browser
page draws. It reads the session and never changes it.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .game import BOARD_SIZE, GameSession, GameStatus, PLAYER_O, PLAYER_X

CONTROLS: List[Dict[str, str]] = [
    {"action": "reset-round", "label": "Reset Game"},
    {"action": "reset-match", "label": "Reset Score"},
]


def status_text(session: GameSession) -> str:
    if session.status is GameStatus.WON and session.winner_info is not None:
        return f"{session.winner_info.mark} wins!"
    if session.status is GameStatus.DRAW:
        return "Draw!"
    return f"Turn: {session.current_player}"


def is_highlighted(session: GameSession, index: int) -> bool:
    if session.winner_info is None:
        return False
    return index in session.winner_info.line


def render_board(session: GameSession) -> Dict[str, object]:
    in_progress = session.status is GameStatus.IN_PROGRESS
    cells: List[Dict[str, object]] = []
    for index in range(BOARD_SIZE):
        mark = session.board[index]
        cells.append(
            {
                "index": index,
                "row": index // 3,
                "col": index % 3,
                "mark": mark,
                "highlight": is_highlighted(session, index),
                "playable": in_progress and mark is None,
            }
        )

    winner: Optional[str] = None
    winning_line: Optional[List[int]] = None
    if session.winner_info is not None:
        winner = session.winner_info.mark
        winning_line = list(session.winner_info.line)

    return {
        "cells": cells,
        "status": session.status.value,
        "statusText": status_text(session),
        "currentPlayer": session.current_player,
        "winner": winner,
        "winningLine": winning_line,
        "score": {
            PLAYER_X: session.score[PLAYER_X],
            PLAYER_O: session.score[PLAYER_O],
        },
        "roundsCompleted": session.rounds_completed,
        "roundStarter": session.round_starter,
        "controls": [dict(control) for control in CONTROLS],
    }
