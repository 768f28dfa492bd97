"""Core rules and session state for two-player tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

Mark = str  # "X" or "O"
Cell = Optional[Mark]
Board = Tuple[Cell, ...]
Line = Tuple[int, int, int]

PLAYER_X: Mark = "X"
PLAYER_O: Mark = "O"
MARKS: Tuple[Mark, Mark] = (PLAYER_X, PLAYER_O)
BOARD_SIZE = 9

# Scan order matters: rows, then columns, then diagonals.
WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class GameStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    DRAW = "draw"


@dataclass(frozen=True)
class WinnerInfo:
    mark: Mark
    line: Line


# ---------- Board helpers ----------


def empty_board() -> Board:
    return (None,) * BOARD_SIZE


def other_mark(mark: Mark) -> Mark:
    return PLAYER_O if mark == PLAYER_X else PLAYER_X


def is_board_full(board: Board) -> bool:
    return all(cell is not None for cell in board)


def find_winner(board: Board) -> Optional[WinnerInfo]:
    """Return the first uniformly marked line in scan order, if any."""
    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v is not None and v == board[b] == board[c]:
            return WinnerInfo(mark=v, line=line)
    return None


def _fresh_score() -> Dict[Mark, int]:
    return {PLAYER_X: 0, PLAYER_O: 0}


# ---------- Session ----------


@dataclass
class GameSession:
    """State machine for one match between two local players.

    The board, status and winner info always agree: status and winner info
    are recomputed from the board after every change and never set directly.
    Score survives ``reset_round`` and is cleared only by ``reset_match``.
    """

    board: Board = field(default_factory=empty_board)
    current_player: Mark = PLAYER_X
    status: GameStatus = GameStatus.IN_PROGRESS
    winner_info: Optional[WinnerInfo] = None
    score: Dict[Mark, int] = field(default_factory=_fresh_score)
    round_starter: Mark = field(default=PLAYER_X, init=False)
    rounds_completed: int = field(default=0, init=False)

    # Set once the current round's terminal state has been accounted for.
    _round_settled: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.current_player not in MARKS:
            raise ValueError(f"Unknown mark {self.current_player!r}")
        self.board = tuple(self.board)
        if len(self.board) != BOARD_SIZE:
            raise ValueError(f"Board must have {BOARD_SIZE} cells")
        for cell in self.board:
            if cell is not None and cell not in MARKS:
                raise ValueError(f"Unknown mark {cell!r} on board")
        self.round_starter = self.current_player
        # A board handed in already finished was not won during this match.
        self._round_settled = (
            find_winner(self.board) is not None or is_board_full(self.board)
        )
        self.recompute()

    # ---- operations ----

    def attempt_move(self, index: int) -> bool:
        """Place the current player's mark at ``index``.

        Invalid moves (occupied cell, finished round, index off the board)
        are ignored and return ``False``; nothing is raised.
        """
        if self.status is not GameStatus.IN_PROGRESS:
            logger.debug("Ignoring move at %s: round is %s", index, self.status.value)
            return False
        if not 0 <= index < BOARD_SIZE:
            logger.debug("Ignoring move at %s: off the board", index)
            return False
        if self.board[index] is not None:
            logger.debug("Ignoring move at %s: cell holds %s", index, self.board[index])
            return False

        cells = list(self.board)
        cells[index] = self.current_player
        self.board = tuple(cells)
        self.current_player = other_mark(self.current_player)
        self.recompute()
        return True

    def recompute(self) -> None:
        """Derive status and winner info from the board and settle the score.

        Running this again on the same terminal board changes nothing.
        """
        result = find_winner(self.board)
        if result is not None:
            self.status = GameStatus.WON
            self.winner_info = result
            if not self._round_settled:
                self._round_settled = True
                self.score[result.mark] += 1
                self.rounds_completed += 1
                logger.info(
                    "%s wins on line %s (score X=%d O=%d)",
                    result.mark,
                    result.line,
                    self.score[PLAYER_X],
                    self.score[PLAYER_O],
                )
        elif is_board_full(self.board):
            self.status = GameStatus.DRAW
            self.winner_info = None
            if not self._round_settled:
                self._round_settled = True
                self.rounds_completed += 1
                logger.info("Round ends in a draw")
        else:
            self.status = GameStatus.IN_PROGRESS
            self.winner_info = None

    def reset_round(self) -> None:
        """Clear the board and hand the opening move to the other player.

        The starter alternates relative to whoever opened the previous round,
        whether or not any move was played in it.
        """
        self.round_starter = other_mark(self.round_starter)
        self.current_player = self.round_starter
        self.board = empty_board()
        self._round_settled = False
        self.recompute()

    def reset_match(self) -> None:
        self.score = _fresh_score()
        self.rounds_completed = 0
        self.reset_round()

    # ---- checks ----

    def check_invariants(self) -> None:
        """Raise ``AssertionError`` if derived state drifted from the board."""
        assert len(self.board) == BOARD_SIZE, "board must hold 9 cells"
        assert all(c is None or c in MARKS for c in self.board), "unknown mark"
        assert self.current_player in MARKS, "unknown turn indicator"
        expected = find_winner(self.board)
        assert self.winner_info == expected, "winner info out of sync with board"
        if expected is not None:
            assert self.status is GameStatus.WON, "winning board not marked won"
        elif is_board_full(self.board):
            assert self.status is GameStatus.DRAW, "full board not marked draw"
        else:
            assert self.status is GameStatus.IN_PROGRESS, "open board not in progress"
        assert all(v >= 0 for v in self.score.values()), "negative score"
