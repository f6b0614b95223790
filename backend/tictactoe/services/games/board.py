from typing import List, Optional

from tictactoe.models import EMPTY, ROLE_O, ROLE_X
from . import InvalidBoardError

ONGOING = 'ongoing'
WIN = 'win'
DRAW = 'draw'

# Scan order matters only for which line gets highlighted
WINNING_LINES = (
    # Rows
    ((0, 0), (0, 1), (0, 2)),
    ((1, 0), (1, 1), (1, 2)),
    ((2, 0), (2, 1), (2, 2)),
    # Columns
    ((0, 0), (1, 0), (2, 0)),
    ((0, 1), (1, 1), (2, 1)),
    ((0, 2), (1, 2), (2, 2)),
    # Diagonals
    ((0, 0), (1, 1), (2, 2)),
    ((0, 2), (1, 1), (2, 0)),
)


class BoardResult:
    def __init__(self, status: str, role: Optional[str] = None, line: Optional[List[List[int]]] = None):
        self.status = status
        self.role = role
        self.line = line

    @property
    def is_terminal(self) -> bool:
        return self.status != ONGOING

    def __eq__(self, other):
        if not isinstance(other, BoardResult):
            return NotImplemented
        return (self.status, self.role, self.line) == (other.status, other.role, other.line)

    def __repr__(self):
        return f"BoardResult(status={self.status!r}, role={self.role!r}, line={self.line!r})"


def evaluate(board) -> BoardResult:
    """Report a win, a draw or an ongoing game for a 3x3 board.

    The first complete line in row, column, diagonal order wins. A draw is
    only declared when no line is complete and every cell is filled.
    """
    if len(board) != 3 or any(len(row) != 3 for row in board):
        raise InvalidBoardError('board must be 3x3')

    for line in WINNING_LINES:
        (ar, ac), (br, bc), (cr, cc) = line
        cell = board[ar][ac]
        if cell != EMPTY and cell == board[br][bc] == board[cr][cc]:
            return BoardResult(WIN, role=cell, line=[list(pos) for pos in line])

    if all(cell != EMPTY for row in board for cell in row):
        return BoardResult(DRAW)
    return BoardResult(ONGOING)


def current_turn(move_count: int) -> str:
    return ROLE_X if move_count % 2 == 0 else ROLE_O


def in_bounds(row, col) -> bool:
    """1-based coordinates as sent by clients."""
    for value in (row, col):
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        if value < 1 or value > 3:
            return False
    return True
