"""
Othello board representation and move rules.

The board is a flat ``numpy`` array of 64 cells in row-major order
(``row = index // 8``, ``col = index % 8``) holding one of the ``Cell``
values. Every function in this module is pure: boards passed in are never
mutated, and moves either produce a new board or are rejected as a whole.

Example:
    >>> from tabular_rl.othello.board import Cell, new_board, legal_moves
    >>> board = new_board()
    >>> legal_moves(board, Cell.BLACK)
    [19, 26, 37, 44]
"""

from enum import IntEnum
from typing import List, Optional, Tuple

import numpy as np

BOARD_SIZE = 8
NUM_CELLS = BOARD_SIZE * BOARD_SIZE

# (row, col) deltas; linear-index deltas would wrap across row edges
DIRECTIONS = (
    (0, -1),
    (-1, 0),
    (-1, 1),
    (-1, -1),
    (0, 1),
    (1, 0),
    (1, -1),
    (1, 1),
)


class Cell(IntEnum):
    """Contents of a single board cell."""

    EMPTY = 0
    BLACK = 1
    WHITE = 2


def opponent(player: int) -> Cell:
    """Return the other colour."""
    return Cell(3 - int(player))


def index_to_coord(index: int) -> Tuple[int, int]:
    return index // BOARD_SIZE, index % BOARD_SIZE


def coord_to_index(row: int, col: int) -> int:
    return row * BOARD_SIZE + col


def new_board() -> np.ndarray:
    """
    Create a board in the standard opening position.

    Returns:
        Array of shape (64,) and dtype uint8 with White on (3,3) and (4,4)
        and Black on (3,4) and (4,3).
    """
    board = np.zeros(NUM_CELLS, dtype=np.uint8)
    board[coord_to_index(3, 3)] = Cell.WHITE
    board[coord_to_index(3, 4)] = Cell.BLACK
    board[coord_to_index(4, 3)] = Cell.BLACK
    board[coord_to_index(4, 4)] = Cell.WHITE
    return board


def flips_for(board: np.ndarray, index: int, player: int) -> List[int]:
    """
    Compute the discs flipped by ``player`` placing a disc at ``index``.

    For each of the eight directions, opponent discs are collected while
    walking outward from ``index``. The run counts only when it is closed
    by one of the player's own discs; hitting the board edge or an empty
    cell discards it.

    Args:
        board: Board array of 64 cells
        index: Target cell (0-63)
        player: Cell.BLACK or Cell.WHITE

    Returns:
        Indices of flipped discs in walk order. Empty when the move is
        illegal (occupied target or no valid run).
    """
    if board[index] != Cell.EMPTY:
        return []

    opp = 3 - int(player)
    row, col = index_to_coord(index)
    flips: List[int] = []

    for dr, dc in DIRECTIONS:
        run = []
        r, c = row + dr, col + dc
        while 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
            cell = board[r * BOARD_SIZE + c]
            if cell == opp:
                run.append(r * BOARD_SIZE + c)
                r += dr
                c += dc
            else:
                if cell == player and run:
                    flips.extend(run)
                break

    return flips


def legal_moves(board: np.ndarray, player: int) -> List[int]:
    """
    List the legal moves for ``player`` in ascending index order.

    An empty list means the player has to pass.
    """
    return [
        index
        for index in range(NUM_CELLS)
        if board[index] == Cell.EMPTY and flips_for(board, index, player)
    ]


def apply_move(board: np.ndarray, index: int, player: int) -> Optional[np.ndarray]:
    """
    Place a disc and flip the captured runs.

    Returns:
        A new board with the move applied, or None if the move is illegal.
        The input board is left untouched either way.
    """
    flips = flips_for(board, index, player)
    if not flips:
        return None

    result = board.copy()
    result[flips] = player
    result[index] = player
    return result


def count_discs(board: np.ndarray) -> Tuple[int, int]:
    """Return (black_count, white_count)."""
    return (
        int(np.count_nonzero(board == Cell.BLACK)),
        int(np.count_nonzero(board == Cell.WHITE)),
    )


def state_key(board: np.ndarray) -> str:
    """Encode a board as a 64-character string of cell digits."""
    return "".join(str(int(cell)) for cell in board)


def board_from_key(key: str) -> np.ndarray:
    """
    Decode a state key produced by ``state_key``.

    Raises:
        ValueError: If the key is not 64 characters drawn from "0", "1", "2"
    """
    if len(key) != NUM_CELLS or any(ch not in "012" for ch in key):
        raise ValueError(f"Invalid state key: {key!r}")
    return np.fromiter((int(ch) for ch in key), dtype=np.uint8, count=NUM_CELLS)


def render_board(board: np.ndarray, player: Optional[int] = None) -> str:
    """
    Render a board as text.

    Legal moves for ``player`` are marked with '*' when a player is given.
    """
    symbols = {Cell.EMPTY: ".", Cell.BLACK: "●", Cell.WHITE: "○"}
    highlights = set(legal_moves(board, player)) if player is not None else set()
    black_count, white_count = count_discs(board)

    lines = ["  0 1 2 3 4 5 6 7"]
    for row in range(BOARD_SIZE):
        line = f"{row} "
        for col in range(BOARD_SIZE):
            index = coord_to_index(row, col)
            if index in highlights:
                line += "* "
            else:
                line += symbols[Cell(int(board[index]))] + " "
        lines.append(line)

    lines.append("")
    lines.append(f"● Black: {black_count}  ○ White: {white_count}")
    if player is not None:
        player_name = "Black" if player == Cell.BLACK else "White"
        lines.append(f"Current player: {player_name}")

    return "\n".join(lines)
