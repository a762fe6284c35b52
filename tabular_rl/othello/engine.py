"""
Turn sequencing for a single Othello game.

``GameEngine`` owns the board, the side to move and the episode of accepted
moves. It validates and applies moves proposed by a human or an agent, but
never chooses moves itself.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from tabular_rl.othello.board import (
    NUM_CELLS,
    Cell,
    apply_move,
    count_discs,
    legal_moves,
    new_board,
    opponent,
    state_key,
)

logger = logging.getLogger(__name__)


class GameStatus(Enum):
    IN_PROGRESS = "in_progress"
    TERMINAL = "terminal"


class Winner(Enum):
    BLACK = Cell.BLACK
    WHITE = Cell.WHITE
    DRAW = 0


@dataclass(frozen=True)
class Transition:
    """One accepted move: the board before it, the cell played and the mover."""

    state_key: str
    action: int
    player: Cell


@dataclass(frozen=True)
class GameOutcome:
    winner: Winner
    black_count: int
    white_count: int


class GameEngine:
    """
    State machine over IN_PROGRESS and TERMINAL for one game of Othello.

    Illegal or out-of-turn moves are ignored: ``attempt_move`` returns False
    and nothing changes. Passes are resolved automatically after every
    accepted move, and the game ends once neither side can move.

    Example:
        >>> engine = GameEngine()
        >>> engine.attempt_move(19, Cell.BLACK)
        True
        >>> engine.current_player
        <Cell.WHITE: 2>
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Start a new game from the opening position with Black to move."""
        self._board = new_board()
        self.current_player = Cell.BLACK
        self.status = GameStatus.IN_PROGRESS
        self.pass_count = 0
        self._episode: List[Transition] = []
        self._outcome: Optional[GameOutcome] = None
        self._outcome_consumed = False

    def set_position(self, board: np.ndarray, current_player: int) -> None:
        """
        Continue from an arbitrary position, e.g. for analysis or replay.

        The episode is cleared and pass/end resolution runs immediately.

        Raises:
            ValueError: If the board does not have 64 cells with values 0-2
                or current_player is not Cell.BLACK or Cell.WHITE
        """
        board = np.asarray(board, dtype=np.uint8).reshape(-1)
        if board.shape != (NUM_CELLS,) or np.any(board > Cell.WHITE):
            raise ValueError("board must have 64 cells with values 0, 1 or 2")
        if current_player not in (Cell.BLACK, Cell.WHITE):
            raise ValueError(
                f"Invalid current_player: {current_player}. "
                "Must be Cell.BLACK or Cell.WHITE."
            )

        self.reset()
        self._board = board.copy()
        self.current_player = Cell(current_player)
        self.check_pass_or_end()

    @property
    def board(self) -> np.ndarray:
        return self._board.copy()

    @property
    def episode(self) -> Tuple[Transition, ...]:
        return tuple(self._episode)

    @property
    def outcome(self) -> Optional[GameOutcome]:
        return self._outcome

    @property
    def is_terminal(self) -> bool:
        return self.status is GameStatus.TERMINAL

    def legal_moves(self) -> List[int]:
        """Legal moves for the side to move (empty once the game is over)."""
        if self.is_terminal:
            return []
        return legal_moves(self._board, self.current_player)

    def disc_counts(self) -> Tuple[int, int]:
        return count_discs(self._board)

    def attempt_move(self, index: int, player: int) -> bool:
        """
        Apply a move if it is legal and it is ``player``'s turn.

        Args:
            index: Target cell (0-63)
            player: Colour proposing the move

        Returns:
            True if the move was applied, False if it was ignored.
        """
        if self.is_terminal:
            logger.debug("Ignoring move %s: game is over", index)
            return False
        if player != self.current_player:
            logger.debug("Ignoring move %s from player %s: out of turn", index, player)
            return False
        if not 0 <= index < NUM_CELLS:
            logger.debug("Ignoring move %s: off the board", index)
            return False

        next_board = apply_move(self._board, index, player)
        if next_board is None:
            logger.debug("Ignoring illegal move %s for %s", index, Cell(player).name)
            return False

        self._episode.append(
            Transition(state_key(self._board), int(index), Cell(player))
        )
        self._board = next_board
        self.current_player = opponent(player)
        self.check_pass_or_end()
        return True

    def check_pass_or_end(self) -> None:
        """
        Resolve a forced pass or the end of the game for the side to move.

        A pass toggles the side to move without recording a transition.
        When neither side has a move the game becomes terminal.
        """
        if self.is_terminal:
            return
        if legal_moves(self._board, self.current_player):
            return

        other = opponent(self.current_player)
        if legal_moves(self._board, other):
            logger.debug("%s has no legal move and passes", self.current_player.name)
            self.pass_count += 1
            self.current_player = other
            return

        self._finish()

    def _finish(self) -> None:
        black_count, white_count = count_discs(self._board)
        if black_count > white_count:
            winner = Winner.BLACK
        elif white_count > black_count:
            winner = Winner.WHITE
        else:
            winner = Winner.DRAW

        self.status = GameStatus.TERMINAL
        self._outcome = GameOutcome(winner, black_count, white_count)
        logger.info(
            "Game over after %d moves: %s (Black %d, White %d)",
            len(self._episode),
            winner.name,
            black_count,
            white_count,
        )

    def consume_outcome(self) -> Optional[GameOutcome]:
        """
        Hand out the terminal outcome exactly once per game.

        Returns:
            The outcome on the first call after the game ends, None otherwise.
        """
        if self._outcome is None or self._outcome_consumed:
            return None
        self._outcome_consumed = True
        return self._outcome
