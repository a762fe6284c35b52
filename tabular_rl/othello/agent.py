"""
Tabular Q-learning agent for Othello.

The agent keeps a table of state-action values keyed by the board's state
key and the cell played. It proposes moves with an epsilon-greedy policy and
learns after each game by backing the terminal reward up through the recorded
episode, latest move first.

Two table layouts are supported:

- shared (default): keys are ``"<state>_<action>"`` and every recorded move is
  backed up, whichever colour made it.
- per-player: keys are ``"<state>_<action>_<player>"`` and only the moves of
  the side being rewarded are backed up, so values learned from the
  opponent's moves cannot leak into the agent's estimates. Self-play backs
  up each colour into its own keys.
"""

import logging
from typing import Dict, Optional, Sequence

import numpy as np

from tabular_rl.othello.board import Cell, board_from_key, legal_moves, state_key
from tabular_rl.othello.engine import Transition, Winner

logger = logging.getLogger(__name__)

QTable = Dict[str, float]


def q_key(state: str, action: int, player: Optional[int] = None) -> str:
    """Build the composite table key for a state-action pair."""
    if player is None:
        return f"{state}_{action}"
    return f"{state}_{action}_{int(player)}"


class QLearningAgent:
    """
    Epsilon-greedy Q-learning agent over a persistent value table.

    Args:
        epsilon: Exploration rate in [0, 1]. Default: 0.2
        alpha: Learning rate in [0, 1]. Default: 0.1
        gamma: Discount factor in [0, 1]. Default: 0.9
        color: Colour the agent plays; rewards are computed from its side.
            Default: Cell.WHITE
        shared_table: Whether both colours share one table. Default: True
        q_table: Initial table (e.g. loaded from storage). Default: empty
        rng: numpy random Generator used for exploration. Default: fresh
            unseeded generator

    Raises:
        ValueError: If a hyperparameter is outside [0, 1] or color is not
            Cell.BLACK or Cell.WHITE

    Example:
        >>> from tabular_rl.othello.board import new_board, legal_moves
        >>> agent = QLearningAgent(epsilon=0.0)
        >>> board = new_board()
        >>> agent.select_action(board, Cell.BLACK, legal_moves(board, Cell.BLACK))
        19
    """

    def __init__(
        self,
        epsilon: float = 0.2,
        alpha: float = 0.1,
        gamma: float = 0.9,
        color: int = Cell.WHITE,
        shared_table: bool = True,
        q_table: Optional[QTable] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        for name, value in (("epsilon", epsilon), ("alpha", alpha), ("gamma", gamma)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Invalid {name}: {value}. Must be in [0, 1].")

        if color not in (Cell.BLACK, Cell.WHITE):
            raise ValueError(f"Invalid color: {color}. Must be Cell.BLACK or Cell.WHITE.")

        self.epsilon = float(epsilon)
        self.alpha = float(alpha)
        self.gamma = float(gamma)
        self.color = Cell(color)
        self.shared_table = shared_table
        self.q_table: QTable = q_table if q_table is not None else {}
        self.rng = rng if rng is not None else np.random.default_rng()

    def _key(self, state: str, action: int, player: int) -> str:
        return q_key(state, action, None if self.shared_table else player)

    def value(self, state: str, action: int, player: Optional[int] = None) -> float:
        """Look up a value; keys never written read as 0.0."""
        if player is None:
            player = self.color
        return self.q_table.get(self._key(state, action, player), 0.0)

    def select_action(
        self, board: np.ndarray, player: int, legal_move_set: Sequence[int]
    ) -> int:
        """
        Pick a move with the epsilon-greedy policy.

        With probability epsilon a legal move is drawn uniformly at random;
        otherwise the highest-valued move is returned, ties going to the
        first move in ``legal_move_set``.

        Raises:
            ValueError: If ``legal_move_set`` is empty (the side must pass)
        """
        moves = list(legal_move_set)
        if not moves:
            raise ValueError("No legal moves to select from; the player must pass.")

        if self.rng.random() < self.epsilon:
            return int(moves[int(self.rng.integers(len(moves)))])

        state = state_key(board)
        best_action = moves[0]
        best_value = -np.inf
        for move in moves:
            value = self.value(state, move, player)
            if value > best_value:
                best_value = value
                best_action = move
        return int(best_action)

    def reward_for(self, winner: Winner, color: Optional[int] = None) -> float:
        """Terminal reward from one side (default: the agent's): +1 win, -1 loss, 0 draw."""
        if color is None:
            color = self.color
        if winner is Winner.DRAW:
            return 0.0
        return 1.0 if winner.value == color else -1.0

    def _max_next_value(self, transition: Transition) -> float:
        board = board_from_key(transition.state_key)
        moves = legal_moves(board, transition.player)
        if not moves:
            return 0.0
        return max(
            self.q_table.get(self._key(transition.state_key, move, transition.player), 0.0)
            for move in moves
        )

    def backup(
        self, episode: Sequence[Transition], winner: Winner, color: Optional[int] = None
    ) -> int:
        """
        Back the terminal reward up through a finished episode.

        Transitions are visited from last to first. The last one is pulled
        toward the terminal reward; every earlier one toward
        ``gamma * max Q(next_state, m)`` over the legal moves of the player
        who moved at the next recorded step.

        Args:
            episode: Transitions of one completed game in play order
            winner: Final result of that game
            color: Side whose reward is backed up and, with a per-player
                table, whose moves are learned. Default: the agent's colour.
                Self-play passes each colour in turn.

        Returns:
            Number of transitions updated.
        """
        if color is None:
            color = self.color

        if self.shared_table:
            steps = list(episode)
        else:
            steps = [t for t in episode if t.player == color]

        reward = self.reward_for(winner, color)
        for i in range(len(steps) - 1, -1, -1):
            transition = steps[i]
            if i == len(steps) - 1:
                target = reward
            else:
                target = self.gamma * self._max_next_value(steps[i + 1])

            key = self._key(transition.state_key, transition.action, transition.player)
            old = self.q_table.get(key, 0.0)
            updated = old + self.alpha * (target - old)
            if updated != old or key in self.q_table:
                self.q_table[key] = updated

        logger.debug(
            "Backed up %d transitions (reward %.1f, table size %d)",
            len(steps),
            reward,
            len(self.q_table),
        )
        return len(steps)

    def reset(self) -> None:
        """Forget everything learned so far."""
        self.q_table.clear()
        logger.info("Q-table cleared")
