"""
Play session tying the engine, the learning agent, stats and storage together.

``GameSession`` is the boundary a front end talks to: it exposes the board
and legal moves for rendering, accepts proposed moves from the human, lets
the agent answer, and settles each finished game exactly once (stats update,
learning, persistence).
"""

import logging
from typing import List, Optional

import numpy as np

from tabular_rl.othello.agent import QLearningAgent
from tabular_rl.othello.board import Cell, opponent
from tabular_rl.othello.engine import GameEngine, GameOutcome
from tabular_rl.othello.stats import SessionStats
from tabular_rl.othello.storage import JsonStore

logger = logging.getLogger(__name__)


class GameSession:
    """
    One human (or self-play trainer) against the Q-learning agent.

    The human plays ``human_color`` and the agent the other colour. In
    training mode the finished game is also backed up into the Q-table and
    counted as a training game. Self-play games (``run_self_play_game``) hand
    both colours to the agent and always train.

    Args:
        agent: The learning agent; its colour is set opposite the human's
        stats: Session counters. Default: fresh stats
        store: Persistence backend; None disables saving
        human_color: Cell.BLACK (default) or Cell.WHITE
        training_mode: Whether finished games train the agent

    Raises:
        ValueError: If human_color is not Cell.BLACK or Cell.WHITE
    """

    def __init__(
        self,
        agent: QLearningAgent,
        stats: Optional[SessionStats] = None,
        store: Optional[JsonStore] = None,
        human_color: int = Cell.BLACK,
        training_mode: bool = False,
    ):
        self.agent = agent
        self.stats = stats if stats is not None else SessionStats()
        self.store = store
        self.engine = GameEngine()
        self.training_mode = training_mode
        self.self_play = False
        self._set_human_color(human_color)
        self.last_outcome: Optional[GameOutcome] = None

    def _set_human_color(self, human_color: int) -> None:
        if human_color not in (Cell.BLACK, Cell.WHITE):
            raise ValueError(
                f"Invalid human_color: {human_color}. Must be Cell.BLACK or Cell.WHITE."
            )
        self.human_color = Cell(human_color)
        self.agent.color = opponent(self.human_color)

    def load(self) -> None:
        """Replace the agent's table and the stats with the persisted ones."""
        if self.store is None:
            return
        self.agent.q_table = self.store.load_q_table()
        self.stats = self.store.load_stats()

    @property
    def current_player(self) -> Cell:
        return self.engine.current_player

    def get_board(self) -> np.ndarray:
        return self.engine.board

    def get_legal_moves(self) -> List[int]:
        return self.engine.legal_moves()

    def get_outcome(self) -> Optional[GameOutcome]:
        return self.engine.outcome

    def is_agent_turn(self) -> bool:
        if self.engine.is_terminal:
            return False
        return self.self_play or self.engine.current_player != self.human_color

    def new_game(
        self,
        training_mode: Optional[bool] = None,
        human_color: Optional[int] = None,
        self_play: bool = False,
    ) -> None:
        """Reset the board and let the agent move if it has the first turn."""
        if training_mode is not None:
            self.training_mode = training_mode
        if human_color is not None:
            self._set_human_color(human_color)

        self.self_play = self_play
        self.engine.reset()
        self.last_outcome = None
        logger.debug(
            "New game (training=%s, self_play=%s, human=%s)",
            self.training_mode,
            self.self_play,
            self.human_color.name,
        )
        self.advance()

    def propose_move(self, index: int) -> bool:
        """
        Apply a move chosen by the human, then let the agent reply.

        Moves are ignored outside the human's turn, during self-play, and
        when illegal.

        Returns:
            True if the move was applied.
        """
        if self.self_play or self.engine.current_player != self.human_color:
            logger.debug("Ignoring proposed move %s: not the human's turn", index)
            return False
        if not self.engine.attempt_move(index, self.human_color):
            return False

        self.advance()
        return True

    def advance(self) -> None:
        """Play agent moves while the agent is to move, then settle a finished game."""
        while self.is_agent_turn():
            player = self.engine.current_player
            moves = self.engine.legal_moves()
            action = self.agent.select_action(self.engine.board, player, moves)
            self.engine.attempt_move(action, player)

        if self.engine.is_terminal:
            self._settle()

    def run_self_play_game(self) -> GameOutcome:
        """Play one full training game with the agent on both sides."""
        self.new_game(training_mode=True, self_play=True)
        return self.engine.outcome

    def _settle(self) -> None:
        outcome = self.engine.consume_outcome()
        if outcome is None:
            return

        self.last_outcome = outcome
        self.stats.record_outcome(outcome.winner, self.human_color, self.training_mode)
        if self.training_mode:
            self._learn(outcome)

        if self.store is not None:
            self.store.save_stats(self.stats)
            self.store.save_q_table(self.agent.q_table)

    def _learn(self, outcome: GameOutcome) -> None:
        episode = self.engine.episode
        if self.self_play and not self.agent.shared_table:
            for color in (Cell.BLACK, Cell.WHITE):
                self.agent.backup(episode, outcome.winner, color)
        else:
            self.agent.backup(episode, outcome.winner)

    def reset_agent(self) -> None:
        """Clear the Q-table and the training counter. Callers confirm first."""
        self.agent.reset()
        self.stats.reset_training()
        if self.store is not None:
            self.store.clear_q_table()
            self.store.save_q_table(self.agent.q_table)
            self.store.save_stats(self.stats)
