"""
Othello (Reversi) environment for reinforcement learning.

This module wraps ``GameEngine`` in a Gymnasium-compatible environment so the
game can be driven by generic RL tooling. The agent plays one colour; the
environment plays the other with a configurable opponent policy, including a
trained ``QLearningAgent``.

Example:
    >>> import gymnasium as gym
    >>> import numpy as np
    >>> import tabular_rl.othello
    >>>
    >>> env = gym.make("Othello-v0")
    >>> observation, info = env.reset(seed=0)
    >>>
    >>> done = False
    >>> while not done:
    ...     valid_actions = np.where(info["action_mask"])[0]
    ...     action = np.random.choice(valid_actions)
    ...     observation, reward, terminated, truncated, info = env.step(action)
    ...     done = terminated or truncated
"""

from typing import Any, Callable, Dict, Optional, Tuple, Union

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from tabular_rl.othello.agent import QLearningAgent
from tabular_rl.othello.board import (
    NUM_CELLS,
    Cell,
    flips_for,
    opponent,
    render_board,
)
from tabular_rl.othello.engine import GameEngine, Winner

OpponentPolicy = Union[str, Callable[[np.ndarray], int], QLearningAgent]


class OthelloEnv(gym.Env):
    """
    Othello (Reversi) environment for reinforcement learning.

    Observation Space:
        Box(0, 1, shape=(3, 8, 8), dtype=np.float32)
        - Channel 0: Agent's discs
        - Channel 1: Opponent's discs
        - Channel 2: Legal moves for the side to move

    Action Space:
        Discrete(64) - board positions, ``action = row * 8 + col``

    Rewards:
        Sparse: 0 during the game, +1 for a win, -1 for a loss, 0 for a draw.
        Invalid moves earn ``invalid_move_penalty`` in "penalty" mode.

    Args:
        opponent: Opponent policy. Options:
            - "random" (default): uniformly random legal move
            - "greedy": legal move flipping the most discs
            - QLearningAgent: moves chosen by the agent's epsilon-greedy policy
            - callable: policy(observation) -> action
        invalid_move_penalty: Reward for an invalid move in "penalty" mode.
            Default: -1.0
        invalid_move_mode: "penalty" (default) keeps the state and returns the
            penalty; "error" raises ValueError
        start_player: "black" (default) or "white"; the agent's colour
        render_mode: None (default), "human" or "ansi"

    Raises:
        ValueError: If any option is not one of the accepted values
    """

    metadata = {"render_modes": ["human", "ansi"]}

    def __init__(
        self,
        opponent: OpponentPolicy = "random",
        invalid_move_penalty: float = -1.0,
        invalid_move_mode: str = "penalty",
        start_player: str = "black",
        render_mode: Optional[str] = None,
    ):
        super().__init__()

        if isinstance(opponent, str) and opponent not in ["random", "greedy"]:
            raise ValueError(
                f"Invalid opponent: {opponent}. "
                "Must be 'random', 'greedy', a QLearningAgent or a callable."
            )
        if not isinstance(opponent, (str, QLearningAgent)) and not callable(opponent):
            raise ValueError(f"Unsupported opponent spec: {opponent!r}")

        if invalid_move_mode not in ["penalty", "error"]:
            raise ValueError(
                f"Invalid invalid_move_mode: {invalid_move_mode}. "
                "Must be 'penalty' or 'error'."
            )

        if start_player not in ["black", "white"]:
            raise ValueError(
                f"Invalid start_player: {start_player}. Must be 'black' or 'white'."
            )

        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise ValueError(
                f"Invalid render_mode: {render_mode}. "
                f"Must be one of {self.metadata['render_modes']}."
            )

        self.game = GameEngine()
        self.opponent = opponent
        self.invalid_move_penalty = invalid_move_penalty
        self.invalid_move_mode = invalid_move_mode
        self.start_player = start_player
        self.render_mode = render_mode

        self.observation_space = spaces.Box(
            low=0, high=1, shape=(3, 8, 8), dtype=np.float32
        )
        self.action_space = spaces.Discrete(NUM_CELLS)

        self.agent_player = Cell.BLACK

    def reset(
        self, seed: Optional[int] = None, options: Optional[Dict] = None
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        """
        Reset to the opening position.

        If the agent plays White, the opponent's first move is made before
        the observation is returned.
        """
        super().reset(seed=seed)

        self.game.reset()
        self.agent_player = Cell.BLACK if self.start_player == "black" else Cell.WHITE
        self._play_opponent()

        return self._get_observation(), self._get_info()

    def _get_observation(self) -> np.ndarray:
        board = self.game.board.reshape(8, 8)
        valid_moves = self._get_action_mask().reshape(8, 8)

        agent_channel = (board == self.agent_player).astype(np.float32)
        opponent_channel = (board == opponent(self.agent_player)).astype(np.float32)
        valid_channel = valid_moves.astype(np.float32)

        return np.stack([agent_channel, opponent_channel, valid_channel], axis=0)

    def _get_action_mask(self) -> np.ndarray:
        mask = np.zeros(NUM_CELLS, dtype=bool)
        mask[self.game.legal_moves()] = True
        return mask

    def _get_info(self) -> Dict[str, Any]:
        black_count, white_count = self.game.disc_counts()
        info = {
            "action_mask": self._get_action_mask(),
            "current_player": int(self.game.current_player),
            "black_count": black_count,
            "white_count": white_count,
            "agent_player": int(self.agent_player),
            "pass_count": self.game.pass_count,
        }
        if self.game.is_terminal:
            info["winner"] = self.game.outcome.winner.name.lower()
        return info

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, Dict[str, Any]]:
        """
        Play the agent's move, then the opponent's replies.

        The opponent keeps moving while the agent has to pass, so the
        returned observation is always the agent's turn or a finished game.
        Stepping a finished game changes nothing and returns reward 0 with
        ``terminated=True``.

        Raises:
            ValueError: If the move is invalid and invalid_move_mode="error"
        """
        if self.game.is_terminal:
            return self._get_observation(), 0.0, True, False, self._get_info()

        action = int(action)
        if not self.game.attempt_move(action, self.agent_player):
            if self.invalid_move_mode == "error":
                raise ValueError(f"Invalid move: {action}")
            return (
                self._get_observation(),
                self.invalid_move_penalty,
                False,
                False,
                self._get_info(),
            )

        self._play_opponent()

        return (
            self._get_observation(),
            self._calculate_reward(),
            self.game.is_terminal,
            False,
            self._get_info(),
        )

    def _calculate_reward(self) -> float:
        if not self.game.is_terminal:
            return 0.0
        winner = self.game.outcome.winner
        if winner is Winner.DRAW:
            return 0.0
        return 1.0 if winner.value == self.agent_player else -1.0

    def _play_opponent(self) -> None:
        opp = opponent(self.agent_player)
        while not self.game.is_terminal and self.game.current_player == opp:
            action = self._select_opponent_action()
            self.game.attempt_move(action, opp)

    def _select_opponent_action(self) -> int:
        valid_indices = self.game.legal_moves()
        player = self.game.current_player

        if self.opponent == "random":
            return int(self.np_random.choice(valid_indices))
        if self.opponent == "greedy":
            return self._get_greedy_move()
        if isinstance(self.opponent, QLearningAgent):
            return self.opponent.select_action(self.game.board, player, valid_indices)

        prev_agent_player = self.agent_player
        self.agent_player = player
        obs = self._get_observation()
        self.agent_player = prev_agent_player
        action = int(self.opponent(obs))
        if action not in valid_indices:
            action = int(self.np_random.choice(valid_indices))
        return action

    def _get_greedy_move(self) -> int:
        """Legal move that flips the most discs, lowest index on ties."""
        board = self.game.board
        player = self.game.current_player
        return max(
            self.game.legal_moves(),
            key=lambda move: (len(flips_for(board, move, player)), -move),
        )

    def render(self):
        """
        Render the game state.

        Returns:
            str for render_mode="ansi"; None otherwise ("human" prints).
        """
        if self.render_mode == "ansi":
            return render_board(self.game.board, self.game.current_player)
        if self.render_mode == "human":
            print(render_board(self.game.board, self.game.current_player))
        return None
