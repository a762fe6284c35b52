"""
Tabular Q-learning Othello.

This package provides an Othello (Reversi) game engine and a tabular
Q-learning agent that learns move values by self-play and by playing a
human. The engine is pure Python on top of numpy and is also exposed as a
Gymnasium environment.

The package supports:
- Legal move and flip computation with automatic pass handling
- Epsilon-greedy action selection over a persistent Q-table
- Temporal-difference backup over each finished game
- Win-rate tracking and JSON persistence of the table and stats
- A terminal game, a self-play trainer and an evaluation script

Example:
    >>> from tabular_rl.othello import GameSession, QLearningAgent
    >>> session = GameSession(QLearningAgent(epsilon=0.1))
    >>> session.new_game()
    >>> session.propose_move(19)
    True

Registered Environments:
    - Othello-v0: Play one colour against a built-in or Q-learning opponent
"""

from gymnasium.envs.registration import register

from tabular_rl.othello.agent import QLearningAgent
from tabular_rl.othello.board import Cell
from tabular_rl.othello.engine import GameEngine, GameOutcome, Transition, Winner
from tabular_rl.othello.env import OthelloEnv
from tabular_rl.othello.session import GameSession
from tabular_rl.othello.stats import SessionStats
from tabular_rl.othello.storage import JsonStore

register(
    id="Othello-v0",
    entry_point="tabular_rl.othello.env:OthelloEnv",
    max_episode_steps=60,
)

__all__ = [
    "Cell",
    "GameEngine",
    "GameOutcome",
    "GameSession",
    "JsonStore",
    "OthelloEnv",
    "QLearningAgent",
    "SessionStats",
    "Transition",
    "Winner",
]
