"""
Common utilities for the Othello command-line scripts.
"""

from __future__ import annotations

import argparse

import numpy as np

from tabular_rl.othello.agent import QLearningAgent
from tabular_rl.othello.board import Cell
from tabular_rl.othello.logging_config import setup_logging
from tabular_rl.othello.session import GameSession
from tabular_rl.othello.storage import JsonStore

COLORS = {"black": Cell.BLACK, "white": Cell.WHITE}


def build_arg_parser(description: str) -> argparse.ArgumentParser:
    """Build a common argument parser for play and training scripts."""
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--human-color",
        type=str,
        choices=["black", "white"],
        default="black",
        help="Color for human player (default: black)",
    )
    parser.add_argument(
        "--epsilon",
        type=float,
        default=0.2,
        help="Exploration rate (default: 0.2)",
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=0.1,
        help="Learning rate (default: 0.1)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=0.9,
        help="Discount factor (default: 0.9)",
    )
    parser.add_argument(
        "--shared-table",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Share one Q-table between both colors (default: true)",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory for the Q-table and stats (default: $TABULAR_RL_DATA_DIR "
        "or ~/.tabular_rl/othello)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for exploration (default: None)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    return parser


def build_agent(args: argparse.Namespace) -> QLearningAgent:
    return QLearningAgent(
        epsilon=args.epsilon,
        alpha=args.alpha,
        gamma=args.gamma,
        shared_table=args.shared_table,
        rng=np.random.default_rng(args.seed),
    )


def build_session(args: argparse.Namespace, training_mode: bool = False) -> GameSession:
    """Configure logging and create a session with persisted state loaded."""
    setup_logging(args.log_level)
    session = GameSession(
        build_agent(args),
        store=JsonStore(args.data_dir),
        human_color=COLORS[args.human_color],
        training_mode=training_mode,
    )
    session.load()
    return session


def format_dashboard(session: GameSession) -> str:
    stats = session.stats
    return (
        f"Total games: {stats.total_games}  "
        f"Win rate: {stats.win_rate()}%  "
        f"Training games: {stats.training_games}  "
        f"Q-table entries: {len(session.agent.q_table)}"
    )
