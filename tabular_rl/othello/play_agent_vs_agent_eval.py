"""
Q-learning agent vs built-in opponent evaluation (CLI).
"""

from __future__ import annotations

import gymnasium as gym

# Ensure Othello env is registered with Gymnasium
import tabular_rl.othello  # noqa: F401
from tabular_rl.othello.agent import QLearningAgent
from tabular_rl.othello.board import Cell
from tabular_rl.othello.play_common import build_arg_parser, build_session


def play_games(
    agent: QLearningAgent, opponent: str, agent_color: str, num_games: int, seed=None
) -> dict:
    """
    Play the agent greedily against a built-in opponent.

    Returns:
        Counts for "wins", "losses" and "draws" from the agent's side.
    """
    env = gym.make(
        "Othello-v0",
        opponent=opponent,
        invalid_move_mode="error",
        render_mode=None,
        start_player=agent_color,
    )
    player = Cell.BLACK if agent_color == "black" else Cell.WHITE

    results = {"wins": 0, "losses": 0, "draws": 0}

    for game in range(num_games):
        obs, info = env.reset(seed=None if seed is None else seed + game)
        terminated = truncated = False
        reward = 0.0

        while not (terminated or truncated):
            board = env.unwrapped.game.board
            moves = env.unwrapped.game.legal_moves()
            action = agent.select_action(board, player, moves)
            obs, reward, terminated, truncated, info = env.step(action)

        if reward > 0:
            results["wins"] += 1
        elif reward < 0:
            results["losses"] += 1
        else:
            results["draws"] += 1

    env.close()
    return results


def parse_args():
    """Parse command line arguments."""
    parser = build_arg_parser(description="Evaluate the Q-learning agent win rate")
    parser.add_argument(
        "--opponent",
        type=str,
        choices=["random", "greedy"],
        default="random",
        help="Built-in opponent policy (default: random)",
    )
    parser.add_argument(
        "--agent-color",
        type=str,
        choices=["black", "white"],
        default="white",
        help="Color played by the agent (default: white)",
    )
    parser.add_argument(
        "--num-games",
        type=int,
        default=100,
        help="Number of games to play (default: 100)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    session = build_session(args)
    agent = session.agent
    agent.epsilon = 0.0

    results = play_games(agent, args.opponent, args.agent_color, args.num_games, args.seed)

    total = max(1, args.num_games)
    print("\n" + "=" * 60)
    print("OTHELLO - Q-learning Agent Evaluation")
    print("=" * 60)
    print(f"Agent: {args.agent_color} ({len(agent.q_table)} Q-table entries)")
    print(f"Opponent: {args.opponent}")
    print(f"Games: {args.num_games}")
    print(f"Agent wins: {results['wins']} ({results['wins'] / total:.3f})")
    print(f"Agent losses: {results['losses']} ({results['losses'] / total:.3f})")
    print(f"Draws: {results['draws']} ({results['draws'] / total:.3f})")


if __name__ == "__main__":
    main()
