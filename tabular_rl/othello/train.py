"""
Self-play training script for the tabular Q-learning Othello agent.

The agent plays both colours; after every game the episode is backed up into
the Q-table and the table and stats are saved.
"""

from tabular_rl.othello.engine import Winner
from tabular_rl.othello.play_common import build_arg_parser, build_session, format_dashboard
from tabular_rl.othello.session import GameSession


def train_othello(session: GameSession, num_games: int, report_every: int) -> dict:
    """
    Run self-play training games.

    Args:
        session: Session whose agent is trained
        num_games: Number of games to play
        report_every: Print a progress line every N games (0 disables)

    Returns:
        Result counts keyed by winner name ("BLACK", "WHITE", "DRAW").
    """
    results = {winner.name: 0 for winner in Winner}

    print(f"Starting training for {num_games} games...")

    for i in range(num_games):
        outcome = session.run_self_play_game()
        results[outcome.winner.name] += 1

        if report_every and (i + 1) % report_every == 0:
            print(f"\nGame {i + 1}/{num_games}")
            print(
                f"  Black: {results['BLACK']}  White: {results['WHITE']}  "
                f"Draw: {results['DRAW']}"
            )
            print(f"  Q-table entries: {len(session.agent.q_table)}")

    print("\nTraining complete!")
    print(format_dashboard(session))
    return results


def main():
    """Parse arguments and start training."""
    parser = build_arg_parser(description="Train a tabular Q-learning agent by self-play")
    parser.add_argument(
        "--num-games",
        type=int,
        default=1000,
        help="Number of self-play games (default: 1000)",
    )
    parser.add_argument(
        "--report-every",
        type=int,
        default=100,
        help="Print progress every N games (default: 100)",
    )
    args = parser.parse_args()

    session = build_session(args, training_mode=True)
    train_othello(session, args.num_games, args.report_every)


if __name__ == "__main__":
    main()
