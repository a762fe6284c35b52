"""
Human vs Q-learning agent Othello game (CLI).
"""

from __future__ import annotations

import argparse
import sys
from typing import List

from tabular_rl.othello.board import index_to_coord, render_board
from tabular_rl.othello.engine import Winner
from tabular_rl.othello.play_common import build_arg_parser, build_session, format_dashboard
from tabular_rl.othello.session import GameSession


def get_human_move(valid_indices: List[int]) -> int:
    """
    Get move input from human player via console.

    Args:
        valid_indices: Legal moves for the human

    Returns:
        Action (0-63) selected by human
    """
    print("\nValid moves:")
    for idx in valid_indices:
        row, col = index_to_coord(idx)
        print(f"  {idx}: row {row}, col {col}")

    while True:
        try:
            user_input = input("\nEnter your move (0-63) or 'q' to quit: ").strip()

            if user_input.lower() == "q":
                print("Quitting game...")
                sys.exit(0)

            action = int(user_input)

            if action < 0 or action > 63:
                print(f"Invalid input: {action}. Must be between 0 and 63.")
                continue

            if action not in valid_indices:
                print(f"Invalid move: {action}. That position is not a valid move.")
                print("Valid moves are:", valid_indices)
                continue

            return action

        except ValueError:
            print(
                "Invalid input. Please enter a number between 0 and 63, or 'q' to quit."
            )
        except (KeyboardInterrupt, EOFError):
            print("\nQuitting game...")
            sys.exit(0)


def confirm(prompt: str) -> bool:
    try:
        return input(f"{prompt} [y/N]: ").strip().lower() in ("y", "yes")
    except (KeyboardInterrupt, EOFError):
        return False


def play_game(session: GameSession) -> None:
    """Play one game of Othello with the human against the agent."""
    print("\n" + "=" * 60)
    print("OTHELLO - Human vs Q-learning Agent")
    print("=" * 60)
    print(f"Human plays as: {session.human_color.name}")
    if session.training_mode:
        print("Training mode: the agent learns from this game")
    print(format_dashboard(session))
    print("\nBoard positions are numbered 0-63:")
    print("  Row 0: 0-7")
    print("  Row 1: 8-15")
    print("  ...")
    print("  Row 7: 56-63")
    print("\nValid moves are marked with '*' on the board.")
    print("=" * 60 + "\n")

    session.new_game()
    move_count = 0

    while not session.engine.is_terminal:
        move_count += 1
        print(f"\n{'=' * 60}")
        print(f"Move {move_count}")
        print(f"{'=' * 60}")
        print(render_board(session.get_board(), session.current_player))

        action = get_human_move(session.get_legal_moves())
        first_agent_move = len(session.engine.episode) + 1
        if session.propose_move(action):
            row, col = index_to_coord(action)
            print(f"\nYou played: {action} (row {row}, col {col})")
            for transition in session.engine.episode[first_agent_move:]:
                row, col = index_to_coord(transition.action)
                print(f"Agent played: {transition.action} (row {row}, col {col})")

    outcome = session.last_outcome

    print("\n" + "=" * 60)
    print("GAME OVER")
    print("=" * 60)

    print("\nFinal score:")
    print(f"  ● Black: {outcome.black_count}")
    print(f"  ○ White: {outcome.white_count}")

    if outcome.winner is Winner.DRAW:
        print("\nResult: DRAW")
    elif outcome.winner.value == session.human_color:
        print("\nYOU WIN!")
    else:
        print("\nThe agent wins. Better luck next time!")

    print("\nFinal board:")
    print(render_board(session.get_board()))
    print("\n" + format_dashboard(session))


def parse_args():
    """Parse command line arguments."""
    parser = build_arg_parser(
        description="Play Othello against a tabular Q-learning agent"
    )
    parser.add_argument(
        "--training",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Back up finished games into the Q-table and count them as "
        "training games (default: false)",
    )
    parser.add_argument(
        "--reset-agent",
        action="store_true",
        help="Clear the learned Q-table and training counter before playing",
    )
    return parser.parse_args()


def main() -> None:
    """Main entry point."""
    args = parse_args()
    session = build_session(args, training_mode=args.training)

    if args.reset_agent:
        if confirm("Really clear everything the agent has learned?"):
            session.reset_agent()
            print("Agent reset.")
        else:
            print("Reset cancelled.")

    while True:
        play_game(session)
        if not confirm("\nPlay again?"):
            break


if __name__ == "__main__":
    main()
