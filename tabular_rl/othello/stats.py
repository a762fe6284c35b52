"""
Running win/loss counters for a play session.
"""

from dataclasses import dataclass
from typing import Any, Dict

from tabular_rl.othello.engine import Winner


@dataclass
class SessionStats:
    """
    Games played, games won by the human and games played in training mode.

    Invariants: ``wins <= total_games`` and ``training_games <= total_games``.
    """

    total_games: int = 0
    wins: int = 0
    training_games: int = 0

    def record_outcome(self, winner: Winner, human_color: int, is_training_game: bool) -> None:
        """Count one completed game. Call exactly once per game."""
        self.total_games += 1
        if winner is not Winner.DRAW and winner.value == human_color:
            self.wins += 1
        if is_training_game:
            self.training_games += 1

    def win_rate(self) -> float:
        """Human win percentage rounded to one decimal, 0 before any game."""
        if self.total_games == 0:
            return 0.0
        return round(self.wins / self.total_games * 100, 1)

    def reset_training(self) -> None:
        self.training_games = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total_games,
            "wins": self.wins,
            "trainingGames": self.training_games,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionStats":
        """
        Build stats from a persisted dictionary.

        Missing fields default to 0 and counters are clamped so the
        invariants hold.

        Raises:
            ValueError: If data is not a dict or a field is not a
                non-negative integer
        """
        if not isinstance(data, dict):
            raise ValueError(f"Stats must be a dict, got {type(data).__name__}")

        values = {}
        for field in ("total", "wins", "trainingGames"):
            value = data.get(field, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Invalid stats field {field}: {value!r}")
            values[field] = value

        total = values["total"]
        return cls(
            total_games=total,
            wins=min(values["wins"], total),
            training_games=min(values["trainingGames"], total),
        )
