"""
JSON persistence for the Q-table and session stats.

Each blob lives in its own ``<name>.json`` file under a data directory.
Missing files load as empty state. Files that cannot be parsed are logged
and treated as missing.
"""

import json
import logging
import os
import shutil
from datetime import datetime
from typing import Any, Optional

from tabular_rl.othello.agent import QTable
from tabular_rl.othello.stats import SessionStats

logger = logging.getLogger(__name__)

Q_TABLE_NAME = "othelloQ"
STATS_NAME = "othelloDash"
DATA_DIR_ENV = "TABULAR_RL_DATA_DIR"


def default_data_dir() -> str:
    """Data directory from $TABULAR_RL_DATA_DIR, else ~/.tabular_rl/othello."""
    path = os.environ.get(DATA_DIR_ENV) or os.path.join("~", ".tabular_rl", "othello")
    return os.path.abspath(os.path.expanduser(path))


def backup_file(path: str) -> Optional[str]:
    """Copy ``path`` to a timestamped ``.bak`` file next to it, if it exists."""
    if not os.path.exists(path):
        return None
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = f"{path}.bak-{timestamp}"
    shutil.copy2(path, backup_path)
    return backup_path


class JsonStore:
    """
    Load and save named JSON blobs in a directory.

    Args:
        directory: Where blob files are kept. Default: ``default_data_dir()``
    """

    def __init__(self, directory: Optional[str] = None):
        self.directory = os.path.abspath(
            os.path.expanduser(directory) if directory else default_data_dir()
        )

    def path_for(self, name: str) -> str:
        return os.path.join(self.directory, f"{name}.json")

    def _read(self, name: str) -> Any:
        path = self.path_for(name)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s, starting from empty state: %s", path, exc)
            return None

    def _write(self, name: str, data: Any) -> None:
        os.makedirs(self.directory, exist_ok=True)
        path = self.path_for(name)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
            f.write("\n")
        os.replace(tmp_path, path)

    def load_q_table(self) -> QTable:
        data = self._read(Q_TABLE_NAME)
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring Q-table blob: expected an object, got %s", type(data).__name__)
            return {}

        table: QTable = {}
        for key, value in data.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                logger.warning("Ignoring Q-table blob: non-numeric value for %s", key)
                return {}
            table[key] = float(value)
        logger.info("Loaded Q-table with %d entries from %s", len(table), self.directory)
        return table

    def save_q_table(self, table: QTable) -> None:
        self._write(Q_TABLE_NAME, table)
        logger.debug("Saved Q-table with %d entries", len(table))

    def load_stats(self) -> SessionStats:
        data = self._read(STATS_NAME)
        if data is None:
            return SessionStats()
        try:
            return SessionStats.from_dict(data)
        except ValueError as exc:
            logger.warning("Ignoring stats blob: %s", exc)
            return SessionStats()

    def save_stats(self, stats: SessionStats) -> None:
        self._write(STATS_NAME, stats.to_dict())

    def clear_q_table(self) -> Optional[str]:
        """
        Remove the persisted Q-table, keeping a timestamped backup.

        Returns:
            Path of the backup file, or None if there was nothing to clear.
        """
        path = self.path_for(Q_TABLE_NAME)
        backup_path = backup_file(path)
        if backup_path is not None:
            os.remove(path)
            logger.info("Cleared Q-table (backup at %s)", backup_path)
        return backup_path
