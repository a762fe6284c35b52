"""
Tests for session stats, JSON persistence and the play session.
"""

import json
import logging
import os

import numpy as np
import pytest

from tabular_rl.othello.agent import QLearningAgent, q_key
from tabular_rl.othello.board import Cell
from tabular_rl.othello.engine import Winner
from tabular_rl.othello.session import GameSession
from tabular_rl.othello.stats import SessionStats
from tabular_rl.othello.storage import (
    DATA_DIR_ENV,
    Q_TABLE_NAME,
    STATS_NAME,
    JsonStore,
    default_data_dir,
)


def seeded_agent(**kwargs):
    return QLearningAgent(rng=np.random.default_rng(1), **kwargs)


class TestSessionStats:
    """Test suite for win/loss counters."""

    def test_win_rate_without_games(self):
        rate = SessionStats().win_rate()
        assert rate == 0.0
        assert isinstance(rate, float)

    def test_win_rate_after_one_win_one_loss(self):
        stats = SessionStats()
        stats.record_outcome(Winner.BLACK, Cell.BLACK, False)
        stats.record_outcome(Winner.WHITE, Cell.BLACK, False)
        assert stats.total_games == 2
        assert stats.wins == 1
        assert stats.win_rate() == 50.0

    def test_win_rate_rounds_to_one_decimal(self):
        stats = SessionStats(total_games=3, wins=1)
        assert stats.win_rate() == 33.3

    def test_draw_is_not_a_win(self):
        stats = SessionStats()
        stats.record_outcome(Winner.DRAW, Cell.BLACK, True)
        assert stats.total_games == 1
        assert stats.wins == 0
        assert stats.training_games == 1

    def test_reset_training(self):
        stats = SessionStats(total_games=4, wins=1, training_games=3)
        stats.reset_training()
        assert stats.training_games == 0
        assert stats.total_games == 4

    def test_dict_round_trip(self):
        stats = SessionStats(total_games=5, wins=2, training_games=3)
        assert stats.to_dict() == {"total": 5, "wins": 2, "trainingGames": 3}
        assert SessionStats.from_dict(stats.to_dict()) == stats

    def test_from_dict_accepts_original_blob_without_training_field(self):
        assert SessionStats.from_dict({"total": 2, "wins": 1}) == SessionStats(2, 1, 0)

    def test_from_dict_clamps_invariants(self):
        stats = SessionStats.from_dict({"total": 2, "wins": 5, "trainingGames": 9})
        assert stats.wins == 2
        assert stats.training_games == 2

    @pytest.mark.parametrize(
        "data", [[], {"total": "3"}, {"total": -1}, {"wins": 1.5}, {"total": True}]
    )
    def test_from_dict_rejects_bad_data(self, data):
        with pytest.raises(ValueError):
            SessionStats.from_dict(data)


class TestJsonStore:
    """Test suite for JSON persistence."""

    def test_missing_files_load_as_empty(self, tmp_path):
        store = JsonStore(str(tmp_path))
        assert store.load_q_table() == {}
        assert store.load_stats() == SessionStats()

    def test_round_trip(self, tmp_path):
        store = JsonStore(str(tmp_path))
        table = {"0" * 64 + "_19": 0.25, "1" * 64 + "_3": -0.5}
        stats = SessionStats(total_games=3, wins=1, training_games=2)

        store.save_q_table(table)
        store.save_stats(stats)

        reloaded = JsonStore(str(tmp_path))
        assert reloaded.load_q_table() == table
        assert reloaded.load_stats() == stats

    def test_files_use_logical_names(self, tmp_path):
        store = JsonStore(str(tmp_path))
        store.save_q_table({})
        store.save_stats(SessionStats())
        assert os.path.exists(tmp_path / f"{Q_TABLE_NAME}.json")
        assert os.path.exists(tmp_path / f"{STATS_NAME}.json")

    def test_corrupt_json_falls_back_to_empty(self, tmp_path, caplog):
        (tmp_path / f"{Q_TABLE_NAME}.json").write_text("{not json", encoding="utf-8")
        (tmp_path / f"{STATS_NAME}.json").write_text("[1, 2", encoding="utf-8")
        store = JsonStore(str(tmp_path))

        with caplog.at_level(logging.WARNING):
            assert store.load_q_table() == {}
            assert store.load_stats() == SessionStats()

        assert "starting from empty state" in caplog.text

    @pytest.mark.parametrize("blob", [[1, 2], {"k": "high"}, {"k": None}, "text"])
    def test_wrong_shape_q_table_falls_back_to_empty(self, tmp_path, blob):
        (tmp_path / f"{Q_TABLE_NAME}.json").write_text(json.dumps(blob), encoding="utf-8")
        assert JsonStore(str(tmp_path)).load_q_table() == {}

    def test_wrong_shape_stats_fall_back_to_default(self, tmp_path):
        (tmp_path / f"{STATS_NAME}.json").write_text('{"total": "x"}', encoding="utf-8")
        assert JsonStore(str(tmp_path)).load_stats() == SessionStats()

    def test_clear_q_table_keeps_backup(self, tmp_path):
        store = JsonStore(str(tmp_path))
        store.save_q_table({"k": 1.0})

        backup_path = store.clear_q_table()

        assert backup_path is not None
        assert os.path.exists(backup_path)
        assert not os.path.exists(store.path_for(Q_TABLE_NAME))
        assert store.load_q_table() == {}

    def test_clear_without_table_is_noop(self, tmp_path):
        assert JsonStore(str(tmp_path)).clear_q_table() is None

    def test_default_data_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
        assert default_data_dir() == str(tmp_path)
        assert JsonStore().directory == str(tmp_path)


class TestGameSession:
    """Test suite for the play session."""

    def test_human_moves_first_as_black(self):
        session = GameSession(seeded_agent())
        session.new_game()
        assert session.current_player == Cell.BLACK
        assert session.get_legal_moves() == [19, 26, 37, 44]
        assert session.agent.color == Cell.WHITE

    def test_agent_moves_first_when_human_is_white(self):
        session = GameSession(seeded_agent(), human_color=Cell.WHITE)
        session.new_game()
        assert session.agent.color == Cell.BLACK
        assert len(session.engine.episode) == 1
        assert session.current_player == Cell.WHITE

    def test_invalid_human_color_raises(self):
        with pytest.raises(ValueError):
            GameSession(seeded_agent(), human_color=Cell.EMPTY)

    def test_illegal_proposal_is_ignored(self):
        session = GameSession(seeded_agent())
        session.new_game()
        assert session.propose_move(0) is False
        assert session.engine.episode == ()

    def test_legal_proposal_gets_agent_reply(self):
        session = GameSession(seeded_agent())
        session.new_game()
        assert session.propose_move(19) is True
        assert session.engine.episode[0].action == 19
        assert session.engine.is_terminal or session.current_player == Cell.BLACK
        assert len(session.engine.episode) >= 2

    def test_proposals_ignored_during_self_play(self):
        session = GameSession(seeded_agent())
        session.self_play = True
        assert session.propose_move(19) is False
        assert session.engine.episode == ()

    def test_human_plays_first_move_in_training_mode(self):
        session = GameSession(seeded_agent(), training_mode=True)
        session.new_game()
        assert not session.engine.is_terminal
        assert session.engine.episode == ()
        assert session.current_player == Cell.BLACK
        assert session.propose_move(19) is True
        assert session.engine.episode[1].player == Cell.WHITE

    def test_human_game_in_training_mode_trains_agent(self, tmp_path):
        store = JsonStore(str(tmp_path))
        session = GameSession(seeded_agent(), store=store, training_mode=True)
        session.new_game()
        while not session.engine.is_terminal:
            assert session.propose_move(session.get_legal_moves()[0])

        outcome = session.get_outcome()
        human_moves = [t for t in session.engine.episode if t.player == Cell.BLACK]
        assert human_moves
        assert session.stats.total_games == 1
        assert session.stats.training_games == 1
        if outcome.winner is not Winner.DRAW:
            assert len(session.agent.q_table) > 0
            last = session.engine.episode[-1]
            assert q_key(last.state_key, last.action) in session.agent.q_table
        assert store.load_q_table() == session.agent.q_table

    def test_agent_opens_for_white_human_in_training_mode(self):
        session = GameSession(seeded_agent(), human_color=Cell.WHITE, training_mode=True)
        session.new_game()
        assert len(session.engine.episode) == 1
        assert session.engine.episode[0].player == Cell.BLACK
        assert session.current_player == Cell.WHITE

    def test_per_player_self_play_learns_both_colors(self):
        session = GameSession(seeded_agent(shared_table=False))
        outcome = session.run_self_play_game()

        if outcome.winner is not Winner.DRAW:
            suffixes = {key.rsplit("_", 1)[1] for key in session.agent.q_table}
            assert suffixes == {"1", "2"}

    def test_full_human_game_is_recorded_once(self, tmp_path):
        store = JsonStore(str(tmp_path))
        session = GameSession(seeded_agent(), store=store)
        session.new_game()
        while not session.engine.is_terminal:
            assert session.propose_move(session.get_legal_moves()[0])

        outcome = session.get_outcome()
        assert session.last_outcome == outcome
        assert session.stats.total_games == 1
        assert session.stats.training_games == 0
        assert session.stats.wins == (1 if outcome.winner is Winner.BLACK else 0)
        # Human games do not train the agent
        assert session.agent.q_table == {}

        session.advance()
        assert session.stats.total_games == 1
        assert store.load_stats() == session.stats

    def test_self_play_game_trains_and_persists(self, tmp_path):
        store = JsonStore(str(tmp_path))
        session = GameSession(seeded_agent(), store=store)

        outcome = session.run_self_play_game()

        assert session.engine.is_terminal
        assert outcome == session.get_outcome()
        assert session.stats.total_games == 1
        assert session.stats.training_games == 1
        if outcome.winner is not Winner.DRAW:
            assert len(session.agent.q_table) > 0
        assert store.load_q_table() == session.agent.q_table
        assert store.load_stats() == session.stats

    def test_load_restores_persisted_state(self, tmp_path):
        store = JsonStore(str(tmp_path))
        store.save_q_table({"k": 0.5})
        store.save_stats(SessionStats(total_games=2, wins=1, training_games=1))

        session = GameSession(seeded_agent(), store=store)
        session.load()

        assert session.agent.q_table == {"k": 0.5}
        assert session.stats.win_rate() == 50.0

    def test_reset_agent_clears_table_and_training_counter(self, tmp_path):
        store = JsonStore(str(tmp_path))
        session = GameSession(seeded_agent(), store=store)
        for _ in range(3):
            session.run_self_play_game()

        session.reset_agent()

        assert session.agent.q_table == {}
        assert session.stats.training_games == 0
        assert session.stats.total_games == 3
        assert store.load_q_table() == {}
        assert store.load_stats().training_games == 0

    def test_new_game_switches_back_to_human_play(self):
        session = GameSession(seeded_agent())
        session.run_self_play_game()
        session.new_game(training_mode=False)
        assert not session.training_mode
        assert session.current_player == Cell.BLACK
        assert session.engine.episode == ()
