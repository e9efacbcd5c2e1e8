"""Tests for the SQLite simulation history."""

import pytest

from golfsim import sim_history
from golfsim.sim_history import SimulationHistory, get_history
from golfsim.simulate import SimulationReport


def make_report(strategies=("basic", "improved"), games=((5, 3), (4, 4))):
    report = SimulationReport(strategies=list(strategies), num_games=len(games), seed=9)
    for scores in games:
        report.record_game(list(scores))
    return report


class TestSimulationHistory:

    def setup_method(self):
        self.report = make_report()

    @pytest.fixture(autouse=True)
    def store(self, tmp_path):
        self.history = SimulationHistory(str(tmp_path / "sims.db"))

    def test_save_returns_id(self):
        first = self.history.save_report(self.report)
        second = self.history.save_report(self.report)
        assert second > first

    def test_get_restores_report(self):
        report_id = self.history.save_report(self.report)
        entry = self.history.get(report_id)

        assert entry["id"] == report_id
        assert entry["created_at"]
        restored = entry["report"]
        assert restored.strategies == ["basic", "improved"]
        assert restored.wins == [1, 2]
        assert restored.tied_games == 1
        assert restored.scores == [[5, 4], [3, 4]]
        assert restored.seed == 9

    def test_get_missing(self):
        assert self.history.get(12345) is None

    def test_recent_newest_first(self):
        older = self.history.save_report(make_report(strategies=("basic", "basic")))
        newer = self.history.save_report(make_report(strategies=("improved", "improved")))

        entries = self.history.get_recent()
        assert [e["id"] for e in entries] == [newer, older]
        assert entries[0]["report"].strategies == ["improved", "improved"]

    def test_recent_limit(self):
        for _ in range(5):
            self.history.save_report(self.report)
        assert len(self.history.get_recent(limit=3)) == 3

    def test_clear(self):
        self.history.save_report(self.report)
        self.history.save_report(self.report)
        assert self.history.clear() == 2
        assert self.history.get_recent() == []
        assert self.history.clear() == 0

    def test_reopen_keeps_data(self, tmp_path):
        self.history.save_report(self.report)
        reopened = SimulationHistory(str(self.history.db_path))
        assert len(reopened.get_recent()) == 1


def test_get_history_uses_configured_path(tmp_path, monkeypatch):
    db = tmp_path / "configured.db"
    monkeypatch.setattr(sim_history.config, "HISTORY_DB", str(db))
    monkeypatch.setattr(sim_history, "_history", None)

    history = get_history()
    assert history.db_path == db
    assert get_history() is history
    assert db.exists()
