"""SQLite history of simulation reports."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from golfsim.config import config
from golfsim.simulate import SimulationReport

log = logging.getLogger("golf.history")


class SimulationHistory:
    """Stores finished simulation reports in SQLite, newest first on read."""

    def __init__(self, db_path: str = "simulations.db"):
        self.db_path = Path(db_path)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS simulations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    created_at TIMESTAMP,
                    strategies_json TEXT,
                    num_players INTEGER,
                    games_played INTEGER,
                    tied_games INTEGER,
                    report_json TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_simulations_created_at
                    ON simulations(created_at);
            """)

    def save_report(self, report: SimulationReport) -> int:
        """Store a report. Returns its id."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO simulations (
                    created_at, strategies_json, num_players,
                    games_played, tied_games, report_json
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    datetime.now().isoformat(),
                    json.dumps(report.strategies),
                    len(report.strategies),
                    report.games_played,
                    report.tied_games,
                    json.dumps(report.to_dict()),
                ),
            )
            report_id = cursor.lastrowid

        log.info(f"Saved simulation #{report_id} ({report.games_played} games)")
        return report_id

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> dict:
        return {
            "id": row["id"],
            "created_at": row["created_at"],
            "report": SimulationReport.from_dict(json.loads(row["report_json"])),
        }

    def get(self, report_id: int) -> Optional[dict]:
        """Get one saved simulation, or None if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(
                "SELECT * FROM simulations WHERE id = ?", (report_id,)
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def get_recent(self, limit: int = 10) -> list[dict]:
        """Get the most recent simulations, newest first."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute("""
                SELECT * FROM simulations
                ORDER BY id DESC
                LIMIT ?
            """, (limit,))
            return [self._row_to_entry(row) for row in cursor.fetchall()]

    def clear(self) -> int:
        """Delete every saved simulation. Returns how many were removed."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM simulations")
            removed = cursor.rowcount
        log.info(f"Cleared {removed} saved simulations")
        return removed


# Global history instance (lazy initialization)
_history: Optional[SimulationHistory] = None


def get_history() -> SimulationHistory:
    """Get or create the global history instance."""
    global _history
    if _history is None:
        _history = SimulationHistory(config.HISTORY_DB)
    return _history
