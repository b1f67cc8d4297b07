"""SQLite-based run ledger.

Records what each combiner run did with every granule (consumed, already
covered, rejected) and with every pass (created or kept). The pass files
themselves stay authoritative for the keep-or-overwrite decision; the ledger
is an audit trail that can be queried without opening any netCDF file.
"""

import sqlite3
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, List

logger = logging.getLogger(__name__)


class CombineLedger:
    """Audit trail of combiner runs.

    **Database Schema:**

    SQLite table `source_files` (one row per granule in the input stream,
    so a granule listed twice gets two rows):

    - source_id: Granule path as given in the input list
    - status: consumed, covered, skipped
    - Counts: nrec, accepted, covered, duplicates, boundaries
    - error_message: Reason a granule was skipped

    SQLite table `pass_files` (one row per pass key, updated on every flush):

    - cycle, pass_number: Pass key (primary key)
    - path: Pass file location
    - action: created or kept
    - nrec: Records in the pass file, buffered: records in the flushed buffer
    - first_meas_time, last_meas_time: Time range of the pass file

    **Typical Usage:**

    Called internally by PassCombiner when the ledger is enabled::

        with CombineLedger(dest_dir / "combine_ledger.db") as ledger:
            stats = ledger.get_statistics()
            print(f"{stats['created']} passes created, {stats['kept']} kept")
    """

    def __init__(self, db_path: Path | str):
        """Initialize ledger.

        Parameters
        ----------
        db_path : Path or str
            Path to SQLite database file. Created if doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = None
        self.run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S.%f")

        self._init_database()
        logger.info("Run ledger initialized: %s", self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row  # Enable dict-like access
        return self._conn

    def _init_database(self):
        """Create database schema if it doesn't exist."""
        conn = self._get_connection()

        conn.execute("""
            CREATE TABLE IF NOT EXISTS source_files (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id TEXT NOT NULL,
                source_id TEXT NOT NULL,
                status TEXT NOT NULL,

                nrec INTEGER,
                accepted INTEGER,
                covered INTEGER,
                duplicates INTEGER,
                boundaries INTEGER,

                error_message TEXT,
                processed_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS pass_files (
                cycle INTEGER NOT NULL,
                pass_number INTEGER NOT NULL,
                path TEXT NOT NULL,
                action TEXT NOT NULL,
                nrec INTEGER NOT NULL,
                buffered INTEGER NOT NULL,
                first_meas_time TEXT,
                last_meas_time TEXT,
                run_id TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (cycle, pass_number)
            )
        """)

        conn.execute("CREATE INDEX IF NOT EXISTS idx_source_id ON source_files(source_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_status ON source_files(status)")

        conn.commit()

    def record_source(self, source_id: str, status: str, outcome=None,
                      error: Optional[str] = None):
        """Record what happened to one granule.

        Parameters
        ----------
        source_id : str
            Granule path.
        status : str
            'consumed' (records accepted), 'covered' (all records already
            accepted earlier) or 'skipped' (rejected by the reader).
        outcome : ConsumeResult, optional
            Counts reported by the segmenter.
        error : str, optional
            Reason for a skipped granule.

        Raises
        ------
        ValueError
            If status is not one of the valid values.
        """
        valid_status = ['consumed', 'covered', 'skipped']
        if status not in valid_status:
            raise ValueError(f"Invalid status: {status}. Must be one of {valid_status}")

        counts = (None,) * 5
        if outcome is not None:
            counts = (outcome.nrec, outcome.accepted, outcome.covered,
                      outcome.duplicates, outcome.boundaries)

        conn = self._get_connection()
        conn.execute("""
            INSERT INTO source_files
            (run_id, source_id, status, nrec, accepted, covered, duplicates, boundaries,
             error_message, processed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            self.run_id, str(source_id), status, *counts, error,
            datetime.now(timezone.utc).isoformat(),
        ))
        conn.commit()

    def record_pass(self, result):
        """Record the outcome of one flush (a ``FlushResult``)."""
        conn = self._get_connection()
        conn.execute("""
            INSERT OR REPLACE INTO pass_files
            (cycle, pass_number, path, action, nrec, buffered,
             first_meas_time, last_meas_time, run_id, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            result.key.cycle, result.key.pass_number, str(result.path), result.action,
            result.nrec, result.buffered, result.first_time, result.last_time,
            self.run_id, datetime.now(timezone.utc).isoformat(),
        ))
        conn.commit()
        logger.debug("Recorded pass %s: %s", result.key, result.action)

    def get_pass(self, cycle: int, pass_number: int) -> Optional[Dict]:
        """Latest ledger entry for a pass, None if never flushed."""
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT * FROM pass_files WHERE cycle = ? AND pass_number = ?",
            (cycle, pass_number),
        )
        row = cursor.fetchone()
        return dict(row) if row else None

    def get_source_history(self, source_id: str) -> List[Dict]:
        """All ledger entries for a granule, oldest first."""
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT * FROM source_files WHERE source_id = ? ORDER BY id",
            (str(source_id),),
        )
        return [dict(row) for row in cursor.fetchall()]

    def get_statistics(self, run_id: Optional[str] = None) -> Dict:
        """Summary of granules and passes.

        Parameters
        ----------
        run_id : str, optional
            Restrict to one run. If None, covers all runs in the database.

        Returns
        -------
        dict
            - `sources`, `consumed`, `covered`, `skipped`: granule counts
            - `passes`, `created`, `kept`: pass counts
            - `records`: records held in all listed pass files
        """
        conn = self._get_connection()
        where = "WHERE run_id = ?" if run_id else ""
        params = (run_id,) if run_id else ()

        row = conn.execute(f"""
            SELECT
                COUNT(*) as sources,
                SUM(CASE WHEN status = 'consumed' THEN 1 ELSE 0 END) as consumed,
                SUM(CASE WHEN status = 'covered' THEN 1 ELSE 0 END) as covered,
                SUM(CASE WHEN status = 'skipped' THEN 1 ELSE 0 END) as skipped
            FROM source_files
            {where}
        """, params).fetchone()
        stats = dict(row)

        row = conn.execute(f"""
            SELECT
                COUNT(*) as passes,
                SUM(CASE WHEN action = 'created' THEN 1 ELSE 0 END) as created,
                SUM(CASE WHEN action = 'kept' THEN 1 ELSE 0 END) as kept,
                SUM(nrec) as records
            FROM pass_files
            {where}
        """, params).fetchone()
        stats.update(dict(row))
        return {k: (v if v is not None else 0) for k, v in stats.items()}

    def close(self):
        """Close database connection. Safe to call multiple times."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
