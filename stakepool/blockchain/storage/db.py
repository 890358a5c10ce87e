import sqlite3
import threading
from typing import Optional, Dict, List, Tuple

class StorageDB:
    def __init__(self, db_path: str):
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.cursor = self.conn.cursor()
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        with self._lock:
            # State table: Key-Value store for ledger state
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS state (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            ''')
            # Append-only event log
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS events (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    data TEXT NOT NULL
                )
            ''')
            self.cursor.execute('CREATE INDEX IF NOT EXISTS idx_events_name ON events (name)')
            self.conn.commit()

    # --- State Methods ---
    def get_state(self, key: str) -> Optional[str]:
        with self._lock:
            self.cursor.execute('SELECT value FROM state WHERE key = ?', (key,))
            row = self.cursor.fetchone()
            return row[0] if row else None

    def write_batch(self, items: Dict[str, str], events: List[Tuple[str, str]]) -> List[int]:
        """
        Writes state entries and appends events in a single transaction.

        Either every row lands or none does. Returns the sequence numbers
        assigned to the events, in order.
        """
        with self._lock:
            try:
                self.cursor.executemany(
                    'INSERT OR REPLACE INTO state (key, value) VALUES (?, ?)',
                    list(items.items())
                )
                seqs = []
                for name, data in events:
                    self.cursor.execute('INSERT INTO events (name, data) VALUES (?, ?)', (name, data))
                    seqs.append(self.cursor.lastrowid)
                self.conn.commit()
                return seqs
            except sqlite3.Error:
                self.conn.rollback()
                raise

    # --- Event Methods ---
    def get_events(self, name: Optional[str] = None, from_seq: int = 0) -> List[Tuple[int, str, str]]:
        """Returns (seq, name, data) rows in commit order."""
        with self._lock:
            if name:
                self.cursor.execute(
                    'SELECT seq, name, data FROM events WHERE name = ? AND seq >= ? ORDER BY seq',
                    (name, from_seq)
                )
            else:
                self.cursor.execute('SELECT seq, name, data FROM events WHERE seq >= ? ORDER BY seq', (from_seq,))
            return self.cursor.fetchall()

    def close(self):
        with self._lock:
            self.conn.close()
