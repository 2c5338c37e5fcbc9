"""
Level Up Dashboard - Session Storage
Local SQLite persistence for the authenticated operator session
"""

import json
import sqlite3
from datetime import datetime
from typing import Dict, Optional

from logger import get_logger

log = get_logger("database.session_store")


class SessionStore:
    """Persists one {username, token} session record per browser client"""

    def __init__(self, db_path: str = "levelup_session.db", client_key: str = ""):
        if not client_key or not client_key.strip():
            raise ValueError("A client key is required to scope the stored session")
        self.db_path = db_path
        self.client_key = client_key
        self._initialized = False

    def get_connection(self):
        """Get database connection, creating the schema on first use"""
        conn = sqlite3.connect(self.db_path)
        if not self._initialized:
            self._create_session_table(conn.cursor())
            conn.commit()
            self._initialized = True
        return conn

    def _create_session_table(self, cursor):
        """Create session table (one row per browser client)"""
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS session_state (
                client_key TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def load(self) -> Optional[Dict]:
        """
        Read this client's persisted session record.
        Returns the decoded mapping, or None when absent or unreadable.
        """
        try:
            conn = self.get_connection()
        except sqlite3.Error as e:
            log.warning(f"Session storage unavailable: {e}")
            return None

        try:
            cursor = conn.cursor()
            cursor.execute("SELECT payload FROM session_state WHERE client_key = ?", (self.client_key,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            log.warning(f"Could not read stored session: {e}")
            return None
        finally:
            conn.close()

        if not row:
            return None

        try:
            data = json.loads(row[0])
        except (TypeError, ValueError):
            log.warning("Stored session is not valid JSON, ignoring it")
            return None

        if not isinstance(data, dict):
            log.warning("Stored session is not a record, ignoring it")
            return None

        return data

    def save(self, username: str, token: str):
        """Atomically replace this client's stored session"""
        payload = json.dumps({"username": username, "token": token})
        conn = self.get_connection()
        try:
            with conn:
                conn.execute("""
                    INSERT OR REPLACE INTO session_state (client_key, payload, updated_at)
                    VALUES (?, ?, ?)
                """, (self.client_key, payload, datetime.now()))
        finally:
            conn.close()

    def clear(self):
        """Remove this client's stored session, if any"""
        conn = self.get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM session_state WHERE client_key = ?", (self.client_key,))
        finally:
            conn.close()
