import os
import sqlite3
import sys
from pathlib import Path

import pytest

# Keep test runs from writing per-run log files
os.environ.setdefault("LEVELUP_LOG_TO_FILE", "0")

# Project root on the import path regardless of where pytest is run from
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from database import SessionStore  # noqa: E402


@pytest.fixture
def session_db(tmp_path):
    return str(tmp_path / "session.db")


@pytest.fixture
def session_store(session_db):
    return SessionStore(session_db, client_key="browser-a")


@pytest.fixture
def write_raw_session(session_store):
    """Write an arbitrary payload straight into the store's row"""
    def write(payload):
        session_store.get_connection().close()
        conn = sqlite3.connect(session_store.db_path)
        try:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO session_state (client_key, payload) VALUES (?, ?)",
                    (session_store.client_key, payload),
                )
        finally:
            conn.close()
    return write
