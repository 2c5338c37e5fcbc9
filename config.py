"""
Level Up Dashboard - Configuration
Environment-driven settings shared by the app, services and scripts
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Configuration
API_URL = os.getenv("LEVELUP_API_URL", "http://localhost:5000").rstrip("/")
SESSION_DB_FILE = os.getenv("LEVELUP_SESSION_DB", "levelup_session.db")
LOG_DIR = os.getenv("LEVELUP_LOG_DIR", "logs")
LOG_TO_FILE = os.getenv("LEVELUP_LOG_TO_FILE", "1").lower() not in ("0", "false", "no")

PLACEHOLDER_LOGO = "https://via.placeholder.com/60"

APP_TITLE = "Level Up"
APP_SUBTITLE = "Genius is Ever Genius"

CLIENT_COOKIE = "levelup_client"
CLIENT_COOKIE_DAYS = int(os.getenv("LEVELUP_CLIENT_COOKIE_DAYS", "30"))
