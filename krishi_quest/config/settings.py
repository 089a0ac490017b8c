# krishi_quest/config/settings.py
import os
from pathlib import Path

from dotenv import load_dotenv

# load environment variables once
load_dotenv()

# ----------------------------
# Storage
# ----------------------------
# "memory" keeps everything in process; "sql" uses DATABASE_URL
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").strip().lower()

ENV_DATABASE_URL = os.getenv("DATABASE_URL")

if ENV_DATABASE_URL:
    DATABASE_URL = ENV_DATABASE_URL
else:
    BASE_DIR = Path(__file__).resolve().parents[1]  # krishi_quest/
    DB_FILE = BASE_DIR / "krishi_quest.db"
    DATABASE_URL = f"sqlite+aiosqlite:///{DB_FILE.as_posix()}"

SQL_ECHO = os.getenv("SQL_ECHO", "0") == "1"

# seed quests/schemes/market prices when the catalog is empty
SEED_DEFAULTS = os.getenv("SEED_DEFAULTS", "1") == "1"

# ----------------------------
# HTTP
# ----------------------------
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,"
        "http://localhost:5173,http://127.0.0.1:5173",
    ).split(",")
    if o.strip()
]

PORT = int(os.getenv("PORT", "8000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
