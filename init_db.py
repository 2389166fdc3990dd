import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

DB_PATH = os.environ.get("DB_PATH", "spreebreak.db")

# No foreign keys or check constraints: store.py enforces the relationships.
schema = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    username TEXT,
    first_name TEXT,
    last_name TEXT,
    team TEXT,
    created_at INT
);
CREATE TABLE IF NOT EXISTS forums (
    id INTEGER PRIMARY KEY,
    name TEXT,
    created_at INT
);
CREATE TABLE IF NOT EXISTS submissions (
    message_id INTEGER PRIMARY KEY,
    user INT,
    team TEXT,
    date INT,
    caption TEXT,
    type INT
);
CREATE TABLE IF NOT EXISTS challenges (
    name TEXT PRIMARY KEY,
    short_name TEXT,
    "desc" TEXT,
    points INT
);
CREATE TABLE IF NOT EXISTS judgement (
    submission_id INT PRIMARY KEY,
    challenge_name TEXT,
    points INT,
    valid BOOLEAN
);
CREATE TABLE IF NOT EXISTS config (
    name TEXT PRIMARY KEY,
    value TEXT
);
CREATE TABLE IF NOT EXISTS safety_team (
    name TEXT PRIMARY KEY,
    phone TEXT,
    date TEXT
);
"""

seed = """
INSERT OR IGNORE INTO challenges (name, short_name, "desc", points)
    VALUES ('döner_macht_schöner1', 'döner macht schöner1', 'Iss einen Döner', 1);
INSERT OR IGNORE INTO challenges (name, short_name, "desc", points)
    VALUES ('döner_macht_schöner2', 'döner macht schöner2', 'Foto mit dem Dönermann', 1);
INSERT OR IGNORE INTO safety_team (name, phone, date)
    VALUES ('Max Mustermann', '+49 123', '2024-11-14');
"""

TABLES = {
    "users": ("id", "username", "first_name", "last_name", "team", "created_at"),
    "forums": ("id", "name", "created_at"),
    "submissions": ("message_id", "user", "team", "date", "caption", "type"),
    "challenges": ("name", "short_name", "desc", "points"),
    "judgement": ("submission_id", "challenge_name", "points", "valid"),
    "config": ("name", "value"),
    "safety_team": ("name", "phone", "date"),
}


def init_db(db_path=DB_PATH):
    """Create every table and insert the seed rows. Safe to run repeatedly."""
    os.makedirs(os.path.dirname(db_path), exist_ok=True) if os.path.dirname(db_path) else None
    conn = sqlite3.connect(db_path)
    try:
        with conn:
            conn.executescript(schema)
            conn.executescript(seed)
    finally:
        conn.close()
    logger.info("SQLite ready at %s", db_path)
    return db_path


if __name__ == "__main__":
    from dotenv import load_dotenv

    load_dotenv()
    init_db(os.environ.get("DB_PATH", DB_PATH))
    print(f"SQLite ready at {os.environ.get('DB_PATH', DB_PATH)}")
