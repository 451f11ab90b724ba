"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the core schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        conn.execute("""
        CREATE TABLE IF NOT EXISTS artists (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            name            TEXT NOT NULL UNIQUE,
            created_at      TEXT NOT NULL
        );
        """)

        # charters: JSON array of every charter seen for the song
        conn.execute("""
        CREATE TABLE IF NOT EXISTS songs (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            name            TEXT NOT NULL,
            artist_id       INTEGER,
            charters        TEXT NOT NULL DEFAULT '[]',
            created_at      TEXT NOT NULL,
            UNIQUE(name, artist_id),
            FOREIGN KEY(artist_id) REFERENCES artists(id) ON DELETE CASCADE
        );
        """)

        # players: JSON snapshot of the extracted player blocks
        conn.execute("""
        CREATE TABLE IF NOT EXISTS scores (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            song_id         INTEGER,
            artist          TEXT NOT NULL,
            charter         TEXT,
            total_score     INTEGER,
            stars_achieved  INTEGER,
            players         TEXT,
            created_at      TEXT NOT NULL,
            FOREIGN KEY(song_id) REFERENCES songs(id) ON DELETE CASCADE
        );
        """)

        # combo holds the player's best streak
        conn.execute("""
        CREATE TABLE IF NOT EXISTS players (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            score_id        INTEGER NOT NULL,
            name            TEXT NOT NULL,
            instrument      TEXT,
            difficulty      TEXT,
            score           INTEGER,
            combo           INTEGER,
            accuracy        REAL,
            misses          INTEGER,
            rank            INTEGER,
            created_at      TEXT NOT NULL,
            FOREIGN KEY(score_id) REFERENCES scores(id) ON DELETE CASCADE
        );
        """)

        conn.execute("CREATE INDEX IF NOT EXISTS idx_scores_song_id ON scores(song_id);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_scores_created_at ON scores(created_at);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_players_score_id ON players(score_id);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_songs_artist_id ON songs(artist_id);")

    logging.debug("Database schema initialized.")
