import json
import sqlite3
import logging
from datetime import datetime, UTC
from typing import Optional, List, Dict, Any

from ..exceptions import DatabaseError
from ..models import ScoreRecord

class DBOperations:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def create_score(self, record: ScoreRecord) -> int:
        """
        Stores one extracted screenshot as a single transaction:
        upsert artist, upsert song (collecting charters), insert score, insert players.
        Nothing is written if any step fails.
        """
        now_iso = datetime.now(UTC).isoformat()
        created_iso = record.created_at.isoformat()
        players_json = json.dumps([p.to_dict() for p in record.players])

        try:
            with self.conn:
                cur = self.conn.cursor()
                artist_id = self._get_or_create_artist(cur, record.artist, now_iso)
                song_id = self._get_or_create_song(cur, record.song_name, artist_id, record.charter, now_iso)

                cur.execute("""
                    INSERT INTO scores (song_id, artist, charter, total_score, stars_achieved, players, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    song_id, record.artist, record.charter, record.total_score,
                    record.stars_achieved, players_json, created_iso
                ))
                if cur.lastrowid is None:
                    raise DatabaseError("Database INSERT failed to return a row ID.")
                score_id = cur.lastrowid

                for p in record.players:
                    cur.execute("""
                        INSERT INTO players (
                            score_id, name, instrument, difficulty, score, combo,
                            accuracy, misses, rank, created_at
                        )
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """, (
                        score_id, p.name, p.instrument, p.difficulty, p.score, p.best_streak,
                        p.accuracy, p.misses, p.rank, created_iso
                    ))
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to store score for {record.artist!r} - {record.song_name!r}: {e}") from e

        logging.debug(f"Stored score {score_id} with {len(record.players)} player(s)")
        return score_id

    def _get_or_create_artist(self, cur: sqlite3.Cursor, name: str, now_iso: str) -> int:
        cur.execute("INSERT OR IGNORE INTO artists (name, created_at) VALUES (?, ?)", (name, now_iso))
        cur.execute("SELECT id FROM artists WHERE name = ?", (name,))
        return cur.fetchone()[0]

    def _get_or_create_song(self, cur: sqlite3.Cursor, name: str, artist_id: int,
                            charter: Optional[str], now_iso: str) -> int:
        cur.execute(
            "INSERT OR IGNORE INTO songs (name, artist_id, charters, created_at) VALUES (?, ?, '[]', ?)",
            (name, artist_id, now_iso),
        )
        cur.execute("SELECT id, charters FROM songs WHERE name = ? AND artist_id = ?", (name, artist_id))
        song_id, charters_json = cur.fetchone()

        # Keep every distinct charter seen for this song
        if charter:
            charters = json.loads(charters_json or '[]')
            if charter not in charters:
                charters.append(charter)
                cur.execute("UPDATE songs SET charters = ? WHERE id = ?", (json.dumps(charters), song_id))
        return song_id

    # --- Queries ---

    def list_scores(self, limit: int = 50, offset: int = 0) -> List[Dict[str, Any]]:
        """Newest first."""
        cur = self.conn.cursor()
        cur.execute("""
            SELECT s.id, s.song_id, so.name, s.artist, s.charter, s.total_score,
                   s.stars_achieved, s.players, s.created_at
            FROM scores s
            LEFT JOIN songs so ON s.song_id = so.id
            ORDER BY s.created_at DESC, s.id DESC
            LIMIT ? OFFSET ?
        """, (limit, offset))
        return [
            {
                'id': r[0], 'song_id': r[1], 'song_name': r[2], 'artist': r[3],
                'charter': r[4], 'total_score': r[5], 'stars_achieved': r[6],
                'players': json.loads(r[7]) if r[7] else [], 'created_at': r[8],
            }
            for r in cur.fetchall()
        ]

    def list_artists(self, limit: int = 50, offset: int = 0) -> List[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute("SELECT id, name, created_at FROM artists ORDER BY name ASC LIMIT ? OFFSET ?", (limit, offset))
        return [{'id': r[0], 'name': r[1], 'created_at': r[2]} for r in cur.fetchall()]

    def list_songs(self, limit: int = 50, offset: int = 0) -> List[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute("""
            SELECT id, name, artist_id, charters, created_at
            FROM songs ORDER BY name ASC LIMIT ? OFFSET ?
        """, (limit, offset))
        return [
            {'id': r[0], 'name': r[1], 'artist_id': r[2], 'charters': json.loads(r[3]), 'created_at': r[4]}
            for r in cur.fetchall()
        ]

    def list_players(self, score_id: int) -> List[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute("""
            SELECT id, name, instrument, difficulty, score, combo, accuracy, misses, rank
            FROM players WHERE score_id = ? ORDER BY id
        """, (score_id,))
        return [
            {
                'id': r[0], 'name': r[1], 'instrument': r[2], 'difficulty': r[3], 'score': r[4],
                'combo': r[5], 'accuracy': r[6], 'misses': r[7], 'rank': r[8],
            }
            for r in cur.fetchall()
        ]

    # --- Manual corrections ---

    def update_artist(self, artist_id: int, name: Optional[str] = None) -> bool:
        return self._update("artists", artist_id, {'name': name})

    def update_song(self, song_id: int, name: Optional[str] = None, artist_id: Optional[int] = None,
                    charters: Optional[List[str]] = None) -> bool:
        """A provided charters list replaces the stored one."""
        return self._update("songs", song_id, {
            'name': name,
            'artist_id': artist_id,
            'charters': json.dumps(charters) if charters is not None else None,
        })

    def update_score(self, score_id: int, total_score: Optional[int] = None,
                     stars_achieved: Optional[int] = None, charter: Optional[str] = None) -> bool:
        return self._update("scores", score_id, {
            'total_score': total_score,
            'stars_achieved': stars_achieved,
            'charter': charter,
        })

    def update_player(self, player_id: int, name: Optional[str] = None, instrument: Optional[str] = None,
                      difficulty: Optional[str] = None, score: Optional[int] = None,
                      combo: Optional[int] = None, accuracy: Optional[float] = None,
                      misses: Optional[int] = None, rank: Optional[int] = None) -> bool:
        return self._update("players", player_id, {
            'name': name, 'instrument': instrument, 'difficulty': difficulty, 'score': score,
            'combo': combo, 'accuracy': accuracy, 'misses': misses, 'rank': rank,
        })

    def _update(self, table: str, row_id: int, values: Dict[str, Any]) -> bool:
        """
        Partial update: only non-None values are written.
        Returns False if no row has that id.
        """
        changes = {col: val for col, val in values.items() if val is not None}
        if not changes:
            raise ValueError("No fields to update")

        assignments = ", ".join(f"{col} = ?" for col in changes)
        try:
            with self.conn:
                cur = self.conn.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ?",
                    (*changes.values(), row_id),
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to update {table} id={row_id}: {e}") from e
        return cur.rowcount > 0
