import csv
import logging
from pathlib import Path

from .database.ops import DBOperations

HEADERS = [
    "Score ID",
    "Created At",
    "Artist",
    "Song",
    "Charter",
    "Total Score",
    "Stars",
    "Player",
    "Instrument",
    "Difficulty",
    "Player Score",
    "Accuracy",
    "Misses",
    "Best Streak",
]

class ReportGenerator:
    def __init__(self, db_ops: DBOperations):
        self.db = db_ops

    def generate_scores_report(self, output_csv: Path, batch_size: int = 500) -> int:
        """
        Writes every stored score to CSV, one row per player.
        Scores without players still get one row. Returns the number of scores written.
        """
        logging.info(f"Generating score report -> {output_csv}")
        written = 0

        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(HEADERS)

            offset = 0
            while True:
                scores = self.db.list_scores(limit=batch_size, offset=offset)
                if not scores:
                    break
                for score in scores:
                    base = [
                        score['id'], score['created_at'], score['artist'], score['song_name'] or "",
                        score['charter'] or "", _blank(score['total_score']), _blank(score['stars_achieved']),
                    ]
                    players = self.db.list_players(score['id'])
                    if not players:
                        writer.writerow(base + [""] * 7)
                    for p in players:
                        writer.writerow(base + [
                            p['name'], p['instrument'] or "", p['difficulty'] or "", _blank(p['score']),
                            _blank(p['accuracy']), _blank(p['misses']), _blank(p['combo']),
                        ])
                    written += 1
                offset += batch_size

        logging.info(f"Report complete. Wrote {written} scores.")
        return written


def _blank(value):
    return "" if value is None else value
