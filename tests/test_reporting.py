import csv
from datetime import datetime, UTC
from score_ingest.models import PlayerRecord, ScoreRecord
from score_ingest.reporting import ReportGenerator, HEADERS

def test_scores_report_one_row_per_player(db_ops, tmp_path):
    db_ops.create_score(ScoreRecord(
        artist="Band", song_name="Song", charter="Me", total_score=1000, stars_achieved=5,
        players=(
            PlayerRecord(name="P1", difficulty="Expert", score=600, accuracy=99.5, misses=1, best_streak=300),
            PlayerRecord(name="P2", difficulty="Hard", score=400),
        ),
        created_at=datetime(2025, 1, 2, tzinfo=UTC),
    ))
    db_ops.create_score(ScoreRecord(artist="", song_name="", created_at=datetime(2025, 1, 1, tzinfo=UTC)))

    out = tmp_path / "report.csv"
    written = ReportGenerator(db_ops).generate_scores_report(out, batch_size=1)
    assert written == 2

    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))

    assert rows[0] == HEADERS
    assert len(rows) == 4
    assert rows[1][2:4] == ["Band", "Song"]
    assert rows[1][7:] == ["P1", "", "Expert", "600", "99.5", "1", "300"]
    assert rows[2][7] == "P2"
    assert rows[2][11] == ""
    # Degraded score with no players still appears
    assert rows[3][2] == ""
    assert rows[3][7:] == [""] * 7
