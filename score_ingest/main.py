import argparse
import logging
import os
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from . import config
from .core import ScoreIngestApp
from .database.db import DBManager
from .database.ops import DBOperations
from .exceptions import DatabaseError, OCRError, WatcherError
from .parsing.extract import ScoreExtractor
from .parsing.ocr import TesseractOCR
from .reporting import ReportGenerator

def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and optionally a file."""
    level_name = os.environ.get("LOG_LEVEL", "info").upper()
    log_level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )

    # Silence chatty libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("watchdog").setLevel(logging.WARNING)

def normalize_dir(value: Optional[str]) -> Optional[Path]:
    """
    Accepts paths pasted from shells or Windows ("Clone\\ Hero", "C:\\Games\\...").
    Empty means 'not configured'.
    """
    if not value:
        return None
    cleaned = value.replace("\\ ", " ").replace("\\", "/")
    return Path(os.path.abspath(os.path.expanduser(cleaned)))

def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Score Ingest: read rhythm game result screenshots into a score database")

    p.add_argument("--watch-dir", default=os.environ.get("WATCH_DIR"), help="Directory the game saves screenshots to (env WATCH_DIR)")
    p.add_argument("--processed-dir", default=os.environ.get("PROCESSED_DIR", ""), help="Move successfully ingested files here (env PROCESSED_DIR)")
    p.add_argument("--failed-dir", default=os.environ.get("FAILED_DIR", ""), help="Move files that failed here (env FAILED_DIR)")
    p.add_argument("--db", type=Path, default=os.environ.get("DATABASE_PATH"), help=f"SQLite database path (env DATABASE_PATH, default: <watch-dir>/{config.DEFAULT_DB_NAME})")

    p.add_argument("--max-width", type=int, default=_env_int("MAX_IMAGE_WIDTH", config.MAX_IMAGE_WIDTH), help="Downscale images wider than this before OCR")
    p.add_argument("--max-height", type=int, default=_env_int("MAX_IMAGE_HEIGHT", config.MAX_IMAGE_HEIGHT), help="Downscale images taller than this before OCR")
    p.add_argument("--poll-interval", type=float, default=config.POLL_INTERVAL_SECONDS, help="Seconds between directory polls")
    p.add_argument("--workers", type=int, default=config.MAX_WORKERS, help="Maximum screenshots processed concurrently")
    p.add_argument("--poll-only", action="store_true", help="Disable filesystem events and rely on polling")
    p.add_argument("--tesseract-cmd", default=None, help="Path to the tesseract executable")

    p.add_argument("--ingest", nargs="+", type=Path, metavar="FILE", help="Process these screenshots once and exit")
    p.add_argument("--report", type=Path, metavar="CSV", help="Export stored scores to CSV and exit")

    p.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)

def run_report(db_path: Path, output_csv: Path) -> int:
    if not db_path.exists():
        logging.error(f"Database not found at {db_path}. Cannot generate report.")
        return 1
    with DBManager(db_path) as conn:
        ReportGenerator(DBOperations(conn)).generate_scores_report(output_csv)
    return 0

def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    watch_dir = normalize_dir(args.watch_dir)
    db_path = args.db
    if db_path is None:
        if watch_dir is None:
            logging.error("Either --watch-dir (WATCH_DIR) or --db (DATABASE_PATH) is required.")
            sys.exit(2)
        db_path = watch_dir / config.DEFAULT_DB_NAME
    db_path = Path(db_path)

    logging.info("=== Score Ingest Started ===")

    try:
        if args.report:
            sys.exit(run_report(db_path, args.report))

        extractor = ScoreExtractor(
            TesseractOCR(tesseract_cmd=args.tesseract_cmd),
            max_width=args.max_width,
            max_height=args.max_height,
        )
        app = ScoreIngestApp(db_path, extractor)

        if args.ingest:
            results = app.ingest(args.ingest)
            failed = [p for p, score_id in results.items() if score_id is None]
            logging.info(f"Ingested {len(results) - len(failed)} of {len(results)} files.")
            sys.exit(1 if failed else 0)

        if watch_dir is None:
            logging.error("--watch-dir (WATCH_DIR) is required for watch mode.")
            sys.exit(2)

        stop_event = threading.Event()

        def _request_stop(signum, frame):
            logging.info(f"Received signal {signum}, shutting down...")
            stop_event.set()

        signal.signal(signal.SIGINT, _request_stop)
        signal.signal(signal.SIGTERM, _request_stop)

        logging.info(f"Watch:     {watch_dir}")
        logging.info(f"Processed: {normalize_dir(args.processed_dir) or '(leave in place)'}")
        logging.info(f"Failed:    {normalize_dir(args.failed_dir) or '(leave in place)'}")
        logging.info(f"Database:  {db_path}")

        app.watch(
            watch_dir,
            processed_dir=normalize_dir(args.processed_dir),
            failed_dir=normalize_dir(args.failed_dir),
            stop_event=stop_event,
            poll_interval=args.poll_interval,
            max_workers=args.workers,
            use_events=not args.poll_only,
        )
    except (DatabaseError, OCRError, WatcherError) as e:
        logging.error(f"Fatal: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error during ingestion.")
        sys.exit(1)

    logging.info("=== Score Ingest Stopped ===")

if __name__ == "__main__":
    main()
