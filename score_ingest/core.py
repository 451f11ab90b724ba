import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional

from .database.db import DBManager
from .database.ops import DBOperations
from .exceptions import ScoreIngestError
from .parsing.extract import ScoreExtractor
from .watching.watcher import DirectoryWatcher

class ScoreIngestApp:
    def __init__(self, db_path: Path, extractor: ScoreExtractor):
        self.db_manager = DBManager(db_path)
        self.extractor = extractor
        self.db_ops: Optional[DBOperations] = None

    def process_file(self, path: Path) -> int:
        """
        Extracts one screenshot and stores it. Raises on any failure so the
        watcher can route the file to the failed directory.
        """
        if self.db_ops is None:
            raise RuntimeError("process_file called outside ingest()/watch()")

        logging.info(f"Parsing image: {path}")
        record = self.extractor.extract(path)

        logging.info(f"Creating score for: {record.artist} - {record.song_name}")
        with self.db_manager.write_lock:
            score_id = self.db_ops.create_score(record)

        logging.info(f"Successfully created score with ID: {score_id}")
        return score_id

    def ingest(self, paths: Iterable[Path]) -> Dict[Path, Optional[int]]:
        """One-shot mode: processes explicit files, no watching or relocation."""
        results: Dict[Path, Optional[int]] = {}
        with self.db_manager as conn, self.extractor:
            self.db_ops = DBOperations(conn)
            try:
                for path in paths:
                    try:
                        results[path] = self.process_file(path)
                    except ScoreIngestError as e:
                        logging.error(f"Failed to ingest {path}: {e}")
                        results[path] = None
            finally:
                self.db_ops = None
        return results

    def watch(self,
              watch_dir: Path,
              processed_dir: Optional[Path] = None,
              failed_dir: Optional[Path] = None,
              stop_event: Optional[threading.Event] = None,
              **watcher_options):
        """
        Runs the directory watcher until `stop_event` is set.
        Database and OCR engine stay open for the whole run.
        """
        stop_event = stop_event or threading.Event()

        with self.db_manager as conn, self.extractor:
            self.db_ops = DBOperations(conn)
            watcher = DirectoryWatcher(
                watch_dir,
                self.process_file,
                processed_dir=processed_dir,
                failed_dir=failed_dir,
                **watcher_options,
            )
            try:
                watcher.start()
                while not stop_event.wait(1.0):
                    pass
                logging.info("Shutdown requested, stopping watcher...")
            finally:
                watcher.stop()
                self.db_ops = None
