import os
import time
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional

from tqdm import tqdm
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .. import config
from ..exceptions import FileOperationError, WatcherError
from ..models import FileState
from ..organization.mover import FileMover
from .state import FileStateTable


def normalize_path(path) -> Path:
    """Absolute and cleaned, so both discovery channels agree on the key."""
    return Path(os.path.abspath(os.path.normpath(os.fspath(path))))


def is_candidate(path: Path) -> bool:
    return path.suffix.lower() in config.ALLOWED_IMAGE_EXTS


class _ScreenshotEventHandler(FileSystemEventHandler):
    """Forwards create/write (and moved-in) events to the watcher."""

    def __init__(self, watcher: "DirectoryWatcher"):
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent):
        if not event.is_directory:
            self._watcher.discover(event.src_path, source="event")

    def on_modified(self, event: FileSystemEvent):
        if not event.is_directory:
            self._watcher.discover(event.src_path, source="event")

    def on_moved(self, event: FileSystemEvent):
        if not event.is_directory:
            self._watcher.discover(event.dest_path, source="event")


class DirectoryWatcher:
    """
    Watches a directory for new screenshots and drives each one through
    DISCOVERED -> PROCESSING -> PROCESSED | FAILED.

    Two discovery channels run side by side: filesystem events (watchdog)
    and a fixed-interval directory poll, since events are not delivered
    reliably on some mounts (e.g. Windows drives under WSL2). Both funnel
    into FileStateTable.claim, so each path is handled once per run.

    `on_new_file(path)` does the actual work and raises on failure. The
    file is then moved to `processed_dir` or `failed_dir` when configured,
    otherwise left in place.
    """

    def __init__(self,
                 watch_dir: Path,
                 on_new_file: Callable[[Path], object],
                 processed_dir: Optional[Path] = None,
                 failed_dir: Optional[Path] = None,
                 poll_interval: float = config.POLL_INTERVAL_SECONDS,
                 debounce: float = config.DEBOUNCE_SECONDS,
                 startup_debounce: float = config.STARTUP_DEBOUNCE_SECONDS,
                 max_workers: int = config.MAX_WORKERS,
                 use_events: bool = True,
                 mover: Optional[FileMover] = None):
        self.watch_dir = normalize_path(watch_dir)
        self.processed_dir = normalize_path(processed_dir) if processed_dir else None
        self.failed_dir = normalize_path(failed_dir) if failed_dir else None
        self.on_new_file = on_new_file
        self.poll_interval = poll_interval
        self.debounce = debounce
        self.startup_debounce = startup_debounce
        self.use_events = use_events
        self.mover = mover or FileMover()

        self.states = FileStateTable()
        self._stop_event = threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ingest")
        self._observer = None
        self._poll_thread: Optional[threading.Thread] = None

    # --- Lifecycle ---

    def start(self):
        """
        Creates the directories, handles files already present, then starts
        the event observer and the poll loop. Raises WatcherError if the
        watch directory cannot be subscribed to.
        """
        for directory in (self.watch_dir, self.processed_dir, self.failed_dir):
            if directory:
                try:
                    directory.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise WatcherError(f"Failed to create directory {directory}: {e}") from e

        self.process_existing()

        if self.use_events:
            logging.info(f"Adding watch directory: {self.watch_dir}")
            observer = Observer()
            try:
                observer.schedule(_ScreenshotEventHandler(self), str(self.watch_dir), recursive=False)
                observer.start()
            except OSError as e:
                raise WatcherError(f"Failed to watch directory {self.watch_dir}: {e}") from e
            self._observer = observer

        self._poll_thread = threading.Thread(target=self._poll_loop, name="ingest-poll", daemon=True)
        self._poll_thread.start()
        logging.info(f"Watching {self.watch_dir} (events={self.use_events}, poll every {self.poll_interval}s)")

    def stop(self):
        """Stops both discovery channels and waits for in-flight files to finish."""
        self._stop_event.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
        if self._poll_thread is not None:
            self._poll_thread.join(timeout=self.poll_interval + 5)
            self._poll_thread = None
        self._executor.shutdown(wait=True)

        counts = self.states.counts()
        logging.info(f"Watcher stopped. Processed: {counts[FileState.PROCESSED]}, "
                     f"Failed: {counts[FileState.FAILED]}")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    # --- Discovery ---

    def discover(self, path, source: str = "event") -> bool:
        """
        Entry point for both channels. Returns True if this call claimed the
        path and scheduled it; False if it was ignored or already known.
        """
        if self._stop_event.is_set():
            return False

        normalized = normalize_path(path)
        if not is_candidate(normalized) or normalized.parent != self.watch_dir:
            return False
        if not self.states.claim(normalized):
            logging.debug(f"Skipping already handled file ({source}): {normalized}")
            return False

        logging.info(f"Detected new file via {source}: {normalized}")
        future = self._executor.submit(self._handle, normalized, self.debounce)
        future.add_done_callback(self._log_worker_error)
        return True

    def list_candidates(self) -> List[Path]:
        candidates = []
        with os.scandir(self.watch_dir) as it:
            for entry in it:
                if entry.is_file(follow_symlinks=False):
                    path = normalize_path(entry.path)
                    if is_candidate(path):
                        candidates.append(path)
        candidates.sort(key=lambda p: p.name.lower())
        return candidates

    def poll_once(self) -> int:
        """Lists the watch directory once and schedules unhandled candidates."""
        try:
            candidates = self.list_candidates()
        except OSError as e:
            logging.error(f"Error reading watch directory during poll: {e}")
            return 0
        return sum(1 for path in candidates if self.discover(path, source="poll"))

    def process_existing(self) -> int:
        """Handles files present at startup inline, before live watching begins."""
        try:
            candidates = self.list_candidates()
        except OSError as e:
            logging.warning(f"Failed to list existing files in {self.watch_dir}: {e}")
            return 0

        pending = [path for path in candidates if self.states.claim(path)]
        if not pending:
            return 0

        logging.info(f"Processing {len(pending)} existing files in {self.watch_dir}")
        for path in tqdm(pending, desc="Existing screenshots"):
            self._handle(path, self.startup_debounce)
        return len(pending)

    def _poll_loop(self):
        while not self._stop_event.wait(self.poll_interval):
            found = self.poll_once()
            if found:
                logging.info(f"Poll detected {found} new file(s)")

    # --- Processing ---

    def _handle(self, path: Path, delay: float):
        if delay > 0:
            # Give the writer time to finish the file
            time.sleep(delay)

        if not path.exists():
            logging.info(f"File no longer exists, skipping: {path}")
            self.states.advance(path, FileState.FAILED)
            return

        self.states.advance(path, FileState.PROCESSING)
        logging.info(f"Processing file: {path}")
        try:
            self.on_new_file(path)
        except Exception as e:
            logging.error(f"Failed to process {path}: {e}")
            self.states.advance(path, FileState.FAILED)
            self._relocate(path, self.failed_dir, "failed")
            return

        self.states.advance(path, FileState.PROCESSED)
        self._relocate(path, self.processed_dir, "processed")

    def _relocate(self, path: Path, dest_dir: Optional[Path], label: str):
        if dest_dir is None:
            return
        try:
            self.mover.move(path, dest_dir)
        except FileOperationError as e:
            logging.error(f"Failed to move {path} to {label} directory {dest_dir}: {e}")

    def _log_worker_error(self, future: Future):
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logging.error(f"Unexpected error in ingest worker: {exc!r}")
